"""
SkyChecker Session Cache

Stores computed ObservationSessions keyed by (date, location rounded to
0.01 deg) so a recent night plan can be shown without refetching:
- MemorySessionCache: in-process dict, used by tests and one-shot runs
- JsonFileSessionCache: one JSON file per session under a cache directory

Sessions older than the TTL (24 h by default, measured from
last_updated) are treated as absent. Cache I/O failures are logged and
never fail a planning cycle.
"""

from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

from skychecker.constants import CACHE_TTL_HOURS
from skychecker.logging_config import get_logger
from skychecker.models import ObservationSession, ObserverLocation, session_cache_key

logger = get_logger(__name__)

__all__ = ["SessionCache", "MemorySessionCache", "JsonFileSessionCache"]

_session_adapter = TypeAdapter(ObservationSession)


class SessionCache(Protocol):
    """Storage for computed sessions."""

    def save(self, session: ObservationSession) -> None:
        ...

    def load(self, day: date, location: ObserverLocation) -> Optional[ObservationSession]:
        ...

    def clear(self) -> None:
        ...

    def clear_expired(self) -> int:
        ...


class _TTLMixin:
    def __init__(self, ttl_hours: float, clock: Optional[Callable[[], datetime]]):
        self.ttl = timedelta(hours=ttl_hours)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _is_fresh(self, session: ObservationSession) -> bool:
        if session.last_updated is None:
            return False
        return self._clock() - session.last_updated <= self.ttl


class MemorySessionCache(_TTLMixin):
    """Dict-backed cache."""

    def __init__(self, ttl_hours: float = CACHE_TTL_HOURS, clock: Optional[Callable[[], datetime]] = None):
        super().__init__(ttl_hours, clock)
        self._sessions: Dict[str, ObservationSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def save(self, session: ObservationSession) -> None:
        self._sessions[session.cache_key] = session

    def load(self, day: date, location: ObserverLocation) -> Optional[ObservationSession]:
        session = self._sessions.get(session_cache_key(day, location))
        if session is None or not self._is_fresh(session):
            return None
        return session

    def clear(self) -> None:
        self._sessions.clear()

    def clear_expired(self) -> int:
        expired = [key for key, s in self._sessions.items() if not self._is_fresh(s)]
        for key in expired:
            del self._sessions[key]
        return len(expired)


class JsonFileSessionCache(_TTLMixin):
    """One ``<cache_key>.json`` file per session."""

    def __init__(
        self,
        directory: str | Path,
        ttl_hours: float = CACHE_TTL_HOURS,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(ttl_hours, clock)
        self.directory = Path(directory).expanduser()

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def save(self, session: ObservationSession) -> None:
        path = self._path(session.cache_key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            path.write_bytes(_session_adapter.dump_json(session, indent=2))
            logger.debug(f"Cached session {session.cache_key}")
        except OSError as e:
            logger.warning(f"Failed to write session cache {path}: {e}")

    def _read(self, path: Path) -> Optional[ObservationSession]:
        try:
            return _session_adapter.validate_json(path.read_bytes())
        except OSError as e:
            logger.warning(f"Failed to read session cache {path}: {e}")
        except ValidationError as e:
            logger.warning(f"Discarding unreadable session cache {path}: {e.error_count()} errors")
        return None

    def load(self, day: date, location: ObserverLocation) -> Optional[ObservationSession]:
        path = self._path(session_cache_key(day, location))
        if not path.exists():
            return None
        session = self._read(path)
        if session is None or not self._is_fresh(session):
            return None
        return session

    def clear(self) -> None:
        if not self.directory.exists():
            return
        for path in self.directory.glob("*.json"):
            path.unlink(missing_ok=True)

    def clear_expired(self) -> int:
        """Delete expired or unreadable session files; returns how many."""
        if not self.directory.exists():
            return 0
        removed = 0
        for path in self.directory.glob("*.json"):
            session = self._read(path)
            if session is None or not self._is_fresh(session):
                path.unlink(missing_ok=True)
                removed += 1
        return removed
