"""
SkyChecker Provider HTTP Client

Thin aiohttp wrapper shared by the remote data providers. Owns the
ClientSession and applies one timeout and retry policy:
- per-request connect/read timeout plus a whole-request budget
- HTTP 429/503, timeouts and connection errors are retried with linear
  backoff (attempt * step); anything else non-200 fails immediately
- retries exhausted -> ProviderUnavailableError

A session can be injected (tests, or callers sharing one connection pool);
injected sessions are never closed by this client.
"""

import asyncio
import json
from typing import Any, Dict, Optional

import aiohttp

from skychecker.config import FetchPolicy
from skychecker.constants import RETRYABLE_STATUSES
from skychecker.exceptions import ProviderError, ProviderUnavailableError
from skychecker.logging_config import get_logger

logger = get_logger(__name__)

__all__ = ["ProviderClient"]


class ProviderClient:
    """HTTP GET with retry for one named provider."""

    def __init__(
        self,
        provider: str,
        policy: FetchPolicy,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.provider = provider
        self.policy = policy
        self._session = session
        self._owns_session = session is None

    def _timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.policy.resource_timeout,
            sock_connect=self.policy.request_timeout,
            sock_read=self.policy.request_timeout,
        )

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout())
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None:
            if not self._session.closed:
                await self._session.close()
            self._session = None

    async def get_text(
        self,
        url: str,
        params: Dict[str, Any],
        object_id: Optional[str] = None,
    ) -> str:
        """GET ``url`` and return the body, retrying transient failures.

        Raises:
            ProviderError: Non-retryable HTTP status
            ProviderUnavailableError: Transient failure on every attempt
        """
        session = await self._ensure_session()
        attempts = self.policy.max_attempts
        last_error = "no attempt made"

        for attempt in range(1, attempts + 1):
            try:
                async with session.get(url, params=params, timeout=self._timeout()) as resp:
                    if resp.status == 200:
                        return await resp.text()
                    if resp.status not in RETRYABLE_STATUSES:
                        raise ProviderError(
                            f"{self.provider} returned HTTP {resp.status}",
                            provider=self.provider,
                            object_id=object_id,
                            status=resp.status,
                        )
                    last_error = f"HTTP {resp.status}"
            except (asyncio.TimeoutError, aiohttp.ClientError) as e:
                last_error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__

            if attempt < attempts:
                delay = attempt * self.policy.backoff_step
                logger.debug(
                    f"{self.provider} {object_id or ''} attempt {attempt}/{attempts} failed "
                    f"({last_error}), retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        raise ProviderUnavailableError(
            f"{self.provider} unavailable after {attempts} attempts: {last_error}",
            provider=self.provider,
            object_id=object_id,
        )

    async def get_json(
        self,
        url: str,
        params: Dict[str, Any],
        object_id: Optional[str] = None,
    ) -> Any:
        """GET and decode a JSON body; malformed JSON is a ProviderError."""
        text = await self.get_text(url, params, object_id)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ProviderError(
                f"{self.provider} returned invalid JSON: {e}",
                provider=self.provider,
                object_id=object_id,
            ) from e
