"""
SkyChecker Constants

Centralized constants for the visibility engine. Values that users may
want to tune live in config.py; these are the defaults and the fixed
numbers of the astronomy.

Usage:
    from skychecker.constants import CIVIL_TWILIGHT_ELEVATION, HORIZONS_API_URL
"""

from typing import Final

# =============================================================================
# Solar Geometry
# =============================================================================

CIVIL_TWILIGHT_ELEVATION: Final[float] = -6.0  # degrees, sun below horizon
SUNSET_ELEVATION: Final[float] = 0.0  # geometric sunset

DEFAULT_FALLBACK_START_HOUR: Final[int] = 18  # local 6 PM
DEFAULT_FALLBACK_HOURS: Final[int] = 12
POLAR_FALLBACK_HOURS: Final[int] = 24

# =============================================================================
# Positional Astronomy
# =============================================================================

J2000_JD: Final[float] = 2451545.0
DAYS_PER_CENTURY: Final[float] = 36525.0
GMST_AT_J2000_DEG: Final[float] = 280.46061837
GMST_RATE_DEG_PER_DAY: Final[float] = 360.98564736629
GMST_T2_COEFF: Final[float] = 0.000387933
GMST_T3_DIVISOR: Final[float] = 38710000.0

SAMPLE_STEP_MINUTES: Final[int] = 60
MISSING_ALTITUDE: Final[float] = -90.0  # assumed when no current position

# =============================================================================
# Ephemeris Provider (JPL Horizons)
# =============================================================================

HORIZONS_API_URL: Final[str] = "https://ssd.jpl.nasa.gov/api/horizons.api"
HORIZONS_STEP_SIZE: Final[str] = "1 h"
HORIZONS_QUANTITIES: Final[str] = "4"  # apparent az/el
HORIZONS_MOON_QUANTITIES: Final[str] = "4,10,23"  # + illumination, S-O-T
HORIZONS_TIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M"
HORIZONS_ROW_TIME_FORMAT: Final[str] = "%Y-%b-%d %H:%M"
HORIZONS_START_MARKER: Final[str] = "$$SOE"
HORIZONS_END_MARKER: Final[str] = "$$EOE"
MOON_HORIZONS_COMMAND: Final[str] = "301"

# =============================================================================
# Network Policy
# =============================================================================

REQUEST_TIMEOUT_SEC: Final[float] = 10.0
RESOURCE_TIMEOUT_SEC: Final[float] = 20.0
MAX_FETCH_ATTEMPTS: Final[int] = 5
BACKOFF_STEP_SEC: Final[float] = 2.0  # delay = attempt * step
STAGGER_DELAY_SEC: Final[float] = 0.3  # delay = index * stagger
RETRYABLE_STATUSES: Final[frozenset] = frozenset({429, 503})

# =============================================================================
# Satellite Passes (ISS)
# =============================================================================

ISS_PASS_API_URL: Final[str] = "http://api.open-notify.org/iss-pass.json"
ISS_PASS_COUNT: Final[int] = 10
ISS_TRANSIT_ALTITUDE: Final[float] = 45.0
ISS_BELOW_HORIZON_ALTITUDE: Final[float] = -10.0

# (rise, transit, set) azimuths by hemisphere
ISS_NORTH_AZIMUTHS: Final[tuple] = (225.0, 180.0, 45.0)
ISS_SOUTH_AZIMUTHS: Final[tuple] = (315.0, 0.0, 135.0)

# =============================================================================
# Weather (Open-Meteo)
# =============================================================================

OPEN_METEO_API_URL: Final[str] = "https://api.open-meteo.com/v1/forecast"
GOOD_CLOUD_COVER_PERCENT: Final[float] = 30.0
GOOD_VISIBILITY_M: Final[float] = 10000.0

# =============================================================================
# Cache
# =============================================================================

CACHE_TTL_HOURS: Final[float] = 24.0
CACHE_KEY_PREFIX: Final[str] = "session"

# =============================================================================
# Meteor Showers
# =============================================================================

SHOWER_LOOKAHEAD_DAYS: Final[int] = 30
SHOWER_PEAK_GRACE_DAYS: Final[int] = 7

# =============================================================================
# Default Site (San Francisco)
# =============================================================================

DEFAULT_LATITUDE: Final[float] = 37.7749
DEFAULT_LONGITUDE: Final[float] = -122.4194
DEFAULT_ELEVATION_M: Final[float] = 16.0
DEFAULT_TIMEZONE: Final[str] = "America/Los_Angeles"
DEFAULT_SITE_NAME: Final[str] = "San Francisco"
