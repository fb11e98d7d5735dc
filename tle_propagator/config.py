"""
Propagator Configuration and Constants

This module holds the tunable settings and sample element sets used throughout
the package. Settings that a deployment may want to change are read from the
environment once, at import time.

Environment Variables:
    TLE_PROPAGATOR_GRAVITY_MODEL
        Name of the gravity constant set used when a caller does not pick one
        ("wgs72" or "wgs84"). Defaults to "wgs84".
    TLE_PROPAGATOR_STRICT_CHECKSUM
        When set to a true value ("1", "true", "yes"), a TLE line whose
        modulo-10 checksum does not match is rejected instead of logged.

Sample TLE Data:
    An ISS element set for demonstrations and tests. It is not kept current;
    fetch a fresh set from CelesTrak or Space-Track for real work.

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import os
from typing import Dict, Any


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Gravity model used when none is requested explicitly
DEFAULT_GRAVITY_MODEL: str = os.getenv("TLE_PROPAGATOR_GRAVITY_MODEL", "wgs84").strip().lower()

# Reject TLE lines with a bad checksum instead of only warning
STRICT_CHECKSUM: bool = _env_flag("TLE_PROPAGATOR_STRICT_CHECKSUM")

# Kepler solver: Newton-Raphson stopping rule
KEPLER_TOLERANCE: float = 1.0e-12
KEPLER_MAX_ITERATIONS: int = 10
KEPLER_MAX_STEP: float = 0.95  # rad, largest single Newton correction

# Orbits with a period at or above this use the deep-space (SDP4) branch
DEEP_SPACE_PERIOD_MINUTES: float = 225.0

# Perigee below this altitude drops the higher-order drag terms
SIMPLIFIED_DRAG_PERIGEE_KM: float = 220.0

# Sample ISS TLE for demonstrations and testing
SAMPLE_ISS_TLE: Dict[str, Any] = {
    'name': 'ISS (ZARYA)',
    'catalog_number': 25544,
    'line1': '1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995',
    'line2': '2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598',
    'epoch': '2023-09-16T13:49:09Z',
    'mean_motion': 15.49541986,
    'inclination': 51.6416,
    'eccentricity': 0.0004263
}
