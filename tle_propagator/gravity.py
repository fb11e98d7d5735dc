"""
Earth Gravity Models

Constant sets for the SGP4/SDP4 theory. Each model fixes the Earth's
gravitational parameter, equatorial radius and the zonal harmonics J2-J4;
the derived values (xke, tumin, j3/j2) are computed once here.

WGS-72 is the set the published element sets are fitted with and the one
used to validate against Spacetrack Report #3. WGS-84 is offered because
many downstream consumers expect it.

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import math
from typing import Dict, NamedTuple, Optional

from . import config
from .exceptions import UnknownModelError


class GravityModel(NamedTuple):
    """Immutable bundle of Earth constants in the units SGP4 works in."""

    name: str
    mu: float               # km^3/s^2
    radius_earth_km: float  # km
    xke: float              # sqrt(mu) in earth radii^1.5 per minute
    tumin: float            # minutes per time unit
    j2: float
    j3: float
    j4: float
    j3oj2: float

    @property
    def vkmpersec(self) -> float:
        """Velocity unit (earth radii per minute) expressed in km/s."""
        return self.radius_earth_km * self.xke / 60.0


def _build_model(name: str, mu: float, radius_earth_km: float,
                 j2: float, j3: float, j4: float) -> GravityModel:
    xke = 60.0 / math.sqrt(radius_earth_km ** 3 / mu)
    return GravityModel(
        name=name,
        mu=mu,
        radius_earth_km=radius_earth_km,
        xke=xke,
        tumin=1.0 / xke,
        j2=j2,
        j3=j3,
        j4=j4,
        j3oj2=j3 / j2,
    )


WGS72 = _build_model("wgs72", 398600.8, 6378.135,
                     0.001082616, -0.00000253881, -0.00000165597)

WGS84 = _build_model("wgs84", 398600.5, 6378.137,
                     0.00108262998905, -0.00000253215306, -0.00000161098761)

GRAVITY_MODELS: Dict[str, GravityModel] = {
    WGS72.name: WGS72,
    WGS84.name: WGS84,
}


def lookup(name: Optional[str] = None) -> GravityModel:
    """
    Return the gravity model registered under ``name``.

    Args:
        name: Case-insensitive model name. None selects the configured default.

    Returns:
        The matching GravityModel

    Raises:
        UnknownModelError: If no model has that name
    """
    if name is None:
        name = config.DEFAULT_GRAVITY_MODEL
    key = str(name).strip().lower()
    try:
        return GRAVITY_MODELS[key]
    except KeyError:
        raise UnknownModelError(str(name), GRAVITY_MODELS) from None
