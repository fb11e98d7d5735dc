"""
Propagation Records

Immutable data produced by initialization and consumed by propagation.

A PropagationRecord holds the quantities every orbit needs (mean elements,
secular rates, drag coefficients) plus exactly one regime payload:
NearEarthTerms for periods below 225 minutes, DeepSpaceTerms otherwise.
Deep-space payloads additionally carry ResonanceTerms when the orbit is in
geosynchronous or 12-hour resonance. Records never change after
initialization, so one record can be propagated from any number of
threads.
"""

import enum
import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np

from .gravity import GravityModel


class Regime(enum.Enum):
    NEAR_EARTH = "near_earth"
    DEEP_SPACE = "deep_space"


class Resonance(enum.Enum):
    NONE = 0
    SYNCHRONOUS = 1   # ~1 rev/day, geosynchronous
    HALF_DAY = 2      # ~2 rev/day, eccentric (Molniya-type)


@dataclass(frozen=True)
class HigherOrderDrag:
    """Drag terms dropped for low-perigee orbits (perigee below 220 km)."""

    cc5: float
    d2: float
    d3: float
    d4: float
    delmo: float
    eta: float
    omgcof: float
    sinmao: float
    xmcof: float
    t3cof: float
    t4cof: float
    t5cof: float


@dataclass(frozen=True)
class NearEarthTerms:
    drag: Optional[HigherOrderDrag] = None

    @property
    def simplified(self) -> bool:
        return self.drag is None


@dataclass(frozen=True)
class LunarSolarTerms:
    """Coefficients of the lunar and solar periodic perturbations."""

    e3: float
    ee2: float
    se2: float
    se3: float
    sgh2: float
    sgh3: float
    sgh4: float
    sh2: float
    sh3: float
    si2: float
    si3: float
    sl2: float
    sl3: float
    sl4: float
    xgh2: float
    xgh3: float
    xgh4: float
    xh2: float
    xh3: float
    xi2: float
    xi3: float
    xl2: float
    xl3: float
    xl4: float
    zmol: float
    zmos: float


@dataclass(frozen=True)
class SecularRates:
    """Lunar-solar secular rates, rad/min (and 1/min for eccentricity)."""

    dedt: float
    didt: float
    dmdt: float
    domdt: float
    dnodt: float


@dataclass(frozen=True)
class ResonanceTerms:
    """Inputs to the resonance integrator; the integration always restarts at epoch."""

    kind: Resonance
    no_unkozai: float
    xlamo: float
    xfact: float
    argpo: float
    argpdot: float
    del1: float = 0.0
    del2: float = 0.0
    del3: float = 0.0
    d2201: float = 0.0
    d2211: float = 0.0
    d3210: float = 0.0
    d3222: float = 0.0
    d4410: float = 0.0
    d4422: float = 0.0
    d5220: float = 0.0
    d5232: float = 0.0
    d5421: float = 0.0
    d5433: float = 0.0


@dataclass(frozen=True)
class DeepSpaceTerms:
    gsto: float
    lunar_solar: LunarSolarTerms
    rates: SecularRates
    resonance: Optional[ResonanceTerms] = None


@dataclass(frozen=True)
class PropagationRecord:
    """
    Everything SGP4/SDP4 needs to evaluate one satellite at any time.

    Angles are radians, mean motions radians per minute and distances earth
    radii unless the attribute name says otherwise.
    """

    catalog_number: int
    gravity: GravityModel
    epoch_days: float        # days since 1949 Dec 31 00:00 UT
    gsto: float              # sidereal time at epoch, rad

    # Mean elements at epoch
    bstar: float
    ecco: float
    inclo: float
    nodeo: float
    argpo: float
    mo: float
    no_kozai: float
    no_unkozai: float
    a: float                 # semi-major axis

    # Inclination functions
    cosio: float
    sinio: float
    con41: float
    x1mth2: float
    x7thm1: float

    # Secular gravity and drag
    mdot: float
    argpdot: float
    nodedot: float
    nodecf: float
    cc1: float
    cc4: float
    t2cof: float
    xlcof: float
    aycof: float

    payload: Union[NearEarthTerms, DeepSpaceTerms]

    @property
    def regime(self) -> Regime:
        if isinstance(self.payload, DeepSpaceTerms):
            return Regime.DEEP_SPACE
        return Regime.NEAR_EARTH

    @property
    def resonance(self) -> Resonance:
        if isinstance(self.payload, DeepSpaceTerms) and self.payload.resonance is not None:
            return self.payload.resonance.kind
        return Resonance.NONE

    @property
    def is_simplified(self) -> bool:
        """True when the higher-order drag terms are not applied."""
        return isinstance(self.payload, DeepSpaceTerms) or self.payload.simplified

    @property
    def perigee_radius(self) -> float:
        return self.a * (1.0 - self.ecco)

    @property
    def apogee_radius(self) -> float:
        return self.a * (1.0 + self.ecco)

    @property
    def perigee_altitude_km(self) -> float:
        return (self.perigee_radius - 1.0) * self.gravity.radius_earth_km

    @property
    def apogee_altitude_km(self) -> float:
        return (self.apogee_radius - 1.0) * self.gravity.radius_earth_km

    @property
    def period_minutes(self) -> float:
        return 2.0 * math.pi / self.no_unkozai


@dataclass(frozen=True, eq=False)
class StateVector:
    """
    Position (km) and velocity (km/s) in the TEME frame.

    ``tsince`` is the time from the element set epoch in minutes.
    """

    position: np.ndarray
    velocity: np.ndarray
    tsince: float

    @property
    def radius(self) -> float:
        return float(np.linalg.norm(self.position))

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    def as_tuple(self) -> Tuple[Tuple[float, float, float], Tuple[float, float, float]]:
        return tuple(self.position.tolist()), tuple(self.velocity.tolist())

    def __eq__(self, other) -> bool:
        if not isinstance(other, StateVector):
            return NotImplemented
        return (
            self.tsince == other.tsince
            and np.array_equal(self.position, other.position)
            and np.array_equal(self.velocity, other.velocity)
        )

    __hash__ = None
