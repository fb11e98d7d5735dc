"""
TLE Orbit Propagation Package

Parses NORAD Two-Line Element sets and propagates them with the SGP4/SDP4
analytic theory, returning TEME position and velocity.

Modules:
    tle_parser: TLE parsing and validation
    gravity: Earth gravity constant sets (WGS-72, WGS-84)
    initializer: Element set to propagation record
    propagation: Record evaluation at a time offset, Kepler solver
    deep_space: Lunar-solar perturbations and resonance integration
    satellite: Lazy per-satellite driver, registry and tracker

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

import logging

from .deep_space import integrate_resonance
from .exceptions import (
    ERROR_CODES,
    ConvergenceError,
    OrbitDecayedError,
    ParseError,
    PropagationError,
    SGP4Error,
    UnknownModelError,
)
from .gravity import GRAVITY_MODELS, WGS72, WGS84, GravityModel, lookup
from .initializer import initialize
from .logging_config import PACKAGE_LOGGER, configure_logging, get_logger
from .propagation import solve_kepler, step
from .records import PropagationRecord, Regime, Resonance, StateVector
from .satellite import Satellite, SatelliteTracker, clear_registry, propagate
from .tle_parser import ElementSet, TLEParser, parse_tle, parse_tle_text

__version__ = "1.0.0"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())

__all__ = [
    "ERROR_CODES",
    "ConvergenceError",
    "ElementSet",
    "GRAVITY_MODELS",
    "GravityModel",
    "OrbitDecayedError",
    "ParseError",
    "PropagationError",
    "PropagationRecord",
    "Regime",
    "Resonance",
    "SGP4Error",
    "Satellite",
    "SatelliteTracker",
    "StateVector",
    "TLEParser",
    "UnknownModelError",
    "WGS72",
    "WGS84",
    "clear_registry",
    "configure_logging",
    "get_logger",
    "initialize",
    "integrate_resonance",
    "lookup",
    "parse_tle",
    "parse_tle_text",
    "propagate",
    "solve_kepler",
    "step",
]
