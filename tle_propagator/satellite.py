"""
Satellite Propagation Driver

Ties parsing, initialization and propagation together:

- ``Satellite`` owns one element set and builds its PropagationRecord
  lazily, exactly once, on the first propagation.
- ``propagate`` is a module-level convenience that keeps one Satellite per
  (element set, gravity model) so repeated calls reuse the record.
- ``SatelliteTracker`` manages several satellites by catalog number.

All of these are safe to use from several threads. Initialization is
guarded by a lock; propagation itself shares only immutable data.
"""

import dataclasses
import threading
import weakref
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .exceptions import ConvergenceError, OrbitDecayedError
from .gravity import GravityModel, lookup
from .initializer import initialize
from .logging_config import get_logger
from .propagation import step
from .records import PropagationRecord, StateVector
from .timescale import minutes_between
from .tle_parser import ElementSet, parse_tle, parse_tle_text

logger = get_logger(__name__)


def _as_utc(when: datetime) -> datetime:
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when


class Satellite:
    """
    One element set plus its lazily built propagation record.

    Args:
        element_set: Parsed TLE
        model_name: Gravity model name; None selects the configured default.
            An unknown name fails here, before any propagation.
    """

    def __init__(self, element_set: ElementSet, model_name: Optional[str] = None):
        self.element_set = element_set
        self.gravity: GravityModel = lookup(model_name)
        self._record: Optional[PropagationRecord] = None
        self._lock = threading.Lock()

    @classmethod
    def from_tle(cls, lines: Union[str, Sequence[str]], model_name: Optional[str] = None) -> "Satellite":
        """Parse a two- or three-line TLE and wrap it."""
        return cls(parse_tle(lines), model_name)

    @property
    def catalog_number(self) -> int:
        return self.element_set.catalog_number

    @property
    def name(self) -> str:
        return self.element_set.name

    @property
    def initialized(self) -> bool:
        return self._record is not None

    @property
    def record(self) -> PropagationRecord:
        """The propagation record, built on first access."""
        record = self._record
        if record is None:
            with self._lock:
                record = self._record
                if record is None:
                    try:
                        record = initialize(self.element_set, self.gravity)
                    except OrbitDecayedError as e:
                        logger.error(f"Initialization failed for satellite {self.catalog_number}: {e}")
                        raise
                    except ConvergenceError as e:
                        logger.warning(f"Initialization of satellite {self.catalog_number} did not converge: {e}")
                        raise
                    self._record = record
        return record

    def minutes_since_epoch(self, when: datetime) -> float:
        """Signed minutes from the element set epoch to ``when``."""
        return minutes_between(self.element_set.epoch, _as_utc(when))

    def propagate_minutes(self, tsince: float) -> StateVector:
        """
        Propagate to ``tsince`` minutes from epoch.

        Raises:
            OrbitDecayedError: If the orbit has decayed by ``tsince``
            ConvergenceError: If Kepler's equation does not converge
        """
        record = self.record
        try:
            return step(record, tsince)
        except OrbitDecayedError as e:
            logger.error(f"SGP4 error {e.code} for satellite {self.catalog_number}: {e}")
            raise
        except ConvergenceError as e:
            logger.warning(f"Propagation of satellite {self.catalog_number} did not converge: {e}")
            raise

    def propagate(self, when: datetime) -> StateVector:
        """
        Propagate to an absolute time.

        Args:
            when: Target time; naive datetimes are taken as UTC

        Returns:
            StateVector in TEME, km and km/s
        """
        return self.propagate_minutes(self.minutes_since_epoch(when))

    def propagate_batch(self, times: Iterable[datetime]) -> List[StateVector]:
        """Propagate to several times; the first failure is raised."""
        return [self.propagate(when) for when in times]

    def __repr__(self) -> str:
        return (f"Satellite(catalog_number={self.catalog_number}, name={self.name!r}, "
                f"model={self.gravity.name!r})")


# Entries go away with the last reference to their element set.
_registry: "weakref.WeakKeyDictionary[ElementSet, Dict[str, Satellite]]" = weakref.WeakKeyDictionary()
_registry_lock = threading.Lock()


def get_satellite(element_set: ElementSet, model_name: Optional[str] = None) -> Satellite:
    """Return the shared Satellite for an element set and gravity model."""
    gravity = lookup(model_name)
    with _registry_lock:
        by_model = _registry.get(element_set)
        if by_model is None:
            by_model = _registry[element_set] = {}
        satellite = by_model.get(gravity.name)
        if satellite is None:
            # The cached Satellite holds an equal copy, never the key itself
            satellite = Satellite(dataclasses.replace(element_set), gravity.name)
            by_model[gravity.name] = satellite
    return satellite


def propagate(element_set: ElementSet, when: datetime, model_name: Optional[str] = None) -> StateVector:
    """
    Propagate an element set to an absolute time.

    The propagation record is built on the first call for each element set
    and gravity model and reused for as long as the caller keeps that
    element set (or an equal one) alive.

    Args:
        element_set: Parsed TLE
        when: Target time; naive datetimes are taken as UTC
        model_name: Gravity model name; None selects the configured default

    Returns:
        StateVector in TEME, km and km/s

    Raises:
        UnknownModelError: If ``model_name`` is not a known model
        PropagationError: If the orbit cannot be evaluated at ``when``
    """
    return get_satellite(element_set, model_name).propagate(when)


def clear_registry() -> None:
    """Drop every cached Satellite."""
    with _registry_lock:
        _registry.clear()


class SatelliteTracker:
    """
    Track several satellites by catalog number.

    Args:
        model_name: Gravity model used for every satellite loaded
    """

    def __init__(self, model_name: Optional[str] = None):
        self.model_name = model_name
        self.satellites: Dict[int, Satellite] = {}
        self._lock = threading.Lock()

    def load_satellite(self, line1: str, line2: str, name: Optional[str] = None) -> int:
        """Load satellite from TLE, replacing any earlier set with the same number."""
        lines = [line1, line2] if name is None else [name, line1, line2]
        satellite = Satellite.from_tle(lines, self.model_name)
        with self._lock:
            replaced = satellite.catalog_number in self.satellites
            self.satellites[satellite.catalog_number] = satellite
        logger.info(
            f"{'Replaced' if replaced else 'Loaded'} satellite {satellite.catalog_number} "
            f"({satellite.name}) epoch {satellite.element_set.epoch.isoformat()}"
        )
        return satellite.catalog_number

    def load_text(self, text: str) -> List[int]:
        """Load every element set in a multi-TLE text block."""
        loaded = []
        for element_set in parse_tle_text(text):
            satellite = Satellite(element_set, self.model_name)
            with self._lock:
                self.satellites[satellite.catalog_number] = satellite
            loaded.append(satellite.catalog_number)
        return loaded

    def remove_satellite(self, catalog_number: int) -> None:
        with self._lock:
            self._get(catalog_number)
            del self.satellites[catalog_number]

    def _get(self, catalog_number: int) -> Satellite:
        try:
            return self.satellites[catalog_number]
        except KeyError:
            raise KeyError(f"Satellite {catalog_number} not loaded") from None

    def propagate(self, catalog_number: int, timestamp: Optional[datetime] = None) -> StateVector:
        """
        Propagate a loaded satellite.

        Args:
            catalog_number: NORAD catalog ID
            timestamp: Target time (default: now)
        """
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)
        return self._get(catalog_number).propagate(timestamp)

    def propagate_batch(self, catalog_number: int, timestamps: Iterable[datetime]) -> List[StateVector]:
        """Propagate multiple timestamps; errors are raised, not collected."""
        return self._get(catalog_number).propagate_batch(timestamps)

    def get_orbital_elements(self, catalog_number: int) -> Dict[str, Any]:
        """Get orbital elements"""
        satellite = self._get(catalog_number)
        elements = satellite.element_set
        record = satellite.record

        return {
            "catalog_number": catalog_number,
            "name": elements.name,
            "epoch": elements.epoch.isoformat(),
            "mean_motion": elements.mean_motion,  # rev/day
            "eccentricity": elements.eccentricity,
            "inclination": elements.inclination,
            "raan": elements.raan,
            "arg_perigee": elements.arg_perigee,
            "mean_anomaly": elements.mean_anomaly,
            "bstar": elements.bstar,
            "classification": elements.classification,
            "element_number": elements.element_number,
            "revolution_number": elements.revolution_number,
            "gravity_model": record.gravity.name,
            "regime": record.regime.value,
            "resonance": record.resonance.name.lower(),
            "period_minutes": record.period_minutes,
            "perigee_altitude_km": record.perigee_altitude_km,
            "apogee_altitude_km": record.apogee_altitude_km,
        }


__all__ = [
    "Satellite",
    "SatelliteTracker",
    "clear_registry",
    "get_satellite",
    "propagate",
]
