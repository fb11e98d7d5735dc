"""
Propagator Exceptions

Every error raised by the package derives from SGP4Error. Input problems
are also ValueErrors and propagation failures are also RuntimeErrors, so
callers that only know the builtin hierarchy still catch them.

Propagation failures carry the numeric code used by the reference SGP4
implementation (see ERROR_CODES) and the time since epoch at which they
occurred.
"""

from typing import Dict, Iterable, Optional

SGP4_ERROR_CODES: Dict[int, str] = {
    1: "Mean eccentricity out of range (must be within [-0.001, 1.0))",
    2: "Mean motion is not positive",
    3: "Perturbed eccentricity out of range (must be within [0.0, 1.0])",
    4: "Semi-latus rectum is negative",
    5: "Epoch elements are sub-orbital",
    6: "Satellite has decayed",
}

# Physical meaning of each code, appended to error messages
_PHYSICAL_MEANING: Dict[int, str] = {
    1: "the orbit is no longer elliptical or the element set is corrupt",
    2: "drag has removed all orbital energy",
    3: "lunar-solar perturbations pushed the orbit out of the elliptical regime",
    4: "the orbit geometry is degenerate",
    5: "perigee lies below the Earth's surface at epoch",
    6: "the computed position is inside the Earth",
}

# Compatibility alias
ERROR_CODES = SGP4_ERROR_CODES


class SGP4Error(Exception):
    """Base class for every error raised by tle_propagator."""


class ParseError(SGP4Error, ValueError):
    """A TLE could not be parsed or failed validation."""

    def __init__(self, message: str, line_number: Optional[int] = None, field: Optional[str] = None):
        self.line_number = line_number
        self.field = field
        location = []
        if line_number is not None:
            location.append(f"line {line_number}")
        if field is not None:
            location.append(f"field '{field}'")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)


class UnknownModelError(SGP4Error, ValueError):
    """The requested gravity model name is not recognised."""

    def __init__(self, name: str, known: Iterable[str] = ()):
        self.name = name
        self.known = tuple(known)
        message = f"Unknown gravity model '{name}'"
        if self.known:
            message += f"; expected one of: {', '.join(self.known)}"
        super().__init__(message)


class PropagationError(SGP4Error, RuntimeError):
    """Propagation produced no usable state."""

    def __init__(self, message: str, code: Optional[int] = None, tsince: Optional[float] = None):
        self.code = code
        self.tsince = tsince
        if tsince is not None:
            message = f"{message} at t={tsince:.6f} min"
        super().__init__(message)


class OrbitDecayedError(PropagationError):
    """
    The orbit has decayed or its elements became non-physical.

    Raised during initialization when the epoch elements are unusable and
    during propagation when mean or perturbed elements leave their valid
    range, or when the computed radius drops below one Earth radius.
    """

    def __init__(self, code: int, tsince: Optional[float] = None, detail: Optional[str] = None):
        description = SGP4_ERROR_CODES.get(code, "Unknown error")
        message = f"SGP4 error {code}: {description}"
        if detail:
            message += f" ({detail})"
        meaning = _PHYSICAL_MEANING.get(code)
        if meaning:
            message += f". Physical meaning: {meaning}"
        super().__init__(message, code=code, tsince=tsince)


class ConvergenceError(PropagationError):
    """Kepler's equation did not converge within the iteration limit."""

    def __init__(self, iterations: int, residual: float, tsince: Optional[float] = None):
        self.iterations = iterations
        self.residual = residual
        message = (
            f"Kepler's equation did not converge after {iterations} iterations "
            f"(last correction {residual:.3e} rad)"
        )
        super().__init__(message, tsince=tsince)
