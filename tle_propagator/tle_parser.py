"""
TLE Parser Module

Parses Two-Line Element (TLE) sets into immutable ElementSet records.

The parser works on fixed column positions, as the format requires. Fields
written in the TLE "implied decimal" notation (a mantissa with an assumed
leading decimal point followed by a signed single-digit exponent, e.g.
"-11606-4") are decoded here. Each line's modulo-10 checksum is verified;
a mismatch is logged, or rejected when strict checking is enabled.
"""

import math
import re
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from . import config
from .exceptions import ParseError
from .logging_config import get_logger
from .timescale import epoch_to_datetime, resolve_two_digit_year

logger = get_logger(__name__)

# Columns through the element/revolution number; the checksum column is optional
MIN_LINE_LENGTH = 68
TLE_LINE_LENGTH = 69

_IMPLIED_DECIMAL = re.compile(r"^([+-]?)\s*(\d+)\s*([+-]?)\s*(\d)$")


@dataclass(frozen=True)
class ElementSet:
    """
    Mean orbital elements and metadata decoded from one TLE.

    Angles are in degrees and mean motion in revolutions per day, exactly as
    published. ``epoch`` is an aware UTC datetime; ``epoch_year`` and
    ``epoch_day`` keep the exact published values for the propagator.
    """

    name: str
    catalog_number: int
    classification: str
    launch_year: Optional[int]
    launch_number: Optional[int]
    launch_piece: str
    epoch_year: int
    epoch_day: float
    epoch: datetime
    mean_motion_dot: float        # rev/day^2, first derivative / 2
    mean_motion_ddot: float       # rev/day^3, second derivative / 6
    bstar: float                  # 1/earth radii
    ephemeris_type: int
    element_number: int
    inclination: float            # deg
    raan: float                   # deg
    eccentricity: float
    arg_perigee: float            # deg
    mean_anomaly: float           # deg
    mean_motion: float            # rev/day
    revolution_number: int
    line1: str
    line2: str

    @property
    def international_designator(self) -> str:
        """Launch designator in the TLE's own YYNNNPPP form (may be blank)."""
        return self.line1[9:17].strip()

    @property
    def period_minutes(self) -> float:
        """Orbital period implied by the mean motion."""
        return 1440.0 / self.mean_motion

    def to_dict(self) -> Dict[str, Any]:
        """Plain dictionary view, suitable for JSON serialization."""
        data = asdict(self)
        data["epoch"] = self.epoch.isoformat()
        return data


def compute_checksum(line: str) -> int:
    """
    Modulo-10 checksum over the first 68 columns of a TLE line.

    Digits count their value, a minus sign counts one and every other
    character counts zero.
    """
    checksum = 0
    for char in line[:MIN_LINE_LENGTH]:
        if char.isdigit():
            checksum += int(char)
        elif char == "-":
            checksum += 1
    return checksum % 10


def parse_implied_decimal(text: str) -> float:
    """
    Decode a TLE implied-decimal field such as " 13844-3" or "-11606-4".

    The exponent marker is inserted between mantissa and exponent before the
    sign is applied, so "-11606-4" becomes -0.11606e-4.
    """
    stripped = text.strip()
    if not stripped:
        return 0.0
    match = _IMPLIED_DECIMAL.match(stripped)
    if match is None:
        raise ValueError(f"not an implied-decimal field: {text!r}")
    sign, mantissa, exp_sign, exponent = match.groups()
    return float(f"{sign}0.{mantissa}e{exp_sign or '+'}{exponent}")


def _field(line: str, start: int, end: int, name: str, line_number: int,
           convert: Callable[[str], Any] = float, default: Any = None) -> Any:
    """Slice a column range and convert it, reporting failures as ParseError."""
    text = line[start:end]
    if not text.strip():
        if default is not None:
            return default
        raise ParseError("Required field is blank", line_number, name)
    try:
        return convert(text)
    except ValueError:
        raise ParseError(f"Invalid value {text.strip()!r}", line_number, name) from None


def _decimal_with_assumed_point(text: str) -> float:
    return float("0." + text.strip().replace(" ", "0"))


def _int_or_none(text: str) -> Optional[int]:
    text = text.strip()
    return int(text) if text else None


class TLEParser:
    """
    Parser for Two-Line Element (TLE) sets.

    Args:
        strict_checksum: Reject lines whose checksum does not match. None uses
            the package configuration (TLE_PROPAGATOR_STRICT_CHECKSUM).
    """

    def __init__(self, strict_checksum: Optional[bool] = None):
        self.strict_checksum = config.STRICT_CHECKSUM if strict_checksum is None else strict_checksum

    def parse(self, line1: str, line2: str, name: Optional[str] = None) -> ElementSet:
        """
        Parse TLE lines into an ElementSet.

        Args:
            line1: First line of TLE
            line2: Second line of TLE
            name: Optional satellite name

        Returns:
            The decoded element set

        Raises:
            ParseError: If a line is malformed or an element is out of range
        """
        line1 = self._normalize_line(line1, 1)
        line2 = self._normalize_line(line2, 2)

        catalog1 = _field(line1, 2, 7, "catalog number", 1, int)
        catalog2 = _field(line2, 2, 7, "catalog number", 2, int)
        if catalog1 != catalog2:
            raise ParseError(f"Catalog numbers differ between lines ({catalog1} != {catalog2})")

        launch_year = _int_or_none(line1[9:11])
        if launch_year is not None:
            launch_year = 1900 + launch_year if launch_year > 50 else 2000 + launch_year

        epoch_year = resolve_two_digit_year(_field(line1, 18, 20, "epoch year", 1, int))
        epoch_day = _field(line1, 20, 32, "epoch day", 1)
        if not 1.0 <= epoch_day < 367.0:
            raise ParseError(f"Epoch day {epoch_day} out of range", 1, "epoch day")

        inclination = _field(line2, 8, 16, "inclination", 2)
        eccentricity = _field(line2, 26, 33, "eccentricity", 2, _decimal_with_assumed_point)
        mean_motion = _field(line2, 52, 63, "mean motion", 2)

        if not 0.0 <= inclination <= 180.0:
            raise ParseError(f"Inclination {inclination} deg out of range", 2, "inclination")
        if not 0.0 <= eccentricity < 1.0:
            raise ParseError(f"Eccentricity {eccentricity} out of range", 2, "eccentricity")
        if not mean_motion > 0.0:
            raise ParseError(f"Mean motion {mean_motion} must be positive", 2, "mean motion")

        element_set = ElementSet(
            name=(name or "").strip() or "unknown",
            catalog_number=catalog1,
            classification=line1[7].strip() or "U",
            launch_year=launch_year,
            launch_number=_int_or_none(line1[11:14]),
            launch_piece=line1[14:17].strip(),
            epoch_year=epoch_year,
            epoch_day=epoch_day,
            epoch=epoch_to_datetime(epoch_year, epoch_day),
            mean_motion_dot=_field(line1, 33, 43, "first derivative of mean motion", 1),
            mean_motion_ddot=_field(line1, 44, 52, "second derivative of mean motion", 1,
                                    parse_implied_decimal, default=0.0),
            bstar=_field(line1, 53, 61, "bstar", 1, parse_implied_decimal, default=0.0),
            ephemeris_type=_field(line1, 62, 63, "ephemeris type", 1, int, default=0),
            element_number=_field(line1, 64, 68, "element number", 1, int, default=0),
            inclination=inclination,
            raan=_field(line2, 17, 25, "right ascension of ascending node", 2),
            eccentricity=eccentricity,
            arg_perigee=_field(line2, 34, 42, "argument of perigee", 2),
            mean_anomaly=_field(line2, 43, 51, "mean anomaly", 2),
            mean_motion=mean_motion,
            revolution_number=_field(line2, 63, 68, "revolution number", 2, int, default=0),
            line1=line1,
            line2=line2,
        )

        logger.debug(
            f"Parsed TLE for catalog {element_set.catalog_number} "
            f"epoch={element_set.epoch.isoformat()} n={element_set.mean_motion:.8f} rev/day"
        )
        return element_set

    def _normalize_line(self, line: str, line_number: int) -> str:
        """Strip line endings, check the line tag, length and checksum."""
        line = line.rstrip("\r\n").rstrip()
        if len(line) < MIN_LINE_LENGTH:
            raise ParseError(
                f"Line too short: {len(line)} characters, expected {TLE_LINE_LENGTH}", line_number
            )
        line = line[:TLE_LINE_LENGTH]
        if line[0] != str(line_number) or line[1] != " ":
            raise ParseError(f"Line must start with '{line_number} '", line_number)

        if len(line) == TLE_LINE_LENGTH and line[68].isdigit():
            expected = compute_checksum(line)
            found = int(line[68])
            if expected != found:
                message = f"Checksum mismatch: expected {expected}, found {found}"
                if self.strict_checksum:
                    raise ParseError(message, line_number, "checksum")
                logger.warning(f"{message} on line {line_number}; continuing")

        return line


def parse_tle(lines: Union[str, Sequence[str]], strict_checksum: Optional[bool] = None) -> ElementSet:
    """
    Parse a two- or three-line TLE.

    Args:
        lines: The TLE lines, or one string holding them. With three lines the
            first is the satellite name; a leading "0 " name marker is removed.
        strict_checksum: See TLEParser

    Returns:
        The decoded element set
    """
    if isinstance(lines, str):
        lines = lines.splitlines()
    lines = [line.rstrip("\r\n") for line in lines if line.strip()]

    if len(lines) == 2:
        name = None
        line1, line2 = lines
    elif len(lines) == 3:
        name, line1, line2 = lines
        if name.startswith("0 "):
            name = name[2:]
    else:
        raise ParseError(f"Expected 2 or 3 TLE lines, got {len(lines)}")

    return TLEParser(strict_checksum).parse(line1, line2, name)


def parse_tle_text(text: str, strict_checksum: Optional[bool] = None) -> List[ElementSet]:
    """
    Parse every element set in a multi-TLE text block.

    Blank lines and lines starting with '#' are skipped. A line that precedes
    a line-1/line-2 pair is taken as that satellite's name.
    """
    parser = TLEParser(strict_checksum)
    lines = [line.rstrip() for line in text.splitlines()]
    lines = [line for line in lines if line.strip() and not line.lstrip().startswith("#")]

    element_sets = []
    name = None
    index = 0
    while index < len(lines):
        line = lines[index]
        if line.startswith("1 ") and index + 1 < len(lines) and lines[index + 1].startswith("2 "):
            element_sets.append(parser.parse(line, lines[index + 1], name))
            name = None
            index += 2
            continue
        if line.startswith(("1 ", "2 ")):
            raise ParseError(f"Unpaired TLE line: {line[:20]!r}...")
        name = line[2:] if line.startswith("0 ") else line
        index += 1

    logger.info(f"Parsed {len(element_sets)} element sets")
    return element_sets


def mean_motion_rad_per_min(element_set: ElementSet) -> float:
    """Kozai mean motion in radians per minute."""
    return element_set.mean_motion * 2.0 * math.pi / 1440.0
