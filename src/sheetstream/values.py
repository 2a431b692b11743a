"""
Cell value model.

Readers decode workbook parts into ``RawCell`` instances, which keep the
format's own view of a cell (a number plus its number-format code, a shared
string already resolved to text, an error code, ...). ``to_cell_value`` turns a
raw cell into exactly one member of the closed ``CellValue`` family.

Conversion is total: anything that cannot be interpreted becomes ``EMPTY``.
That loss is deliberate so a single odd cell never aborts a whole sheet; pass
``strict=True`` to get a ``CellConversionError`` instead.
"""

from dataclasses import dataclass
import datetime
from enum import Enum
import logging
import re
from typing import Any, NamedTuple

from openpyxl.styles.numbers import is_date_format, is_timedelta_format
from openpyxl.utils.datetime import WINDOWS_EPOCH, from_excel, to_excel

from sheetstream.exceptions import CellConversionError

logger = logging.getLogger(__name__)

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Formula error codes as they appear in xlsx (t="e") cells
ERROR_CODES = (
    "#NULL!",
    "#DIV/0!",
    "#VALUE!",
    "#REF!",
    "#NAME?",
    "#NUM!",
    "#N/A",
    "#GETTING_DATA",
)

_ISO_DURATION_RE = re.compile(
    r"^(?P<sign>-)?P(?:(?P<days>\d+(?:\.\d+)?)D)?"
    r"(?:T(?:(?P<hours>\d+(?:\.\d+)?)H)?(?:(?P<minutes>\d+(?:\.\d+)?)M)?"
    r"(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)


class RawKind(Enum):
    """Storage class of a cell as reported by the format decoder."""

    EMPTY = "empty"
    NUMBER = "number"
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    ERROR = "error"
    DATE_ISO = "date_iso"
    DURATION_ISO = "duration_iso"


@dataclass(frozen=True)
class RawCell:
    """
    A cell exactly as decoded from the source document.

    Attributes:
        kind: Storage class reported by the format.
        value: Decoded payload (float, int, str or bool depending on ``kind``).
        number_format: Number-format code attached to the cell style, if any.
    """

    kind: RawKind
    value: Any = None
    number_format: str | None = None


EMPTY_RAW = RawCell(RawKind.EMPTY)


class TemporalKind(Enum):
    """How a date-formatted serial number should be read."""

    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    DURATION = "duration"


class CellValue:
    """Base class of the closed set of cell value variants."""

    __slots__ = ()

    def to_python(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> Any:
        """Return the native Python value for this cell."""
        raise NotImplementedError


@dataclass(frozen=True)
class Empty(CellValue):
    """A blank cell."""

    def to_python(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> str:
        return ""


EMPTY = Empty()


@dataclass(frozen=True)
class Text(CellValue):
    value: str

    def to_python(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> str:
        return self.value


@dataclass(frozen=True)
class Integer(CellValue):
    value: int

    def to_python(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> int:
        return self.value


@dataclass(frozen=True)
class Float(CellValue):
    value: float

    def to_python(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> float:
        return self.value


@dataclass(frozen=True)
class Boolean(CellValue):
    value: bool

    def to_python(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> bool:
        return self.value


@dataclass(frozen=True)
class DateTime(CellValue):
    """
    A serial number carrying a calendar interpretation.

    The serial is kept as stored so callers can apply either calendar
    convention; ``to_python`` resolves it against an epoch.
    """

    value: float
    kind: TemporalKind

    def to_python(
        self, epoch: datetime.datetime = WINDOWS_EPOCH
    ) -> datetime.date | datetime.time | datetime.datetime | float:
        """Resolve the serial against ``epoch``; serials no calendar can hold stay floats."""
        try:
            converted = from_excel(self.value, epoch)
        except (OverflowError, ValueError):
            logger.debug("Serial %r is outside the calendar, keeping the number", self.value)
            return self.value
        if self.kind is TemporalKind.DATE and isinstance(converted, datetime.datetime):
            return converted.date()
        return converted


@dataclass(frozen=True)
class Duration(CellValue):
    """A span of time, stored in days."""

    value: float

    @property
    def kind(self) -> TemporalKind:
        return TemporalKind.DURATION

    def to_python(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> datetime.timedelta | float:
        try:
            return from_excel(self.value, epoch, timedelta=True)
        except (OverflowError, ValueError):
            logger.debug("Duration %r is out of range, keeping the number", self.value)
            return self.value


@dataclass(frozen=True)
class CellError(CellValue):
    """A formula error; ``code`` is kept as reported (e.g. ``#DIV/0!``)."""

    code: str

    def to_python(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> str:
        return self.code


def classify_serial(value: float) -> TemporalKind:
    """Pick date, time or datetime for a date-formatted serial number."""
    if 0 <= value < 1:
        return TemporalKind.TIME
    if float(value).is_integer():
        return TemporalKind.DATE
    return TemporalKind.DATETIME


def _iso_to_serial(text: str, epoch: datetime.datetime) -> float:
    text = text.strip()
    if text.endswith("Z"):
        text = text[:-1]
    try:
        parsed: datetime.datetime | datetime.time = datetime.datetime.fromisoformat(text)
    except ValueError:
        parsed = datetime.time.fromisoformat(text)
    if isinstance(parsed, datetime.datetime) and parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None)
    return float(to_excel(parsed, epoch))


def _iso_duration_days(text: str) -> float:
    match = _ISO_DURATION_RE.match(text.strip())
    if match is None:
        raise ValueError(f"invalid ISO 8601 duration: {text!r}")
    parts = {k: float(v) for k, v in match.groupdict().items() if k != "sign" and v}
    if not parts:
        raise ValueError(f"empty ISO 8601 duration: {text!r}")
    days = (
        parts.get("days", 0.0)
        + parts.get("hours", 0.0) / 24
        + parts.get("minutes", 0.0) / 1440
        + parts.get("seconds", 0.0) / 86400
    )
    return -days if match.group("sign") else days


def _convert(raw: RawCell, epoch: datetime.datetime) -> CellValue:
    kind = raw.kind

    if kind is RawKind.EMPTY:
        return EMPTY

    if kind is RawKind.NUMBER or kind is RawKind.INTEGER:
        if isinstance(raw.value, bool):
            raise TypeError("boolean stored as number")
        if kind is RawKind.INTEGER and isinstance(raw.value, float) and not raw.value.is_integer():
            raise ValueError("fractional value stored as integer")
        number: int | float = float(raw.value) if kind is RawKind.NUMBER else int(raw.value)
        fmt = raw.number_format
        if fmt and is_timedelta_format(fmt):
            return Duration(float(number))
        if fmt and is_date_format(fmt):
            return DateTime(float(number), classify_serial(number))
        if kind is RawKind.INTEGER:
            if INT64_MIN <= number <= INT64_MAX:
                return Integer(int(number))
            return Float(float(number))
        return Float(float(number))

    if kind is RawKind.STRING:
        if not isinstance(raw.value, str):
            raise TypeError(f"text cell holds {type(raw.value).__name__}")
        return Text(raw.value)

    if kind is RawKind.BOOLEAN:
        if not isinstance(raw.value, bool):
            raise TypeError(f"boolean cell holds {type(raw.value).__name__}")
        return Boolean(raw.value)

    if kind is RawKind.ERROR:
        if not isinstance(raw.value, str):
            raise TypeError(f"error cell holds {type(raw.value).__name__}")
        return CellError(raw.value)

    if kind is RawKind.DATE_ISO:
        serial = _iso_to_serial(raw.value, epoch)
        return DateTime(serial, classify_serial(serial))

    if kind is RawKind.DURATION_ISO:
        return Duration(_iso_duration_days(raw.value))

    raise ValueError(f"unsupported raw cell kind: {kind!r}")


def to_cell_value(
    raw: RawCell,
    *,
    epoch: datetime.datetime = WINDOWS_EPOCH,
    strict: bool = False,
) -> CellValue:
    """
    Convert a raw cell into a ``CellValue``.

    Args:
        raw: Cell as produced by a format decoder.
        epoch: Calendar origin used when an ISO timestamp has to be turned
            into a serial number.
        strict: Raise instead of degrading unconvertible cells to ``EMPTY``.

    Returns:
        CellValue: Exactly one value variant; ``EMPTY`` for anything that
        cannot be interpreted unless ``strict`` is set.

    Raises:
        CellConversionError: Only when ``strict`` is true.
    """
    try:
        return _convert(raw, epoch)
    except (AttributeError, TypeError, ValueError, OverflowError) as e:
        if strict:
            raise CellConversionError(f"Cannot convert cell {raw!r}: {e}") from e
        logger.debug("Degrading unconvertible cell %r to Empty: %s", raw, e)
        return EMPTY


class Cell(NamedTuple):
    """One cell delivered by a streaming reader, in absolute sheet coordinates."""

    row: int
    col: int
    value: RawCell

    def to_cell_value(self, epoch: datetime.datetime = WINDOWS_EPOCH) -> CellValue:
        return to_cell_value(self.value, epoch=epoch)
