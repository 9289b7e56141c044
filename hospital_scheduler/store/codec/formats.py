# hospital_scheduler/store/codec/formats.py
"""
Field-level building blocks of the line format.

Every record is one line; fields are joined by ``FIELD_SEPARATOR``. Nested
lists use the secondary separators below and ``NULL_TOKEN`` marks "no data"
so it is never confused with an empty string.
"""
from enum import Enum
from datetime import date, datetime, time
from typing import Callable, Iterable, Optional, TypeVar
from common.api_error import MalformedRecordError, ValidationError

FIELD_SEPARATOR = "|"
LIST_SEPARATOR = ","
PART_SEPARATOR = ";"
ITEM_SEPARATOR = ":"
RANGE_SEPARATOR = "-"
NULL_TOKEN = "NULL"

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
DATETIME_FORMAT = "%Y-%m-%dT%H:%M"

LINE_BREAKS = ("\n", "\r")

T = TypeVar("T")


class DecodeReason(str, Enum):
    MALFORMED_RECORD = "MalformedRecord"  # too few fields
    INVALID_FIELD = "InvalidField"  # a typed field did not parse


class DecodeError(MalformedRecordError):
    def __init__(
        self,
        reason: DecodeReason,
        message: str,
        line: Optional[str] = None,
        field: Optional[str] = None,
    ):
        self.reason = reason
        self.line = line
        self.field = field
        super().__init__(message, code=reason.value)


class EncodeError(ValidationError):
    """A value cannot be written without corrupting the line format."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, code="UNENCODABLE_VALUE")


def split_fields(line: str, minimum: int, record_type: str) -> list[str]:
    fields = line.split(FIELD_SEPARATOR)
    if len(fields) < minimum:
        raise DecodeError(
            DecodeReason.MALFORMED_RECORD,
            f"Invalid {record_type} data: expected at least {minimum} fields, "
            f"got {len(fields)}",
            line=line,
        )
    return fields


def _parse(field: str, value: str, parser: Callable[[str], T]) -> T:
    try:
        return parser(value)
    except ValueError as exc:
        raise DecodeError(
            DecodeReason.INVALID_FIELD,
            f"Invalid {field}: {value!r} ({exc})",
            field=field,
        ) from exc


def parse_date(value: str, field: str = "date") -> date:
    return _parse(field, value, lambda v: datetime.strptime(v, DATE_FORMAT).date())


def parse_time(value: str, field: str = "time") -> time:
    return _parse(field, value, lambda v: datetime.strptime(v, TIME_FORMAT).time())


def parse_datetime(value: str, field: str = "datetime") -> datetime:
    return _parse(field, value, lambda v: datetime.strptime(v, DATETIME_FORMAT))


def parse_int(value: str, field: str = "integer") -> int:
    return _parse(field, value, lambda v: int(v.strip()))


def parse_with(value: str, field: str, parser: Callable[[str], T]) -> T:
    """Run an enum ``parse`` classmethod (or any ValueError-raising parser)."""
    return _parse(field, value, parser)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


def format_datetime(value: datetime) -> str:
    return value.strftime(DATETIME_FORMAT)


def check_text(
    value: str, field: str, reserved: Iterable[str] = (FIELD_SEPARATOR,)
) -> str:
    """
    Return ``value`` if it contains none of ``reserved`` (line breaks are
    always reserved).

    Raises:
        EncodeError
    """
    for token in (*LINE_BREAKS, *reserved):
        if token in value:
            raise EncodeError(
                f"{field} must not contain {token!r}: {value!r}", field=field
            )
    return value


def check_minutes(value: datetime, field: str) -> datetime:
    """The format keeps minute precision only."""
    if value.second or value.microsecond or value.tzinfo is not None:
        raise EncodeError(
            f"{field} must be a naive time on a whole minute: {value.isoformat()}",
            field=field,
        )
    return value


__all__ = [
    "FIELD_SEPARATOR",
    "LIST_SEPARATOR",
    "PART_SEPARATOR",
    "ITEM_SEPARATOR",
    "RANGE_SEPARATOR",
    "NULL_TOKEN",
    "DATE_FORMAT",
    "TIME_FORMAT",
    "DATETIME_FORMAT",
    "DecodeReason",
    "DecodeError",
    "EncodeError",
    "split_fields",
    "parse_date",
    "parse_time",
    "parse_datetime",
    "parse_int",
    "parse_with",
    "format_date",
    "format_time",
    "format_datetime",
    "check_text",
    "check_minutes",
]
