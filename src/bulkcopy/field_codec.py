import re
from datetime import date, datetime
from typing import Any, Callable, assert_never

from core.settings import NUL
from bulkcopy.domain import FieldDescriptor, FieldKind
from bulkcopy.errors import FieldDecodeError, FieldEncodeError

# bcp emits up to 7 fractional digits for datetime2; datetime only accepts 6
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def _decode_boolean(value: str) -> bool:
    return value == "1"


def _decode_datetime(value: str) -> datetime:
    return datetime.fromisoformat(_FRACTION_RE.sub(r"\1", value.strip()))


def _decode_string(value: str) -> str:
    return value


def decoder_for(kind: FieldKind) -> Callable[[str], Any]:
    if kind is FieldKind.STRING:
        return _decode_string
    elif kind is FieldKind.BOOLEAN:
        return _decode_boolean
    elif kind is FieldKind.INTEGER:
        return int
    elif kind is FieldKind.FLOAT:
        return float
    elif kind is FieldKind.DATETIME:
        return _decode_datetime
    else:
        assert_never(kind)


def decode_field(value: str, field: FieldDescriptor) -> Any:
    """
    Decode one raw field value read from a bcp data file.

    "" is NULL, a lone NUL is the empty string, anything else is coerced by
    the field's type tag.
    """
    if value == "":
        return None

    if value == NUL:
        return ""

    try:
        return decoder_for(field.kind)(value)
    except ValueError as e:
        raise FieldDecodeError(field.name, field.type, value) from e


def encode_field(value: Any, field: FieldDescriptor) -> str:
    """Inverse of decode_field, used when writing import files."""
    if value is None:
        return ""

    if isinstance(value, str) and value == "":
        return NUL

    if isinstance(value, bool):
        return "1" if value else "0"

    if field.kind is FieldKind.BOOLEAN:
        if isinstance(value, int) or value in ("0", "1"):
            return "1" if value and value != "0" else "0"
        raise FieldEncodeError(field.name, field.type, value)

    if isinstance(value, datetime):
        timespec = "microseconds" if value.microsecond % 1000 else "milliseconds"
        return value.isoformat(sep=" ", timespec=timespec)

    if isinstance(value, date):
        return value.isoformat()

    text = str(value)
    if text == "":
        return NUL
    return text
