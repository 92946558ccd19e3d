"""Vitodata value types.

Each attribute value travels as text in one of a small, closed set of
types. A :class:`VitodataType` converts between three representations:

- human: what a user types or reads (``"21.5"``, ``"on"``)
- wire: what the web service exchanges (``"21,5"``, ``"1"``)
- native: the matching Python object (``21.5``, ``1``, ``datetime``)

Example:
    >>> TYPE_ON_OFF_ENUM.human_to_wire("on")
    '1'
    >>> TYPE_DOUBLE.wire_to_human("1,200")
    '1.2'
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from .exceptions import EnumInvalidValueError, FormatInvalidError
from .timestamps import format_timestamp, parse_timestamp

_DOUBLE_RE = re.compile(r"^[+-]?(?:\d+(?:[.,]\d*)?|[.,]\d+)(?:[eE][+-]?\d+)?$")
_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_INDEX_RE = re.compile(r"^\d+$")


class TypeKind(StrEnum):
    """Variants of the Vitodata type system."""

    DOUBLE = "Double"
    INTEGER = "Integer"
    DATE = "Date"
    STRING = "String"
    ENUM = "Enum"


@dataclass(frozen=True)
class VitodataType:
    """A Vitodata value codec.

    Attributes:
        kind: Type variant
        labels: Ordered enum labels, index is the wire value (ENUM only)
    """

    kind: TypeKind
    labels: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        """Human name of the type, ``Enum<N>`` for enums."""
        if self.kind is TypeKind.ENUM:
            return f"Enum{len(self.labels)}"
        return self.kind.value

    def human_to_wire(self, value: str) -> str:
        """Convert human text to wire text."""
        return human_to_wire(self, value)

    def wire_to_human(self, value: str) -> str:
        """Convert wire text to human text."""
        return wire_to_human(self, value)

    def wire_to_native(self, value: str) -> float | int | datetime | str:
        """Convert wire text to a Python value."""
        return wire_to_native(self, value)

    def __str__(self) -> str:
        return self.name


def enum_type(labels: list[str] | tuple[str, ...]) -> VitodataType:
    """Build an enum type whose wire values are the label indices."""
    return VitodataType(TypeKind.ENUM, tuple(labels))


def _parse_double(vtype: VitodataType, value: str) -> float:
    if not _DOUBLE_RE.match(value):
        raise FormatInvalidError(vtype.name, value)
    num = float(value.replace(",", "."))
    # Out of range text overflows to infinity
    if not math.isfinite(num):
        raise FormatInvalidError(vtype.name, value)
    return num


def _format_double(num: float) -> str:
    # Shortest round-tripping text, never in exponent notation
    return format(Decimal(repr(num)).normalize(), "f")


def _parse_integer(vtype: VitodataType, value: str) -> int:
    if not _INTEGER_RE.match(value):
        raise FormatInvalidError(vtype.name, value)
    return int(value)


def _parse_date(vtype: VitodataType, value: str) -> datetime:
    try:
        return parse_timestamp(value)
    except ValueError as err:
        raise FormatInvalidError(vtype.name, value) from err


def _enum_index(vtype: VitodataType, value: str) -> int:
    if not _INDEX_RE.match(value):
        raise EnumInvalidValueError(vtype.name, value)
    index = int(value)
    if index >= len(vtype.labels):
        raise EnumInvalidValueError(vtype.name, value)
    return index


def _enum_label_index(vtype: VitodataType, label: str) -> int | None:
    # Last duplicate label wins
    found = None
    for index, candidate in enumerate(vtype.labels):
        if candidate == label:
            found = index
    return found


def human_to_wire(vtype: VitodataType, value: str) -> str:
    """Convert a human value to its wire form.

    Args:
        vtype: Type of the value
        value: Human text; an enum accepts a label or its index

    Returns:
        Wire text

    Raises:
        FormatInvalidError: If the text cannot be parsed for the type
        EnumInvalidValueError: If an enum value is neither a label nor an
            index in range
    """
    match vtype.kind:
        case TypeKind.DOUBLE:
            return _format_double(_parse_double(vtype, value))
        case TypeKind.INTEGER:
            return str(_parse_integer(vtype, value))
        case TypeKind.DATE:
            return format_timestamp(_parse_date(vtype, value))
        case TypeKind.STRING:
            return value
        case TypeKind.ENUM:
            index = _enum_label_index(vtype, value)
            if index is None:
                index = _enum_index(vtype, value)
            return str(index)


def wire_to_human(vtype: VitodataType, value: str) -> str:
    """Convert a wire value to its human form.

    Raises:
        FormatInvalidError: If the text cannot be parsed for the type
        EnumInvalidValueError: If an enum index is not numeric or out of range
    """
    match vtype.kind:
        case TypeKind.DOUBLE:
            return _format_double(_parse_double(vtype, value))
        case TypeKind.INTEGER:
            return str(_parse_integer(vtype, value))
        case TypeKind.DATE:
            return format_timestamp(_parse_date(vtype, value))
        case TypeKind.STRING:
            return value
        case TypeKind.ENUM:
            return vtype.labels[_enum_index(vtype, value)]


def wire_to_native(vtype: VitodataType, value: str) -> float | int | datetime | str:
    """Convert a wire value to a Python value.

    Double gives a ``float``, Integer and Enum an ``int``, Date an aware
    local ``datetime`` and String the text itself.

    Raises:
        FormatInvalidError: If the text cannot be parsed for the type
        EnumInvalidValueError: If an enum index is not numeric or out of range
    """
    match vtype.kind:
        case TypeKind.DOUBLE:
            return _parse_double(vtype, value)
        case TypeKind.INTEGER:
            return _parse_integer(vtype, value)
        case TypeKind.DATE:
            return _parse_date(vtype, value)
        case TypeKind.STRING:
            return value
        case TypeKind.ENUM:
            return _enum_index(vtype, value)


TYPE_DOUBLE = VitodataType(TypeKind.DOUBLE)
TYPE_INTEGER = VitodataType(TypeKind.INTEGER)
TYPE_DATE = VitodataType(TypeKind.DATE)
TYPE_STRING = VitodataType(TypeKind.STRING)

TYPE_ON_OFF_ENUM = enum_type(("off", "on"))
TYPE_ENABLED_ENUM = enum_type(("disabled", "enabled"))

# Server type names (GetTypeInfo DatenpunktTyp) of the primitive types
TYPE_NAMES: dict[str, VitodataType] = {
    TYPE_DOUBLE.name: TYPE_DOUBLE,
    TYPE_INTEGER.name: TYPE_INTEGER,
    TYPE_DATE.name: TYPE_DATE,
    TYPE_STRING.name: TYPE_STRING,
}
