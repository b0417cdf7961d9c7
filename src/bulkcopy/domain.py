from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


Row = dict[str, Any]


class FieldKind(Enum):
    """How a field's text is coerced into a Python value."""
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    DATETIME = "datetime"


class TypeTag(str, Enum):
    """bcp type tags with non-string decoding. Every other tag decodes as a string."""
    SQLBIT = "SQLBIT"
    SQLTINYINT = "SQLTINYINT"
    SQLSMALLINT = "SQLSMALLINT"
    SQLINT = "SQLINT"
    SQLBIGINT = "SQLBIGINT"
    SQLFLT4 = "SQLFLT4"
    SQLFLT8 = "SQLFLT8"
    SQLDATETIME = "SQLDATETIME"
    SQLDATETIM4 = "SQLDATETIM4"
    SQLDATETIM8 = "SQLDATETIM8"
    SQLDATETIME2 = "SQLDATETIME2"

    @property
    def kind(self) -> FieldKind:
        return _TAG_KINDS[self]


_TAG_KINDS: dict[TypeTag, FieldKind] = {
    TypeTag.SQLBIT: FieldKind.BOOLEAN,
    TypeTag.SQLTINYINT: FieldKind.INTEGER,
    TypeTag.SQLSMALLINT: FieldKind.INTEGER,
    TypeTag.SQLINT: FieldKind.INTEGER,
    TypeTag.SQLBIGINT: FieldKind.INTEGER,
    TypeTag.SQLFLT4: FieldKind.FLOAT,
    TypeTag.SQLFLT8: FieldKind.FLOAT,
    TypeTag.SQLDATETIME: FieldKind.DATETIME,
    TypeTag.SQLDATETIM4: FieldKind.DATETIME,
    TypeTag.SQLDATETIM8: FieldKind.DATETIME,
    TypeTag.SQLDATETIME2: FieldKind.DATETIME,
}


def kind_of(type_tag: str) -> FieldKind:
    try:
        return TypeTag(type_tag).kind
    except ValueError:
        return FieldKind.STRING


@dataclass
class FieldDescriptor:
    """
    One field of a bcp format file, in on-disk column order.

    terminator:
      The decoded text that ends this field's value in the data file (may be
      several characters, e.g. "\\r\\n").

    name and in_import are mutated while preparing a bulk insert; the remaining
    attributes round-trip the RECORD/FIELD and ROW/COLUMN entries of the XML
    format file.
    """
    name: str
    type: str
    terminator: str
    in_import: bool = False
    field_id: str = ""
    xsi_type: str = "CharTerm"
    record_attributes: dict[str, str] = field(default_factory=dict)
    column_attributes: dict[str, str] = field(default_factory=dict)

    @property
    def kind(self) -> FieldKind:
        return kind_of(self.type)


@dataclass(frozen=True)
class ExportDetails:
    format_file_path: Path
    export_file_path: Path
    row_count: int
    raw_tool_output: str | None


@dataclass(frozen=True)
class ExportResult:
    """Rows are None when the caller asked not to read the export back."""
    rows: list[Row] | None
    details: ExportDetails
