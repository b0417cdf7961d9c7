from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from core.settings import FORMAT_FILE_NAMESPACE, XSI_NAMESPACE
from bulkcopy.arguments import json_quote
from bulkcopy.config import BcpConfig
from bulkcopy.domain import FieldDescriptor
from bulkcopy.errors import FormatFileError
from bulkcopy.process import run_bcp

logger = logging.getLogger(__name__)

UNICODE_ENCODING = "utf-16-le"
SINGLE_BYTE_ENCODING = "latin-1"

_XSI_TYPE = f"{{{XSI_NAMESPACE}}}type"
_HEX_TERMINATOR_RE = re.compile(r"^0x((?:[0-9a-fA-F]{2})+)$")

_ESCAPES = {"t": 0x09, "n": 0x0A, "r": 0x0D, "0": 0x00, "\\": 0x5C, '"': 0x22, "'": 0x27}
_REVERSE_ESCAPES = {0x09: "\\t", 0x0A: "\\n", 0x0D: "\\r", 0x00: "\\0", 0x5C: "\\\\"}

# attributes modelled explicitly on FieldDescriptor; everything else round-trips verbatim
_RECORD_KEYS = {"ID", "TERMINATOR", _XSI_TYPE}
_COLUMN_KEYS = {"SOURCE", "NAME", _XSI_TYPE}


def _tag(name: str) -> str:
    return f"{{{FORMAT_FILE_NAMESPACE}}}{name}"


def unescape_terminator(raw: str) -> bytes:
    """Turn a TERMINATOR attribute (e.g. "\\r\\0\\n\\0" or "0x0D0A") into raw bytes."""
    hex_match = _HEX_TERMINATOR_RE.match(raw)
    if hex_match:
        return bytes.fromhex(hex_match.group(1))

    out = bytearray()
    i = 0
    while i < len(raw):
        char = raw[i]
        if char == "\\" and i + 1 < len(raw) and raw[i + 1] in _ESCAPES:
            out.append(_ESCAPES[raw[i + 1]])
            i += 2
            continue
        if ord(char) > 0xFF:
            raise ValueError(f"Terminator character {char!r} is not a single byte")
        out.append(ord(char))
        i += 1
    return bytes(out)


def escape_terminator(terminator: str, encoding: str) -> str:
    return "".join(_REVERSE_ESCAPES.get(b, chr(b)) for b in terminator.encode(encoding))


@dataclass
class FormatFile:
    """An XML bcp format file: ordered field descriptors plus the encoding used to read them."""
    filename: Path
    fields: list[FieldDescriptor] = field(default_factory=list)
    encoding: str = UNICODE_ENCODING

    @property
    def import_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields if f.in_import]

    @classmethod
    def from_file(cls, file_path: str | Path) -> FormatFile:
        path = Path(file_path)
        try:
            root = ET.parse(path).getroot()
        except (OSError, ET.ParseError) as e:
            raise FormatFileError(str(path), str(e)) from e

        record = root.find(_tag("RECORD"))
        row = root.find(_tag("ROW"))
        if record is None or row is None:
            raise FormatFileError(str(path), "missing RECORD or ROW element")

        record_fields = record.findall(_tag("FIELD"))
        columns = {c.get("SOURCE"): c for c in row.findall(_tag("COLUMN"))}

        unicode = any(f.get(_XSI_TYPE, "").startswith("NChar") for f in record_fields)
        encoding = UNICODE_ENCODING if unicode else SINGLE_BYTE_ENCODING

        fields: list[FieldDescriptor] = []
        for element in record_fields:
            field_id = element.get("ID")
            if not field_id:
                raise FormatFileError(str(path), "FIELD without ID")

            raw_terminator = element.get("TERMINATOR")
            if not raw_terminator:
                raise FormatFileError(str(path), f"field {field_id} has no TERMINATOR; only delimited files are supported")

            try:
                terminator = unescape_terminator(raw_terminator).decode(encoding)
            except (ValueError, UnicodeDecodeError) as e:
                raise FormatFileError(str(path), f"field {field_id} terminator {raw_terminator!r}: {e}") from e

            column = columns.get(field_id)
            fields.append(
                FieldDescriptor(
                    name=column.get("NAME", field_id) if column is not None else field_id,
                    type=column.get(_XSI_TYPE, "") if column is not None else "",
                    terminator=terminator,
                    field_id=field_id,
                    xsi_type=element.get(_XSI_TYPE, "CharTerm"),
                    record_attributes={k: v for k, v in element.attrib.items() if k not in _RECORD_KEYS},
                    column_attributes=(
                        {k: v for k, v in column.attrib.items() if k not in _COLUMN_KEYS}
                        if column is not None else {}
                    ),
                )
            )

        logger.debug("Loaded format file %s with %s fields (%s)", path, len(fields), encoding)
        return cls(filename=path, fields=fields, encoding=encoding)

    @classmethod
    def generate(cls, config: BcpConfig, table: str, file_path: str | Path, args: Sequence[str]) -> FormatFile:
        """Have bcp write an XML format file for `table`, then load it."""
        logger.debug("Getting format file from bcp...")
        run_bcp(config, table, ["format", "nul", "-x", "-f", json_quote(file_path)], args)

        logger.debug("Reading format file %s", file_path)
        return cls.from_file(file_path)

    def to_xml(self, import_only: bool = False) -> ET.ElementTree:
        ET.register_namespace("", FORMAT_FILE_NAMESPACE)
        ET.register_namespace("xsi", XSI_NAMESPACE)

        root = ET.Element(_tag("BCPFORMAT"))
        record = ET.SubElement(root, _tag("RECORD"))
        row = ET.SubElement(root, _tag("ROW"))

        fields = self.import_fields if import_only else self.fields
        for index, f in enumerate(fields, start=1):
            field_id = str(index) if import_only else f.field_id
            ET.SubElement(
                record,
                _tag("FIELD"),
                {
                    "ID": field_id,
                    _XSI_TYPE: f.xsi_type,
                    "TERMINATOR": escape_terminator(f.terminator, self.encoding),
                    **f.record_attributes,
                },
            )
            if not f.type:
                continue  # FIELD not mapped to a table column
            ET.SubElement(
                row,
                _tag("COLUMN"),
                {"SOURCE": field_id, "NAME": f.name, _XSI_TYPE: f.type, **f.column_attributes},
            )

        tree = ET.ElementTree(root)
        ET.indent(tree)
        return tree

    def save(self, file_path: str | Path | None = None, import_only: bool = False) -> Path:
        path = Path(file_path) if file_path is not None else self.filename
        self.to_xml(import_only=import_only).write(path, encoding="utf-8", xml_declaration=True)
        self.filename = path
        logger.debug("Wrote format file %s", path)
        return path
