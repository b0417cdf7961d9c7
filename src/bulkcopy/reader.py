import logging
from pathlib import Path
from typing import Sequence

import pyarrow as pa

from bulkcopy.domain import FieldDescriptor, FieldKind, Row
from bulkcopy.field_codec import decode_field
from bulkcopy.format_file import FormatFile

logger = logging.getLogger(__name__)


FIELD_KIND_TO_ARROW_TYPE: dict[FieldKind, pa.DataType] = {
    FieldKind.STRING: pa.string(),
    FieldKind.BOOLEAN: pa.bool_(),
    FieldKind.INTEGER: pa.int64(),
    FieldKind.FLOAT: pa.float64(),
    FieldKind.DATETIME: pa.timestamp("ms"),
}


def decode_rows(data: str, fields: Sequence[FieldDescriptor]) -> list[Row]:
    """
    Split a bcp data buffer into typed rows.

    Each field ends at the next occurrence of its own terminator. A row whose
    terminators run out before the end of the buffer is dropped and scanning
    stops there.
    """
    rows: list[Row] = []
    if not fields:
        return rows

    terminators = [f.terminator for f in fields]
    for field, terminator in zip(fields, terminators):
        if not terminator:
            raise ValueError(f"Field '{field.name}' has an empty terminator")

    offset = 0
    data_length = len(data)

    while offset < data_length:
        row: Row = {}
        for field, terminator in zip(fields, terminators):
            dex = data.find(terminator, offset)
            if dex == -1:
                logger.warning(
                    "Dropping truncated row at offset %s: no terminator %r for field '%s'",
                    offset, terminator, field.name,
                )
                return rows

            row[field.name] = decode_field(data[offset:dex], field)
            offset = dex + len(terminator)

        rows.append(row)

    return rows


def read_export(file_path: str | Path, format_file: FormatFile) -> list[Row]:
    # TODO: stream large exports instead of reading the whole file into memory
    with open(file_path, "r", encoding=format_file.encoding, newline="") as f:
        data = f.read()

    rows = decode_rows(data, format_file.fields)
    logger.debug("Decoded %s rows from %s", len(rows), file_path)
    return rows


def rows_to_arrow_table(rows: Sequence[Row], format_file: FormatFile) -> pa.Table:
    schema = pa.schema(
        [pa.field(f.name, FIELD_KIND_TO_ARROW_TYPE[f.kind], nullable=True) for f in format_file.fields]
    )
    return pa.Table.from_pylist(list(rows), schema=schema)
