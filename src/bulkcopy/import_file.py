from __future__ import annotations

import logging
from pathlib import Path
from typing import IO, TYPE_CHECKING, Any, Iterable, Mapping

from bulkcopy.field_codec import encode_field
from bulkcopy.format_file import FormatFile

if TYPE_CHECKING:
    from bulkcopy.orchestrator import Bcp

logger = logging.getLogger(__name__)


class ImportFile:
    """
    A data file being filled with rows for a later bulk insert.

    Only the format's in-import fields are written, in format order, each
    followed by its own terminator. Closing the file rewrites the format file
    so it describes exactly those fields.
    """

    def __init__(self, owner: Bcp, format_file: FormatFile, table: str, path: str | Path, encoding: str):
        self.owner = owner
        self.format = format_file
        self.table = table
        self.path = Path(path)
        self.encoding = encoding

        self._fields = format_file.import_fields
        self._handle: IO[str] | None = None
        self._closed = False
        self.rows_written = 0

    def __enter__(self) -> "ImportFile":
        return self

    def __exit__(self, exc_type, exc_value, tb) -> None:
        self.close()

    def _require_handle(self) -> IO[str]:
        if self._closed:
            raise RuntimeError(f"Import file {self.path} is already closed")
        if self._handle is None:
            self._handle = open(self.path, "w", encoding=self.encoding, newline="")
        return self._handle

    def write_row(self, row: Mapping[str, Any]) -> None:
        handle = self._require_handle()
        handle.write("".join(encode_field(row.get(f.name), f) + f.terminator for f in self._fields))
        self.rows_written += 1

    def write_rows(self, rows: Iterable[Mapping[str, Any]]) -> int:
        count = 0
        for row in rows:
            self.write_row(row)
            count += 1
        return count

    def close(self) -> None:
        if self._closed:
            return

        self._require_handle().close()
        self._handle = None
        self._closed = True

        self.format.save(import_only=True)
        logger.debug("Closed import file %s with %s rows", self.path, self.rows_written)

    def execute(self, keep_files: bool = False) -> None:
        """Close the file and bulk insert it into the table."""
        self.close()
        self.owner.bulk_insert(self.path, self.format, self.table, keep_files=keep_files)
