from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Sequence

from bulkcopy.arguments import build_common_args, json_quote, qualify_table
from bulkcopy.config import BcpConfig
from bulkcopy.domain import ExportDetails, ExportResult, Row
from bulkcopy.errors import BcpOperationError, MissingColumnError
from bulkcopy.format_file import FormatFile
from bulkcopy.import_file import ImportFile
from bulkcopy.process import run_bcp
from bulkcopy.reader import read_export
from bulkcopy.temp_files import TempFileLayout

logger = logging.getLogger(__name__)

ROWS_COPIED_RE = re.compile(r"(\d+) rows copied\.")

Step = tuple[str, Callable[[Any], Any]]


def run_pipeline(operation: str, steps: Sequence[Step], initial: Any) -> Any:
    """
    Run steps in order, feeding each one the previous step's result.

    The first failing step stops the pipeline and is raised as a
    BcpOperationError naming the operation and the step.
    """
    result = initial
    for name, step in steps:
        logger.debug("%s: %s", operation, name)
        try:
            result = step(result)
        except Exception as e:
            raise BcpOperationError(operation, name, e) from e
    return result


def parse_row_count(stdout: str | None) -> int:
    match = ROWS_COPIED_RE.search(stdout or "")
    return int(match.group(1)) if match else 0


@dataclass(frozen=True)
class _ExportState:
    table: str
    common_args: list[str]
    format_path: Path
    export_path: Path
    read: bool
    keep_files: bool
    format: FormatFile | None = None
    stdout: str | None = None
    rows: list[Row] | None = None


@dataclass(frozen=True)
class _InsertState:
    table: str
    import_path: Path
    format: FormatFile
    keep_files: bool


@dataclass(frozen=True)
class _PrepareState:
    table: str
    qualified_table: str
    columns: list[str]
    format_path: Path
    import_path: Path
    format: FormatFile | None = None

    def require_format(self) -> FormatFile:
        if self.format is None:
            raise RuntimeError("Format file has not been generated yet")
        return self.format


class Bcp:
    """
    Drives the bcp utility: bulk export, bulk insert, and preparing import files.

    Each operation is a fixed pipeline:
      export:  ensure dirs -> format file -> bcp out -> read rows -> cleanup
      insert:  bcp in -> cleanup
      prepare: ensure dirs -> format file -> match columns -> import file
    Generated files are removed only after a successful run; on failure they
    are left in place for inspection.
    """

    def __init__(self, config: BcpConfig | None = None):
        self.config = config or BcpConfig()
        self.layout = TempFileLayout(tmp_root=self.config.tmp)

    # ----------------------------
    # Public API
    # ----------------------------
    def bulk_export(
        self,
        table: str,
        *,
        read: bool = True,
        keep_files: bool = False,
        format_file: str | Path | None = None,
        export_file: str | Path | None = None,
    ) -> ExportResult:
        if not read:
            # the export would otherwise be deleted unread
            keep_files = True

        base = self.layout.new_base()
        state = _ExportState(
            table=qualify_table(self.config, table),
            common_args=build_common_args(self.config),
            format_path=Path(format_file) if format_file else self.layout.format_path(base),
            export_path=Path(export_file) if export_file else self.layout.export_path(base),
            read=read,
            keep_files=keep_files,
        )

        logger.info("Bulk exporting %s", state.table)
        state = run_pipeline(
            "bulk_export",
            [
                ("ensure directories", self._export_ensure_directories),
                ("generate format file", self._export_generate_format),
                ("export", self._export_run),
                ("read export", self._export_read),
                ("cleanup", self._export_cleanup),
            ],
            state,
        )

        details = ExportDetails(
            format_file_path=state.format_path,
            export_file_path=state.export_path,
            row_count=parse_row_count(state.stdout),
            raw_tool_output=state.stdout,
        )
        logger.info("Bulk export of %s copied %s rows", state.table, details.row_count)
        return ExportResult(rows=state.rows, details=details)

    def bulk_insert(
        self,
        import_file: str | Path,
        format_file: FormatFile,
        table: str,
        *,
        keep_files: bool = False,
    ) -> None:
        state = _InsertState(
            table=qualify_table(self.config, table),
            import_path=Path(import_file),
            format=format_file,
            keep_files=keep_files,
        )

        logger.info("Bulk inserting %s into %s", state.import_path, state.table)
        run_pipeline(
            "bulk_insert",
            [
                ("import", self._insert_run),
                ("cleanup", self._insert_cleanup),
            ],
            state,
        )

    def prepare_bulk_insert(
        self,
        table: str,
        columns: Sequence[str],
        *,
        format_file: str | Path | None = None,
        import_file: str | Path | None = None,
    ) -> ImportFile:
        base = self.layout.new_base()
        state = _PrepareState(
            table=table,
            qualified_table=qualify_table(self.config, table),
            columns=list(columns),
            format_path=Path(format_file) if format_file else self.layout.format_path(base),
            import_path=Path(import_file) if import_file else self.layout.import_path(base),
        )

        return run_pipeline(
            "prepare_bulk_insert",
            [
                ("ensure directories", self._prepare_ensure_directories),
                ("generate format file", self._prepare_generate_format),
                ("match columns", self._prepare_match_columns),
                ("create import file", self._prepare_create_import_file),
            ],
            state,
        )

    def generate_format_file(self, table: str, file_path: str | Path) -> FormatFile:
        """Generate and keep a format file for `table`."""
        qualified_table = qualify_table(self.config, table)
        path = Path(file_path)

        def ensure_directories(_: None) -> None:
            self.layout.ensure_parent_directories([path])

        def generate(_: None) -> FormatFile:
            return FormatFile.generate(self.config, qualified_table, path, build_common_args(self.config))

        return run_pipeline(
            "generate_format_file",
            [
                ("ensure directories", ensure_directories),
                ("generate format file", generate),
            ],
            None,
        )

    # ----------------------------
    # Export steps
    # ----------------------------
    def _export_ensure_directories(self, state: _ExportState) -> _ExportState:
        self.layout.ensure_parent_directories([state.format_path, state.export_path])
        return state

    def _export_generate_format(self, state: _ExportState) -> _ExportState:
        fmt = FormatFile.generate(self.config, state.table, state.format_path, state.common_args)
        return replace(state, format=fmt)

    def _export_run(self, state: _ExportState) -> _ExportState:
        logger.debug("Performing bulk export...")
        stdout = run_bcp(self.config, state.table, ["out", json_quote(state.export_path)], state.common_args)
        return replace(state, stdout=stdout)

    def _export_read(self, state: _ExportState) -> _ExportState:
        if not state.read or state.format is None:
            return state
        logger.debug("Reading exported file...")
        return replace(state, rows=read_export(state.export_path, state.format))

    def _export_cleanup(self, state: _ExportState) -> _ExportState:
        if not state.keep_files:
            self.layout.delete_files([state.format_path, state.export_path])
        return state

    # ----------------------------
    # Insert steps
    # ----------------------------
    def _insert_run(self, state: _InsertState) -> _InsertState:
        logger.debug("Performing bulk insert...")
        mode_args = ["in", json_quote(state.import_path), "-f", json_quote(state.format.filename)]
        run_bcp(self.config, state.table, mode_args, build_common_args(self.config, omit_format=True))
        return state

    def _insert_cleanup(self, state: _InsertState) -> _InsertState:
        if not state.keep_files:
            self.layout.delete_files([state.format.filename, state.import_path])
        return state

    # ----------------------------
    # Prepare steps
    # ----------------------------
    def _prepare_ensure_directories(self, state: _PrepareState) -> _PrepareState:
        self.layout.ensure_parent_directories([state.format_path, state.import_path])
        return state

    def _prepare_generate_format(self, state: _PrepareState) -> _PrepareState:
        fmt = FormatFile.generate(self.config, state.qualified_table, state.format_path, build_common_args(self.config))
        return replace(state, format=fmt)

    def _prepare_match_columns(self, state: _PrepareState) -> _PrepareState:
        fmt = state.require_format()
        field_names = [f.name.lower() for f in fmt.fields]

        for column in state.columns:
            try:
                dex = field_names.index(column.lower())
            except ValueError:
                raise MissingColumnError(state.qualified_table, column) from None

            fmt.fields[dex].name = column
            fmt.fields[dex].in_import = True

        return state

    def _prepare_create_import_file(self, state: _PrepareState) -> ImportFile:
        fmt = state.require_format()
        logger.debug("Creating Import File...")
        return ImportFile(self, fmt, state.table, state.import_path, self.config.file_encoding)
