import argparse
import logging
import os
from logging.config import dictConfig

import pyarrow.parquet as pq

from core.settings import LOG_FOLDER, LOGGING_CONFIG
from bulkcopy.config import load_bcp_config
from bulkcopy.format_file import FormatFile
from bulkcopy.orchestrator import Bcp
from bulkcopy.reader import rows_to_arrow_table

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Bulk copy SQL Server tables with the bcp utility.")
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Export a table and decode its rows")
    export.add_argument("table")
    export.add_argument("--config", required=True, help="YAML bcp configuration")
    export.add_argument("--keep-files", action="store_true")
    export.add_argument("--parquet", help="Write the decoded rows to this parquet file")

    fmt = sub.add_parser("format", help="Generate an XML format file for a table")
    fmt.add_argument("table")
    fmt.add_argument("--config", required=True, help="YAML bcp configuration")
    fmt.add_argument("--out", required=True)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    bcp = Bcp(load_bcp_config(args.config))

    if args.command == "format":
        format_file = bcp.generate_format_file(args.table, args.out)
        logger.info("Wrote %s fields to %s", len(format_file.fields), format_file.filename)
        return 0

    if args.parquet:
        # keep the format file so the rows can be typed
        result = bcp.bulk_export(args.table, keep_files=True)
        format_file = FormatFile.from_file(result.details.format_file_path)
        pq.write_table(rows_to_arrow_table(result.rows or [], format_file), args.parquet, compression="snappy")
        logger.info("Wrote %s rows to %s", len(result.rows or []), args.parquet)
        if not args.keep_files:
            bcp.layout.delete_files([result.details.format_file_path, result.details.export_file_path])
    else:
        result = bcp.bulk_export(args.table, keep_files=args.keep_files)

    print(result.details.row_count)
    return 0


if __name__ == "__main__":
    os.makedirs(LOG_FOLDER, exist_ok=True)
    dictConfig(LOGGING_CONFIG)
    raise SystemExit(main())
