import json
from typing import Any

from bulkcopy.config import BcpConfig


def json_quote(value: Any) -> str:
    """Quote a value for the bcp command line: JSON string syntax survives the shell."""
    return json.dumps(str(value))


def _terminator_args(flag: str, terminator: str) -> list[str]:
    # bcp reads "-t -x" as two switches, so values starting with - or / are glued to the flag
    if terminator[0] in ("-", "/"):
        return [flag + terminator]
    return [flag, json_quote(terminator)]


def build_hints(config: BcpConfig) -> list[str]:
    hints: list[str] = []

    if config.order:
        hints.append(f"ORDER({config.order})")

    if config.rows_per_batch:
        hints.append(f"ROWS_PER_BATCH={int(config.rows_per_batch)}")

    if config.kb_per_batch:
        hints.append(f"KILOBYTES_PER_BATCH={int(config.kb_per_batch)}")

    if config.tab_lock:
        hints.append("TABLOCK")

    if config.check_constraints:
        hints.append("CHECK_CONSTRAINTS")

    if config.fire_triggers:
        hints.append("FIRE_TRIGGERS")

    return hints


def build_common_args(config: BcpConfig, omit_format: bool = False) -> list[str]:
    """
    Build the bcp switches shared by every invocation, in bcp's documented order.

    omit_format:
      True when a format file (-f) is supplied, which makes the data format
      switches (-w/-c, -C, -r, -t) redundant.

    Zero and unset numeric options are both treated as absent.
    """
    args: list[str] = []

    if config.packet_size:
        args += ["-a", str(int(config.packet_size))]

    if config.batch_size:
        args += ["-b", str(int(config.batch_size))]

    if not omit_format:
        args.append("-w" if config.unicode else "-c")

    if config.code_page and not omit_format:
        args += ["-C", json_quote(config.code_page)]

    if config.error_file:
        args += ["-e", json_quote(config.error_file)]

    if config.use_identity:
        args.append("-E")

    if config.first_row:
        args += ["-F", str(int(config.first_row))]

    if config.input_file:
        args += ["-i", json_quote(config.input_file)]

    if config.read_only:
        args += ["-K", "ReadOnly"]

    if config.keep_nulls:
        args.append("-k")

    if config.last_row:
        args += ["-L", str(int(config.last_row))]

    if config.max_errors:
        args += ["-m", str(int(config.max_errors))]

    if config.regional:
        args.append("-R")

    if config.row_terminator and not omit_format:
        args += _terminator_args("-r", config.row_terminator)

    if config.server:
        args += ["-S", json_quote(config.server)]

    if config.field_terminator and not omit_format:
        args += _terminator_args("-t", config.field_terminator)

    if config.trusted:
        args.append("-T")
    else:
        if config.user:
            args += ["-U", json_quote(config.user)]

        if config.password:
            args += ["-P", json_quote(config.password)]

    hints = build_hints(config)
    if hints:
        args += ["-h", json_quote(",".join(hints))]

    return args


def qualify_table(config: BcpConfig, table: str) -> str:
    """[database].[schema].[table], wrapped in quotes when quoted identifiers are on."""
    arg = f"[{table}]"
    if config.schema_name:
        arg = f"[{config.schema_name}].{arg}"

    if config.database:
        arg = f"[{config.database}].{arg}"

    if config.quoted_identifiers:
        arg = json_quote(arg)

    return arg
