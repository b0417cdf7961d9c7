import logging
import os
import signal
from glob import glob
from pathlib import Path
from typing import Annotated, Self

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.settings import default_tmp_dir

logger = logging.getLogger(__name__)


class StrictBaseModel(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)


class BcpConfig(StrictBaseModel):
    """
    Options for one Bcp instance. Read-only once constructed.

    Option names follow the bcp utility switches; see the bcp documentation for
    the full semantics of each one. Mutually exclusive switches are not
    cross-validated here: the argument builder resolves them (trusted wins over
    user/password; batch_size and rows_per_batch are both emitted if both set).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    # Process
    exec: str = "bcp"
    timeout: float | None = None  # seconds
    kill_signal: str = "SIGTERM"
    tmp: Annotated[Path, Field(strict=False)] = Field(default_factory=default_tmp_dir)

    # Table qualification
    database: str | None = None
    schema_name: str | None = Field(default="dbo", alias="schema")
    quoted_identifiers: bool = False  # -q

    # Connection
    server: str | None = None  # -S
    trusted: bool = False  # -T
    user: str | None = None  # -U
    password: str | None = None  # -P
    packet_size: int | None = None  # -a
    read_only: bool = False  # -K ReadOnly

    # Data format
    unicode: bool = True  # -w / -c
    code_page: str | int | None = None  # -C
    row_terminator: str | None = None  # -r
    field_terminator: str | None = None  # -t
    regional: bool = False  # -R

    # Batching / rows
    batch_size: int | None = None  # -b
    first_row: int | None = None  # -F
    last_row: int | None = None  # -L
    max_errors: int | None = None  # -m
    error_file: str | None = None  # -e
    input_file: str | None = None  # -i
    use_identity: bool = False  # -E
    keep_nulls: bool = False  # -k

    # -h hints
    order: str | None = None
    rows_per_batch: int | None = None
    kb_per_batch: int | None = None
    tab_lock: bool = False
    check_constraints: bool = False
    fire_triggers: bool = False

    @model_validator(mode="after")
    def validate_config(self) -> Self:
        if self.kill_signal not in signal.Signals.__members__:
            raise ValueError(f"Unknown kill_signal '{self.kill_signal}'")

        if self.timeout is not None and self.timeout < 0:
            raise ValueError("timeout must be >= 0")

        return self

    @property
    def file_encoding(self) -> str:
        """Byte encoding of data files: UTF-16 for -w, single-byte for -c."""
        return "utf-16-le" if self.unicode else "latin-1"

    @property
    def kill_signal_number(self) -> signal.Signals:
        return signal.Signals[self.kill_signal]


def load_bcp_config(file_path: str | Path) -> BcpConfig:
    with open(file_path, "r") as file:
        config_yaml = yaml.safe_load(file) or {}
    try:
        return BcpConfig.model_validate(config_yaml)
    except Exception as e:
        raise ValueError(f"Error loading bcp config from {file_path}: {e}") from e


def load_bcp_configs_from_directory(directory_path: str) -> dict[str, BcpConfig]:
    file_paths = sorted(glob(os.path.join(directory_path, "*.yaml")))

    configs: dict[str, BcpConfig] = {}
    for file_path in file_paths:
        configs[Path(file_path).stem] = load_bcp_config(file_path)

    if not configs:
        logger.warning(f"No bcp configuration files found in directory: {directory_path}")

    return configs
