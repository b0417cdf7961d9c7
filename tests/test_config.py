from __future__ import annotations

import signal
from pathlib import Path

import pytest
from pydantic import ValidationError

from bulkcopy.config import BcpConfig, load_bcp_config, load_bcp_configs_from_directory


def test_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path))

    config = BcpConfig()

    assert config.exec == "bcp"
    assert config.schema_name == "dbo"
    assert config.unicode is True
    assert config.timeout is None
    assert config.tmp == tmp_path / ".bcp"
    assert config.file_encoding == "utf-16-le"
    assert config.kill_signal_number is signal.SIGTERM


def test_config_is_read_only() -> None:
    config = BcpConfig()

    with pytest.raises(ValidationError):
        config.batch_size = 10  # type: ignore[misc]


def test_unknown_options_are_rejected() -> None:
    with pytest.raises(ValidationError):
        BcpConfig.model_validate({"batchsize": 10})


def test_unknown_kill_signal_is_rejected() -> None:
    with pytest.raises(ValidationError, match="kill_signal"):
        BcpConfig(kill_signal="SIGNOPE")


def test_char_mode_uses_single_byte_encoding() -> None:
    assert BcpConfig(unicode=False).file_encoding == "latin-1"


def test_load_bcp_config_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "warehouse.yaml"
    path.write_text(
        "server: sql01\n"
        "database: Warehouse\n"
        "schema: stage\n"
        "trusted: true\n"
        "batch_size: 5000\n"
        f"tmp: {tmp_path / 'work'}\n"
        "tab_lock: true\n",
        encoding="utf-8",
    )

    config = load_bcp_config(path)

    assert config.server == "sql01"
    assert config.schema_name == "stage"
    assert config.batch_size == 5000
    assert config.tmp == tmp_path / "work"
    assert config.tab_lock is True


def test_load_bcp_config_names_file_on_error(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("batch_size: lots\n", encoding="utf-8")

    with pytest.raises(ValueError, match="broken.yaml"):
        load_bcp_config(path)


def test_load_configs_from_directory_keys_by_stem(tmp_path: Path) -> None:
    (tmp_path / "a.yaml").write_text("server: one\n", encoding="utf-8")
    (tmp_path / "b.yaml").write_text("server: two\n", encoding="utf-8")

    configs = load_bcp_configs_from_directory(str(tmp_path))

    assert {name: c.server for name, c in configs.items()} == {"a": "one", "b": "two"}


def test_load_configs_from_empty_directory_warns(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    assert load_bcp_configs_from_directory(str(tmp_path)) == {}
    assert "No bcp configuration files" in caplog.text
