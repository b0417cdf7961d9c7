from __future__ import annotations

from pathlib import Path

import pyarrow.parquet as pq
import pytest

import main


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "bcp.yaml"
    path.write_text(f"server: localhost\ntrusted: true\ntmp: {tmp_path / 'work'}\n", encoding="utf-8")
    return path


def test_export_prints_row_count(config_path: Path, fake_bcp, capsys: pytest.CaptureFixture[str]) -> None:
    assert main.main(["export", "Orders", "--config", str(config_path)]) == 0

    assert capsys.readouterr().out.strip() == "2"
    assert fake_bcp.modes == ["format", "out"]


def test_export_to_parquet_cleans_up(tmp_path: Path, config_path: Path, fake_bcp) -> None:
    out = tmp_path / "orders.parquet"

    main.main(["export", "Orders", "--config", str(config_path), "--parquet", str(out)])

    table = pq.read_table(out)
    assert table.column_names == ["Id", "Name", "Active", "CreatedAt"]
    assert table.column("Id").to_pylist() == [1, 2]
    assert not any((tmp_path / "work").iterdir())


def test_format_command_writes_format_file(tmp_path: Path, config_path: Path, fake_bcp) -> None:
    out = tmp_path / "formats" / "orders.xml"

    assert main.main(["format", "Orders", "--config", str(config_path), "--out", str(out)]) == 0

    assert out.exists()
