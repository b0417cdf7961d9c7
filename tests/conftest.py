from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

import pytest

from bulkcopy.config import BcpConfig

UNICODE_FORMAT_XML = r"""<?xml version="1.0"?>
<BCPFORMAT xmlns="http://schemas.microsoft.com/sqlserver/2004/bulkload/format" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
 <RECORD>
  <FIELD ID="1" xsi:type="NCharTerm" TERMINATOR="\t\0" MAX_LENGTH="24"/>
  <FIELD ID="2" xsi:type="NCharTerm" TERMINATOR="\t\0" MAX_LENGTH="200" COLLATION="SQL_Latin1_General_CP1_CI_AS"/>
  <FIELD ID="3" xsi:type="NCharTerm" TERMINATOR="\t\0" MAX_LENGTH="2"/>
  <FIELD ID="4" xsi:type="NCharTerm" TERMINATOR="\r\0\n\0" MAX_LENGTH="48"/>
 </RECORD>
 <ROW>
  <COLUMN SOURCE="1" NAME="Id" xsi:type="SQLINT" NULLABLE="NO"/>
  <COLUMN SOURCE="2" NAME="Name" xsi:type="SQLNVARCHAR" NULLABLE="YES"/>
  <COLUMN SOURCE="3" NAME="Active" xsi:type="SQLBIT" NULLABLE="YES"/>
  <COLUMN SOURCE="4" NAME="CreatedAt" xsi:type="SQLDATETIME" NULLABLE="YES"/>
 </ROW>
</BCPFORMAT>
"""

CHAR_FORMAT_XML = r"""<?xml version="1.0"?>
<BCPFORMAT xmlns="http://schemas.microsoft.com/sqlserver/2004/bulkload/format" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
 <RECORD>
  <FIELD ID="1" xsi:type="CharTerm" TERMINATOR="||" MAX_LENGTH="12"/>
  <FIELD ID="2" xsi:type="CharTerm" TERMINATOR="\r\n" MAX_LENGTH="30"/>
 </RECORD>
 <ROW>
  <COLUMN SOURCE="1" NAME="Code" xsi:type="SQLVARYCHAR"/>
  <COLUMN SOURCE="2" NAME="Price" xsi:type="SQLFLT8"/>
 </ROW>
</BCPFORMAT>
"""

EXPORT_DATA = "1\tAlice\t1\t2014-01-02 03:04:05.123\r\n2\t\x00\t0\t\r\n"


class FakeBcp:
    """Stands in for process.run_bcp: records calls and produces the files bcp would."""

    def __init__(self, format_xml: str = UNICODE_FORMAT_XML, export_data: str = EXPORT_DATA):
        self.format_xml = format_xml
        self.export_data = export_data
        self.calls: list[tuple[str, list[str], list[str]]] = []
        self.fail_on: str | None = None

    def __call__(self, config: BcpConfig, table: str, mode_args: Sequence[str], args: Sequence[str]) -> str:
        mode_args = list(mode_args)
        self.calls.append((table, mode_args, list(args)))
        mode = mode_args[0]

        if mode == self.fail_on:
            raise RuntimeError(f"bcp {mode} failed")

        if mode == "format":
            Path(json.loads(mode_args[4])).write_text(self.format_xml, encoding="utf-8")
            return ""

        if mode == "out":
            Path(json.loads(mode_args[1])).write_text(self.export_data, encoding="utf-16-le", newline="")
            return "\nStarting copy...\n2 rows copied.\nNetwork packet size (bytes): 4096\n"

        return "\nStarting copy...\n3 rows copied.\n"

    @property
    def modes(self) -> list[str]:
        return [mode_args[0] for _, mode_args, _ in self.calls]


@pytest.fixture
def config(tmp_path: Path) -> BcpConfig:
    return BcpConfig(tmp=tmp_path / ".bcp", server="localhost", trusted=True, database="Sales")


@pytest.fixture
def fake_bcp(monkeypatch: pytest.MonkeyPatch) -> FakeBcp:
    fake = FakeBcp()
    monkeypatch.setattr("bulkcopy.format_file.run_bcp", fake)
    monkeypatch.setattr("bulkcopy.orchestrator.run_bcp", fake)
    return fake


@pytest.fixture
def unicode_format_path(tmp_path: Path) -> Path:
    path = tmp_path / "format.xml"
    path.write_text(UNICODE_FORMAT_XML, encoding="utf-8")
    return path


@pytest.fixture
def char_format_path(tmp_path: Path) -> Path:
    path = tmp_path / "char_format.xml"
    path.write_text(CHAR_FORMAT_XML, encoding="utf-8")
    return path
