from __future__ import annotations

import json
from pathlib import Path

from openpyxl import Workbook
from pydantic import ValidationError
import pytest

from sheetrange import cli


def _save(workbook: Workbook, tmp_path: Path) -> Path:
    path = tmp_path / "book.xlsx"
    workbook.save(path)
    return path


def test_parse_args_defaults() -> None:
    config = cli._parse_args(["parse", "A1"])
    assert config.command == "parse"
    assert config.references == ["A1"]
    assert config.fields == []
    assert config.log_level == "WARNING"
    assert config.log_file is None


def test_parse_args_read(tmp_path: Path) -> None:
    book = tmp_path / "book.xlsx"
    config = cli._parse_args(
        ["read", str(book), "B2:C3", "--sheet", "Data", "--display"]
    )
    assert config.command == "read"
    assert config.book == book
    assert config.range == "B2:C3"
    assert config.sheet == "Data"
    assert config.display is True


def test_parse_command_prints_descriptors(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["parse", "B2:B2", "15:5"]) == 0
    lines = capsys.readouterr().out.splitlines()
    first, second = (json.loads(line) for line in lines)
    assert first["a1_notation"] == "B2"
    assert first["is_cell"] is True
    assert second["a1_notation"] == "5:15"
    assert second["end_column_label"] is None


def test_parse_command_filters_fields(capsys: pytest.CaptureFixture[str]) -> None:
    code = cli.main(
        ["parse", "M:X", "--field", "a1_notation", "--field", "num_columns"]
    )
    assert code == 0
    assert json.loads(capsys.readouterr().out) == {
        "a1_notation": "M:X",
        "num_columns": 12,
    }


def test_parse_command_rejects_invalid_reference(
    capsys: pytest.CaptureFixture[str],
) -> None:
    assert cli.main(["parse", "1A"]) == 2
    assert "Invalid A1 notation" in capsys.readouterr().err


def test_read_command(
    workbook: Workbook, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _save(workbook, tmp_path)
    assert cli.main(["read", str(path), "A2:B3", "--sheet", "Data"]) == 0
    assert json.loads(capsys.readouterr().out) == [[1, "a"], [2, "b"]]


def test_read_command_defaults_to_first_sheet(
    workbook: Workbook, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _save(workbook, tmp_path)
    assert cli.main(["read", str(path), "C2", "--display"]) == 0
    assert json.loads(capsys.readouterr().out) == [["True"]]


def test_read_command_rejects_missing_sheet(
    workbook: Workbook, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _save(workbook, tmp_path)
    assert cli.main(["read", str(path), "A1", "--sheet", "Missing"]) == 2
    assert "Sheet not found" in capsys.readouterr().err


def test_parse_args_requires_command() -> None:
    with pytest.raises(SystemExit):
        cli._parse_args([])


def test_parse_args_normalizes_log_level() -> None:
    config = cli._parse_args(["parse", "A1", "--log-level", "debug"])
    assert config.log_level == "DEBUG"


def test_main_rejects_unknown_log_level(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["parse", "A1", "--log-level", "LOUD"])
    assert exc_info.value.code == 2
    assert "--log-level" in capsys.readouterr().err


def test_cli_config_rejects_unknown_log_level() -> None:
    with pytest.raises(ValidationError):
        cli.CliConfig(command="parse", log_level="LOUD")
