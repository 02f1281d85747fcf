from __future__ import annotations

import json
from argparse import Namespace
from collections.abc import Callable
from datetime import date
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from layoutguard import cli
from layoutguard.exceptions import UnknownFileTypeError
from layoutguard.settings import Settings

type Builder = Callable[..., list[str]]


@pytest.fixture
def settings(mocker: MockerFixture, tmp_path: Path) -> Settings:
    configured = Settings(RESULTS_DIR=str(tmp_path / "results"))
    mocker.patch("layoutguard.cli.get_settings", return_value=configured)
    mocker.patch("layoutguard.cli.configure_logging")
    return configured


def _write(path: Path, lines: list[str]) -> Path:
    path.write_text("\r\n".join(lines) + "\r\n", encoding="latin-1")
    return path


def test_build_parser_supports_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    parser = cli.build_parser()

    with pytest.raises(SystemExit) as exc_info:
        parser.parse_args(["--version"])
    assert exc_info.value.code == 0

    captured = capsys.readouterr()
    assert "0.1.0" in captured.out


def test_as_of_must_be_iso_date() -> None:
    parser = cli.build_parser()

    assert parser.parse_args(["check-id", "--type", "nss", "--as-of", "2024-06-30", "1"]).as_of == date(2024, 6, 30)
    with pytest.raises(SystemExit):
        parser.parse_args(["check-id", "--type", "nss", "--as-of", "30/06/2024", "1"])


def test_main_without_command_prints_help(settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == cli.EXIT_OK
    assert "usage" in capsys.readouterr().out.lower()


def test_check_id_valid(settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
    result = cli.main(["check-id", "--type", "curp", "--as-of", "2024-06-30", "gode561231hdfrrn00"])

    assert result == cli.EXIT_OK
    assert capsys.readouterr().out.strip() == "CURP GODE561231HDFRRN00: valid"


def test_check_id_invalid(settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
    result = cli.main(["check-id", "--type", "curp", "GODE561230HDFRRN00"])

    assert result == cli.EXIT_NOT_COMPLIANT
    assert capsys.readouterr().out.strip() == "CURP 'GODE561230HDFRRN00': invalid (bad_check_digit)"


def test_layouts_lists_registry(settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["layouts"]) == cli.EXIT_OK

    rows = [line.split("\t") for line in capsys.readouterr().out.splitlines()]
    assert [row[:3] for row in rows] == [["contable", "0200", "115"], ["nomina", "0100", "100"], ["regularizacion", "0400", "108"]]
    assert rows[1][3] == "11 rules"


def test_validate_detects_type_and_persists(
    settings: Settings,
    nomina_file: Builder,
    tmp_path: Path,
) -> None:
    input_path = _write(tmp_path / "batch.txt", nomina_file())

    result = cli.main(["validate", "--input", str(input_path), "--as-of", "2024-06-30"])

    assert result == cli.EXIT_OK
    payload = json.loads((tmp_path / "results" / "batch.txt.json").read_text(encoding="utf-8"))
    assert payload["status"] == "passed"
    assert payload["file_type"] == "nomina"
    assert payload["total_records"] == 3


def test_validate_reports_non_compliant_files(
    settings: Settings,
    nomina_file: Builder,
    tmp_path: Path,
) -> None:
    input_path = _write(tmp_path / "batch.0100", nomina_file([{"nss": "12345678900"}]))
    output_path = tmp_path / "out" / "result.json"

    result = cli.main(
        [
            "validate",
            "--input",
            str(input_path),
            "--file-type",
            "nomina",
            "--output",
            str(output_path),
            "--as-of",
            "2024-06-30",
            "--sharded",
        ],
    )

    assert result == cli.EXIT_NOT_COMPLIANT
    payload = json.loads(output_path.read_text(encoding="utf-8"))
    assert payload["violated_codes"] == ["NOMINA_VAL_01"]


def test_run_validate_rejects_undetectable_files(settings: Settings, tmp_path: Path) -> None:
    input_path = _write(tmp_path / "batch.txt", ["99 not a known header"])
    args = Namespace(
        input_path=input_path,
        file_type=None,
        output_path=None,
        as_of=None,
        sharded=False,
        rules_path=None,
    )

    with pytest.raises(UnknownFileTypeError, match="batch.txt"):
        cli._run_validate(args, settings)


def test_main_returns_failure_on_package_errors(settings: Settings, tmp_path: Path) -> None:
    input_path = _write(tmp_path / "batch.txt", ["99 not a known header"])

    assert cli.main(["validate", "--input", str(input_path)]) == cli.EXIT_FAILURE


def test_main_returns_interrupted_code(settings: Settings, mocker: MockerFixture) -> None:
    mocker.patch("layoutguard.cli._run_layouts", side_effect=KeyboardInterrupt)

    assert cli.main(["layouts"]) == cli.EXIT_INTERRUPTED
