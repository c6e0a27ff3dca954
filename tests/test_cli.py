"""Tests for the command-line interface."""

import csv
import json
from datetime import date, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from slipscan.cli import EXIT_INCOMPLETE, EXIT_OCR_ERROR, main, process_folder
from slipscan.errors import OcrFailure
from slipscan.pipeline import ScanReconciliationPipeline


def _slip(due: date) -> str:
    return (
        "Beneficiário\nESCOLA AURORA LTDA\n"
        f"Vencimento\n{due:%d/%m/%Y}\n"
        "(=) Valor do Documento\nR$ 350,00\n"
    )


def _pipeline(text: str = "", side_effect: object = None) -> ScanReconciliationPipeline:
    recognizer = MagicMock()
    recognizer.recognize_text.return_value = text
    recognizer.recognize_text.side_effect = side_effect
    return ScanReconciliationPipeline(recognizer, max_workers=2)


@pytest.fixture
def slip_file(tmp_path: Path, png_bytes: bytes) -> Path:
    path = tmp_path / "slip.png"
    path.write_bytes(png_bytes)
    return path


class TestScanCommand:
    """Tests for the scan subcommand."""

    def test_prints_record(self, slip_file: Path, capsys: pytest.CaptureFixture[str]) -> None:
        due = date.today() + timedelta(days=20)
        with patch(
            "slipscan.cli.ScanReconciliationPipeline.from_config",
            return_value=_pipeline(_slip(due)),
        ):
            main(["scan", str(slip_file)])

        payload = json.loads(capsys.readouterr().out)
        assert payload["amount"] == "350.00"
        assert payload["due_date"] == due.isoformat()
        assert payload["payee_name"] == "ESCOLA AURORA LTDA"
        assert payload["status"] == "pending"

    def test_user_data_and_output_file(self, slip_file: Path, tmp_path: Path) -> None:
        due = date.today() + timedelta(days=20)
        output = tmp_path / "out" / "record.json"
        with patch(
            "slipscan.cli.ScanReconciliationPipeline.from_config",
            return_value=_pipeline(_slip(due)),
        ):
            main(
                [
                    "scan",
                    str(slip_file),
                    "--data",
                    '{"amount": "99,90", "category_id": 4}',
                    "-o",
                    str(output),
                ]
            )

        payload = json.loads(output.read_text(encoding="utf-8"))
        assert payload["amount"] == "99.90"
        assert payload["category_id"] == 4

    def test_incomplete_scan_exit_code(self, slip_file: Path) -> None:
        with patch(
            "slipscan.cli.ScanReconciliationPipeline.from_config",
            return_value=_pipeline(""),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["scan", str(slip_file)])
        assert exc_info.value.code == EXIT_INCOMPLETE

    def test_ocr_failure_exit_code(self, slip_file: Path) -> None:
        with patch(
            "slipscan.cli.ScanReconciliationPipeline.from_config",
            return_value=_pipeline(side_effect=OcrFailure("unreadable")),
        ):
            with pytest.raises(SystemExit) as exc_info:
                main(["scan", str(slip_file)])
        assert exc_info.value.code == EXIT_OCR_ERROR

    def test_invalid_user_data(self, slip_file: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["scan", str(slip_file), "--data", '{"amount": "abc,de"}'])
        assert exc_info.value.code == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["scan", str(tmp_path / "nope.png")])
        assert exc_info.value.code == 1


class TestExtractCommand:
    """Tests for the extract subcommand."""

    def test_reports_strategies(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        path = tmp_path / "slip.txt"
        path.write_text(_slip(date.today() + timedelta(days=5)), encoding="utf-8")
        main(["extract", str(path)])

        payload = json.loads(capsys.readouterr().out)
        assert payload["filename"] == "slip.txt"
        assert payload["fields"]["amount"] == {
            "value": "350.00",
            "strategy": "label",
            "rule": "document_amount_label",
        }
        assert payload["fields"]["reference_code"] is None
        assert payload["record"]["payee_name"] == "ESCOLA AURORA LTDA"


class TestBatchCommand:
    """Tests for folder scanning."""

    def test_process_folder(self, tmp_path: Path, png_bytes: bytes) -> None:
        input_dir = tmp_path / "slips"
        input_dir.mkdir()
        (input_dir / "a.png").write_bytes(png_bytes)
        (input_dir / "b.png").write_bytes(b"broken")
        due = date.today() + timedelta(days=3)

        def recognize(data: bytes) -> str:
            if data == b"broken":
                raise OcrFailure("unreadable")
            return _slip(due)

        output = tmp_path / "results.csv"
        with _pipeline(side_effect=recognize) as pipeline:
            summary = process_folder(input_dir, output, pipeline)

        assert summary == {"total": 2, "successful": 1, "failed": 1}
        with open(output, encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert [row["filename"] for row in rows] == ["a.png", "b.png"]
        assert rows[0]["status"] == "success"
        assert rows[0]["amount"] == "350.00"
        assert rows[1]["status"] == "failed"
        assert rows[1]["error"] == "unreadable"
        assert all(float(row["processing_time_s"]) >= 0 for row in rows)

    def test_empty_folder(self, tmp_path: Path) -> None:
        with _pipeline() as pipeline:
            summary = process_folder(tmp_path, tmp_path / "out.csv", pipeline)
        assert summary == {"total": 0, "successful": 0, "failed": 0}
        assert not (tmp_path / "out.csv").exists()

    def test_batch_command(
        self, tmp_path: Path, png_bytes: bytes, capsys: pytest.CaptureFixture[str]
    ) -> None:
        (tmp_path / "slip.png").write_bytes(png_bytes)
        output = tmp_path / "out.csv"
        with patch(
            "slipscan.cli.ScanReconciliationPipeline.from_config",
            return_value=_pipeline(_slip(date.today() + timedelta(days=3))),
        ):
            main(["batch", str(tmp_path), "-o", str(output)])
        assert output.exists()
        assert "Successful: 1" in capsys.readouterr().out

    def test_not_a_directory(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", str(tmp_path / "missing")])
        assert exc_info.value.code == 1


def test_no_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 0
    assert "usage" in capsys.readouterr().out


def test_config_after_subcommand(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("extraction:\n  generic_min_amount: '1.00'\n", encoding="utf-8")
    text = tmp_path / "fee.txt"
    text.write_text("Tarifa R$ 5,00\n", encoding="utf-8")

    main(["extract", str(text), "--config", str(config)])

    payload = json.loads(capsys.readouterr().out)
    assert payload["fields"]["amount"]["value"] == "5.00"
