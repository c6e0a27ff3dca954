"""Tests for configuration loading."""

from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from slipscan.utils.config import AppConfig, PipelineConfig, load_config


class TestLoadConfig:
    """Tests for load_config."""

    def test_default_values(self) -> None:
        config = AppConfig()
        assert config.ocr.default_lang == "por"
        assert config.ocr.psm == 6
        assert config.extraction.max_amount == Decimal("1000000.00")
        assert config.pipeline.required_fields == ["amount", "due_date", "payee_name"]
        assert config.log_level == "INFO"

    def test_shipped_config_matches_defaults(self, project_root: Path) -> None:
        config = load_config(project_root / "configs" / "config.yaml")
        assert config.extraction == AppConfig().extraction
        assert config.pipeline == AppConfig().pipeline
        assert config.preprocessing.binarize_method == "otsu"

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "missing.yaml")
        assert config == AppConfig()

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == AppConfig()

    def test_partial_override(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "extraction:\n  generic_min_amount: '1.00'\npipeline:\n  max_workers: 8\n",
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.extraction.generic_min_amount == Decimal("1.00")
        assert config.extraction.generic_max_amount == Decimal("100000.00")
        assert config.pipeline.max_workers == 8

    def test_unknown_required_field(self) -> None:
        with pytest.raises(ValidationError, match="Unknown required fields: iban"):
            PipelineConfig(required_fields=["amount", "iban"])

    @pytest.mark.parametrize("fields", [[], ["amount"], ["amount", "payee_name"]])
    def test_mandatory_fields_cannot_be_dropped(self, fields: list[str]) -> None:
        with pytest.raises(ValidationError, match="Mandatory fields cannot be dropped"):
            PipelineConfig(required_fields=fields)

    def test_extra_required_field_allowed(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text(
            "pipeline:\n  required_fields: [amount, due_date, payee_name, reference_code]\n",
            encoding="utf-8",
        )
        assert load_config(path).pipeline.required_fields[-1] == "reference_code"

    def test_invalid_worker_count(self) -> None:
        with pytest.raises(ValidationError):
            PipelineConfig(max_workers=0)

    def test_invalid_denoise_method(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yaml"
        path.write_text("preprocessing:\n  denoise_method: median\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(path)
