"""Configuration management for the slip scanning pipeline.

Loads and validates YAML configuration with defaults for OCR, image
preprocessing, field extraction and pipeline execution.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from slipscan.records import EXTRACTED_FIELDS, MANDATORY_FIELDS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("configs/config.yaml")


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR backend."""

    tesseract_cmd: str | None = None
    default_lang: str = "por"
    psm: int = 6
    pdf_dpi: int = 300


class PreprocessingConfig(BaseModel):
    """Configuration for image cleanup before OCR."""

    enabled: bool = True
    upscale_min_width: int = 1600
    denoise_enabled: bool = True
    denoise_method: Literal["bilateral", "gaussian"] = "bilateral"
    deskew_enabled: bool = True
    binarize_enabled: bool = True
    binarize_method: Literal["otsu", "adaptive"] = "otsu"


class ExtractionConfig(BaseModel):
    """Plausibility windows and fallbacks used by the field extractors."""

    max_amount: Decimal = Decimal("1000000.00")
    generic_min_amount: Decimal = Decimal("10.00")
    generic_max_amount: Decimal = Decimal("100000.00")
    due_date_past_years: int = Field(default=1, ge=0)
    due_date_future_years: int = Field(default=2, ge=0)
    two_digit_year_pivot: int = Field(default=50, ge=0, le=99)
    payee_fallback: str = "Fornecedor não identificado"


class PipelineConfig(BaseModel):
    """Execution settings for the scan reconciliation pipeline."""

    max_workers: int = Field(default=4, ge=1)
    required_fields: list[str] = Field(
        default_factory=lambda: list(MANDATORY_FIELDS)
    )

    @field_validator("required_fields")
    @classmethod
    def _known_fields(cls, value: list[str]) -> list[str]:
        unknown = [name for name in value if name not in EXTRACTED_FIELDS]
        if unknown:
            raise ValueError(f"Unknown required fields: {', '.join(unknown)}")
        # Configuration may add required fields, never drop a mandatory one.
        dropped = [name for name in MANDATORY_FIELDS if name not in value]
        if dropped:
            raise ValueError(f"Mandatory fields cannot be dropped: {', '.join(dropped)}")
        return value


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = DEFAULT_CONFIG_PATH

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
