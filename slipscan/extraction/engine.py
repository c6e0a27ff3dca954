"""Runs the four field extractors over one OCR text.

The extractors are independent of each other; the engine only feeds them
the configured plausibility limits and packs their results into a partial
billing record.
"""

from dataclasses import dataclass, field
from datetime import date

from slipscan.records import PartialBillingRecord
from slipscan.utils.config import ExtractionConfig
from slipscan.utils.logger import get_logger

from .amount import find_amount
from .base import ExtractedField
from .due_date import find_due_date
from .payee import find_payee
from .reference_code import find_reference_code

logger = get_logger(__name__)


@dataclass
class ExtractionResult:
    """OCR-derived partial record plus the fields behind it."""

    record: PartialBillingRecord
    raw_text: str
    fields: dict[str, ExtractedField | None] = field(default_factory=dict)

    @property
    def found_fields(self) -> list[str]:
        return [name for name, found in self.fields.items() if found is not None]


class FieldExtractor:
    """Extracts amount, due date, payee and reference code from slip text.

    Args:
        config: Plausibility windows and fallbacks. Defaults apply when
            omitted.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()

    def extract(self, text: str | None, today: date | None = None) -> ExtractionResult:
        """Run every extractor over ``text``.

        Args:
            text: Recognized slip text; ``None`` is treated as empty.
            today: Reference date for due date plausibility.

        Returns:
            Extraction result whose record has a payee even when nothing
            was recognized (the configured fallback name).
        """
        text = text or ""
        cfg = self.config

        fields: dict[str, ExtractedField | None] = {
            "amount": find_amount(
                text,
                maximum=cfg.max_amount,
                minimum_generic=cfg.generic_min_amount,
                maximum_generic=cfg.generic_max_amount,
            ),
            "due_date": find_due_date(
                text,
                today=today,
                past_years=cfg.due_date_past_years,
                future_years=cfg.due_date_future_years,
                pivot=cfg.two_digit_year_pivot,
            ),
            "payee_name": find_payee(text),
            "reference_code": find_reference_code(text),
        }

        payee = fields["payee_name"]
        record = PartialBillingRecord(
            amount=fields["amount"].value if fields["amount"] else None,
            due_date=fields["due_date"].value if fields["due_date"] else None,
            payee_name=payee.value if payee else cfg.payee_fallback,
            reference_code=(
                fields["reference_code"].value if fields["reference_code"] else None
            ),
        )

        result = ExtractionResult(record=record, raw_text=text, fields=fields)
        logger.info(
            "Extraction found %d of %d fields in %d characters",
            len(result.found_fields),
            len(fields),
            len(text),
        )
        return result
