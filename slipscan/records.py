"""Billing record models exchanged with the pipeline's callers.

A :class:`PartialBillingRecord` carries whatever the user already knows
about a slip; the extractors produce another one from OCR text. The merge
of both is a :class:`ReconciledBillingRecord`, which is ready for the
external "create billing entry" step once it is complete.
"""

from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from slipscan.extraction.normalize import parse_amount, parse_date_token

MANDATORY_FIELDS: tuple[str, ...] = ("amount", "due_date", "payee_name")
EXTRACTED_FIELDS: tuple[str, ...] = (
    "amount",
    "due_date",
    "payee_name",
    "reference_code",
)


class BillingStatus(StrEnum):
    """Status a new billing entry starts in."""

    PENDING = "pending"
    OVERDUE = "overdue"


class PartialBillingRecord(BaseModel):
    """Billing data where every field may be absent."""

    model_config = ConfigDict(str_strip_whitespace=True)

    amount: Decimal | None = None
    due_date: date | None = None
    payee_name: str | None = None
    reference_code: str | None = None
    notes: str | None = None
    category_id: int | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _parse_localized_amount(cls, value: Any) -> Any:
        if isinstance(value, str) and "," in value:
            parsed = parse_amount(value)
            if parsed is None:
                raise ValueError(f"Invalid amount: {value}")
            return parsed
        return value

    @field_validator("amount")
    @classmethod
    def _positive_amount(cls, value: Decimal | None) -> Decimal | None:
        if value is not None and value <= 0:
            raise ValueError("Amount must be positive")
        return value

    @field_validator("due_date", mode="before")
    @classmethod
    def _parse_localized_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            parsed = parse_date_token(value)
            if parsed is not None:
                return parsed
        return value


class ReconciledBillingRecord(PartialBillingRecord):
    """Merged record handed to the billing entry creation step."""

    def missing_fields(
        self, required: tuple[str, ...] | list[str] = MANDATORY_FIELDS
    ) -> list[str]:
        """Names of required fields that are absent or blank."""
        missing = []
        for name in required:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value):
                missing.append(name)
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()

    def initial_status(self, today: date | None = None) -> BillingStatus:
        """Status for a new entry: overdue when the due date already passed.

        Raises:
            ValueError: If the record has no due date.
        """
        if self.due_date is None:
            raise ValueError("Cannot derive a status without a due date")
        today = today or date.today()
        return BillingStatus.OVERDUE if self.due_date < today else BillingStatus.PENDING
