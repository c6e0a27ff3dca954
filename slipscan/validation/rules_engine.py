"""Validation rules for reconciled billing records.

Missing mandatory fields are blocking and make the scan fail. Every other
rule only produces a warning: user overrides always win, so a suspicious
value is reported rather than rejected.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from slipscan.extraction.normalize import MAX_AMOUNT, PAYEE_FALLBACK
from slipscan.extraction.reference_code import (
    DIGITABLE_LINE_LENGTH,
    digitable_line_checks_ok,
)
from slipscan.records import MANDATORY_FIELDS, ReconciledBillingRecord
from slipscan.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ValidationResult:
    """Result of a single validation check."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str
    blocking: bool = False


@dataclass
class ValidationReport:
    """All checks run against one record."""

    results: list[ValidationResult]
    missing_fields: list[str] = field(default_factory=list)

    @property
    def all_valid(self) -> bool:
        return all(r.is_valid for r in self.results)

    @property
    def warnings(self) -> list[str]:
        return [r.message for r in self.results if not r.is_valid and not r.blocking]


class RecordValidator:
    """Checks a reconciled record before it is handed to billing.

    Args:
        required_fields: Fields that must be present for a scan to succeed.
            The mandatory fields are always required on top of these.
        max_amount: Amounts at or above this are flagged.
        payee_fallback: Placeholder name used when no payee was found.
    """

    def __init__(
        self,
        required_fields: tuple[str, ...] | list[str] = MANDATORY_FIELDS,
        max_amount: Decimal = MAX_AMOUNT,
        payee_fallback: str = PAYEE_FALLBACK,
    ) -> None:
        self.required_fields = tuple(
            dict.fromkeys((*MANDATORY_FIELDS, *required_fields))
        )
        self.max_amount = max_amount
        self.payee_fallback = payee_fallback

    def validate(self, record: ReconciledBillingRecord) -> ValidationReport:
        """Run every rule against ``record``."""
        missing = record.missing_fields(self.required_fields)
        results = [
            ValidationResult(
                name,
                name not in missing,
                f"Required field missing: {name}"
                if name in missing
                else "Required field present",
                "required",
                blocking=True,
            )
            for name in self.required_fields
        ]
        results.extend(self._check_amount(record))
        results.extend(self._check_reference_code(record))
        results.extend(self._check_payee(record))

        report = ValidationReport(results=results, missing_fields=missing)
        logger.info(
            "Validation %s (%d checks, %d warnings)",
            "PASSED" if report.all_valid else "FAILED",
            len(results),
            len(report.warnings),
        )
        return report

    def _check_amount(self, record: ReconciledBillingRecord) -> list[ValidationResult]:
        if record.amount is None:
            return []
        if record.amount < self.max_amount:
            return [ValidationResult("amount", True, "Amount in range", "amount_range")]
        return [
            ValidationResult(
                "amount",
                False,
                f"Amount {record.amount} is not below {self.max_amount}",
                "amount_range",
            )
        ]

    def _check_reference_code(
        self, record: ReconciledBillingRecord
    ) -> list[ValidationResult]:
        code = record.reference_code
        if not code:
            return []
        if not code.isdigit() or not 44 <= len(code) <= 48:
            return [
                ValidationResult(
                    "reference_code",
                    False,
                    f"Reference code must have 44 to 48 digits, got {code!r}",
                    "reference_code_format",
                )
            ]
        if len(code) == DIGITABLE_LINE_LENGTH and not digitable_line_checks_ok(code):
            return [
                ValidationResult(
                    "reference_code",
                    False,
                    "Digitable line check digits do not match",
                    "digitable_line_checksum",
                )
            ]
        return [
            ValidationResult(
                "reference_code", True, "Reference code well formed", "reference_code_format"
            )
        ]

    def _check_payee(self, record: ReconciledBillingRecord) -> list[ValidationResult]:
        if record.payee_name == self.payee_fallback:
            return [
                ValidationResult(
                    "payee_name",
                    False,
                    "Payee could not be identified",
                    "payee_identified",
                )
            ]
        return []
