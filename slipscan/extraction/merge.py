"""Merges user-supplied billing data with extracted data.

A user value always wins over an extracted one. Each field is resolved on
its own, so the result never depends on the order fields are visited.
"""

from slipscan.records import (
    EXTRACTED_FIELDS,
    PartialBillingRecord,
    ReconciledBillingRecord,
)


def _has_value(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def merge(
    user: PartialBillingRecord | None, extracted: PartialBillingRecord
) -> ReconciledBillingRecord:
    """Resolve every field, preferring the user record over extraction.

    Notes and category only ever come from the user record.

    Args:
        user: Values supplied by the caller, or ``None`` for no overrides.
        extracted: Values recognized from the document.

    Returns:
        A new reconciled record; neither input is modified.
    """
    user = user or PartialBillingRecord()

    resolved = {}
    for name in EXTRACTED_FIELDS:
        user_value = getattr(user, name)
        resolved[name] = user_value if _has_value(user_value) else getattr(extracted, name)

    return ReconciledBillingRecord(
        **resolved,
        notes=user.notes,
        category_id=user.category_id,
    )


def field_sources(
    user: PartialBillingRecord | None, extracted: PartialBillingRecord
) -> dict[str, str]:
    """Report where each merged field comes from: user, ocr or absent."""
    user = user or PartialBillingRecord()
    sources = {}
    for name in EXTRACTED_FIELDS:
        if _has_value(getattr(user, name)):
            sources[name] = "user"
        elif _has_value(getattr(extracted, name)):
            sources[name] = "ocr"
        else:
            sources[name] = "absent"
    return sources
