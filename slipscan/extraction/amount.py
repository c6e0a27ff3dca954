"""Document amount extraction.

Tries the amount printed next to the "valor do documento" label first and
falls back to scanning every ``R$`` value in the text.
"""

import re
from decimal import Decimal
from functools import partial

from slipscan.utils.logger import get_logger

from .base import ExtractedField, Strategy, first_match
from .normalize import (
    AMOUNT_TOKEN,
    CURRENCY_MARKER,
    GENERIC_MAX_AMOUNT,
    GENERIC_MIN_AMOUNT,
    MAX_AMOUNT,
    in_generic_window,
    is_plausible_amount,
    parse_amount,
)

logger = get_logger(__name__)

_LABEL_PATTERN = re.compile(
    r"(?:(?:\(=\)\s*)?VALOR\s+(?:DO\s+)?DOC(?:UMENTO\b|\.)|VALOR\s+A\s+PAGAR)"
    r"[:\s]*(?:" + CURRENCY_MARKER + r")?\s*(?P<amount>" + AMOUNT_TOKEN + r")",
    re.IGNORECASE,
)

_CURRENCY_PATTERN = re.compile(
    CURRENCY_MARKER + r"\s*(?P<amount>" + AMOUNT_TOKEN + r")",
    re.IGNORECASE,
)


def find_labeled_amount(
    text: str, maximum: Decimal = MAX_AMOUNT
) -> ExtractedField | None:
    """Find the first plausible amount following a document-amount label.

    Only the hard ``0 < v < maximum`` window applies here, so small
    labeled amounts such as fees of ``R$ 5,00`` are still accepted.
    """
    for match in _LABEL_PATTERN.finditer(text):
        value = parse_amount(match["amount"])
        if value is not None and is_plausible_amount(value, maximum):
            logger.info("Amount found via document amount label: %s", value)
            return ExtractedField(
                field_name="amount",
                value=value,
                strategy=Strategy.LABEL,
                rule="document_amount_label",
                raw_text=match.group(0),
                start_pos=match.start(),
            )
        logger.debug("Discarding labeled amount %r", match["amount"])
    return None


def find_currency_amount(
    text: str,
    maximum: Decimal = MAX_AMOUNT,
    minimum_generic: Decimal = GENERIC_MIN_AMOUNT,
    maximum_generic: Decimal = GENERIC_MAX_AMOUNT,
) -> ExtractedField | None:
    """Return the first ``R$`` amount inside the generic plausibility window."""
    for match in _CURRENCY_PATTERN.finditer(text):
        value = parse_amount(match["amount"])
        if value is None or not is_plausible_amount(value, maximum):
            continue
        if not in_generic_window(value, minimum_generic, maximum_generic):
            logger.debug("Currency amount %s outside generic window", value)
            continue
        logger.info("Amount found via currency scan: %s", value)
        return ExtractedField(
            field_name="amount",
            value=value,
            strategy=Strategy.PATTERN,
            rule="currency_scan",
            raw_text=match.group(0),
            start_pos=match.start(),
        )
    return None


def find_amount(
    text: str,
    *,
    maximum: Decimal = MAX_AMOUNT,
    minimum_generic: Decimal = GENERIC_MIN_AMOUNT,
    maximum_generic: Decimal = GENERIC_MAX_AMOUNT,
) -> ExtractedField | None:
    """Locate the document amount, reporting which strategy found it.

    Args:
        text: Recognized slip text.
        maximum: Exclusive upper bound for any accepted amount.
        minimum_generic: Inclusive lower bound for label-less candidates.
        maximum_generic: Inclusive upper bound for label-less candidates.

    Returns:
        The extracted field, or ``None`` when no plausible amount exists.
    """
    if not text:
        return None

    found = first_match(
        text,
        [
            partial(find_labeled_amount, maximum=maximum),
            partial(
                find_currency_amount,
                maximum=maximum,
                minimum_generic=minimum_generic,
                maximum_generic=maximum_generic,
            ),
        ],
    )
    if found is None:
        logger.warning("No plausible amount found in OCR text")
    return found


def extract_amount(text: str, **limits: Decimal) -> Decimal | None:
    """Extract the document amount as a Decimal, or ``None`` if absent."""
    found = find_amount(text, **limits)
    return found.value if found is not None else None
