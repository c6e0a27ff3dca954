"""Due date extraction.

Dates are ``dd/mm/yyyy`` shaped, with ``/``, ``.`` or ``-`` separators
and two or four digit years. A date next to the "vencimento" label wins;
otherwise every date in the text is a candidate and the first one that is
not already past is taken.
"""

import re
from datetime import date
from functools import partial

from slipscan.utils.logger import get_logger

from .base import ExtractedField, Strategy, first_match
from .normalize import (
    DATE_TOKEN,
    DUE_DATE_FUTURE_YEARS,
    DUE_DATE_PAST_YEARS,
    TWO_DIGIT_YEAR_PIVOT,
    build_date,
    is_plausible_due_date,
)

logger = get_logger(__name__)

_LABEL_PATTERN = re.compile(
    r"(?:DATA\s+DE\s+)?VENC(?:IMENTO|TO|\.)[:\s]*" + DATE_TOKEN,
    re.IGNORECASE,
)

_DATE_PATTERN = re.compile(DATE_TOKEN)


def _to_date(match: re.Match[str], pivot: int) -> date | None:
    return build_date(match["day"], match["month"], match["year"], pivot)


def find_labeled_due_date(
    text: str,
    today: date,
    past_years: int = DUE_DATE_PAST_YEARS,
    future_years: int = DUE_DATE_FUTURE_YEARS,
    pivot: int = TWO_DIGIT_YEAR_PIVOT,
) -> ExtractedField | None:
    """Find the first plausible date printed after a due-date label."""
    for match in _LABEL_PATTERN.finditer(text):
        value = _to_date(match, pivot)
        if value is not None and is_plausible_due_date(
            value, today, past_years, future_years
        ):
            logger.info("Due date found via label: %s", value)
            return ExtractedField(
                field_name="due_date",
                value=value,
                strategy=Strategy.LABEL,
                rule="due_date_label",
                raw_text=match.group(0),
                start_pos=match.start(),
            )
    return None


def find_scanned_due_date(
    text: str,
    today: date,
    past_years: int = DUE_DATE_PAST_YEARS,
    future_years: int = DUE_DATE_FUTURE_YEARS,
    pivot: int = TWO_DIGIT_YEAR_PIVOT,
) -> ExtractedField | None:
    """Pick a due date among all plausible dates in the text.

    The first date on or after ``today`` wins; when every candidate is in
    the past the latest one is returned instead.
    """
    candidates: list[tuple[date, re.Match[str]]] = []
    for match in _DATE_PATTERN.finditer(text):
        value = _to_date(match, pivot)
        if value is None:
            logger.debug("Ignoring impossible date %r", match.group(0))
            continue
        if is_plausible_due_date(value, today, past_years, future_years):
            candidates.append((value, match))

    if not candidates:
        return None

    upcoming = next((c for c in candidates if c[0] >= today), None)
    if upcoming is not None:
        value, match = upcoming
        rule = "first_upcoming_date"
    else:
        value, match = max(candidates, key=lambda c: c[0])
        rule = "latest_date"

    logger.info("Due date found via date scan (%s): %s", rule, value)
    return ExtractedField(
        field_name="due_date",
        value=value,
        strategy=Strategy.PATTERN,
        rule=rule,
        raw_text=match.group(0),
        start_pos=match.start(),
    )


def find_due_date(
    text: str,
    *,
    today: date | None = None,
    past_years: int = DUE_DATE_PAST_YEARS,
    future_years: int = DUE_DATE_FUTURE_YEARS,
    pivot: int = TWO_DIGIT_YEAR_PIVOT,
) -> ExtractedField | None:
    """Locate the due date, reporting which strategy found it.

    Args:
        text: Recognized slip text.
        today: Reference date for the plausibility window. Defaults to
            the current date.
        past_years: How far back a due date may lie (exclusive).
        future_years: How far ahead a due date may lie (exclusive).
        pivot: Two digit years below this are read as 20xx.

    Returns:
        The extracted field, or ``None`` when no plausible date exists.
    """
    if not text:
        return None

    today = today or date.today()
    options = {
        "today": today,
        "past_years": past_years,
        "future_years": future_years,
        "pivot": pivot,
    }
    found = first_match(
        text,
        [
            partial(find_labeled_due_date, **options),
            partial(find_scanned_due_date, **options),
        ],
    )
    if found is None:
        logger.warning("No plausible due date found in OCR text")
    return found


def extract_due_date(text: str, **options) -> date | None:
    """Extract the due date, or ``None`` if absent."""
    found = find_due_date(text, **options)
    return found.value if found is not None else None
