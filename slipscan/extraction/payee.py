"""Payee (beneficiary) name extraction.

Three strategies, in order: the text after a "beneficiário" label, the
first line that looks like a name, and the first long uppercase run.
When none yields a valid name the fallback sentinel is returned.
"""

import re

from slipscan.utils.logger import get_logger

from .base import ExtractedField, Strategy, first_match
from .normalize import (
    PAYEE_FALLBACK,
    clean_payee_name,
    is_valid_payee_name,
    strip_accents,
)

logger = get_logger(__name__)

_LABEL_PATTERN = re.compile(
    r"\b(?:BENEFICI[AÁ]RIO|CEDENTE)\b(?P<rest>[^\r\n]*)"
    r"(?:(?:[ \t]*\r?\n)+[ \t]*(?P<next>[^\r\n]+))?",
    re.IGNORECASE,
)

# Matched against accent-stripped lines.
_STRUCTURAL_LINE = re.compile(
    r"BENEFICIARIO|CEDENTE|RECIBO|PAGADOR|SACADO|DOCUMENTO|LOCAL|VENCIMENTO|AGENCIA|"
    r"AUTENTICACAO",
    re.IGNORECASE,
)
_BRACKETS = re.compile(r"[()\[\]]")
_LONG_NUMBER = re.compile(r"\d{4,}")

_UPPER = "A-ZÀ-ÖØ-Þ"
_UPPERCASE_RUN = re.compile(rf"\b[{_UPPER}][{_UPPER} &.\-]{{9,79}}\b")


def _field(name: str, strategy: Strategy, rule: str, raw: str, pos: int) -> ExtractedField:
    return ExtractedField(
        field_name="payee_name",
        value=name,
        strategy=strategy,
        rule=rule,
        raw_text=raw,
        start_pos=pos,
    )


def _label_candidate(raw: str | None) -> str | None:
    if not raw:
        return None
    name = clean_payee_name(raw)
    if not is_valid_payee_name(name) or _BRACKETS.search(name):
        return None
    if _STRUCTURAL_LINE.search(strip_accents(name)):
        return None
    return name


def find_labeled_payee(text: str) -> ExtractedField | None:
    """Take the name printed on the line after a beneficiary label.

    The rest of the label's own line is used only when the next line holds
    no usable name.
    """
    for match in _LABEL_PATTERN.finditer(text):
        name = _label_candidate(match["next"]) or _label_candidate(match["rest"])
        if name is not None:
            logger.info("Payee found via beneficiary label: %s", name)
            return _field(name, Strategy.LABEL, "beneficiary_label", match.group(0), match.start())
    return None


def find_first_plausible_line(text: str) -> ExtractedField | None:
    """Take the first line that reads like a company or person name."""
    offset = 0
    for raw_line in text.splitlines(keepends=True):
        position = offset
        offset += len(raw_line)
        line = raw_line.strip()

        if len(line) < 5 or len(line) > 100:
            continue
        if _LONG_NUMBER.search(line):
            continue
        if _STRUCTURAL_LINE.search(strip_accents(line)):
            continue
        if not line[0].isalpha():
            continue

        name = clean_payee_name(line)
        if is_valid_payee_name(name):
            logger.info("Payee found via first plausible line: %s", name)
            return _field(name, Strategy.POSITIONAL, "first_plausible_line", raw_line, position)
    return None


def find_uppercase_run(text: str) -> ExtractedField | None:
    """Take the first uppercase run of 10 to 80 characters."""
    for match in _UPPERCASE_RUN.finditer(text):
        name = clean_payee_name(match.group(0))
        if is_valid_payee_name(name):
            logger.info("Payee found via uppercase run: %s", name)
            return _field(name, Strategy.PATTERN, "uppercase_run", match.group(0), match.start())
    return None


_STRATEGIES = (find_labeled_payee, find_first_plausible_line, find_uppercase_run)


def find_payee(text: str) -> ExtractedField | None:
    """Locate the payee name, or ``None`` when no strategy finds one."""
    if not text:
        return None
    return first_match(text, _STRATEGIES)


def extract_payee(text: str, fallback: str = PAYEE_FALLBACK) -> str:
    """Extract the payee name, returning ``fallback`` when none is found."""
    found = find_payee(text)
    if found is None:
        logger.warning("Could not identify the payee in OCR text")
        return fallback
    return found.value
