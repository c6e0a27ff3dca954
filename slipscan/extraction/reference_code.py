"""Payment reference code (barcode / digitable line) extraction.

A digitable line is the 47 digit human-typeable form of a slip barcode,
printed as ``AAAAA.AAAAA BBBBB.BBBBBB CCCCC.CCCCCC D EEEEEEEEEEEEEE``.
The first three fields each end with a modulo 10 check digit.
Raw barcodes are 44 to 48 contiguous digits.
"""

import re

from slipscan.utils.logger import get_logger

from .base import ExtractedField, Strategy, first_match
from .normalize import digits_only

logger = get_logger(__name__)

DIGITABLE_LINE_LENGTH = 47

_STRICT_LINE = re.compile(
    r"\b(\d{5}\.\d{5})\s+(\d{5}\.\d{6})\s+(\d{5}\.\d{6})\s+(\d)\s+(\d{14})\b"
)
_FLEXIBLE_LINE = re.compile(
    r"\b(\d{5})[.\s]?(\d{5})\s*(\d{5})[.\s]?(\d{6})\s*"
    r"(\d{5})[.\s]?(\d{6})\s*(\d)\s*(\d{14})\b"
)
_RAW_BARCODE = re.compile(r"(?<!\d)\d{44,48}(?!\d)")
_NOISY_LINE = re.compile(r"(?<!\d)(?:\d{5,6}[.\s]+){6}\d[.\s]+\d{14}(?!\d)")

# Field boundaries of a digitable line: (start, end) of the data digits,
# the check digit sits at index ``end``.
_CHECKED_FIELDS = ((0, 9), (10, 20), (21, 31))


def _field(code: str, rule: str, raw: str, pos: int) -> ExtractedField:
    return ExtractedField(
        field_name="reference_code",
        value=code,
        strategy=Strategy.PATTERN,
        rule=rule,
        raw_text=raw,
        start_pos=pos,
    )


def find_strict_digitable_line(text: str) -> ExtractedField | None:
    match = _STRICT_LINE.search(text)
    if match is None:
        return None
    code = "".join(group.replace(".", "") for group in match.groups())
    logger.info("Digitable line found: %s", code)
    return _field(code, "strict_digitable_line", match.group(0), match.start())


def find_flexible_digitable_line(text: str) -> ExtractedField | None:
    """Digitable line with optional inner dots and group spacing."""
    match = _FLEXIBLE_LINE.search(text)
    if match is None:
        return None
    code = "".join(match.groups())
    logger.info("Digitable line (flexible format) found: %s", code)
    return _field(code, "flexible_digitable_line", match.group(0), match.start())


def find_raw_barcode(text: str) -> ExtractedField | None:
    """A 44 to 48 digit run once all whitespace is removed.

    ``start_pos`` refers to the whitespace-free text.
    """
    compact = re.sub(r"\s", "", text)
    match = _RAW_BARCODE.search(compact)
    if match is None:
        return None
    logger.info("Barcode digits found: %s", match.group(0))
    return _field(match.group(0), "raw_barcode", match.group(0), match.start())


def find_noisy_digitable_line(text: str) -> ExtractedField | None:
    """Grouped digits with broken separators that still total 47 digits."""
    for match in _NOISY_LINE.finditer(text):
        code = digits_only(match.group(0))
        if len(code) == DIGITABLE_LINE_LENGTH:
            logger.info("Digitable line (noisy separators) found: %s", code)
            return _field(code, "noisy_digitable_line", match.group(0), match.start())
    return None


_STRATEGIES = (
    find_strict_digitable_line,
    find_flexible_digitable_line,
    find_raw_barcode,
    find_noisy_digitable_line,
)


def find_reference_code(text: str) -> ExtractedField | None:
    """Locate the reference code, trying the strictest shape first."""
    if not text:
        return None

    found = first_match(re.sub(r"\r?\n", " ", text), _STRATEGIES)
    if found is None:
        logger.warning("No barcode or digitable line found in OCR text")
    return found


def extract_reference_code(text: str) -> str | None:
    """Extract the reference code digits, or ``None`` if absent."""
    found = find_reference_code(text)
    return found.value if found is not None else None


def mod10_check_digit(digits: str) -> int:
    """Modulo 10 check digit used by the digitable line fields.

    Weights alternate 2, 1, 2, ... from the rightmost digit; two digit
    products contribute the sum of their digits.
    """
    total = 0
    for index, char in enumerate(reversed(digits)):
        product = int(char) * (2 if index % 2 == 0 else 1)
        total += product // 10 + product % 10
    return (10 - total % 10) % 10


def digitable_line_checks_ok(code: str) -> bool:
    """Verify the three field check digits of a 47 digit line."""
    if len(code) != DIGITABLE_LINE_LENGTH or not code.isdigit():
        return False
    return all(
        mod10_check_digit(code[start:end]) == int(code[end])
        for start, end in _CHECKED_FIELDS
    )
