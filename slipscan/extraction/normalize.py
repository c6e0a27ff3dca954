"""Normalization and plausibility helpers shared by the field extractors.

OCR output of payment slips mixes Brazilian (``1.234,56``) and US
(``1,234.56``) number conventions, two and four digit years, and stray
punctuation around names. Everything here is pure and side-effect free.
"""

import re
import unicodedata
from datetime import date
from decimal import Decimal, InvalidOperation

MAX_AMOUNT = Decimal("1000000.00")
GENERIC_MIN_AMOUNT = Decimal("10.00")
GENERIC_MAX_AMOUNT = Decimal("100000.00")

TWO_DIGIT_YEAR_PIVOT = 50
DUE_DATE_PAST_YEARS = 1
DUE_DATE_FUTURE_YEARS = 2

PAYEE_FALLBACK = "Fornecedor não identificado"

# Thousands groups are optional; the last separator is always the decimal one.
AMOUNT_TOKEN = r"(?<!\d)(?:\d{1,3}(?:[.,]\d{3})+[.,]\d{2}|\d+[.,]\d{2})(?!\d)"
# OCR often drops the "R" of "R$"; a bare "$" still marks an amount.
CURRENCY_MARKER = r"R?\s?\$"

DATE_TOKEN = (
    r"(?<!\d)(?P<day>\d{2})(?P<sep>[/.\-])(?P<month>\d{2})(?P=sep)"
    r"(?P<year>\d{4}|\d{2})(?!\d)"
)

_AMOUNT_PARTS = re.compile(r"(\d[\d.,]*?)[.,](\d{2})")
_CURRENCY_PREFIX = re.compile(r"^" + CURRENCY_MARKER + r"\s*", re.IGNORECASE)
_DATE_FULL = re.compile(DATE_TOKEN)
_WHITESPACE = re.compile(r"\s+")
_TAX_ID_SUFFIX = re.compile(r"\s*[-|,]?\s*\b(?:CNPJ|CPF)\b.*$", re.IGNORECASE)
_EDGE_PUNCTUATION = re.compile(r"^[-\s.:()\[\]/]+|[-\s.:()\[\]/]+$")

# Structural labels printed on every slip; never a payee name on their own.
PAYEE_STOP_WORDS = frozenset(
    {
        "AUTENTICACAO",
        "AUTENTICACAO MECANICA",
        "RECIBO DO SACADO",
        "RECIBO DO PAGADOR",
        "BENEFICIARIO",
        "CEDENTE",
        "PAGADOR",
        "SACADO",
        "ENDERECO",
        "LOCAL DE PAGAMENTO",
        "VENCIMENTO",
        "AGENCIA",
        "CODIGO",
        "NUMERO",
        "DOCUMENTO",
        "DATA",
        "VALOR",
    }
)


def parse_amount(token: str) -> Decimal | None:
    """Convert a currency token such as ``R$ 1.234,56`` to a Decimal.

    The final ``.`` or ``,`` followed by two digits is the decimal
    separator; every other separator is treated as a thousands mark.

    Args:
        token: Numeric text, optionally prefixed by a ``R$`` marker.

    Returns:
        The parsed amount, or ``None`` if the token is not amount-shaped.
    """
    cleaned = _CURRENCY_PREFIX.sub("", token.strip())
    match = _AMOUNT_PARTS.fullmatch(cleaned)
    if not match:
        return None
    integer_part = re.sub(r"[.,]", "", match.group(1))
    try:
        return Decimal(f"{integer_part}.{match.group(2)}")
    except InvalidOperation:
        return None


def is_plausible_amount(value: Decimal, maximum: Decimal = MAX_AMOUNT) -> bool:
    """Check the hard window ``0 < value < maximum`` every amount must pass."""
    return Decimal("0") < value < maximum


def in_generic_window(
    value: Decimal,
    minimum: Decimal = GENERIC_MIN_AMOUNT,
    maximum: Decimal = GENERIC_MAX_AMOUNT,
) -> bool:
    """Check the tighter inclusive window applied to label-less candidates."""
    return minimum <= value <= maximum


def expand_year(year: int, pivot: int = TWO_DIGIT_YEAR_PIVOT) -> int:
    """Expand a two digit year: below ``pivot`` is 20xx, otherwise 19xx."""
    if year >= 100:
        return year
    return 2000 + year if year < pivot else 1900 + year


def build_date(
    day: str, month: str, year: str, pivot: int = TWO_DIGIT_YEAR_PIVOT
) -> date | None:
    """Build a calendar date from captured digit groups.

    Returns:
        The date, or ``None`` for impossible dates like 31/02.
    """
    try:
        return date(expand_year(int(year), pivot), int(month), int(day))
    except ValueError:
        return None


def parse_date_token(token: str, pivot: int = TWO_DIGIT_YEAR_PIVOT) -> date | None:
    """Parse a whole ``dd/mm/yyyy``-shaped string (``/``, ``.`` or ``-``)."""
    match = _DATE_FULL.fullmatch(token.strip())
    if not match:
        return None
    return build_date(match["day"], match["month"], match["year"], pivot)


def shift_years(value: date, years: int) -> date:
    """Move a date by whole years, clamping 29 February to the 28th."""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)


def is_plausible_due_date(
    value: date,
    today: date,
    past_years: int = DUE_DATE_PAST_YEARS,
    future_years: int = DUE_DATE_FUTURE_YEARS,
) -> bool:
    """Check ``today - past_years < value < today + future_years`` (exclusive)."""
    return shift_years(today, -past_years) < value < shift_years(today, future_years)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def strip_accents(text: str) -> str:
    """Remove diacritics, e.g. ``BENEFICIÁRIO`` becomes ``BENEFICIARIO``."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def digits_only(text: str) -> str:
    return re.sub(r"\D", "", text)


def clean_payee_name(raw: str) -> str:
    """Normalize a payee candidate.

    Collapses whitespace, drops a trailing ``CNPJ``/``CPF`` suffix and trims
    dots, colons, hyphens, slashes and brackets from both ends.
    """
    name = collapse_whitespace(raw)
    name = _TAX_ID_SUFFIX.sub("", name)
    return _EDGE_PUNCTUATION.sub("", name)


def is_valid_payee_name(name: str | None) -> bool:
    """Reject short strings, strings without letters and bare slip labels."""
    if not name or len(name) < 5:
        return False
    if not any(ch.isalpha() for ch in name):
        return False
    return strip_accents(name).upper() not in PAYEE_STOP_WORDS
