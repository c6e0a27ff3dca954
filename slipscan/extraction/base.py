"""Shared types for the heuristic field extractors.

Each extractor is an ordered list of strategies. A strategy is a plain
function taking the OCR text and returning an :class:`ExtractedField` or
``None``; :func:`first_match` walks the list and stops at the first hit.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum


class Strategy(StrEnum):
    """How a candidate value was located in the text."""

    LABEL = "label"
    PATTERN = "pattern"
    POSITIONAL = "positional"


@dataclass(frozen=True)
class ExtractedField:
    """A candidate field value found by one extraction strategy.

    Only used for diagnostics and logging; the pipeline keeps the value.
    """

    field_name: str
    value: Decimal | date | str
    strategy: Strategy
    rule: str
    raw_text: str
    start_pos: int = 0


StrategyFn = Callable[[str], ExtractedField | None]


def first_match(text: str, strategies: Iterable[StrategyFn]) -> ExtractedField | None:
    """Run strategies in order and return the first field found."""
    for strategy in strategies:
        found = strategy(text)
        if found is not None:
            return found
    return None
