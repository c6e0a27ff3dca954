"""Tests for document amount extraction."""

from decimal import Decimal

import pytest

from slipscan.extraction.amount import (
    extract_amount,
    find_amount,
    find_currency_amount,
    find_labeled_amount,
)
from slipscan.extraction.base import Strategy


class TestLabeledAmount:
    """Tests for the label-anchored strategy."""

    def test_label_with_currency_marker(self) -> None:
        found = find_labeled_amount("(=) Valor do Documento\nR$ 1.234,56")
        assert found is not None
        assert found.value == Decimal("1234.56")
        assert found.strategy == Strategy.LABEL

    @pytest.mark.parametrize(
        "text",
        [
            "VALOR DO DOCUMENTO 350,00",
            "Valor Documento: R$ 350,00",
            "VALOR DO DOC. R$350,00",
            "Valor a pagar R$ 350,00",
        ],
    )
    def test_label_variants(self, text: str) -> None:
        assert extract_amount(text) == Decimal("350.00")

    def test_reverse_separator_convention(self) -> None:
        assert extract_amount("VALOR DO DOCUMENTO: 1,234.56") == Decimal("1234.56")

    def test_small_labeled_amount_is_accepted(self) -> None:
        assert extract_amount("VALOR DO DOCUMENTO R$ 5,00") == Decimal("5.00")

    def test_implausible_label_falls_through_to_scan(self) -> None:
        text = "VALOR DO DOCUMENTO 1.500.000,00\nTotal R$ 250,00"
        found = find_amount(text)
        assert found is not None
        assert found.value == Decimal("250.00")
        assert found.strategy == Strategy.PATTERN


class TestCurrencyScan:
    """Tests for the generic currency scan strategy."""

    def test_embedded_amount(self) -> None:
        text = "Pagamento referente a mensalidade R$ 123,45 em aberto"
        assert extract_amount(text) == Decimal("123.45")

    def test_amounts_outside_generic_window_excluded(self) -> None:
        text = "Tarifa R$ 9,99\nLimite R$ 150.000,00"
        assert extract_amount(text) is None

    def test_first_plausible_candidate_wins(self) -> None:
        text = "Tarifa R$ 9,99\nLimite R$ 150.000,00\nTotal R$ 80,00\nJuros R$ 12,00"
        found = find_currency_amount(text)
        assert found is not None
        assert found.value == Decimal("80.00")
        assert found.rule == "currency_scan"

    def test_custom_generic_window(self) -> None:
        assert extract_amount("Tarifa R$ 5,00", minimum_generic=Decimal("1.00")) == Decimal(
            "5.00"
        )

    def test_marker_missing_its_r(self) -> None:
        assert extract_amount("Total $ 45,90") == Decimal("45.90")

    def test_amount_without_marker_is_ignored(self) -> None:
        assert extract_amount("Total 250,00") is None


class TestFindAmount:
    """Tests for the strategy chain."""

    def test_label_beats_earlier_currency_value(self) -> None:
        text = "Multa R$ 20,00\nVALOR DO DOCUMENTO R$ 450,00"
        found = find_amount(text)
        assert found is not None
        assert found.value == Decimal("450.00")
        assert found.strategy == Strategy.LABEL

    def test_empty_text(self) -> None:
        assert find_amount("") is None

    def test_no_numbers(self) -> None:
        assert extract_amount("nenhum valor aqui") is None

    def test_full_slip(self, slip_text: str) -> None:
        assert extract_amount(slip_text) == Decimal("1234.56")
