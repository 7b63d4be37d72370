"""
Tests for Stock Costing
Weighted average arithmetic and ledger replay
"""

import pytest
from decimal import Decimal
from types import SimpleNamespace

from stockcore.core.exceptions import InsufficientStock
from stockcore.models.stock import MovementKind
from stockcore.services.stock import costing


def entry(kind, quantity, unit_price=None):
    return SimpleNamespace(
        kind=kind.value,
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price) if unit_price is not None else None,
        stock_after=None,
        average_cost_after=None,
    )


class TestAverageCost:
    """Test suite for weighted average cost"""

    def test_receipt_blends_cost(self):
        """(100 x 10 + 50 x 16) / 150 = 12"""
        result = costing.calculate_average_cost(Decimal("100"), Decimal("10"), Decimal("50"), Decimal("16"))
        assert result == Decimal("12.0000")

    def test_repeating_average_is_rounded(self):
        """(100 x 10 + 50 x 20) / 150 = 13.3333..."""
        result = costing.calculate_average_cost(Decimal("100"), Decimal("10"), Decimal("50"), Decimal("20"))
        assert result == Decimal("13.3333")

    def test_receipt_into_empty_stock_takes_receipt_price(self):
        result = costing.calculate_average_cost(Decimal("0"), Decimal("0"), Decimal("25"), Decimal("4.5"))
        assert result == Decimal("4.5000")

    def test_zero_total_keeps_current_cost(self):
        result = costing.calculate_average_cost(Decimal("0"), Decimal("7.25"), Decimal("0"), Decimal("99"))
        assert result == Decimal("7.25")

    def test_rounds_half_up_to_four_places(self):
        assert costing.quantize_cost(Decimal("0.00005")) == Decimal("0.0001")
        assert costing.quantize_quantity(Decimal("1.0005")) == Decimal("1.001")
        assert costing.quantize_amount(Decimal("2.675")) == Decimal("2.68")

    def test_outbound_keeps_cost(self):
        stock, cost = costing.apply_outbound("P001", Decimal("100"), Decimal("13.3333"), Decimal("30"))
        assert stock == Decimal("70.000")
        assert cost == Decimal("13.3333")

    def test_outbound_exceeding_stock(self):
        with pytest.raises(InsufficientStock) as exc_info:
            costing.apply_outbound("P001", Decimal("20"), Decimal("5"), Decimal("30"))
        assert exc_info.value.context["available"] == Decimal("20")
        assert exc_info.value.context["requested"] == Decimal("30")

    def test_outbound_of_entire_stock(self):
        stock, cost = costing.apply_outbound("P001", Decimal("20"), Decimal("5"), Decimal("20"))
        assert stock == Decimal("0.000")
        assert cost == Decimal("5")


class TestReplay:
    """Test suite for folding ledger history"""

    def test_replay_matches_sequential_application(self):
        entries = [
            entry(MovementKind.OPENING, "100", "10"),
            entry(MovementKind.INBOUND, "50", "20"),
            entry(MovementKind.OUTBOUND, "30"),
        ]
        stock, cost = costing.replay("P001", entries)

        assert stock == Decimal("120.000")
        assert cost == Decimal("13.3333")
        assert entries[1].stock_after == Decimal("150.000")
        assert entries[2].average_cost_after == Decimal("13.3333")

    def test_recount_overwrites_stock_only(self):
        entries = [
            entry(MovementKind.OPENING, "100", "10"),
            entry(MovementKind.RECOUNT, "90"),
            entry(MovementKind.INBOUND, "10", "20"),
        ]
        stock, cost = costing.replay("P001", entries)

        assert entries[1].stock_after == Decimal("90.000")
        assert entries[1].average_cost_after == Decimal("10.0000")
        assert stock == Decimal("100.000")
        assert cost == Decimal("11.0000")

    def test_replay_rejects_negative_history(self):
        entries = [
            entry(MovementKind.OPENING, "10", "1"),
            entry(MovementKind.OUTBOUND, "11"),
        ]
        with pytest.raises(InsufficientStock):
            costing.replay("P001", entries)
