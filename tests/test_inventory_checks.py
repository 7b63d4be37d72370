"""
Tests for Inventory Check Reconciliation
Draft checks, completion into book stock and frozen terminal states
"""

import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session

from stockcore.core.exceptions import InvalidState, NotFound, ValidationError
from stockcore.models import InventoryCheck, InventoryCheckLine
from stockcore.services.inventory import InventoryCheckReconciler, summarize
from stockcore.services.stock import StockLedgerService
from tests.conftest import OTHER_TENANT, TENANT


@pytest.fixture
def reconciler(db_session: Session) -> InventoryCheckReconciler:
    return InventoryCheckReconciler(db_session, TENANT)


@pytest.fixture
def draft_check(reconciler, stocked_product, make_product):
    make_product("P002", opening_stock=Decimal("30"), opening_cost=Decimal("2"))
    return reconciler.create({
        "notes": "monthly count",
        "lines": [
            {"product_id": "P001", "actual_stock": Decimal("95"), "reason": "spillage"},
            {"product_id": "P002", "actual_stock": Decimal("30")},
        ],
    })


class TestCreate:
    """Test suite for InventoryCheckReconciler.create"""

    def test_create_draft(self, draft_check):
        assert draft_check.status == "draft"
        assert draft_check.check_code == f"KK-{datetime.now():%Y%m%d}-001"
        assert [line.line_no for line in draft_check.lines] == [1, 2]

        first = draft_check.lines[0]
        assert first.product_name == "Flour"
        assert first.unit == "kg"
        assert first.expected_stock == Decimal("100")
        assert first.actual_stock == Decimal("95")
        assert first.difference == Decimal("-5")
        assert first.reason == "spillage"

    def test_codes_increment_per_tenant(self, reconciler, draft_check, make_product):
        second = reconciler.create({"lines": [{"product_id": "P001", "actual_stock": Decimal("1")}]})
        make_product("X1", tenant_id=OTHER_TENANT)
        other = InventoryCheckReconciler(reconciler.db, OTHER_TENANT).create(
            {"lines": [{"product_id": "X1", "actual_stock": Decimal("1")}]}
        )

        assert second.check_code.endswith("-002")
        assert other.check_code.endswith("-001")

    def test_codes_continue_past_999(self, db_session, reconciler, stocked_product):
        day = f"{datetime.now():%Y%m%d}"
        for sequence in ("999", "1000"):
            db_session.add(InventoryCheck(tenant_id=TENANT, check_code=f"KK-{day}-{sequence}"))
        db_session.commit()

        check = reconciler.create({"lines": [{"product_id": "P001", "actual_stock": Decimal("1")}]})

        assert check.check_code == f"KK-{day}-1001"

    def test_explicit_expected_stock(self, reconciler, stocked_product):
        check = reconciler.create({
            "lines": [{"product_id": "P001", "expected_stock": Decimal("90"), "actual_stock": Decimal("95")}]
        })

        assert check.lines[0].difference == Decimal("5")

    def test_lines_required(self, reconciler):
        with pytest.raises(ValidationError):
            reconciler.create({"lines": []})

    def test_unknown_product(self, reconciler, stocked_product):
        with pytest.raises(NotFound):
            reconciler.create({"lines": [{"product_id": "NOPE", "actual_stock": Decimal("1")}]})

        assert reconciler.list() == []

    def test_product_counted_twice(self, reconciler, stocked_product):
        with pytest.raises(ValidationError, match="counted twice"):
            reconciler.create({"lines": [
                {"product_id": "P001", "actual_stock": Decimal("1")},
                {"product_id": "P001", "actual_stock": Decimal("2")},
            ]})

    def test_negative_count(self, reconciler, stocked_product):
        with pytest.raises(ValidationError):
            reconciler.create({"lines": [{"product_id": "P001", "actual_stock": Decimal("-1")}]})


class TestComplete:
    """Test suite for InventoryCheckReconciler.complete"""

    def test_complete_overwrites_stock_keeps_cost(self, db_session, reconciler, draft_check):
        check = reconciler.complete(draft_check.id)

        assert check.status == "completed"
        assert check.completed_at is not None

        ledger = StockLedgerService(db_session, TENANT)
        state = ledger.get_state("P001")
        assert state.new_stock == Decimal("95")
        assert state.new_average_cost == Decimal("10")

        recount = ledger.history("P001")[-1]
        assert recount.kind == "recount"
        assert recount.source == "inventory_check"
        assert recount.reference == check.check_code
        assert recount.quantity == Decimal("95")
        assert recount.notes == "spillage"

    def test_unchanged_line_still_recorded(self, db_session, reconciler, draft_check):
        reconciler.complete(draft_check.id)

        history = StockLedgerService(db_session, TENANT).history("P002")
        assert [e.kind for e in history] == ["opening", "recount"]

    def test_recount_survives_replay(self, db_session, reconciler, draft_check):
        reconciler.complete(draft_check.id)
        ledger = StockLedgerService(db_session, TENANT)
        ledger.apply("P001", Decimal("5"), Decimal("22"), "inbound")

        live = ledger.get_state("P001")
        rebuilt = ledger.rebuild("P001")

        assert live.new_stock == Decimal("100")
        assert live.new_average_cost == Decimal("10.6000")
        assert rebuilt.new_stock == live.new_stock
        assert rebuilt.new_average_cost == live.new_average_cost

    def test_completed_check_is_frozen(self, reconciler, draft_check):
        reconciler.complete(draft_check.id)

        with pytest.raises(InvalidState):
            reconciler.complete(draft_check.id)
        with pytest.raises(InvalidState):
            reconciler.update(draft_check.id, {"notes": "late edit"})
        with pytest.raises(InvalidState):
            reconciler.cancel(draft_check.id)
        with pytest.raises(InvalidState):
            reconciler.delete(draft_check.id)

    def test_summary(self, reconciler, draft_check):
        summary = summarize(reconciler.get(draft_check.id))

        assert summary == {"line_count": 2, "adjusted_lines": 1, "total_difference": Decimal("-5.000")}


class TestDraftLifecycle:
    """Test suite for editing, cancelling and deleting checks"""

    def test_update_replaces_lines(self, reconciler, draft_check):
        check = reconciler.update(draft_check.id, {
            "notes": "recounted",
            "lines": [{"product_id": "P002", "actual_stock": Decimal("28")}],
        })

        assert check.notes == "recounted"
        assert [line.product_id for line in check.lines] == ["P002"]
        assert check.lines[0].difference == Decimal("-2")

    def test_cancel_then_delete(self, db_session, reconciler, draft_check):
        cancelled = reconciler.cancel(draft_check.id)
        assert cancelled.status == "cancelled"

        with pytest.raises(InvalidState):
            reconciler.complete(draft_check.id)

        reconciler.delete(draft_check.id)

        assert db_session.query(InventoryCheck).count() == 0
        assert db_session.query(InventoryCheckLine).count() == 0

    def test_cancel_leaves_stock_alone(self, db_session, reconciler, draft_check):
        reconciler.cancel(draft_check.id)

        assert StockLedgerService(db_session, TENANT).get_state("P001").new_stock == Decimal("100")

    def test_delete_draft(self, reconciler, draft_check):
        reconciler.delete(draft_check.id)

        with pytest.raises(NotFound):
            reconciler.get(draft_check.id)

    def test_list_by_status(self, reconciler, draft_check):
        other = reconciler.create({"lines": [{"product_id": "P001", "actual_stock": Decimal("1")}]})
        reconciler.cancel(other.id)

        assert [c.id for c in reconciler.list(status="draft")] == [draft_check.id]
        assert [c.id for c in reconciler.list(status="cancelled")] == [other.id]
        assert len(reconciler.list()) == 2
