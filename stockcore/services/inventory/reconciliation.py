"""
Inventory Check Reconciliation Service
Physical stock counts and their application to book stock
"""
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from stockcore.core.config import settings
from stockcore.core.exceptions import (
    ConcurrencyConflict, InvalidState, NotFound, StockCoreError, ValidationError
)
from stockcore.core.logging import get_logger
from stockcore.models.inventory_check import (
    InventoryCheck, InventoryCheckLine, InventoryCheckStatus
)
from stockcore.services.numbering import commit_with_code
from stockcore.services.stock import costing
from stockcore.services.stock.ledger import StockLedgerService, to_decimal
from stockcore.services.stock.products import ProductStockService

logger = get_logger("business.inventory_checks")


class InventoryCheckReconciler:
    """
    Inventory check workflow: draft -> completed | cancelled

    Completing a check overwrites each counted product's stock with the
    counted quantity. All lines and the status change commit together.
    """

    def __init__(self, db: Session, tenant_id: str):
        self.db = db
        self.tenant_id = tenant_id
        self.products = ProductStockService(db, tenant_id)
        self.ledger = StockLedgerService(db, tenant_id)

    def get(self, check_id: int) -> InventoryCheck:
        check = (
            self.db.query(InventoryCheck)
            .filter(InventoryCheck.id == check_id, InventoryCheck.tenant_id == self.tenant_id)
            .execution_options(populate_existing=True)
            .first()
        )
        if not check:
            raise NotFound(f"Inventory check {check_id} not found", check_id=check_id)
        return check

    def list(self, status: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[InventoryCheck]:
        query = self.db.query(InventoryCheck).filter(InventoryCheck.tenant_id == self.tenant_id)
        if status:
            query = query.filter(InventoryCheck.status == self._parse_status(status).value)
        return (
            query.order_by(InventoryCheck.check_date.desc(), InventoryCheck.id.desc())
            .offset(skip).limit(limit).all()
        )

    def create(self, check_data: Dict, created_by: str = "system") -> InventoryCheck:
        """
        Create a draft check

        Each line needs a product_id and actual_stock; expected_stock defaults
        to the product's current book stock.
        """
        if not check_data.get("lines"):
            raise ValidationError("An inventory check needs at least one line")

        def build(check_code: str) -> InventoryCheck:
            check = InventoryCheck(
                tenant_id=self.tenant_id,
                check_code=check_code,
                status=InventoryCheckStatus.DRAFT.value,
                notes=check_data.get("notes"),
                created_by=created_by,
                lines=self._build_lines(check_data["lines"]),
            )
            if check_data.get("check_date"):
                check.check_date = check_data["check_date"]
            self.db.add(check)
            return check

        check = commit_with_code(
            self.db,
            InventoryCheck.check_code,
            InventoryCheck.tenant_id,
            self.tenant_id,
            settings.CHECK_CODE_PREFIX,
            build,
            "inventory check",
        )
        self.db.refresh(check)
        logger.info(f"Created inventory check {check.check_code} for {self.tenant_id} with {len(check.lines)} lines")
        return check

    def update(self, check_id: int, patch: Dict) -> InventoryCheck:
        """Edit notes, check date or replace the lines of a draft check"""
        check = self._get_draft(check_id, "edited")
        try:
            if "notes" in patch:
                check.notes = patch["notes"]
            if patch.get("check_date"):
                check.check_date = patch["check_date"]
            if patch.get("lines") is not None:
                check.lines = self._build_lines(patch["lines"])
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(check)
        logger.info(f"Updated inventory check {check.check_code}")
        return check

    def complete(self, check_id: int) -> InventoryCheck:
        """
        Apply the counted quantities to book stock

        Raises:
            InvalidState: the check is not a draft, or was completed or
                cancelled concurrently
            ConcurrencyConflict: a counted product changed concurrently;
                nothing is applied
        """
        check = self._get_draft(check_id, "completed")
        try:
            for line in check.lines:
                self.ledger.recount_in_transaction(
                    line.product_id,
                    line.actual_stock,
                    reference=check.check_code,
                    notes=line.reason,
                )
            self._compare_and_set(check, {
                "status": InventoryCheckStatus.COMPLETED.value,
                "completed_at": datetime.now(timezone.utc),
            })
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            raise ConcurrencyConflict(f"Stock changed while completing {check.check_code}") from exc
        except StockCoreError as exc:
            self.db.rollback()
            logger.warning(f"Completion of inventory check {check_id} rejected: {exc}")
            raise
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(check)
        adjusted = sum(1 for line in check.lines if line.difference != 0)
        logger.info(
            f"Completed inventory check {check.check_code}: "
            f"{len(check.lines)} lines, {adjusted} adjusted"
        )
        return check

    def cancel(self, check_id: int) -> InventoryCheck:
        check = self._get_draft(check_id, "cancelled")
        try:
            self._compare_and_set(check, {"status": InventoryCheckStatus.CANCELLED.value})
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(check)
        logger.info(f"Cancelled inventory check {check.check_code}")
        return check

    def delete(self, check_id: int):
        """Delete a draft or cancelled check; completed checks are kept"""
        check = self.get(check_id)
        if check.status == InventoryCheckStatus.COMPLETED.value:
            raise InvalidState(f"Inventory check {check.check_code} is completed and cannot be deleted")
        code = check.check_code
        try:
            self.db.delete(check)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted inventory check {code}")

    # Internals

    def _get_draft(self, check_id: int, action: str) -> InventoryCheck:
        check = self.get(check_id)
        if check.is_frozen:
            raise InvalidState(
                f"Inventory check {check.check_code} is {check.status} and cannot be {action}"
            )
        return check

    def _compare_and_set(self, check: InventoryCheck, values: Dict):
        """Write values only while the check is still a draft"""
        result = self.db.execute(
            update(InventoryCheck)
            .where(
                InventoryCheck.id == check.id,
                InventoryCheck.tenant_id == self.tenant_id,
                InventoryCheck.status == InventoryCheckStatus.DRAFT.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidState(
                f"Inventory check {check.check_code} is no longer a draft"
            )

    def _build_lines(self, lines_data) -> List[InventoryCheckLine]:
        if not lines_data:
            raise ValidationError("An inventory check needs at least one line")

        lines = []
        seen = set()
        for line_no, data in enumerate(lines_data, start=1):
            product_id = data.get("product_id")
            if not product_id:
                raise ValidationError(f"Line {line_no}: product_id is required")
            if product_id in seen:
                raise ValidationError(f"Line {line_no}: product {product_id} is counted twice")
            seen.add(product_id)

            product = self.products.get(product_id)

            actual = to_decimal(data.get("actual_stock"), "actual_stock")
            if actual < 0:
                raise ValidationError(f"Line {line_no}: actual stock cannot be negative")
            expected = data.get("expected_stock")
            expected = product.current_stock if expected is None else to_decimal(expected, "expected_stock")

            actual = costing.quantize_quantity(actual)
            expected = costing.quantize_quantity(expected)
            lines.append(InventoryCheckLine(
                line_no=line_no,
                product_id=product.product_id,
                product_name=product.product_name,
                unit=product.unit,
                expected_stock=expected,
                actual_stock=actual,
                difference=actual - expected,
                reason=data.get("reason"),
            ))
        return lines

    @staticmethod
    def _parse_status(value) -> InventoryCheckStatus:
        try:
            return InventoryCheckStatus(getattr(value, "value", value))
        except ValueError:
            raise ValidationError(f"Unknown inventory check status {value!r}")


def summarize(check: InventoryCheck) -> Dict:
    """Totals of a check's lines"""
    difference = sum((Decimal(line.difference) for line in check.lines), Decimal("0"))
    return {
        "line_count": len(check.lines),
        "adjusted_lines": sum(1 for line in check.lines if line.difference != 0),
        "total_difference": costing.quantize_quantity(difference),
    }
