"""
Document Numbering
Tenant-scoped, date-sequenced document codes such as KK-20241015-001
"""
from datetime import datetime
from typing import Callable, Optional, TypeVar

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from stockcore.core.config import settings
from stockcore.core.exceptions import ConcurrencyConflict
from stockcore.core.logging import get_logger

logger = get_logger("business.numbering")

T = TypeVar("T")


def format_code(prefix: str, day: datetime, sequence: int) -> str:
    return f"{prefix}-{day.strftime('%Y%m%d')}-{sequence:03d}"


def next_document_code(db: Session, code_column, tenant_column, tenant_id: str, prefix: str,
                       day: Optional[datetime] = None) -> str:
    """
    Next free code for the tenant and day.

    Reads the highest existing code with the day's prefix and increments its
    sequence. Longer codes sort first so sequence 1000 ranks above 999.
    Two writers can read the same value; the unique constraint on the code
    column rejects the loser, see commit_with_code.
    """
    day = day or datetime.now()
    day_prefix = f"{prefix}-{day.strftime('%Y%m%d')}-"

    last_code = (
        db.query(code_column)
        .filter(tenant_column == tenant_id, code_column.like(f"{day_prefix}%"))
        .order_by(func.length(code_column).desc(), code_column.desc())
        .limit(1)
        .scalar()
    )

    sequence = 1
    if last_code:
        sequence = int(last_code.rsplit("-", 1)[1]) + 1

    return format_code(prefix, day, sequence)


def commit_with_code(
    db: Session,
    code_column,
    tenant_column,
    tenant_id: str,
    prefix: str,
    build: Callable[[str], T],
    label: str,
) -> T:
    """
    Allocate a code, let build(code) add the new rows, and commit.

    When the commit collides with a concurrent insert of the same code the
    whole unit of work is rolled back and rebuilt with the next code. Any
    other integrity failure propagates.
    """
    attempts = settings.DOCUMENT_CODE_RETRIES
    for attempt in range(1, attempts + 1):
        code = next_document_code(db, code_column, tenant_column, tenant_id, prefix)
        try:
            record = build(code)
            db.flush()
            db.commit()
            return record
        except IntegrityError:
            db.rollback()
            taken = (
                db.query(code_column)
                .filter(tenant_column == tenant_id, code_column == code)
                .first()
            )
            if not taken:
                raise
            logger.warning(f"{label} code {code} taken concurrently, attempt {attempt}/{attempts}")
        except Exception:
            db.rollback()
            raise
    raise ConcurrencyConflict(f"Could not allocate a unique {label} code")
