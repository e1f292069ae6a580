# Overview: Best-effort stock decrements applied after a transaction is recorded.

"""
Inventory Adjuster

WHY: The transaction record is the source of truth for what was sold.
Product quantities are an approximate, eventually-adjusted view of stock.

Behavior per cart line, in cart order:
- One atomic UPDATE products SET quantity = quantity - n, committed on its own
- Product gone (or owned by someone else): logged as an error, skipped
- Database error: rolled back, logged with traceback, skipped
- Resulting quantity < 0: logged as a warning (oversold), left as is

Lines are NOT grouped into one unit. A failure on line 2 leaves line 1's
decrement in place, never touches the saved transaction, and is never
retried. Concurrent checkouts on the same product can interleave between
lines; each single decrement is still race-free.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, Transaction

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_OVERSOLD = "oversold"
STATUS_NOT_FOUND = "not_found"
STATUS_FAILED = "failed"


@dataclass
class LineAdjustment:
    product_id: int | None
    quantity: int
    status: str
    new_quantity: int | None = None

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "status": self.status,
            "new_quantity": self.new_quantity,
        }


@dataclass
class AdjustmentReport:
    transaction_id: str
    adjustments: list[LineAdjustment] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        """True when every line's decrement was applied (oversold still counts as applied)."""
        return all(a.status in (STATUS_OK, STATUS_OVERSOLD) for a in self.adjustments)

    def to_dict(self) -> dict:
        return {
            "complete": self.complete,
            "lines": [a.to_dict() for a in self.adjustments],
        }


def _decrement(tenant_id: int, product_id: int, quantity: int) -> int | None:
    """Atomically decrement one product. Returns the new quantity, or None if no row matched."""
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.tenant_id == tenant_id)
        .values(quantity=Product.quantity - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.session.rollback()
        return None

    new_quantity = db.session.query(Product.quantity).filter(Product.id == product_id).scalar()
    db.session.commit()
    return new_quantity


def apply_stock_decrements(tx: Transaction) -> AdjustmentReport:
    """
    Decrement stock for each line of an already-committed transaction.

    Never raises for per-line problems; the report says what happened.
    """
    tenant_id = tx.tenant_id
    reference = tx.transaction_id
    lines = [(line.product_id, line.quantity) for line in tx.lines]

    report = AdjustmentReport(transaction_id=reference)

    for product_id, quantity in lines:
        if product_id is None:
            logger.error("Stock not updated for a line of %s: product reference missing", reference)
            report.adjustments.append(LineAdjustment(product_id, quantity, STATUS_NOT_FOUND))
            continue

        try:
            new_quantity = _decrement(tenant_id, product_id, quantity)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to update stock for product %s after transaction %s", product_id, reference)
            report.adjustments.append(LineAdjustment(product_id, quantity, STATUS_FAILED))
            continue

        if new_quantity is None:
            logger.error("Failed to update stock for product %s after transaction %s: product not found", product_id, reference)
            report.adjustments.append(LineAdjustment(product_id, quantity, STATUS_NOT_FOUND))
            continue

        if new_quantity < 0:
            logger.warning("Stock for product %s went negative (%d) after transaction %s", product_id, new_quantity, reference)
            report.adjustments.append(LineAdjustment(product_id, quantity, STATUS_OVERSOLD, new_quantity))
            continue

        report.adjustments.append(LineAdjustment(product_id, quantity, STATUS_OK, new_quantity))

    return report
