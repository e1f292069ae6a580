# Overview: Service-layer operations for a tenant's account overview.

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import BILLING_MODES, Product, Transaction, TransactionLine
from ..time_utils import to_utc_z

TOP_PRODUCTS_LIMIT = 5


def account_summary(
    *,
    tenant_id: int,
    start: datetime | None = None,
    end: datetime | None = None,
) -> dict:
    """
    Sales overview for one tenant, optionally limited to a created_at range.

    Customers are counted by distinct customer_contact.
    """
    filters = [Transaction.tenant_id == tenant_id]
    if start:
        filters.append(Transaction.created_at >= start)
    if end:
        filters.append(Transaction.created_at <= end)

    totals = db.session.query(
        func.count(Transaction.id).label("transaction_count"),
        func.coalesce(func.sum(Transaction.total_amount_cents), 0).label("total_sales_cents"),
        func.count(func.distinct(Transaction.customer_contact)).label("unique_customers"),
    ).filter(*filters).one()

    by_mode = {mode: 0 for mode in BILLING_MODES}
    mode_rows = (
        db.session.query(Transaction.billing_mode, func.sum(Transaction.total_amount_cents))
        .filter(*filters)
        .group_by(Transaction.billing_mode)
        .all()
    )
    for mode, cents in mode_rows:
        by_mode[mode] = int(cents or 0)

    qty_sold = func.sum(TransactionLine.quantity).label("quantity_sold")
    top_rows = (
        db.session.query(Product.id, Product.name, qty_sold)
        .join(TransactionLine, TransactionLine.product_id == Product.id)
        .join(Transaction, Transaction.id == TransactionLine.transaction_pk)
        .filter(*filters)
        .group_by(Product.id, Product.name)
        .order_by(qty_sold.desc(), Product.id.asc())
        .limit(TOP_PRODUCTS_LIMIT)
        .all()
    )

    count = int(totals.transaction_count or 0)
    total_sales = int(totals.total_sales_cents or 0)

    return {
        "start": to_utc_z(start) if start else None,
        "end": to_utc_z(end) if end else None,
        "transaction_count": count,
        "total_sales_cents": total_sales,
        "unique_customers": int(totals.unique_customers or 0),
        "average_transaction_cents": round(total_sales / count) if count else 0,
        "sales_by_billing_mode": by_mode,
        "top_products": [
            {"product_id": row.id, "name": row.name, "quantity_sold": int(row.quantity_sold)}
            for row in top_rows
        ],
    }
