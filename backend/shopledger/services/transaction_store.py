# backend/shopledger/services/transaction_store.py
"""
Transaction Store: persistence and read-time product join.

MULTI-TENANT: Every function takes the tenant id explicitly. Single-record
reads and writes go through the ownership guard; listings filter on
tenant_id.

The store does raw persistence only. Totals are computed by the
transaction builder before anything reaches this module.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Product, Transaction, TransactionLine, ExtraCharge
from ..time_utils import to_utc_z
from ..validation import ConflictError
from .ownership_service import require_owned

logger = logging.getLogger(__name__)

TRANSACTION_MUTABLE_FIELDS = {"customer_name", "customer_contact", "billing_mode", "total_amount_cents"}


def create_transaction(tx: Transaction) -> Transaction:
    """
    Persist a fully built transaction (lines and charges included).

    Raises:
        ConflictError: transaction_id collided with an existing record
    """
    db.session.add(tx)
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.error("Transaction id collision for %s: %s", tx.transaction_id, exc.orig)
        raise ConflictError("Transaction identifier already exists; retry the checkout")
    return tx


def get_transaction(*, tenant_id: int, transaction_pk: int) -> Transaction:
    """
    Raises:
        NotFoundError / ForbiddenError: from the ownership guard
    """
    return require_owned(Transaction, transaction_pk, tenant_id)


def _tenant_query(tenant_id: int):
    return (
        db.session.query(Transaction)
        .filter(Transaction.tenant_id == tenant_id)
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    )


def list_transactions(*, tenant_id: int) -> list[Transaction]:
    """All of the tenant's transactions, newest first."""
    return _tenant_query(tenant_id).all()


def list_transactions_in_range(*, tenant_id: int, start: datetime, end: datetime) -> list[Transaction]:
    """Tenant's transactions with start <= created_at <= end, newest first."""
    return (
        _tenant_query(tenant_id)
        .filter(Transaction.created_at >= start, Transaction.created_at <= end)
        .all()
    )


def update_transaction(
    *,
    tenant_id: int,
    transaction_pk: int,
    fields: dict,
    lines: list[TransactionLine] | None = None,
    charges: list[ExtraCharge] | None = None,
) -> Transaction:
    """
    Field-level merge of already-validated values.

    lines/charges, when given, replace the stored lists wholesale.
    """
    tx = require_owned(Transaction, transaction_pk, tenant_id)

    for k, v in fields.items():
        if k in TRANSACTION_MUTABLE_FIELDS:
            setattr(tx, k, v)
    if lines is not None:
        tx.lines = lines
    if charges is not None:
        tx.extra_charges = charges

    db.session.commit()
    return tx


def delete_transaction(*, tenant_id: int, transaction_pk: int) -> None:
    """Delete a transaction with its lines and charges. Stock is not restored."""
    tx = require_owned(Transaction, transaction_pk, tenant_id)
    reference = tx.transaction_id
    db.session.delete(tx)
    db.session.commit()
    logger.info("Tenant %s deleted transaction %s", tenant_id, reference)


def _load_products(transactions: Iterable[Transaction]) -> dict[int, Product]:
    product_ids = {
        line.product_id
        for tx in transactions
        for line in tx.lines
        if line.product_id is not None
    }
    if not product_ids:
        return {}
    rows = db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    return {p.id: p for p in rows}


def _serialize(tx: Transaction, products: dict[int, Product]) -> dict:
    cart_items = []
    for line in tx.lines:
        product = products.get(line.product_id)
        cart_items.append({
            "product": {
                "id": product.id,
                "name": product.name,
                "price_cents": product.price_cents,
            } if product is not None else None,
            "quantity": line.quantity,
        })

    return {
        "id": tx.id,
        "transaction_id": tx.transaction_id,
        "tenant_id": tx.tenant_id,
        "customer_name": tx.customer_name,
        "customer_contact": tx.customer_contact,
        "cart_items": cart_items,
        "extra_charges": [c.to_dict() for c in tx.extra_charges],
        "billing_mode": tx.billing_mode,
        "total_amount_cents": tx.total_amount_cents,
        "created_at": to_utc_z(tx.created_at),
        "updated_at": to_utc_z(tx.updated_at),
    }


def transaction_to_dict(tx: Transaction) -> dict:
    """
    Receipt-ready view: each cart line carries the product's current
    name and price, or product=None when the product has been deleted.
    """
    return _serialize(tx, _load_products([tx]))


def transactions_to_dicts(transactions: list[Transaction]) -> list[dict]:
    """Batch version of transaction_to_dict (one product query for the whole list)."""
    products = _load_products(transactions)
    return [_serialize(tx, products) for tx in transactions]
