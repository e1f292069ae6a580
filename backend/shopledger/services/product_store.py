# backend/shopledger/services/product_store.py
"""
Product Store with Multi-Tenant Support

MULTI-TENANT: All product operations are tenant-scoped.
- list_products only returns the caller's catalog
- create_product stamps the caller's tenant_id (immutable afterwards)
- get/update/delete go through the ownership guard
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..models import Product, TransactionLine
from ..validation import ValidationError
from .ownership_service import require_owned

logger = logging.getLogger(__name__)

PRODUCT_MUTABLE_FIELDS = {"name", "price_cents", "quantity"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(
    tenant_id: int,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Tenant-scoped product listing, newest first, with optional pagination.

    Args:
        tenant_id: Authenticated tenant
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = (
        db.session.query(Product)
        .filter(Product.tenant_id == tenant_id)
        .order_by(Product.created_at.desc(), Product.id.desc())
    )

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def create_product(*, tenant_id: int, patch: dict) -> Product:
    """Create a product in the tenant's catalog from a validated patch dict."""
    p = Product(tenant_id=tenant_id)
    apply_product_patch(p, patch)

    db.session.add(p)
    db.session.commit()

    logger.info("Tenant %s created product %s (%s)", tenant_id, p.id, p.name)
    return p


def get_product(*, tenant_id: int, product_id: int) -> Product:
    """
    Raises:
        NotFoundError: product doesn't exist
        ForbiddenError: product belongs to another tenant
    """
    return require_owned(Product, product_id, tenant_id)


def update_product(*, tenant_id: int, product_id: int, patch: dict) -> Product:
    """
    Merge validated fields into a product the tenant owns.

    Raises:
        ValidationError: nothing to update
        NotFoundError / ForbiddenError: from the ownership guard
    """
    p = require_owned(Product, product_id, tenant_id)

    if not any(k in PRODUCT_MUTABLE_FIELDS for k in patch):
        raise ValidationError("No valid fields provided for update")

    apply_product_patch(p, patch)
    db.session.commit()
    return p


def delete_product(*, tenant_id: int, product_id: int) -> None:
    """
    Hard-delete a product the tenant owns.

    Transaction lines that referenced it keep their quantity but lose the
    product reference; receipts render those lines without name or price.
    Recorded transaction totals are unaffected.
    """
    p = require_owned(Product, product_id, tenant_id)

    db.session.query(TransactionLine).filter(
        TransactionLine.product_id == p.id
    ).update({TransactionLine.product_id: None}, synchronize_session=False)

    db.session.delete(p)
    db.session.commit()

    logger.info("Tenant %s deleted product %s", tenant_id, product_id)
