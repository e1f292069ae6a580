# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/shopledger/routes/products.py
"""
Product catalog routes with multi-tenant support.

MULTI-TENANT: All product operations are scoped to the caller's tenant.
The tenant_id is derived from g.tenant_id (set by @require_auth) and passed
explicitly to the product store.

A product owned by another tenant answers 403, a missing one 404.
"""
from flask import Blueprint, request, g, current_app

from ..services import product_store
from ..services.ownership_service import NotFoundError, ForbiddenError
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)
from ..decorators import require_auth

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price_cents", "quantity"},
    required_on_create={"name", "price_cents", "quantity"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List the caller's products, newest first.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)

    return product_store.list_products(g.tenant_id, page=page, per_page=per_page)


@products_bp.post("")
@require_auth
def create_product_route():
    """Create a product in the caller's catalog. name, price_cents and quantity are required."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = product_store.create_product(tenant_id=g.tenant_id, patch=patch)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return {"product": created.to_dict()}, 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = product_store.get_product(tenant_id=g.tenant_id, product_id=product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ForbiddenError as e:
        return {"error": str(e)}, 403

    return {"product": product.to_dict()}, 200


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    """Update name, price_cents and/or quantity of a product the caller owns."""
    payload = request.get_json(silent=True) or {}

    try:
        product_store.get_product(tenant_id=g.tenant_id, product_id=product_id)
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = product_store.update_product(tenant_id=g.tenant_id, product_id=product_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ForbiddenError as e:
        return {"error": str(e)}, 403

    return {"product": updated.to_dict()}, 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    try:
        product_store.delete_product(tenant_id=g.tenant_id, product_id=product_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ForbiddenError as e:
        return {"error": str(e)}, 403

    return {"ok": True, "id": product_id}, 200
