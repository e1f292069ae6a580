# Overview: Flask API routes for transactions operations; parses input and returns JSON responses.

# backend/shopledger/routes/transactions.py
"""
Transaction (checkout) routes.

MULTI-TENANT: g.tenant_id (set by @require_auth) is passed explicitly to
every service call. Reading, updating or deleting another tenant's
transaction answers 403 and never returns its data.
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import checkout_service, transaction_builder, transaction_store, summary_service
from ..services.ownership_service import NotFoundError, ForbiddenError
from ..validation import ValidationError, ConflictError
from ..decorators import require_auth
from ..time_utils import parse_range_bound


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


def _parse_range(start_raw: str | None, end_raw: str | None):
    try:
        start = parse_range_bound(start_raw, end=False)
        end = parse_range_bound(end_raw, end=True)
    except ValueError:
        raise ValidationError("start and end must be ISO-8601 dates or datetimes")
    if start and end and start > end:
        raise ValidationError("start must not be after end")
    return start, end


@transactions_bp.post("")
@require_auth
def create_transaction_route():
    """
    Record a checkout and decrement stock.

    JSON: { customer_name, customer_contact, billing_mode,
            cart_items: [{product, quantity}], extra_charges: [{title, amount_cents}] }

    An extra charge may send "amount" in major units (15.50) instead of
    amount_cents (1550).

    Any client-sent total is ignored; the total is computed from live prices.
    Stock decrement problems are reported in stock_adjustment but do not
    fail the request.
    """
    payload = request.get_json(silent=True)

    try:
        transaction, report = checkout_service.checkout(g.tenant_id, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create transaction")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "transaction": transaction,
        "stock_adjustment": report.to_dict(),
    }), 201


@transactions_bp.get("")
@require_auth
def list_transactions_route():
    """All of the caller's transactions, newest first."""
    transactions = transaction_store.list_transactions(tenant_id=g.tenant_id)
    items = transaction_store.transactions_to_dicts(transactions)
    return jsonify({"items": items, "count": len(items)}), 200


@transactions_bp.get("/date-range")
@require_auth
def list_transactions_by_date_range_route():
    """
    Query params (both required):
    - start: ISO date or datetime (a bare date means start of that day)
    - end: ISO date or datetime (a bare date means end of that day)
    """
    start_raw = request.args.get("start")
    end_raw = request.args.get("end")
    if not start_raw or not end_raw:
        return jsonify({"error": "start and end are required query parameters"}), 400

    try:
        start, end = _parse_range(start_raw, end_raw)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    transactions = transaction_store.list_transactions_in_range(tenant_id=g.tenant_id, start=start, end=end)
    items = transaction_store.transactions_to_dicts(transactions)
    return jsonify({"items": items, "count": len(items)}), 200


@transactions_bp.get("/summary")
@require_auth
def transactions_summary_route():
    """Account overview for the caller. start/end are optional."""
    try:
        start, end = _parse_range(request.args.get("start"), request.args.get("end"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(summary_service.account_summary(tenant_id=g.tenant_id, start=start, end=end)), 200


@transactions_bp.get("/<int:transaction_pk>")
@require_auth
def get_transaction_route(transaction_pk: int):
    try:
        tx = transaction_store.get_transaction(tenant_id=g.tenant_id, transaction_pk=transaction_pk)
    except NotFoundError:
        return jsonify({"error": "Transaction not found"}), 404
    except ForbiddenError as e:
        return jsonify({"error": str(e)}), 403

    return jsonify({"transaction": transaction_store.transaction_to_dict(tx)}), 200


@transactions_bp.put("/<int:transaction_pk>")
@require_auth
def update_transaction_route(transaction_pk: int):
    """
    Partial update.

    transaction_id, total_amount_cents, tenant and timestamps are not
    writable. Sending cart_items or extra_charges recomputes the total
    from live prices (stock is not re-adjusted).
    """
    payload = request.get_json(silent=True)

    try:
        tx = transaction_builder.revise_transaction(g.tenant_id, transaction_pk, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ForbiddenError as e:
        return jsonify({"error": str(e)}), 403
    except Exception:
        current_app.logger.exception("Failed to update transaction")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"transaction": transaction_store.transaction_to_dict(tx)}), 200


@transactions_bp.delete("/<int:transaction_pk>")
@require_auth
def delete_transaction_route(transaction_pk: int):
    """Delete a transaction. Stock decrements it caused are not reversed."""
    try:
        transaction_store.delete_transaction(tenant_id=g.tenant_id, transaction_pk=transaction_pk)
    except NotFoundError:
        return jsonify({"error": "Transaction not found"}), 404
    except ForbiddenError as e:
        return jsonify({"error": str(e)}), 403

    return jsonify({"ok": True, "id": transaction_pk}), 200
