# Overview: Builds checkout transactions from validated requests and live catalog prices.

"""
Transaction Builder

WHY: The total on a transaction must come from the catalog, never from the
client. The builder validates a checkout request, resolves every referenced
product within the caller's tenant, computes the total with the pure
compute_total() and only then hands a complete record to the store.

Failure modes:
- ValidationError: missing or malformed fields, empty cart, amounts out of range
- NotFoundError: a cart line references a product the tenant doesn't have
- ConflictError: generated transaction_id collided (nothing persisted)
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..extensions import db
from ..models import BILLING_MODES, ExtraCharge, Product, Transaction, TransactionLine
from ..validation import (
    MAX_LINE_QUANTITY,
    MAX_PRICE_CENTS,
    MAX_TOTAL_CENTS,
    ValidationError,
    amount_to_cents,
    check_range,
    coerce_int,
)
from . import transaction_store
from .ownership_service import NotFoundError

logger = logging.getLogger(__name__)

# Server-owned fields; clients can never set these on create or update
PROTECTED_FIELDS = {
    "id", "transaction_id", "tenant_id", "total_amount_cents", "total_amount",
    "created_at", "updated_at",
}
REVISABLE_FIELDS = {"customer_name", "customer_contact", "billing_mode", "cart_items", "extra_charges"}

CUSTOMER_NAME_MAX = 255
CHARGE_TITLE_MAX = 255
# E.164 numbers have at most 15 digits
CUSTOMER_CONTACT_MAX = 999_999_999_999_999


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class Charge:
    title: str
    amount_cents: int


@dataclass
class CheckoutRequest:
    customer_name: str
    customer_contact: int
    billing_mode: str
    cart_items: list[CartLine]
    extra_charges: list[Charge] = field(default_factory=list)


def generate_transaction_id() -> str:
    """
    TXN-<epoch millis>-<6 hex chars>.

    Unique in practice, not by construction: a collision surfaces as a
    ConflictError from the store's unique constraint.
    """
    return f"TXN-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


def compute_total(
    lines: Iterable[CartLine],
    charges: Iterable[Charge],
    prices: Mapping[int, int],
) -> int:
    """
    Total in cents: sum of price * quantity over cart lines plus the sum of
    extra charges. prices maps product_id -> price_cents and must cover
    every line.
    """
    total = sum(prices[line.product_id] * line.quantity for line in lines)
    total += sum(charge.amount_cents for charge in charges)
    return total


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, dict)) and not value:
        return True
    return False


def _validate_customer_name(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("customer_name cannot be blank")
    name = value.strip()
    if len(name) > CUSTOMER_NAME_MAX:
        raise ValidationError(f"customer_name exceeds max length {CUSTOMER_NAME_MAX}")
    return name


def _validate_customer_contact(value: Any) -> int:
    contact = coerce_int("customer_contact", value)
    return check_range("customer_contact", contact, minimum=0, maximum=CUSTOMER_CONTACT_MAX)


def _validate_billing_mode(value: Any) -> str:
    mode = str(value).strip().lower() if value is not None else ""
    if mode not in BILLING_MODES:
        raise ValidationError(f"billing_mode must be one of: {', '.join(BILLING_MODES)}")
    return mode


def _validate_cart(value: Any) -> list[CartLine]:
    if not isinstance(value, list) or not value:
        raise ValidationError("Cart cannot be empty")

    lines = []
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise ValidationError(f"cart_items[{i}] must be an object")
        raw_product = item.get("product", item.get("product_id"))
        if raw_product is None:
            raise ValidationError(f"cart_items[{i}].product is required")
        try:
            product_id = coerce_int(f"cart_items[{i}].product", raw_product)
        except ValidationError:
            # No product can have a non-integer id
            raise NotFoundError(f"Product not found for ID: {raw_product}")
        if "quantity" not in item:
            raise ValidationError(f"cart_items[{i}].quantity is required")
        quantity = check_range(
            f"cart_items[{i}].quantity",
            coerce_int(f"cart_items[{i}].quantity", item["quantity"]),
            minimum=1,
            maximum=MAX_LINE_QUANTITY,
        )
        lines.append(CartLine(product_id=product_id, quantity=quantity))
    return lines


def _validate_charges(value: Any) -> list[Charge]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError("extra_charges must be a list")

    charges = []
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise ValidationError(f"extra_charges[{i}] must be an object")
        title = item.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(f"extra_charges[{i}].title cannot be blank")
        if len(title.strip()) > CHARGE_TITLE_MAX:
            raise ValidationError(f"extra_charges[{i}].title exceeds max length {CHARGE_TITLE_MAX}")
        # amount_cents wins; "amount" is the same charge in major units
        if "amount_cents" in item:
            amount = coerce_int(f"extra_charges[{i}].amount_cents", item["amount_cents"])
        elif "amount" in item:
            amount = amount_to_cents(f"extra_charges[{i}].amount", item["amount"])
        else:
            raise ValidationError(f"extra_charges[{i}].amount_cents is required")
        check_range(f"extra_charges[{i}].amount_cents", amount, minimum=0, maximum=MAX_PRICE_CENTS)
        charges.append(Charge(title=title.strip(), amount_cents=amount))
    return charges


def validate_checkout(payload: Any) -> CheckoutRequest:
    """
    Validate a create-transaction payload.

    Client-supplied totals are ignored; every other server-owned field is
    silently dropped on create as well.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = ("customer_name", "customer_contact", "cart_items", "billing_mode")
    missing = [f for f in required if f not in payload or (f != "cart_items" and _is_blank(payload[f]))]
    if missing:
        raise ValidationError(f"Missing required fields for transaction: {', '.join(missing)}")

    return CheckoutRequest(
        customer_name=_validate_customer_name(payload["customer_name"]),
        customer_contact=_validate_customer_contact(payload["customer_contact"]),
        billing_mode=_validate_billing_mode(payload["billing_mode"]),
        cart_items=_validate_cart(payload["cart_items"]),
        extra_charges=_validate_charges(payload.get("extra_charges")),
    )


# ---------------------------------------------------------------------------
# Price resolution and record construction
# ---------------------------------------------------------------------------

def _check_total(total: int) -> None:
    if total > MAX_TOTAL_CENTS:
        raise ValidationError(f"Transaction total cannot exceed {MAX_TOTAL_CENTS} cents")


def resolve_prices(tenant_id: int, lines: Iterable[CartLine]) -> dict[int, int]:
    """
    Look up live prices for every product in the cart.

    MULTI-TENANT: products are matched on (id, tenant_id), so another
    tenant's product id is reported exactly like a nonexistent one.

    Raises:
        NotFoundError naming the first missing product id
    """
    wanted = []
    for line in lines:
        if line.product_id not in wanted:
            wanted.append(line.product_id)

    rows = (
        db.session.query(Product.id, Product.price_cents)
        .filter(Product.tenant_id == tenant_id, Product.id.in_(wanted))
        .all()
    )
    prices = {row.id: row.price_cents for row in rows}

    for product_id in wanted:
        if product_id not in prices:
            raise NotFoundError(f"Product not found for ID: {product_id}")
    return prices


def _make_lines(lines: list[CartLine]) -> list[TransactionLine]:
    return [
        TransactionLine(position=i, product_id=line.product_id, quantity=line.quantity)
        for i, line in enumerate(lines)
    ]


def _make_charges(charges: list[Charge]) -> list[ExtraCharge]:
    return [
        ExtraCharge(position=i, title=c.title, amount_cents=c.amount_cents)
        for i, c in enumerate(charges)
    ]


def build_transaction(tenant_id: int, payload: Any) -> Transaction:
    """
    Validate, price, and persist a checkout.

    The returned Transaction is committed. Stock is untouched here; the
    inventory adjuster runs afterwards.
    """
    request = validate_checkout(payload)
    prices = resolve_prices(tenant_id, request.cart_items)
    total = compute_total(request.cart_items, request.extra_charges, prices)
    _check_total(total)

    tx = Transaction(
        transaction_id=generate_transaction_id(),
        tenant_id=tenant_id,
        customer_name=request.customer_name,
        customer_contact=request.customer_contact,
        billing_mode=request.billing_mode,
        total_amount_cents=total,
        lines=_make_lines(request.cart_items),
        extra_charges=_make_charges(request.extra_charges),
    )
    transaction_store.create_transaction(tx)

    logger.info(
        "Tenant %s recorded transaction %s: %d line(s), total_cents=%d",
        tenant_id, tx.transaction_id, len(request.cart_items), total,
    )
    return tx


def revise_transaction(tenant_id: int, transaction_pk: int, payload: Any) -> Transaction:
    """
    Apply a partial update to a transaction the tenant owns.

    - Server-owned fields (transaction_id, total, tenant, timestamps) are rejected.
    - Customer fields and billing_mode are validated then merged.
    - Supplying cart_items and/or extra_charges replaces those lists and the
      total is recomputed from live prices. Stock is not re-adjusted.
    """
    tx = transaction_store.get_transaction(tenant_id=tenant_id, transaction_pk=transaction_pk)

    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    for k in payload:
        if k in PROTECTED_FIELDS:
            raise ValidationError(f"Field not writable: {k}")
        if k not in REVISABLE_FIELDS:
            raise ValidationError(f"Unknown field: {k}")
    if not payload:
        raise ValidationError("No valid fields provided for update")

    fields: dict = {}
    if "customer_name" in payload:
        fields["customer_name"] = _validate_customer_name(payload["customer_name"])
    if "customer_contact" in payload:
        fields["customer_contact"] = _validate_customer_contact(payload["customer_contact"])
    if "billing_mode" in payload:
        fields["billing_mode"] = _validate_billing_mode(payload["billing_mode"])

    new_lines = None
    new_charges = None
    if "cart_items" in payload or "extra_charges" in payload:
        if "cart_items" in payload:
            cart = _validate_cart(payload["cart_items"])
            new_lines = _make_lines(cart)
        else:
            cart = [CartLine(product_id=l.product_id, quantity=l.quantity) for l in tx.lines]

        if "extra_charges" in payload:
            charges = _validate_charges(payload["extra_charges"])
            new_charges = _make_charges(charges)
        else:
            charges = [Charge(title=c.title, amount_cents=c.amount_cents) for c in tx.extra_charges]

        if any(line.product_id is None for line in cart):
            raise NotFoundError("Transaction references a deleted product; resend cart_items")
        prices = resolve_prices(tenant_id, cart)
        total = compute_total(cart, charges, prices)
        _check_total(total)
        fields["total_amount_cents"] = total

    updated = transaction_store.update_transaction(
        tenant_id=tenant_id,
        transaction_pk=transaction_pk,
        fields=fields,
        lines=new_lines,
        charges=new_charges,
    )
    logger.info("Tenant %s revised transaction %s (%s)", tenant_id, updated.transaction_id, ", ".join(sorted(payload)))
    return updated
