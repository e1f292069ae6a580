from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow

BILLING_MODES = ("cash", "card", "online")


class Transaction(db.Model):
    """
    Checkout record (one per completed sale).

    WHY: The transaction is the source of truth for what was sold.
    total_amount_cents is computed from live catalog prices when the record
    is built; product stock counts are adjusted afterwards on a best-effort
    basis and may lag behind or disagree.

    transaction_id is the externally visible reference printed on receipts.
    id is the internal store key used in URLs.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.Index("ix_transactions_tenant_created", "tenant_id", "created_at"),
        db.Index("ix_transactions_tenant_contact", "tenant_id", "customer_contact"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_id = db.Column(db.String(64), nullable=False, unique=True)
    tenant_id = db.Column(db.Integer, db.ForeignKey("tenants.id"), nullable=False, index=True)

    customer_name = db.Column(db.String(255), nullable=False)
    # Numeric contact (phone number); doubles as the customer dedup key
    customer_contact = db.Column(db.BigInteger, nullable=False)

    billing_mode = db.Column(db.String(16), nullable=False)
    total_amount_cents = db.Column(db.BigInteger, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    tenant = db.relationship("Tenant", backref=db.backref("transactions", lazy=True))
    lines = db.relationship(
        "TransactionLine",
        backref="transaction",
        order_by="TransactionLine.position",
        cascade="all, delete-orphan",
        lazy=True,
    )
    extra_charges = db.relationship(
        "ExtraCharge",
        backref="transaction",
        order_by="ExtraCharge.position",
        cascade="all, delete-orphan",
        lazy=True,
    )

    def __repr__(self) -> str:
        return f"<Transaction id={self.id} transaction_id={self.transaction_id!r} tenant_id={self.tenant_id}>"


class TransactionLine(db.Model):
    """Cart line: a product reference and a quantity, in cart order."""
    __tablename__ = "transaction_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    transaction_pk = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    # NULL once the referenced product has been deleted from the catalog
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")


class ExtraCharge(db.Model):
    """Named fixed add-on amount (packing, delivery, ...)."""
    __tablename__ = "transaction_extra_charges"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    transaction_pk = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    title = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "amount_cents": self.amount_cents,
        }
