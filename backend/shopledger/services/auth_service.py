# Overview: Service-layer operations for tenant accounts; registration, login, profile.

"""
Tenant Account Service

WHY: Every product and transaction is scoped to a tenant (shop admin),
so the tenant account is also the login identity.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters with at least one letter and one digit
- Email is the login key and is stored lower-cased
- Session tokens managed separately (see session_service.py)
"""

import logging
import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Tenant
from ..validation import ConflictError, ValidationError

logger = logging.getLogger(__name__)

TENANT_PROFILE_FIELDS = {"name", "phone", "city", "branch", "gstin"}


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """Validate strength, then bcrypt-hash."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def register_tenant(*, name: str, email: str, password: str, phone: str, city: str, branch: str, gstin: str) -> Tenant:
    """
    Create a tenant account.

    Raises:
        ConflictError: email already registered
        PasswordValidationError: weak password
    """
    email = _normalize_email(email)

    existing = db.session.query(Tenant).filter_by(email=email).first()
    if existing:
        raise ConflictError("An account already exists with this email")

    tenant = Tenant(
        name=name,
        email=email,
        password_hash=hash_password(password),
        phone=phone,
        city=city,
        branch=branch,
        gstin=gstin,
    )
    db.session.add(tenant)
    db.session.commit()

    logger.info("Registered tenant %s (%s)", tenant.id, email)
    return tenant


def authenticate(email: str, password: str) -> Tenant | None:
    """Returns the Tenant if credentials are valid, None otherwise."""
    tenant = db.session.query(Tenant).filter_by(email=_normalize_email(email)).first()
    if not tenant:
        return None
    if not verify_password(password, tenant.password_hash):
        return None
    return tenant


def get_tenant(tenant_id: int) -> Tenant | None:
    return db.session.get(Tenant, tenant_id)


def update_profile(*, tenant_id: int, patch: dict) -> Tenant | None:
    """Merge validated profile fields. Email and password are not writable here."""
    tenant = db.session.get(Tenant, tenant_id)
    if not tenant:
        return None

    for k, v in patch.items():
        if k in TENANT_PROFILE_FIELDS:
            setattr(tenant, k, v)

    db.session.commit()
    return tenant
