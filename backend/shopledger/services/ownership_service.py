"""
Ownership Guard: Tenant Validation for Products and Transactions

WHY: Every product and transaction belongs to exactly one tenant. Before
any read or write, the caller's tenant id (from the authenticated session)
is checked against the resource's stored tenant_id.

SECURITY INVARIANTS:
1. Callers pass tenant_id explicitly; nothing here reads request globals
2. A missing resource is NotFound (404)
3. A resource owned by another tenant is Forbidden (403) and never returned
4. Forbidden attempts are logged as CROSS_TENANT_ACCESS_DENIED events

USAGE:
    from shopledger.services.ownership_service import require_owned

    product = require_owned(Product, product_id, tenant_id)
"""

import enum
import logging

from ..extensions import db
from .security_service import log_security_event

logger = logging.getLogger(__name__)


class NotFoundError(Exception):
    """404: resource (or a referenced product) does not exist for this tenant."""


class ForbiddenError(Exception):
    """403: resource exists but belongs to a different tenant."""


class Access(enum.Enum):
    ALLOWED = "allowed"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


def check_ownership(resource, tenant_id: int) -> Access:
    """Classify access to an already-loaded resource (None means it doesn't exist)."""
    if resource is None:
        return Access.NOT_FOUND
    if resource.tenant_id != tenant_id:
        return Access.FORBIDDEN
    return Access.ALLOWED


def require_owned(model, resource_id: int, tenant_id: int):
    """
    Load a tenant-owned row by primary key and enforce ownership.

    Args:
        model: SQLAlchemy model class with a tenant_id column
        resource_id: Primary key from the request
        tenant_id: Authenticated tenant (from g.tenant_id)

    Returns:
        The model instance if the tenant owns it

    Raises:
        NotFoundError if the row doesn't exist
        ForbiddenError if the row belongs to another tenant
    """
    label = model.__name__
    resource = db.session.get(model, resource_id)

    access = check_ownership(resource, tenant_id)
    if access is Access.NOT_FOUND:
        raise NotFoundError(f"{label} not found")

    if access is Access.FORBIDDEN:
        logger.warning(
            "Tenant %s denied access to %s %s owned by tenant %s",
            tenant_id, label, resource_id, resource.tenant_id,
        )
        log_security_event(
            tenant_id=tenant_id,
            event_type="CROSS_TENANT_ACCESS_DENIED",
            success=False,
            reason=f"{label} {resource_id} belongs to tenant {resource.tenant_id}, not {tenant_id}",
        )
        raise ForbiddenError(f"Not authorized to access this {label.lower()}")

    return resource
