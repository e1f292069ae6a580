# Overview: Service-layer operations for the security audit trail.

"""
Security Event Logging with Tenant Context

WHY: Immutable audit log for detecting unauthorized access attempts.
Cross-tenant denials, failed logins, and logouts are all recorded.

event_type values:
- CROSS_TENANT_ACCESS_DENIED
- LOGIN_FAILED
- LOGOUT
"""

from flask import has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from ..time_utils import utcnow


def log_security_event(
    tenant_id: int | None,
    event_type: str,
    success: bool,
    reason: str | None = None,
    resource: str | None = None,
    action: str | None = None,
) -> SecurityEvent:
    """
    Append a security event.

    When called inside a request, resource/action/client details default to
    the current request so callers only pass what they know.
    """
    ip_address = None
    user_agent = None
    if has_request_context():
        resource = resource or request.path
        action = action or request.method
        ip_address = request.remote_addr
        user_agent = request.headers.get("User-Agent")

    event = SecurityEvent(
        tenant_id=tenant_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event
