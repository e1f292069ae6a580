# Overview: Housekeeping for the audit log and the session table.

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import and_, or_

from ..extensions import db
from ..models import SecurityEvent, SessionToken
from ..time_utils import utcnow


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """Delete security events older than retention_days."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def cleanup_sessions(*, retention_days: int = 7) -> int:
    """
    Delete sessions that expired or were revoked more than retention_days ago.

    Live sessions are never touched.
    """
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = db.session.query(SessionToken).filter(
        or_(
            SessionToken.expires_at < cutoff,
            and_(SessionToken.is_revoked.is_(True), SessionToken.revoked_at < cutoff),
        )
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
