# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def require_auth(f):
    """
    Require authentication and establish tenant context.

    MULTI-TENANT: Sets the following Flask g attributes:
    - g.current_tenant: The authenticated Tenant object
    - g.tenant_id: The tenant ID every service call is scoped to
    - g.session_context: The full SessionContext object

    Routes read g.tenant_id once and pass it explicitly to the services.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_tenant = context.tenant
        g.tenant_id = context.tenant_id
        g.session_context = context
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function
