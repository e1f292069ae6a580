# Overview: Flask API routes for tenant accounts; parses input and returns JSON responses.

# backend/shopledger/routes/admin.py
"""
Tenant (shop admin) account routes.

- POST /api/admin/register  public
- POST /api/admin/login     public, returns a bearer token
- POST /api/admin/logout    revokes the caller's token
- GET/PUT /api/admin/profile
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..models import Tenant
from ..services import auth_service, session_service
from ..services.security_service import log_security_event
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, ConflictError
from ..decorators import require_auth

REGISTER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "city", "branch", "gstin"},
    required_on_create={"name", "email", "phone", "city", "branch", "gstin"},
)

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "city", "branch", "gstin"},
)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.post("/register")
def register_route():
    """
    Register a new shop admin (tenant).

    JSON: { name, email, password, phone, city, branch, gstin } (all required)
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    password = payload.pop("password", None)
    if not password:
        return jsonify({"error": "All fields (name, email, password, phone, city, branch, gstin) are mandatory"}), 400

    try:
        patch = validate_payload(model=Tenant, payload=payload, policy=REGISTER_POLICY, partial=False)
        if "@" not in patch["email"]:
            raise ValidationError("email must be a valid email address")
        tenant = auth_service.register_tenant(password=password, **patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register tenant")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"tenant": tenant.to_dict()}), 201


@admin_bp.post("/login")
def login_route():
    """
    Authenticate with email and password.

    Returns the tenant profile and a bearer token for the Authorization header.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email") if isinstance(data, dict) else None
    password = data.get("password") if isinstance(data, dict) else None

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    try:
        tenant = auth_service.authenticate(email, password)

        if not tenant:
            log_security_event(
                tenant_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                reason=f"Invalid credentials for {email}",
            )
            return jsonify({"error": "Invalid email or password"}), 401

        session, token = session_service.create_session(
            tenant_id=tenant.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "tenant": tenant.to_dict(),
            "token": token,
            "session": session.to_dict(),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login tenant")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the token used for this request."""
    try:
        session_service.revoke_session(g.session_token)
        log_security_event(tenant_id=g.tenant_id, event_type="LOGOUT", success=True)
    except Exception:
        current_app.logger.exception("Failed to logout tenant")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200


@admin_bp.get("/profile")
@require_auth
def get_profile_route():
    return jsonify({"tenant": g.current_tenant.to_dict()}), 200


@admin_bp.put("/profile")
@require_auth
def update_profile_route():
    """
    Update profile fields (name, phone, city, branch, gstin).

    Email and password cannot be changed here.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Tenant, payload=payload, policy=PROFILE_POLICY, partial=True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    if not patch:
        return jsonify({"error": "No update data provided"}), 400

    tenant = auth_service.update_profile(tenant_id=g.tenant_id, patch=patch)
    if not tenant:
        return jsonify({"error": "Tenant profile not found"}), 404

    return jsonify({"tenant": tenant.to_dict()}), 200
