"""Admin gate for write endpoints (flask-jwt-extended bearer tokens)."""
import logging
import uuid
from functools import wraps

from flask import g, jsonify
from flask_jwt_extended import create_access_token, get_jwt, verify_jwt_in_request

from beanmart.errors import Forbidden
from beanmart.extensions import db, jwt
from beanmart.models.admin import Admin

logger = logging.getLogger(__name__)


def issue_admin_token(admin):
    return create_access_token(
        identity=str(admin.id),
        additional_claims={"type": "admin", "email": admin.email},
    )


def admin_required(view):
    """Require a Bearer token for an active admin.

    Missing token → 401; wrong token type, unknown or inactive admin → 403.
    The admin row is available as ``g.admin`` inside the view.
    """

    @wraps(view)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        claims = get_jwt()
        if claims.get("type") != "admin":
            raise Forbidden("Forbidden - Admin access required")

        try:
            admin_id = uuid.UUID(str(claims.get("sub")))
        except ValueError:
            raise Forbidden("Invalid or expired token")
        admin = db.session.get(Admin, admin_id)
        if admin is None or not admin.is_active:
            logger.info("Rejected token for unknown/inactive admin %s", admin_id)
            raise Forbidden("Admin account not found or inactive")

        g.admin = admin
        return view(*args, **kwargs)

    return wrapper


@jwt.unauthorized_loader
def _missing_token(reason):
    return jsonify({"success": False, "message": "Access token required"}), 401


@jwt.invalid_token_loader
def _invalid_token(reason):
    return jsonify({"success": False, "message": "Invalid or expired token"}), 403


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return jsonify({"success": False, "message": "Invalid or expired token"}), 403
