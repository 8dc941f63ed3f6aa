# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/shoppos/routes/auth.py
"""
Staff authentication routes.

- POST /register: self-registration, gated by the shop's registration key
- POST /login: email + password -> bearer token
- POST /logout: revoke the bearer token
- GET  /me: signed-in user and the name stamped on their records
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import PasswordValidationError, RegistrationDeniedError
from ..decorators import bearer_token, require_auth
from shoppos.time_utils import to_utc_z


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Body: {email, password, display_name, registration_key}

    Returns:
        201: account created (no session; log in next)
        400: bad email, duplicate email or weak password
        403: wrong registration key
    """
    data = request.get_json(silent=True) or {}

    try:
        user = auth_service.register_user(
            email=data.get("email"),
            password=data.get("password"),
            display_name=data.get("display_name"),
            registration_key=data.get("registration_key"),
        )
    except RegistrationDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except (PasswordValidationError, ValueError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"user": user.to_dict()}), 201


@auth_bp.post("/login")
def login_route():
    """
    Body: {email, password}

    The returned token goes in 'Authorization: Bearer <token>' on every
    other /api call.
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"error": "email and password required"}), 400

    try:
        user = auth_service.authenticate(email, password)
        if user is None:
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "user": user.to_dict(),
        "actor": auth_service.actor_label(user),
        "token": token,
        "expires_at": to_utc_z(session.expires_at),
    }), 200


@auth_bp.post("/logout")
def logout_route():
    token = bearer_token()
    if token is None:
        return jsonify({"error": "Authentication required"}), 401

    if not session_service.revoke_session(token, reason="User logout"):
        return jsonify({"error": "Invalid or expired token"}), 401
    return jsonify({"logged_out": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict(), "actor": g.actor}), 200
