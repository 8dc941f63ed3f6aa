# backend/shoppos/decorators.py
from functools import wraps
from flask import request, jsonify, g

from .services import session_service
from .services.auth_service import actor_label


def bearer_token() -> str | None:
    """Token from 'Authorization: Bearer <token>', or None."""
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


def require_auth(f):
    """
    Reject the request with 401 unless it carries a live session.

    On success the view can read:
    - g.current_user: the signed-in User
    - g.actor: name stamped on the sales, payments, expenses and cuts it creates
    - g.session_context: SessionContext (user + session row)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required"}), 401

        context = session_service.validate_session(token)
        if context is None:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.actor = actor_label(context.user)
        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function
