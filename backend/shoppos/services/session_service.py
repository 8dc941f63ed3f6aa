# backend/shoppos/services/session_service.py
"""
Bearer sessions for the counter terminals.

A login hands the terminal a random token; only its SHA-256 digest is
stored. A session dies when any of these hold:
- it is older than SESSION_ABSOLUTE_TIMEOUT (24h, a full shift plus margin)
- the terminal sat unused longer than SESSION_IDLE_TIMEOUT (2h)
- the user logged out, or the account was deactivated

Dead sessions stay in session_tokens with revoked_reason for the record.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from ..extensions import db
from ..models import SessionToken, User
from shoppos.time_utils import utcnow


SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)
SESSION_IDLE_TIMEOUT = timedelta(hours=2)

TOKEN_BYTES = 32


@dataclass
class SessionContext:
    """What require_auth puts on flask.g for the current request."""
    user: User
    session: SessionToken


def generate_token() -> str:
    # 64 hex chars; the only copy of the plaintext leaves with the response
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """
    Digest stored in session_tokens.token_hash.

    Tokens carry 256 bits of entropy, so a fast unsalted hash is enough
    here; bcrypt is kept for passwords.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _live_session(token: str) -> SessionToken | None:
    return (
        db.session.query(SessionToken)
        .filter(SessionToken.token_hash == hash_token(token), SessionToken.is_revoked.is_(False))
        .first()
    )


def _dead_reason(session: SessionToken, now: datetime) -> str | None:
    if session.expires_at < now:
        return "Expired"
    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        return "Idle timeout"
    if session.user is None or not session.user.is_active:
        return "User account deactivated"
    return None


def _revoke(session: SessionToken, reason: str, now: datetime) -> None:
    session.is_revoked = True
    session.revoked_at = now
    session.revoked_reason = reason
    db.session.commit()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Open a session for an active user.

    Returns (session_record, plaintext_token).

    Raises:
        ValueError: unknown or deactivated user
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise ValueError("User not found")
    if not user.is_active:
        raise ValueError("User account is deactivated")

    token = generate_token()
    opened_at = utcnow()
    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(token),
        created_at=opened_at,
        last_used_at=opened_at,
        expires_at=opened_at + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, token


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its user, or None when the session is dead.

    A session found dead is revoked on the spot with the reason. A live
    one has last_used_at bumped, which is what keeps it from idling out.
    """
    session = _live_session(token)
    if session is None:
        return None

    now = utcnow()
    reason = _dead_reason(session, now)
    if reason is not None:
        _revoke(session, reason, now)
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=session.user, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """False when the token is unknown or already revoked."""
    session = _live_session(token)
    if session is None:
        return False
    _revoke(session, reason, utcnow())
    return True
