"""
Authentication Service

WHY: Every sale, payment, expense and cash cut records who did it. Staff
sign in with email + password; the label stored on records is the display
name (or the email when no display name is set).

Self-registration is gated by a shared shop secret (REGISTRATION_KEY):
anyone who knows it can create a staff account, nobody else can.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import hmac
import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from shoppos.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8
BCRYPT_ROUNDS = 12

# (pattern, message) pairs checked in order; first failure wins
PASSWORD_RULES = (
    (r"[A-Z]", "Password must contain at least one uppercase letter"),
    (r"[a-z]", "Password must contain at least one lowercase letter"),
    (r"\d", "Password must contain at least one digit"),
    (r"[!@#$%^&*(),.'\":{}|<>?_\-+=/\\\[\];~`]", "Password must contain at least one special character"),
)


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""


class RegistrationDeniedError(Exception):
    """Raised when the registration key is missing or wrong."""


def validate_password_strength(password: str) -> None:
    """Raises PasswordValidationError naming the first rule the password breaks."""
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    for pattern, message in PASSWORD_RULES:
        if not re.search(pattern, password):
            raise PasswordValidationError(message)


def hash_password(password: str) -> str:
    validate_password_strength(password)
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw compares in constant time; a malformed stored hash is a mismatch."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def actor_label(user: User) -> str:
    """Name stored on the records a user creates: display name, else email."""
    return (user.display_name or "").strip() or user.email


def create_user(email: str, password: str, display_name: str | None = None) -> User:
    """
    Create a staff account.

    Raises:
        ValueError: email missing or already registered
        PasswordValidationError: password doesn't meet requirements
    """
    email = normalize_email(email)
    if not email or "@" not in email:
        raise ValueError("A valid email is required")

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise ValueError("Email already registered")

    password_hash = hash_password(password)

    user = User(
        email=email,
        display_name=(display_name or "").strip() or None,
        password_hash=password_hash,
    )
    db.session.add(user)
    db.session.commit()
    return user


def register_user(email: str, password: str, display_name: str, registration_key: str | None) -> User:
    """
    Self-registration from the sign-up screen.

    The registration key must match REGISTRATION_KEY and a display name is
    required (it is what receipts and the dashboard show).

    Raises:
        RegistrationDeniedError: wrong or missing registration key
        ValueError: missing display name, bad or duplicate email
        PasswordValidationError: weak password
    """
    expected = current_app.config.get("REGISTRATION_KEY") or ""
    if not expected or not hmac.compare_digest(str(registration_key or ""), expected):
        raise RegistrationDeniedError("Invalid registration key")

    if not (display_name or "").strip():
        raise ValueError("display_name is required")

    user = create_user(email=email, password=password, display_name=display_name)
    current_app.logger.info("Registered user %s", user.email)
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password or "", user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
