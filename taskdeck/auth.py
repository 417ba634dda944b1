"""Registration, login and stateless bearer-token verification.

Tokens are HS256 JWTs carrying ``{id, name, email}``. Verification never
touches the database: the claims are trusted as of issuance, so a renamed
user keeps the old name in their session until they log in again.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import check_password_hash, generate_password_hash

from .config import TaskDeckConfig
from .db import get_session
from .errors import AuthError, ConflictError, InternalError, ValidationError
from .models import User

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
HASH_METHOD = "pbkdf2:sha256"

LOGIN_FAILED = "Invalid email or password"
INVALID_TOKEN = "Invalid token"
UNAUTHORIZED = "Unauthorized"

# Compared against when the account does not exist, so both login failure
# paths do the same hashing work.
_DUMMY_HASH = generate_password_hash("taskdeck-placeholder", method=HASH_METHOD)


@dataclass(frozen=True)
class AuthUser:
    """Identity claims embedded in a session token."""

    id: str
    name: str
    email: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=HASH_METHOD)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def create_token(cfg: TaskDeckConfig, user: AuthUser, *, now: Optional[datetime] = None) -> str:
    issued = now or datetime.now(timezone.utc)
    payload = {
        **user.to_dict(),
        "iat": issued,
        "exp": issued + timedelta(days=cfg.token_ttl_days),
    }
    return jwt.encode(payload, cfg.jwt_secret, algorithm=JWT_ALGORITHM)


def verify_token(cfg: TaskDeckConfig, token: Optional[str]) -> AuthUser:
    """Return the identity carried by ``token`` or raise AuthError."""
    if not token or not isinstance(token, str):
        raise AuthError(INVALID_TOKEN)
    try:
        payload = jwt.decode(
            token,
            cfg.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp"]},
        )
    except jwt.PyJWTError as exc:
        logger.debug("token rejected: %s", exc)
        raise AuthError(INVALID_TOKEN) from exc

    claims = {key: payload.get(key) for key in ("id", "name", "email")}
    if not all(isinstance(v, str) and v for v in claims.values()):
        raise AuthError(INVALID_TOKEN)
    return AuthUser(**claims)


def token_from_header(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError(UNAUTHORIZED)
    parts = authorization.split(" ")
    if len(parts) != 2 or not parts[1]:
        raise AuthError(UNAUTHORIZED)
    return parts[1]


def register(
    cfg: TaskDeckConfig,
    name: Optional[str],
    email: Optional[str],
    password: Optional[str],
) -> Tuple[Dict[str, Any], str]:
    """Create an account and return ``(public_user, token)``."""
    clean_name = (name or "").strip()
    clean_email = normalize_email(email)
    if not clean_name or not clean_email or not password:
        raise ValidationError("Name, email, and password required")

    try:
        with get_session(cfg.database_url) as s:
            existing = s.execute(select(User.id).where(User.email == clean_email)).first()
            if existing is not None:
                raise ConflictError("Email already registered")

            user = User(name=clean_name, email=clean_email, password=hash_password(password))
            s.add(user)
            try:
                s.commit()
            except IntegrityError as exc:
                # Lost a race against a concurrent registration.
                s.rollback()
                raise ConflictError("Email already registered") from exc
            public = user.to_public()
    except SQLAlchemyError as exc:
        logger.exception("register failed")
        raise InternalError("Failed to create account") from exc

    logger.info("registered user %s", public["id"])
    return public, create_token(cfg, AuthUser(**public))


def login(cfg: TaskDeckConfig, email: Optional[str], password: Optional[str]) -> Tuple[Dict[str, Any], str]:
    """Authenticate and return ``(public_user, token)``.

    Unknown account and wrong password raise the same AuthError so the
    response never reveals whether an email is registered.
    """
    clean_email = normalize_email(email)
    if not clean_email or not password:
        raise ValidationError("Email and password required")

    try:
        with get_session(cfg.database_url) as s:
            user = s.execute(select(User).where(User.email == clean_email)).scalar_one_or_none()
            public = user.to_public() if user else None
            stored_hash = user.password if user else _DUMMY_HASH
    except SQLAlchemyError as exc:
        logger.exception("login lookup failed")
        raise InternalError("Failed to login") from exc

    if not verify_password(stored_hash, password) or public is None:
        logger.info("login rejected")
        raise AuthError(LOGIN_FAILED)

    return public, create_token(cfg, AuthUser(**public))
