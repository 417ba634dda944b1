from dataclasses import replace
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from taskdeck import auth
from taskdeck.db import get_session
from taskdeck.errors import AuthError, ConflictError, ValidationError
from taskdeck.models import User


def test_register_then_login_yields_matching_claims(cfg):
    user, token = auth.register(cfg, "Ada Lovelace", "ada@example.com", "s3cret")
    assert set(user) == {"id", "name", "email"}

    logged_in, login_token = auth.login(cfg, "ada@example.com", "s3cret")
    assert logged_in == user

    for t in (token, login_token):
        claims = auth.verify_token(cfg, t)
        assert claims.to_dict() == user


def test_register_normalizes_email_and_trims_name(cfg):
    user, _ = auth.register(cfg, "  Ada ", "  Ada@Example.COM ", "pw")
    assert user["email"] == "ada@example.com"
    assert user["name"] == "Ada"


def test_register_duplicate_normalized_email_conflicts(cfg):
    auth.register(cfg, "Foo", "Foo@x.com", "pw")
    with pytest.raises(ConflictError) as exc:
        auth.register(cfg, "Foo again", "foo@x.com ", "pw2")
    assert exc.value.message == "Email already registered"
    assert exc.value.status_code == 409


@pytest.mark.parametrize("name,email,password", [
    ("", "a@b.c", "pw"),
    ("Ada", "", "pw"),
    ("Ada", "a@b.c", ""),
    ("   ", "a@b.c", "pw"),
    (None, None, None),
])
def test_register_requires_all_fields(cfg, name, email, password):
    with pytest.raises(ValidationError) as exc:
        auth.register(cfg, name, email, password)
    assert exc.value.message == "Name, email, and password required"


def test_password_is_stored_hashed(cfg):
    user, _ = auth.register(cfg, "Ada", "ada@example.com", "s3cret")
    with get_session(cfg.database_url) as s:
        row = s.get(User, user["id"])
        assert row.password != "s3cret"
        assert auth.verify_password(row.password, "s3cret")


def test_login_failures_are_indistinguishable(cfg):
    auth.register(cfg, "Ada", "ada@example.com", "s3cret")

    with pytest.raises(AuthError) as wrong_password:
        auth.login(cfg, "ada@example.com", "nope")
    with pytest.raises(AuthError) as no_account:
        auth.login(cfg, "ghost@example.com", "s3cret")

    assert wrong_password.value.to_dict() == no_account.value.to_dict() == {"message": "Invalid email or password"}


def test_login_is_case_insensitive_on_email(cfg):
    auth.register(cfg, "Ada", "ada@example.com", "s3cret")
    user, _ = auth.login(cfg, " ADA@example.com", "s3cret")
    assert user["email"] == "ada@example.com"


def test_login_requires_email_and_password(cfg):
    with pytest.raises(ValidationError):
        auth.login(cfg, "ada@example.com", "")


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_verify_token_rejects_malformed(cfg, token):
    with pytest.raises(AuthError) as exc:
        auth.verify_token(cfg, token)
    assert exc.value.message == "Invalid token"


def test_verify_token_rejects_other_signing_key(cfg):
    token = auth.create_token(replace(cfg, jwt_secret="someone-else"), auth.AuthUser("1", "Ada", "a@b.c"))
    with pytest.raises(AuthError):
        auth.verify_token(cfg, token)


def test_verify_token_rejects_expired(cfg):
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = auth.create_token(cfg, auth.AuthUser("1", "Ada", "a@b.c"), now=issued)
    with pytest.raises(AuthError):
        auth.verify_token(cfg, token)


def test_token_lifetime_is_seven_days(cfg):
    issued = datetime(2026, 10, 18, tzinfo=timezone.utc)
    token = auth.create_token(cfg, auth.AuthUser("1", "Ada", "a@b.c"), now=issued)
    payload = jwt.decode(token, options={"verify_signature": False})
    assert payload["exp"] - payload["iat"] == 7 * 24 * 3600


def test_verify_token_requires_identity_claims(cfg):
    exp = datetime.now(timezone.utc) + timedelta(days=1)
    token = jwt.encode({"id": "1", "email": "a@b.c", "exp": exp}, cfg.jwt_secret, algorithm="HS256")
    with pytest.raises(AuthError):
        auth.verify_token(cfg, token)


@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer", "Bearer a b", "bearer abc"])
def test_token_from_header_rejects_bad_headers(header):
    with pytest.raises(AuthError) as exc:
        auth.token_from_header(header)
    assert exc.value.message == "Unauthorized"


def test_token_from_header_extracts_token():
    assert auth.token_from_header("Bearer abc.def.ghi") == "abc.def.ghi"
