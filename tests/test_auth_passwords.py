from datetime import datetime, timedelta, timezone

import jwt
import pytest

import auth
import db
from errors import InvalidCredentials, Unauthorized


def test_hash_password_uses_random_salt():
    first_hash, first_salt = auth.hash_password("S3cur3!Pass")
    second_hash, second_salt = auth.hash_password("S3cur3!Pass")

    assert len(first_salt) == 32
    assert first_salt != second_salt
    assert first_hash != second_hash
    assert auth.verify_password("S3cur3!Pass", first_hash, first_salt)
    assert not auth.verify_password("wrong", first_hash, first_salt)


def test_verify_password_rejects_missing_or_bad_salt():
    pw_hash, _ = auth.hash_password("secret")
    assert not auth.verify_password("secret", pw_hash, None)
    assert not auth.verify_password("secret", pw_hash, "not-hex")


def test_login_returns_token_and_profile(alice):
    result = auth.login("alice@example.com", "pw-secret")

    assert result["username"] == "alice"
    assert result["email"] == "alice@example.com"
    assert result["role"] == "user"
    claims = jwt.decode(result["token"], "test-secret", algorithms=["HS256"])
    assert claims["id"] == alice["id"]
    assert claims["role"] == "user"
    assert claims["exp"] - claims["iat"] == int(timedelta(days=7).total_seconds())


@pytest.mark.parametrize("email,password", [
    ("alice@example.com", "wrong-password"),
    ("nobody@example.com", "pw-secret"),
])
def test_login_rejects_bad_credentials(alice, email, password):
    with pytest.raises(InvalidCredentials) as excinfo:
        auth.login(email, password)
    assert excinfo.value.status_code == 401
    assert excinfo.value.message == "Invalid credentials"


def test_resolve_caller_returns_full_record(admin):
    token = auth.issue_token(admin)
    caller = auth.resolve_caller(token)
    assert caller["id"] == admin["id"]
    assert caller["role"] == "admin"
    assert auth.is_admin(caller)


def test_resolve_caller_rejects_expired_token(alice):
    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = auth.issue_token(alice, now=issued)
    with pytest.raises(Unauthorized, match="Token expired"):
        auth.resolve_caller(token)


def test_resolve_caller_rejects_foreign_signature(alice):
    token = jwt.encode({"id": alice["id"], "role": "user"}, "other-secret", algorithm="HS256")
    with pytest.raises(Unauthorized, match="Invalid token"):
        auth.resolve_caller(token)


@pytest.mark.parametrize("token", [None, "", "garbage"])
def test_resolve_caller_rejects_missing_or_garbage_token(temp_db, token):
    with pytest.raises(Unauthorized):
        auth.resolve_caller(token)


def test_resolve_caller_rejects_token_of_removed_user(alice):
    token = auth.issue_token(alice)
    db._exec("DELETE FROM users WHERE id = ?", (alice["id"],))
    with pytest.raises(Unauthorized, match="User not found"):
        auth.resolve_caller(token)


@pytest.mark.parametrize("header", [None, "", "Bearer", "Token abc", "Bearer a b", "abc"])
def test_extract_bearer_rejects_malformed_headers(header):
    with pytest.raises(Unauthorized):
        auth.extract_bearer(header)


def test_extract_bearer_accepts_any_case_prefix():
    assert auth.extract_bearer("Bearer abc.def") == "abc.def"
    assert auth.extract_bearer("bearer  xyz ") == "xyz"


def test_token_ttl_follows_environment(monkeypatch, alice):
    monkeypatch.setenv("TOKEN_TTL_DAYS", "1")
    token = auth.issue_token(alice)
    claims = jwt.decode(token, "test-secret", algorithms=["HS256"])
    assert claims["exp"] - claims["iat"] == 86400


def test_resolve_caller_rejects_token_without_expiry(alice):
    token = jwt.encode({"id": alice["id"], "role": "user"}, "test-secret", algorithm="HS256")
    with pytest.raises(Unauthorized, match="Invalid token"):
        auth.resolve_caller(token)
