import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def temp_db(monkeypatch, tmp_path):
    import db

    db_path = tmp_path / "test.db"
    monkeypatch.setattr(db, "DB_PATH", str(db_path))
    monkeypatch.setenv("JWT_SECRET", "test-secret")
    monkeypatch.setenv("TOKEN_TTL_DAYS", "7")

    # Reset the connection pool for each test
    db._pool = db.SQLiteConnectionPool(str(db_path), max_connections=10)
    db.init()
    yield str(db_path)
    db._pool.close_all()


def _make_user(username: str, role: str, password: str = "pw-secret"):
    import db
    from auth import hash_password
    from schemas import new_id

    pw_hash, pw_salt = hash_password(password)
    user_id = new_id()
    db.create_user(user_id, username, f"{username}@example.com", pw_hash, pw_salt, role)
    return db.get_user(user_id)


@pytest.fixture
def admin(temp_db):
    return _make_user("root", "admin")


@pytest.fixture
def alice(temp_db):
    return _make_user("alice", "user")


@pytest.fixture
def bob(temp_db):
    return _make_user("bob", "user")


def as_request(caller):
    """Stand-in for the Request the auth middleware has already populated."""
    return SimpleNamespace(state=SimpleNamespace(caller=caller))
