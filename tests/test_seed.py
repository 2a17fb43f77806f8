import auth
import db
import seed


def test_seeding_creates_fixture_accounts_once(temp_db):
    created = seed.ensure_seed_users()
    assert created == ["admin@dsa.com", "user@dsa.com"]

    admin = db.get_user_by_email("admin@dsa.com")
    user = db.get_user_by_email("user@dsa.com")
    assert (admin["username"], admin["role"]) == ("admin", "admin")
    assert (user["username"], user["role"]) == ("testuser", "user")

    assert seed.ensure_seed_users() == []
    rows = db._query("SELECT COUNT(*) AS n FROM users")
    assert rows[0]["n"] == 2


def test_seeded_accounts_can_log_in_with_default_passwords(temp_db):
    seed.ensure_seed_users()
    assert auth.login("admin@dsa.com", "admin_123_09")["role"] == "admin"
    assert auth.login("user@dsa.com", "user_123_09")["role"] == "user"


def test_seed_password_from_environment(temp_db, monkeypatch):
    monkeypatch.setenv("SEED_ADMIN_PASSWORD", "from-env")
    seed.ensure_seed_users()
    assert auth.login("admin@dsa.com", "from-env")["username"] == "admin"


def test_seeding_skips_existing_email(temp_db):
    db.create_user("existing", "someone", "user@dsa.com", "hash", "salt", "user")
    assert seed.ensure_seed_users() == ["admin@dsa.com"]
    assert db.get_user_by_email("user@dsa.com")["username"] == "someone"


def test_seeding_can_be_disabled(temp_db, monkeypatch):
    monkeypatch.setenv("SEED_USERS", "0")
    assert seed.ensure_seed_users() == []
    assert db.get_user_by_email("admin@dsa.com") is None
