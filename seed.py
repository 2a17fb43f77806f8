"""Startup seeding of the fixture administrator and sample user."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List

import db
from auth import hash_password
from env_validation import get_env_bool
from schemas import new_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeedAccount:
    username: str
    email: str
    password_env: str
    default_password: str
    role: str


SEED_ACCOUNTS = (
    SeedAccount("admin", "admin@dsa.com", "SEED_ADMIN_PASSWORD", "admin_123_09", "admin"),
    SeedAccount("testuser", "user@dsa.com", "SEED_USER_PASSWORD", "user_123_09", "user"),
)


def ensure_seed_users() -> List[str]:
    """Insert each fixture account unless a user with its email already exists.

    Returns the emails of the accounts created by this call.
    """
    if not get_env_bool("SEED_USERS", True):
        logger.info("Seeding disabled via SEED_USERS")
        return []

    created: List[str] = []
    for account in SEED_ACCOUNTS:
        if db.get_user_by_email(account.email):
            continue
        password = os.getenv(account.password_env) or account.default_password
        pw_hash, pw_salt = hash_password(password)
        db.create_user(new_id(), account.username, account.email, pw_hash, pw_salt, account.role)
        logger.info("Seeded %s account %s", account.role, account.email)
        created.append(account.email)
    return created
