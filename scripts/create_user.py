"""Create a user account or reset the password of an existing one."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import db
from auth import hash_password
from schemas import new_id


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", required=True, help="Login email of the account")
    parser.add_argument("--password", required=True, help="Plain-text password to hash and store")
    parser.add_argument(
        "--username",
        default=None,
        help="Unique display name (required unless --reset-password is given)",
    )
    parser.add_argument(
        "--role",
        choices=("admin", "user"),
        default="user",
        help="Account role (default: user)",
    )
    parser.add_argument(
        "--reset-password",
        action="store_true",
        help="Update the password of the account with this email instead of creating one",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    db.init()

    existing = db.get_user_by_email(args.email)
    if args.reset_password:
        if existing is None:
            print(f"No account with email {args.email}", file=sys.stderr)
            return 1
        db.update_user_password(existing["id"], *hash_password(args.password))
        print(f"Password updated for {args.email}")
        return 0

    if not args.username:
        parser.error("--username is required when creating an account")
    if existing is not None or db.get_user_by_username(args.username) is not None:
        print(f"An account with email {args.email} or username {args.username} already exists", file=sys.stderr)
        return 1

    pw_hash, pw_salt = hash_password(args.password)
    user_id = new_id()
    db.create_user(user_id, args.username, args.email, pw_hash, pw_salt, args.role)
    print(f"Created {args.role} account {args.username} <{args.email}> ({user_id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
