#!/usr/bin/env python3
"""Create an account (e.g. the first Admin) without going through /Signup.

Run from project root:
  python scripts/create_account.py "Site Admin" 9999999999 'secret' --role Admin
"""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from karnataka_api.auth.models import PHONE_PATTERN  # noqa: E402
from karnataka_api.auth.repository import AccountRepository, DuplicateAccountError  # noqa: E402
from karnataka_api.core.config import AppConfig  # noqa: E402
from karnataka_api.core.security import hash_password  # noqa: E402
from karnataka_api.core.store import connect_mongo_database  # noqa: E402


def _parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Create a Visit Karnataka account.")
    parser.add_argument("name", help="Display name")
    parser.add_argument("phone", help="Phone number, 10-15 digits (login name)")
    parser.add_argument("password", help="Password (1-128 chars)")
    parser.add_argument("--role", default="", help="Role, defaults to AUTH_DEFAULT_ROLE")
    return parser.parse_args()


def main() -> int:
    load_dotenv()
    args = _parse_args()
    config = AppConfig.from_env()

    phone = args.phone.strip()
    if not re.match(PHONE_PATTERN, phone):
        print("Phone must be 10-15 digits.", file=sys.stderr)
        return 1
    if not 1 <= len(args.password) <= 128:
        print("Password must be 1-128 characters.", file=sys.stderr)
        return 1

    repo = AccountRepository(ROOT, connect_mongo_database(config.store))
    role = args.role.strip() or config.auth.default_role
    try:
        account = repo.create(
            name=args.name.strip(),
            phone=phone,
            password_hash=hash_password(args.password, config.auth.bcrypt_rounds),
            role=role,
        )
    except DuplicateAccountError:
        print(f"Account for phone '{phone}' already exists.", file=sys.stderr)
        return 1
    print(f"Created account {account.user_id} with role '{account.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
