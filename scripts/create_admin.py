#!/usr/bin/env python3
"""Provision an admin account; admins cannot self-register."""

import argparse
import asyncio
import getpass
import sys

from clinic_booking.core.exceptions import DuplicateRecordException
from clinic_booking.core.security import get_password_hash
from clinic_booking.database import AsyncSessionLocal, engine
from clinic_booking.models.accounts import accounts
from clinic_booking.schemas.accounts import AccountRole, normalize_email
from clinic_booking.services.record_store import RecordStore


async def create_admin(name: str, email: str, password: str) -> int:
    """Insert the admin account."""
    async with AsyncSessionLocal() as session:
        store = RecordStore(session)
        try:
            account = await store.create(
                accounts,
                {
                    "name": name,
                    "email": normalize_email(email),
                    "password_hash": get_password_hash(password),
                    "role": AccountRole.ADMIN.value,
                },
            )
        except DuplicateRecordException:
            print(f"❌ Email already registered: {email}")
            return 1

    await engine.dispose()
    print(f"✅ Admin created: {account['id']}")
    return 0


def main() -> int:
    """Parse arguments and create the admin."""
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("--name", required=True)
    parser.add_argument("--email", required=True)
    args = parser.parse_args()

    password = getpass.getpass("Password: ")
    if len(password) < 6:
        print("❌ Password must be at least 6 characters")
        return 1

    return asyncio.run(create_admin(args.name, args.email, password))


if __name__ == "__main__":
    sys.exit(main())
