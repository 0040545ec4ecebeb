"""
Script to create a primary (agency administrator) account for local testing.
"""

import argparse
import asyncio
import os
import sys

from fastapi import HTTPException

# Add the project root to sys.path to allow importing from 'app'
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from app.core.database import get_session_context
from app.services.users import create_user, get_by_username
from cohete_shared.schemas.common import UserRole


async def create_admin(username: str, password: str, full_name: str, email: str | None):
    async with get_session_context() as session:
        if await get_by_username(session, username):
            print(f"User {username} already exists.")
            return

        try:
            user = await create_user(
                session,
                full_name=full_name,
                username=username,
                email=email,
                password=password,
                role=UserRole.ADMIN,
                is_primary=True,
            )
        except HTTPException as exc:
            print(f"Could not create user: {exc.detail}")
            sys.exit(1)

        print(f"Created primary user {user.username} ({user.id}).")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local primary admin user.")
    parser.add_argument("--username", required=True, help="Login name")
    parser.add_argument("--password", required=True, help="Password (min 8 characters)")
    parser.add_argument("--full-name", default="Administrador", help="Display name")
    parser.add_argument("--email", default=None, help="Optional email address")

    args = parser.parse_args()

    asyncio.run(create_admin(args.username, args.password, args.full_name, args.email))
