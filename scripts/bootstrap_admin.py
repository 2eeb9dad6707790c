#!/usr/bin/env python3
"""Administrator bootstrap utility for Tokengate.

Creates (or reactivates) an administrator and prints a session token that
can be used as ``Authorization: Bearer <session>`` on the token
management endpoints.

Usage:
    python scripts/bootstrap_admin.py --email ops@example.com
    python scripts/bootstrap_admin.py --email ops@example.com --invalidate-sessions

Requires DATABASE_URL and SESSION_SECRET_KEY in the environment.
"""

import argparse
import asyncio
import sys

from sqlalchemy import select


async def _bootstrap(email: str, display_name: str | None, invalidate: bool, minutes: int | None):
    from tokengate.core import async_session_maker, engine
    from tokengate.models import AdminUser
    from tokengate.services.admin_session import create_session_token

    async with async_session_maker() as session:
        result = await session.execute(select(AdminUser).where(AdminUser.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            user = AdminUser(email=email, display_name=display_name)
            session.add(user)
            print(f"Created admin {email} (tenant={user.tenant})")
        else:
            user.is_active = True
            if invalidate:
                user.session_version += 1
                print(f"Invalidated existing sessions for {email}")
            print(f"Admin {email} already exists (tenant={user.tenant})")
        await session.commit()
        await session.refresh(user)
        token = create_session_token(user, expires_minutes=minutes)

    await engine.dispose()
    return token


def main():
    parser = argparse.ArgumentParser(description="Create a Tokengate administrator")
    parser.add_argument("--email", required=True, help="Administrator email (sets the tenant)")
    parser.add_argument("--display-name", help="Optional display name")
    parser.add_argument(
        "--invalidate-sessions",
        action="store_true",
        help="Bump the session version so previously printed sessions stop working",
    )
    parser.add_argument(
        "--expires-minutes",
        type=int,
        help="Session lifetime (default: SESSION_TOKEN_EXPIRE_MINUTES)",
    )
    args = parser.parse_args()

    if "@" not in args.email:
        print("ERROR: --email must be an email address")
        sys.exit(1)

    from tokengate.core import settings

    if not settings.session_secret_key:
        print("ERROR: SESSION_SECRET_KEY is not set")
        sys.exit(1)

    token = asyncio.run(
        _bootstrap(
            args.email.strip().lower(),
            args.display_name,
            args.invalidate_sessions,
            args.expires_minutes,
        )
    )
    print()
    print("Session token:")
    print(token)


if __name__ == "__main__":
    main()
