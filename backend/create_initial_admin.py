# backend/create_initial_admin.py
"""
Create (or re-activate) the first portal administrator.

    python create_initial_admin.py --username admin --email admin@example.org

The password is read from INITIAL_ADMIN_PASSWORD, or --password.
"""

import argparse
import os

from memberdb.database import WriteSessionLocal
from memberdb.security import get_password_hash
from memberdb.apps.accounts import models


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the initial admin account.")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", default="admin@member.local")
    parser.add_argument(
        "--password",
        default=os.getenv("INITIAL_ADMIN_PASSWORD"),
        help="Defaults to $INITIAL_ADMIN_PASSWORD.",
    )
    args = parser.parse_args()

    if not args.password:
        parser.error("--password or INITIAL_ADMIN_PASSWORD is required")

    db = WriteSessionLocal()
    try:
        email = args.email.lower().strip()

        existing = (
            db.query(models.User)
            .filter((models.User.email == email) | (models.User.username == args.username))
            .first()
        )
        if existing:
            existing.role = models.AccountRole.ADMIN
            existing.is_active = True
            existing.is_verified = True
            db.add(existing)
            db.commit()
            print(f"[INFO] User already exists, ensured admin: id={existing.id}, email={existing.email}")
            return

        user = models.User(
            username=args.username,
            email=email,
            role=models.AccountRole.ADMIN,
            is_active=True,
            is_verified=True,
            hashed_password=get_password_hash(args.password),
        )

        db.add(user)
        db.commit()
        db.refresh(user)

        print("[OK] Created admin user:")
        print(f"  id:       {user.id}")
        print(f"  username: {user.username}")
        print(f"  email:    {user.email}")
        print(f"  role:     {user.role.value}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
