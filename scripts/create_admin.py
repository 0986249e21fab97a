#!/usr/bin/env python3
"""
Create an admin account, or grant admin to an existing one.

Admins can only be made from the command line; the API never lets a user raise their own role.

Run from project root:
  python scripts/create_admin.py admin@example.com 'S3cretpass'
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from cloud_variables.core.config import Settings
from cloud_variables.core.errors import AppError
from cloud_variables.db.base import Base
from cloud_variables.db.session import create_db_engine, create_session_factory
from cloud_variables.models.user import User, UserRole
from cloud_variables.services.tier_service import TierService
from cloud_variables.services.user_service import UserService, normalize_email
from cloud_variables.utils.auth import CredentialIssuer


def main() -> None:
    parser = argparse.ArgumentParser(description="Create or promote an admin account")
    parser.add_argument("email")
    parser.add_argument("password", nargs="?", help="required when the account does not exist yet")
    args = parser.parse_args()

    settings = Settings.from_env()
    engine = create_db_engine(settings.database_url)
    Base.metadata.create_all(bind=engine)
    sess = create_session_factory(engine)()

    try:
        tiers = TierService(sess, settings.default_tier_name)
        tiers.seed_default_tiers()

        user = sess.query(User).filter(User.email == normalize_email(args.email)).first()
        if user:
            user.role = UserRole.ADMIN.value
            sess.commit()
            print(f"✅ {user.email} is now an admin")
            return

        if not args.password:
            print("ERROR: password is required to create a new account")
            sys.exit(1)
        users = UserService(sess, CredentialIssuer.from_settings(settings), tiers)
        user, _ = users.register(args.email, args.password, role=UserRole.ADMIN.value)
        print(f"✅ Created admin {user.email} (id={user.id})")
    except AppError as e:
        print(f"ERROR: {e.message}")
        sys.exit(1)
    finally:
        sess.close()
        engine.dispose()


if __name__ == "__main__":
    main()
