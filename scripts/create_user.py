"""
Create a user, or update the role/password of an existing one.

Usage:
  python scripts/create_user.py --email rep@dronetech.cz --name "Jan Novák" --role INTERNAL --password secret123
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from werkzeug.security import generate_password_hash

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.crm.constants import ROLES
from app.crm.models import User
from app.crm.utils import is_valid_email
from scripts._db_utils import script_session


def create_or_update_user(db_url: str, *, email: str, name: str | None, role: str, password: str | None) -> str:
    email = email.strip().lower()
    if not is_valid_email(email):
        raise ValueError(f"Invalid email: {email}")
    if role not in ROLES:
        raise ValueError(f"Invalid role {role}; expected one of {', '.join(ROLES)}")
    if password is not None and len(password) < 8:
        raise ValueError("Password must be at least 8 characters.")

    with script_session(db_url, create_tables=True) as s:
        user = s.query(User).filter(User.email == email).one_or_none()
        if user is None:
            if not password:
                raise ValueError("Password is required for a new user.")
            s.add(User(email=email, name=name, role=role, password_hash=generate_password_hash(password), is_active=True))
            return "created"
        user.role = role
        if name:
            user.name = name
        if password:
            user.password_hash = generate_password_hash(password)
        return "updated"


def main() -> None:
    p = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    p.add_argument("--email", required=True)
    p.add_argument("--name")
    p.add_argument("--role", default="EXTERNAL", choices=ROLES)
    p.add_argument("--password")
    p.add_argument("--database-url", default=os.environ.get("DATABASE_URL") or "sqlite:///crm.db")
    args = p.parse_args()

    try:
        outcome = create_or_update_user(
            args.database_url, email=args.email, name=args.name, role=args.role, password=args.password
        )
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"User {args.email} {outcome} (role={args.role}).")


if __name__ == "__main__":
    main()
