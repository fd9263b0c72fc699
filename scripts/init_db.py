import logging
import os
import sys
from pathlib import Path

from sqlalchemy.orm import Session
from werkzeug.security import generate_password_hash

# Ensure repo root is on sys.path when running as a script.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.crm.constants import DEFAULT_ROLE_PERMISSIONS, ROLE_ADMIN
from app.crm.models import RolePermission, User
from scripts._db_utils import script_session

logger = logging.getLogger(__name__)


def seed_role_permissions(s: Session) -> int:
    """
    Insert the default role matrix. Existing rows are never overwritten, so
    grants changed through the admin API survive re-seeding.
    """
    added = 0
    for role, grants in DEFAULT_ROLE_PERMISSIONS.items():
        for perm, allowed in grants.items():
            if s.get(RolePermission, (role, perm)) is None:
                s.add(RolePermission(role=role, permission=perm, allowed=allowed))
                added += 1
    s.flush()
    return added


def ensure_admin_user(s: Session, *, email: str, password: str, name: str) -> User:
    """Does NOT overwrite an existing admin user's password."""
    user = s.query(User).filter(User.email == email).one_or_none()
    if not user:
        user = User(
            email=email,
            name=name,
            password_hash=generate_password_hash(password),
            role=ROLE_ADMIN,
            is_active=True,
        )
        s.add(user)
    elif user.role != ROLE_ADMIN:
        user.role = ROLE_ADMIN
    s.flush()
    return user


def seed_only(*, database_url: str | None = None) -> None:
    """
    Seed the role permission matrix and the admin user in an idempotent way.
    """
    admin_email = (os.environ.get("ADMIN_EMAIL") or "admin@dronetech.cz").strip().lower()
    admin_password = os.environ.get("ADMIN_PASSWORD") or "change-me"
    admin_name = (os.environ.get("ADMIN_NAME") or "Admin User").strip()

    db_url = (database_url or os.environ.get("DATABASE_URL") or "sqlite:///crm.db").strip()

    with script_session(db_url, create_tables=True) as s:
        added = seed_role_permissions(s)
        ensure_admin_user(s, email=admin_email, password=admin_password, name=admin_name)

    print("Initialized database (seed_only).")
    print(f"Role permission rows added: {added}")
    print(f"Admin email: {admin_email}")
    print("Admin password: (from ADMIN_PASSWORD)")


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    seed_only(database_url=None)


if __name__ == "__main__":
    main()
