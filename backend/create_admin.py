"""One-time script to create an admin user.

Usage:
    python -m backend.create_admin
"""

from __future__ import annotations

import getpass

from backend.app.core.database import SessionLocal
from backend.app.core.security import get_password_hash, validate_password_strength

# Import all models so SQLAlchemy resolves relationships
import backend.app.models.registry  # noqa: F401

from backend.app.models.user import RoleEnum, User, UserStatus
from backend.app.services.user_management import normalize_username


def main() -> None:
    username = normalize_username(input("Username [admin]: ") or "admin")
    name = input("Full name [Administrator]: ").strip() or "Administrator"
    password = getpass.getpass("Password: ")
    if not password:
        print("Error: password cannot be empty.")
        return
    pw_error = validate_password_strength(password)
    if pw_error:
        print(f"Error: {pw_error}")
        return

    db = SessionLocal()
    try:
        existing = db.query(User).filter(User.username == username).first()
        if existing:
            # Reset password, reactivate and promote
            existing.hashed_password = get_password_hash(password)
            existing.status = UserStatus.ACTIVE
            existing.role = RoleEnum.ADMIN
            db.commit()
            print("Admin user already exists, password reset.")
            print(f"  ID:       {existing.id}")
            print(f"  Username: {username}")
            return

        user = User(
            name=name,
            username=username,
            hashed_password=get_password_hash(password),
            role=RoleEnum.ADMIN,
            status=UserStatus.ACTIVE,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        print("Admin user created successfully!")
        print(f"  ID:       {user.id}")
        print(f"  Username: {username}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
