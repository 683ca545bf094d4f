"""Seed the database with one user per role.

Usage:
    python -m backend.scripts.seed
"""

from __future__ import annotations

from backend.app.core.database import SessionLocal
from backend.app.core.security import get_password_hash
import backend.app.models.registry  # noqa: F401
from backend.app.models.user import RoleEnum, User, UserStatus

USERS: list[dict] = [
    {
        "name": "Mawuliah Mansaray",
        "username": "mawuliah",
        "password": "Admin@123",
        "role": RoleEnum.ADMIN,
        "branch": "Freetown",
        "phone": "0777777777",
    },
    {
        "name": "Princess Kamara",
        "username": "princess",
        "password": "Salesperson@123",
        "role": RoleEnum.SALESPERSON,
        "branch": "Bo",
        "phone": "0777777777",
    },
    {
        "name": "Samuel Kamara",
        "username": "samuel",
        "password": "Storekeeper@123",
        "role": RoleEnum.STOREKEEPER,
        "branch": "Makeni",
        "phone": "0777777777",
    },
]


def seed() -> None:
    db = SessionLocal()
    try:
        for entry in USERS:
            data = dict(entry)
            hashed = get_password_hash(data.pop("password"))
            user = db.query(User).filter_by(username=data["username"]).first()
            if user:
                for field, value in data.items():
                    setattr(user, field, value)
                user.hashed_password = hashed
                print(f"Updated user: {user.username} ({user.role.value})")
            else:
                user = User(**data, hashed_password=hashed, status=UserStatus.ACTIVE)
                db.add(user)
                print(f"Created user: {data['username']} ({data['role'].value})")
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    seed()
