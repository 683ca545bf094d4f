"""Clear login sessions.

Usage:
    python -m backend.scripts.reset_sessions          # expired and inactive only
    python -m backend.scripts.reset_sessions --all    # every session
"""

from __future__ import annotations

import sys

from backend.app.core.database import SessionLocal
import backend.app.models.registry  # noqa: F401
from backend.app.services.auth_sessions import cleanup_sessions, delete_all_sessions


def main(argv: list[str]) -> None:
    wipe = "--all" in argv
    db = SessionLocal()
    try:
        removed = delete_all_sessions(db) if wipe else cleanup_sessions(db)
        db.commit()
        scope = "all" if wipe else "stale"
        print(f"Removed {removed} {scope} sessions.")
        if wipe:
            print("Every user must log in again.")
    finally:
        db.close()


if __name__ == "__main__":
    main(sys.argv[1:])
