# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first Admin account.

Run once after the database is reachable (with the project installed,
``pip install -e .``):
    python bin/seed_admin.py

Reads FIRST_ADMIN_USERNAME / _EMAIL / _NAME / _PASSWORD from etc/app.conf or
the environment.  If a user with that email or username already exists it is
promoted to Admin instead; its password is left alone.
"""

from sqlalchemy import or_

from core.config import settings
from core.logger import logger
from core.security import hash_password
from database import SessionLocal, init_db
from models.user import User


def seed():
    if not settings.first_admin_email or not settings.first_admin_password:
        print("[seed_admin] FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return

    email = settings.first_admin_email.strip().lower()
    username = settings.first_admin_username.strip().lower()

    init_db()
    db = SessionLocal()
    try:
        existing = (
            db.query(User)
            .filter(or_(User.email == email, User.username == username))
            .first()
        )
        if existing:
            if existing.role != "Admin":
                existing.role = "Admin"
                db.commit()
                logger.info("seed_admin promoted user_id=%s to Admin", existing.id)
                print(f"[seed_admin] User '{existing.username}' promoted to Admin.")
            else:
                print(f"[seed_admin] Admin '{existing.username}' already exists – skipping.")
            return

        admin = User(
            username=username,
            email=email,
            name=settings.first_admin_name,
            password_hash=hash_password(settings.first_admin_password),
            role="Admin",
        )
        db.add(admin)
        db.commit()
        logger.info("seed_admin created user_id=%s", admin.id)
        print(f"[seed_admin] Admin '{username}' created successfully.")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
