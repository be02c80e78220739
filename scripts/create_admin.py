# scripts/create_admin.py
# Crea (o actualiza) un usuario administrador con password hasheada (bcrypt)
from __future__ import annotations

import argparse

from sqlalchemy import select
from sqlalchemy.orm import Session

from pagecms.core.settings import settings
from pagecms.db.session import SessionLocal
from pagecms.models.auth import User
from pagecms.services.passwords import hash_password


def run(email: str, name: str, password: str, role: str) -> None:
    db: Session = SessionLocal()
    try:
        email = email.strip().lower()
        user = db.scalar(select(User).where(User.email == email))
        if user:
            user.name = name or user.name
            user.role = role
            user.hashed_password = hash_password(password)
            user.is_active = True
            print(f"[OK] Updated {email} (role={role})")
        else:
            user = User(email=email, name=name, role=role, hashed_password=hash_password(password))
            db.add(user)
            print(f"[OK] Created {email} (role={role})")
        db.commit()
        print(f"[OK] user_id={user.id}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main() -> None:
    p = argparse.ArgumentParser(description="Create or update an admin user")
    p.add_argument("email")
    p.add_argument("password")
    p.add_argument("--name", default="Site Admin")
    p.add_argument("--role", default=settings.ADMIN_ROLE, help="Role to assign (default: configured admin role)")
    args = p.parse_args()
    run(args.email, args.name, args.password, args.role)


if __name__ == "__main__":
    main()
