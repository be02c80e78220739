# scripts/seed_content.py
# Seed idempotente de contenido bilingüe desde un JSON (por defecto el set de ejemplo)
from __future__ import annotations

import argparse

from sqlalchemy.orm import Session

from pagecms.core.logging import configure_logging
from pagecms.db.session import SessionLocal
from pagecms.seeds.content_loader import DEFAULT_SEED_FILE, caller_for_email, load_content_seed_file
from pagecms.services.audit_service import NullAuditSink, SqlAuditSink


def run(admin_email: str, path: str, audit: bool) -> None:
    db: Session = SessionLocal()
    try:
        caller = caller_for_email(db, admin_email)
        sink = SqlAuditSink(db) if audit else NullAuditSink()
        result = load_content_seed_file(db, path, caller=caller, audit=sink)
        print(f"[seed] {path}: created={result.created} updated={result.updated}")
    finally:
        db.close()


def main() -> None:
    configure_logging()
    p = argparse.ArgumentParser(description="Seed bilingual page content from a JSON file")
    p.add_argument("admin_email", help="Existing admin user used as author of the seeded content")
    p.add_argument("--file", default=str(DEFAULT_SEED_FILE), help="Path to the JSON seed file")
    p.add_argument("--audit", action="store_true", help="Record audit entries for each seeded block")
    args = p.parse_args()
    run(args.admin_email, args.file, args.audit)


if __name__ == "__main__":
    main()
