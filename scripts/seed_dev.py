#!/usr/bin/env python
"""Seed a development database with starter message templates.

Gives the safety net something to serve before any provider has answered.

Constraints:
- Refuses to run in staging or prod (LUVV_ENV check)
- Idempotent: templates already present are skipped
- Never runs automatically (manual invocation only)

Usage:
    DATABASE_URL=... python scripts/seed_dev.py
"""

import os
import sys


def main():
    # 1. Environment check (hard fail in staging/prod)
    luvv_env = os.getenv("LUVV_ENV", "local")
    if luvv_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in LUVV_ENV={luvv_env}")
        sys.exit(1)

    # 2. Check DATABASE_URL
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    from luvv.db.engine import create_db_engine
    from luvv.db.seed import seed_templates
    from luvv.db.session import create_session_factory

    session_factory = create_session_factory(create_db_engine(database_url))

    # 3. Idempotent seeding
    with session_factory() as db:
        inserted = seed_templates(db)

    # 4. Report
    db_display = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Database: {db_display}")
    print(f"LUVV_ENV: {luvv_env}")
    print(f"{'✓ Created' if inserted else '• Exists'}: {inserted} starter templates")


if __name__ == "__main__":
    main()
