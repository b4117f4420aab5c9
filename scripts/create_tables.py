"""Create database tables in the configured database.

Reads DATABASE_URL from .env / environment and creates all registered ORM tables.

Usage:
  python scripts/create_tables.py
"""

from __future__ import annotations

import pathlib
import sys

from dotenv import load_dotenv
from sqlalchemy import text

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from spinwin.config import resolve_database_url  # noqa: E402
from spinwin.db import create_app_engine  # noqa: E402
from spinwin.models.base import Base  # noqa: E402

# Import models so they register with Base.metadata
from spinwin import models  # noqa: E402,F401


def main() -> int:
    """Create all ORM tables in the target database."""

    load_dotenv()
    env_local = PROJECT_ROOT / ".env.local"
    if env_local.exists():
        load_dotenv(dotenv_path=env_local, override=True)

    engine = create_app_engine(resolve_database_url())
    Base.metadata.create_all(bind=engine)

    # create_all() does not add constraints to existing tables.
    # For PostgreSQL, apply the single-play guarantee idempotently.
    if engine.dialect.name == "postgresql":
        ddl = [
            "CREATE UNIQUE INDEX IF NOT EXISTS uq_participants_campaign_email ON participants (campaign_id, email)",
            "CREATE INDEX IF NOT EXISTS ix_prizes_campaign_sort ON prizes (campaign_id, sort_order)",
        ]
        with engine.begin() as conn:
            for stmt in ddl:
                conn.execute(text(stmt))

    print("Tables created (or already exist).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
