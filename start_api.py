#!/usr/bin/env python3
"""
Run migrations (same process, same DATABASE_URL), then seed, then uvicorn.
Ensures tables exist before seed and app start.
"""
import os
import sys

# 1) Wait for DB
import wait_for_db  # noqa: F401

# 2) Run migrations using the same settings as the app
from app.core.config import settings
from app.core.logging import configure_logging
from alembic.config import Config
from alembic import command

configure_logging(settings.LOG_LEVEL)

alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
command.upgrade(alembic_cfg, "head")

# 3) Seed with its own engine, created *after* migrations
from app.db.session import Database
from app.seed import run as run_seed

seed_database = Database(settings.DATABASE_URL)
seed_db = seed_database.session()
try:
    run_seed(seed_db)
finally:
    seed_db.close()
    seed_database.dispose()

# 4) Start uvicorn (replace current process)
port = os.getenv("PORT", "8000")
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port],
)
