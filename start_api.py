#!/usr/bin/env python3
"""
Create tables (same process, same DATABASE_URL), then seed, then uvicorn.
Ensures tables exist before seed and app start.
"""
import os
import sys

from shopfloor.core.config import settings
from shopfloor.core.logging_config import configure_logging

configure_logging(settings.LOG_LEVEL)

# 1) Create tables on the embedded store
from shopfloor.db.session import init_db
init_db()

# 2) Initial admin account
from shopfloor.seed import run as run_seed
run_seed()

# 3) Start uvicorn (replace current process); a desktop shell talks to it over loopback
host = os.getenv("HOST", "127.0.0.1")
port = os.getenv("PORT", "8000")
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "shopfloor.main:app", "--host", host, "--port", port],
)
