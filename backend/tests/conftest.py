"""Root conftest: shared test configuration."""

import os

# Route tests import tracker.main, which reads settings at import time
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("LOG_FORMAT", "text")
