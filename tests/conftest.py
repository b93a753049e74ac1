"""Root conftest: shared test configuration."""

import os

# Keep settings off the production database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")
