"""Root conftest — shared test configuration."""

import os

# Never let tests pick up a developer's real database
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FORMAT", "text")
