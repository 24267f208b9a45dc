"""Global pytest configuration."""

import os

# Настройки читаются при импорте docvault.core.db
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")
