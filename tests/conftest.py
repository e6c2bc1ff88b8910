# tests/conftest.py
"""
Pytest configuration.

Environment is set before any application import so Settings and the
module-level engine never point at a real database.
"""

import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("CI", "1")

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402


@pytest.fixture
def fixed_now() -> datetime:
    """Wednesday of ISO week 11, 2024."""
    return datetime(2024, 3, 13, 12, 0, tzinfo=timezone.utc)
