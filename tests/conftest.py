"""Shared test configuration: in-memory database, no scheduler, demo backend"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["STORE_BACKEND"] = "demo"

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402

from app.domain.records import AppState  # noqa: E402
from app.services.seed_data import build_initial_state  # noqa: E402

TODAY = datetime(2025, 2, 7, 12, 0)


@pytest.fixture
def seed_state() -> AppState:
    """The demo seed snapshot"""
    return build_initial_state()


@pytest.fixture
def today() -> datetime:
    """Reference moment the seed data is anchored to (a Friday)"""
    return TODAY
