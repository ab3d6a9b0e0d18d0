"""
Pytest configuration and shared fixtures for the court queue tests.
"""
import os
import random

import pytest

from courtqueue.config import Settings
from courtqueue.domain.queue.engine import AllocationEngine
from courtqueue.domain.queue.store import EntityStore
from courtqueue.logging_config import setup_logging
from tests.helpers import FIXED_NOW


def pytest_configure(config):
    """Configure pytest settings."""
    log_level = os.environ.get("LOG_LEVEL", "INFO")
    setup_logging(log_level)


@pytest.fixture
def store() -> EntityStore:
    """An empty store with the single default group."""
    return EntityStore()


@pytest.fixture
def engine(store: EntityStore) -> AllocationEngine:
    """Engine with a seeded randomness source and a frozen clock."""
    return AllocationEngine(store, rng=random.Random(7), clock=lambda: FIXED_NOW)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway state directory."""
    return Settings(state_dir=str(tmp_path / "state"), auto_fill=False, random_seed=3)
