import pytest

from booster.config import Config
from booster.core.store import SQLiteStore

from tests.fakes import RecordingSleep


@pytest.fixture
def config():
    """Default configuration, isolated from BOOSTER_* environment variables."""
    return Config(use_env=False)


@pytest.fixture
def store(tmp_path):
    return SQLiteStore(tmp_path / "booster.db")


@pytest.fixture
def sleep():
    return RecordingSleep()
