import sys
from pathlib import Path

import pytest

# Ensure project root and this directory are on sys.path to allow `import pricewatch`, `import fakes`.
TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
for path in (str(PROJECT_ROOT), str(TESTS_DIR)):
    if path not in sys.path:
        sys.path.insert(0, path)

from fakes import VirtualClock  # noqa: E402
from pricewatch.notifiers.log import NotificationLog  # noqa: E402
from pricewatch.settings import Settings  # noqa: E402
from pricewatch.tracker import PriceTracker  # noqa: E402


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(db_path=tmp_path / "state.db", competitor_delay=10, product_delay=5)


@pytest.fixture
def tracker(settings):
    return PriceTracker(settings.db_path)


@pytest.fixture
def notifications():
    return NotificationLog()
