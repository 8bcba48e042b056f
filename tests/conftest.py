import sys
from pathlib import Path

import pytest

# Ensure project root on sys.path so 'delayed_assertions' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from delayed_assertions.config import ASSERTION_SETTINGS, QUEUE_SETTINGS  # noqa: E402

# Same name as the pytest11 entry point, so an installed package is not registered twice.
pytest_plugins = ["pytester", "delayed_assertions.pytest_plugin"]


@pytest.fixture(autouse=True)
def _isolate_settings():
    """Restore the mutable settings dicts after tests that monkeypatch them."""
    queue_settings = dict(QUEUE_SETTINGS)
    assertion_settings = dict(ASSERTION_SETTINGS)
    yield
    QUEUE_SETTINGS.clear()
    QUEUE_SETTINGS.update(queue_settings)
    ASSERTION_SETTINGS.clear()
    ASSERTION_SETTINGS.update(assertion_settings)
