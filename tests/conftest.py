"""
Pytest configuration shared by unit and browser tests.

Browser tests get their fixtures (``harness_session`` and friends) from the
installed harness pytest plugin; this file only points it at the bundled
test pages.
"""

from dataclasses import replace
from pathlib import Path

import pytest

from harness.config import HarnessConfig

PAGES_DIR = Path(__file__).parent / "pages"


@pytest.fixture(scope="session")
def harness_config() -> HarnessConfig:
    """Environment config serving tests/pages on a free port."""
    return replace(HarnessConfig.from_environment(), html_dir=PAGES_DIR, port=0)


@pytest.fixture
def pages_dir() -> Path:
    return PAGES_DIR
