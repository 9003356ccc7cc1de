# Add project root to sys.path so pytest can import the sitesmith package
import sys
from pathlib import Path

import pytest

# Insert project root (parent of this tests/ directory) at front of sys.path
# This makes `import sitesmith` work when running `pytest` from the repo root.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sitesmith.nodes import SequentialIds  # noqa: E402


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def clock():
    ticks = iter(range(1_000, 100_000))
    return lambda: float(next(ticks))
