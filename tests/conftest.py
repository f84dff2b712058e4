"""
Pytest configuration for the stream library tests.

This file ensures that the project root is in the Python path so that test
files can import streams, collectors, sources and friends.
"""

import sys
from pathlib import Path

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import pytest

from models import Account, AccountStatus, StreamSettings
from utils import configure, clear_performance_metrics


@pytest.fixture(autouse=True)
def default_settings():
    """Every test starts with default settings and empty performance metrics."""
    configure(StreamSettings())
    clear_performance_metrics()
    yield
    configure(StreamSettings())
    clear_performance_metrics()


@pytest.fixture
def numbers():
    """Sample list used throughout the walkthrough."""
    return [1, 4, 7, 6, 2, 9, 7, 8]


@pytest.fixture
def accounts():
    """Accounts with mixed statuses for grouping examples."""
    return [
        Account(balance=3333, status=AccountStatus.ACTIVE),
        Account(balance=15000, status=AccountStatus.BLOCKED),
        Account(balance=15000, status=AccountStatus.ACTIVE),
        Account(balance=8800, status=AccountStatus.ACTIVE),
        Account(balance=45000, status=AccountStatus.BLOCKED),
        Account(balance=0, status=AccountStatus.REMOVED),
    ]
