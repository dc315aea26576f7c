"""
Pytest fixtures for the Prepr sync tests.
"""

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def session():
    """requests.Session stand-in."""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def model():
    """Host data-model handle."""
    return MagicMock()


@pytest.fixture
def cache():
    """Host cache handle backed by a dict."""
    store = {}
    cache = MagicMock()
    cache.get.side_effect = store.get
    cache.set.side_effect = store.__setitem__
    cache.store = store
    return cache
