"""Shared fixtures for core unit tests."""

import pytest


@pytest.fixture
def chain_store(make_store):
    """Tag ``A``: 3 depends on 2 depends on 1; empty tag ``B``."""
    return make_store({"A": {1: [], 2: [1], 3: [2]}, "B": {}})
