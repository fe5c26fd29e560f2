"""Shared pytest fixtures for the sollsp test suite."""

from __future__ import annotations

import pytest

from sollsp.compiler import find_solc


@pytest.fixture
def needs_solc():
    """Skip test if no solc compiler is available."""
    if find_solc() is None:
        pytest.skip("no solc compiler available")
