"""Pytest configuration and fixtures."""

import pytest

from quote_intel.config.settings import Settings


@pytest.fixture
def settings():
    """Provide settings fixture."""
    return Settings()
