"""Shared test fixtures for hubdrivers tests."""

import pytest

from hubdrivers.config import get_hub_config
from hubdrivers.registry import reset_driver


@pytest.fixture(autouse=True)
def clean_hub_state():
    """Clear cached config and the driver singleton around every test."""
    get_hub_config.cache_clear()
    reset_driver()

    yield

    get_hub_config.cache_clear()
    reset_driver()
