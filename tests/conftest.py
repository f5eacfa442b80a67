"""Pytest configuration and shared fixtures."""

# Re-export all fixtures from fixtures modules
from tests.fixtures.api import *  # noqa: F401, F403
from tests.fixtures.stores import *  # noqa: F401, F403
