"""Pytest configuration for integration tests.

Run with ``pytest integration_tests``; the default test paths only cover
``tests/``.
"""

import pytest


def pytest_collection_modifyitems(items):
    """Mark everything under integration_tests as an integration test."""
    for item in items:
        if "integration_tests" in str(item.path):
            item.add_marker(pytest.mark.integration)
