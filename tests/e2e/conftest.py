"""
Shared test configuration for E2E tests.

E2E tests talk to the Firestore emulator and are skipped unless
FIRESTORE_EMULATOR_HOST is set.
"""

import os

import pytest


def pytest_collection_modifyitems(config, items):
    """Skip emulator tests when no emulator is configured."""
    if os.getenv("FIRESTORE_EMULATOR_HOST"):
        return
    skip = pytest.mark.skip(reason="FIRESTORE_EMULATOR_HOST not set")
    for item in items:
        if "e2e" in item.nodeid:
            item.add_marker(skip)
