"""Shared fixtures for the beads comments tests."""

import pytest

from beads_comments.tests.factories import FakeServices


@pytest.fixture
def services() -> FakeServices:
    """Fresh fake indexer and profile API for one test."""
    return FakeServices()
