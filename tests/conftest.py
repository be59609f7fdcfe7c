"""Shared fixtures."""

from unittest.mock import MagicMock

import pytest

from mqtt2tsdb.shared.database import ReadingsStorage


@pytest.fixture
def storage() -> MagicMock:
    """Storage double whose connection is live."""
    return MagicMock(spec=ReadingsStorage)
