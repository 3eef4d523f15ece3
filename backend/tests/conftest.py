"""Shared pytest fixtures for the backend test-suite."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import samples

from map_multilinestring.core import config
from map_multilinestring.db import database
from map_multilinestring.services import geometry_adapter


@pytest.fixture
def engine() -> samples.FakeSpatialEngine:
    return samples.FakeSpatialEngine()


@pytest.fixture
def adapter(
    engine: samples.FakeSpatialEngine,
) -> geometry_adapter.GeometryAdapter:
    return geometry_adapter.GeometryAdapter(engine)


@pytest.fixture
def repo() -> database.InMemoryTrackRepository:
    return database.InMemoryTrackRepository()


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()
