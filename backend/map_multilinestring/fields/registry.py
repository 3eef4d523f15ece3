"""Explicit registry of field types keyed by component name.

Field types are registered once at application start-up; lookups by an
unknown component name fail loudly instead of falling back to anything.

Example:
    Build the registry and create a field:
        >>> registry = build_registry(settings, engine)
        >>> field = registry.create("map-multi-linestring", "Geom")
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any

from map_multilinestring.fields import base, map_multi_linestring
from map_multilinestring.services import geometry_adapter

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from map_multilinestring.core import config
    from map_multilinestring.services import spatial_engine

    FieldFactory = Callable[..., base.Field]

logger = logging.getLogger(__name__)


class FieldRegistry:
    """Mapping of component names to field constructors."""

    def __init__(self) -> None:
        self._factories: dict[str, FieldFactory] = {}

    def register(self, component: str, factory: FieldFactory) -> None:
        """Register a field constructor under ``component``.

        Raises:
            ValueError: If ``component`` is already registered.
        """
        if component in self._factories:
            raise ValueError(f"field component already registered: {component}")
        self._factories[component] = factory
        logger.debug("Registered field component %s", component)

    def create(self, component: str, *args: Any, **kwargs: Any) -> base.Field:
        """Instantiate the field registered under ``component``.

        Raises:
            KeyError: If no field is registered under ``component``.
        """
        try:
            factory = self._factories[component]
        except KeyError:
            raise KeyError(f"unknown field component: {component}") from None
        return factory(*args, **kwargs)

    def components(self) -> list[str]:
        return sorted(self._factories)

    def __contains__(self, component: object) -> bool:
        return component in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self.components())


def build_registry(
    settings: config.Settings,
    engine: spatial_engine.SpatialEngineProtocol,
) -> FieldRegistry:
    """Register the field types this application ships.

    Args:
        settings: Application settings (component name, default zone).
        engine: Spatial engine the map field converts geometries with.

    Returns:
        Registry with the map multi-linestring field registered.
    """
    registry = FieldRegistry()
    registry.register(
        settings.field_component,
        functools.partial(
            map_multi_linestring.MapMultiLineStringField,
            adapter=geometry_adapter.GeometryAdapter(engine),
            zone=settings.default_zone,
            component=settings.field_component,
        ),
    )
    return registry
