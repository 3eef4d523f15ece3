"""Map field for viewing and editing multi-linestring geometries.

On read, the stored geometry is kept as the field value and its GeoJSON and
``[lat, lng]`` centroid are attached as ``geojson`` and ``center`` metadata.
Null geometries get no metadata at all. On write, the submitted GeoJSON is
normalized and assigned only when it differs from the current geometry.

Example:
    Resolve a track for the detail view:
        >>> field = MapMultiLineStringField("Geom", adapter=adapter)
        >>> field.resolve(track)
        >>> field.serialize("detail")["center"]
        [1.0, 0.0]
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from map_multilinestring.fields import base

if TYPE_CHECKING:
    from map_multilinestring.services import geometry_adapter


class MapMultiLineStringField(base.Field):
    """Admin field rendering a multi-linestring geometry on a map.

    Attributes:
        zone: Bounds or area hints forwarded to the map widget.
    """

    component: ClassVar[str] = "map-multi-linestring"

    def __init__(
        self,
        name: str,
        attribute: str | None = None,
        *,
        adapter: geometry_adapter.GeometryAdapter,
        zone: list[Any] | None = None,
        component: str | None = None,
    ) -> None:
        super().__init__(name, attribute, component=component)
        self.adapter = adapter
        self.zone: list[Any] = list(zone or [])
        self.with_meta(zone=self.zone)

    def with_zone(self, zone: list[Any]) -> MapMultiLineStringField:
        self.zone = list(zone)
        self.with_meta(zone=self.zone)
        return self

    def resolve(self, resource: object, attribute: str | None = None) -> None:
        """Resolve the stored geometry and attach its display metadata.

        Raises:
            GeometryDecodingError: If the stored geometry cannot be read.
        """
        super().resolve(resource, attribute)
        self.meta.pop("geojson", None)
        self.meta.pop("center", None)
        payload = self.adapter.to_display(self.value)
        if payload is not None:
            self.with_meta(**payload.as_meta())

    def fill_attribute_from_request(
        self,
        submission: geometry_adapter.Submission,
        model: object,
        attribute: str,
    ) -> bool:
        return self.adapter.reconcile_and_write(model, attribute, submission)
