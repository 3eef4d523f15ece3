"""Data models for tracks and their map display payload.

This module defines the data structures shared by the repositories, the
geometry adapter and the field layer. ``TrackRecord`` is the resource an
editor works on; its ``geom`` attribute holds the opaque stored geometry
(the hex EWKB string psycopg2 returns for a geometry column, or WKT text
right after a write-back). ``DisplayPayload`` is the transient, request
scoped value handed to the map widget.

Example:
    Creating a track and its display payload:
        >>> from map_multilinestring.db.models import (
        ...     DisplayPayload, TrackRecord,
        ... )
        >>> track = TrackRecord(id="1", name="Ridge path", geom=None)
        >>> payload = DisplayPayload(
        ...     geojson='{"type":"MultiLineString","coordinates":[[[0,0],[0,2]]]}',
        ...     center=(1.0, 0.0),
        ... )
        >>> payload.as_meta()["center"]
        [1.0, 0.0]
"""

from __future__ import annotations

import dataclasses
from typing import Any

LatLng = tuple[float, float]

TRACKED_ATTRIBUTES = ("name", "geom")


@dataclasses.dataclass(frozen=True)
class DisplayPayload:
    """GeoJSON and centroid of a stored geometry, ready for the map widget.

    ``center`` is ordered ``(latitude, longitude)``, the reverse of GeoJSON's
    ``[longitude, latitude]``, because the map widget consumes lat/lng pairs
    directly. It is ``None`` for an empty geometry, whose centroid has no
    coordinates.

    Attributes:
        geojson: GeoJSON text of the stored geometry.
        center: Centroid as ``(lat, lng)``, or None for empty geometries.
    """

    geojson: str
    center: LatLng | None

    def as_meta(self) -> dict[str, Any]:
        """Return the payload as the field metadata sent to the front-end."""
        return {
            "geojson": self.geojson,
            "center": list(self.center) if self.center is not None else None,
        }


@dataclasses.dataclass
class TrackRecord:
    """A named track whose geometry is edited through the map field.

    The record remembers the values it was loaded with so that callers can
    tell which attributes were actually changed by a request. Repositories
    call ``sync_original`` after persisting.

    Attributes:
        id: Unique identifier of the track.
        name: Human-readable track name.
        geom: Stored geometry (hex EWKB or WKT text), or None.
    """

    id: str
    name: str
    geom: str | None = None
    _original: dict[str, Any] = dataclasses.field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self.sync_original()

    def sync_original(self) -> None:
        """Mark the current attribute values as the persisted state."""
        self._original = {
            attribute: getattr(self, attribute)
            for attribute in TRACKED_ATTRIBUTES
        }

    def get_dirty(self) -> dict[str, Any]:
        """Return the attributes changed since load or the last sync."""
        return {
            attribute: getattr(self, attribute)
            for attribute in TRACKED_ATTRIBUTES
            if getattr(self, attribute) != self._original.get(attribute)
        }

    def is_dirty(self) -> bool:
        return bool(self.get_dirty())
