"""PostGIS-backed geometry conversions.

This module is the only place that talks to the spatial engine. It exposes
the three conversions the map field needs, each as one parameterized query:

- ``ST_AsGeoJSON(geometry)``
- ``ST_AsGeoJSON(ST_Centroid(geometry))``
- ``ST_AsText(ST_LineMerge(ST_Force3D(ST_GeomFromGeoJSON(geojson))))``

Stored geometries and submitted GeoJSON are always sent as query
parameters, never formatted into the SQL text. Errors PostGIS raises about
the value of a conversion are re-raised as ``GeometryDecodingError`` (stored
value could not be serialized) or ``GeometryParseError`` (submitted GeoJSON
could not be parsed or normalized). Connection failures are not geometry
errors and propagate as the driver raised them.

Example:
    Convert a stored geometry with a live database:
        >>> from map_multilinestring.core.config import get_settings
        >>> engine = get_spatial_engine(get_settings())
        >>> engine.normalize_geojson(
        ...     '{"type":"LineString","coordinates":[[0,0],[1,1]]}'
        ... )
        'LINESTRING Z (0 0 0,1 1 0)'
"""

from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Protocol

import psycopg2

from map_multilinestring.db import database

if TYPE_CHECKING:
    import contextlib
    from collections.abc import Callable, Mapping

    import psycopg2.extensions

    from map_multilinestring.core import config

    ConnectionFactory = Callable[
        [], contextlib.AbstractContextManager[psycopg2.extensions.connection]
    ]

logger = logging.getLogger(__name__)

AS_GEOJSON_SQL = "SELECT ST_AsGeoJSON(%(geometry)s::geometry) AS g"
CENTROID_GEOJSON_SQL = (
    "SELECT ST_AsGeoJSON(ST_Centroid(%(geometry)s::geometry)) AS g"
)
NORMALIZE_GEOJSON_SQL = (
    "SELECT ST_AsText(ST_LineMerge(ST_Force3D("
    "ST_GeomFromGeoJSON(%(geojson)s)))) AS wkt"
)

# PostGIS reports unparsable geometries and GeoJSON as XX000 (InternalError)
# or as data/syntax errors.
VALUE_REJECTED_ERRORS = (
    psycopg2.DataError,
    psycopg2.InternalError,
    psycopg2.ProgrammingError,
)


class GeometryError(RuntimeError):
    """Base class for conversions rejected by the spatial engine."""


class GeometryDecodingError(GeometryError):
    """A stored geometry could not be serialized to GeoJSON."""


class GeometryParseError(GeometryError):
    """Submitted GeoJSON could not be parsed or normalized."""


class SpatialEngineProtocol(Protocol):
    """Protocol for the spatial engine conversions used by the adapter."""

    def as_geojson(self, geometry: str) -> str: ...

    def centroid_geojson(self, geometry: str) -> str: ...

    def normalize_geojson(self, geojson: str) -> str: ...


class PostgisSpatialEngine(SpatialEngineProtocol):
    """Spatial engine running each conversion as one PostGIS query.

    The engine holds no state besides the connection factory. Each call
    opens its own short transaction; pooling and transaction boundaries
    around the enclosing request belong to the caller.
    """

    def __init__(self, connect: ConnectionFactory) -> None:
        """Initialize the engine.

        Args:
            connect: Zero-argument callable returning a context manager
                that yields a psycopg2 connection.
        """
        self._connect = connect

    def _scalar(
        self,
        query: str,
        params: Mapping[str, object],
        error: type[GeometryError],
    ) -> str:
        """Run a single-value query, wrapping value rejections in ``error``.

        Only errors PostGIS raises about the value itself are wrapped;
        connection failures (``OperationalError``) propagate unchanged.
        """
        with self._connect() as conn, conn.cursor() as cur:
            try:
                cur.execute(query, params)
            except VALUE_REJECTED_ERRORS as exc:
                logger.warning("Spatial engine rejected value: %s", exc)
                raise error(str(exc).strip()) from exc
            row = cur.fetchone()

        if row is None or row[0] is None:
            raise error("spatial engine returned no value")
        return str(row[0])

    def as_geojson(self, geometry: str) -> str:
        """Serialize a stored geometry to GeoJSON text.

        Raises:
            GeometryDecodingError: If PostGIS cannot read the stored value.
        """
        return self._scalar(
            AS_GEOJSON_SQL, {"geometry": geometry}, GeometryDecodingError
        )

    def centroid_geojson(self, geometry: str) -> str:
        """Serialize the centroid of a stored geometry to GeoJSON text.

        Raises:
            GeometryDecodingError: If PostGIS cannot read the stored value.
        """
        return self._scalar(
            CENTROID_GEOJSON_SQL, {"geometry": geometry}, GeometryDecodingError
        )

    def normalize_geojson(self, geojson: str) -> str:
        """Parse GeoJSON, force it to 3D, merge lines and return WKT.

        Raises:
            GeometryParseError: If PostGIS cannot parse the GeoJSON.
        """
        return self._scalar(
            NORMALIZE_GEOJSON_SQL, {"geojson": geojson}, GeometryParseError
        )


def get_spatial_engine(settings: config.Settings) -> SpatialEngineProtocol:
    """Factory function to create the PostGIS spatial engine.

    Args:
        settings: Application settings for database connection.

    Returns:
        PostgisSpatialEngine bound to the configured database.
    """
    return PostgisSpatialEngine(
        functools.partial(database.get_connection, settings)
    )
