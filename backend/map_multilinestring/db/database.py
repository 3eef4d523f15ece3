"""Database helpers and repositories for track records."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any, Protocol

import psycopg2
import psycopg2.extensions
import psycopg2.extras
from psycopg2 import sql

from map_multilinestring.db import models as db_models

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from map_multilinestring.core import config

logger = logging.getLogger(__name__)


class TrackRepositoryProtocol(Protocol):
    """Protocol interface for storing and retrieving tracks.

    Implementations provide persistence for TrackRecord objects,
    supporting both in-memory (testing) and PostgreSQL (production) backends.
    """

    def get(self, track_id: str) -> db_models.TrackRecord | None: ...

    def all(self) -> Iterable[db_models.TrackRecord]: ...

    def add(self, track: db_models.TrackRecord) -> db_models.TrackRecord: ...

    def save(self, track: db_models.TrackRecord) -> bool: ...


class InMemoryTrackRepository(TrackRepositoryProtocol):
    """Simple in-memory store for tests and local development.

    Stores track records in a dictionary. Data is lost when the process
    exits. ``writes`` counts the saves that actually persisted something,
    which lets tests observe no-op updates.
    """

    def __init__(self) -> None:
        """Initialize an empty in-memory repository."""
        self._store: dict[str, db_models.TrackRecord] = {}
        self.writes = 0

    def get(self, track_id: str) -> db_models.TrackRecord | None:
        """Retrieve a track by ID.

        Args:
            track_id: Unique identifier for the track.

        Returns:
            TrackRecord if found, None otherwise.
        """
        return self._store.get(track_id)

    def all(self) -> Iterable[db_models.TrackRecord]:
        return self._store.values()

    def add(self, track: db_models.TrackRecord) -> db_models.TrackRecord:
        """Add or replace a track in the repository.

        Args:
            track: Track record to store.

        Returns:
            The stored track record.
        """
        self._store[track.id] = track
        track.sync_original()
        return track

    def save(self, track: db_models.TrackRecord) -> bool:
        """Persist the dirty attributes of a track.

        Args:
            track: Track record previously returned by this repository.

        Returns:
            True if something was written, False for a clean record.
        """
        if not track.is_dirty():
            return False
        self._store[track.id] = track
        track.sync_original()
        self.writes += 1
        return True


class PostgresTrackRepository(TrackRepositoryProtocol):
    """PostgreSQL/PostGIS-backed repository for tracks.

    Persists tracks to a table whose geometry column accepts any geometry
    type, so both ``MULTILINESTRING Z`` values and the ``LINESTRING Z``
    values produced by line merging fit. The column is typed with the
    configured SRID; written values are WKT without an SRID, so every write
    goes through ``ST_SetSRID`` and keeps the column's SRID. The PostGIS
    extension and the table are created on initialization.
    """

    CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS {table} (
      id TEXT PRIMARY KEY,
      name TEXT NOT NULL,
      {column} geometry(GeometryZ, {srid})
    );
    """

    def __init__(self, settings: config.Settings) -> None:
        """Initialize repository with database settings.

        Args:
            settings: Application settings containing the connection URL
                and the table/column names.
        """
        self.settings = settings
        self._table = sql.Identifier(settings.track_table)
        self._column = sql.Identifier(settings.geometry_column)
        self._geometry_value = sql.SQL(
            "ST_SetSRID(%(geom)s::geometry, %(srid)s)"
        )
        self._ensure_schema()

    def _connection(self) -> contextlib.AbstractContextManager[
        psycopg2.extensions.connection
    ]:
        return get_connection(self.settings)

    def _ensure_schema(self) -> None:
        """Ensure PostGIS extension and the track table exist."""
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute("CREATE EXTENSION IF NOT EXISTS postgis;")
            cur.execute(
                sql.SQL(self.CREATE_TABLE_SQL).format(
                    table=self._table,
                    column=self._column,
                    srid=sql.Literal(self.settings.geometry_srid),
                )
            )

    def _select(self) -> sql.Composed:
        return sql.SQL("SELECT id, name, {column} AS geom FROM {table}").format(
            table=self._table, column=self._column
        )

    def get(self, track_id: str) -> db_models.TrackRecord | None:
        with self._connection() as conn, conn.cursor(
            cursor_factory=psycopg2.extras.RealDictCursor
        ) as cur:
            cur.execute(
                self._select() + sql.SQL(" WHERE id = %(id)s"),
                {"id": track_id},
            )
            row = cur.fetchone()
            if row is None:
                return None
            else:
                return self._from_row(row)

    def all(self) -> Iterable[db_models.TrackRecord]:
        with self._connection() as conn, conn.cursor(
            cursor_factory=psycopg2.extras.RealDictCursor
        ) as cur:
            cur.execute(self._select() + sql.SQL(" ORDER BY name"))
            rows = cur.fetchall()
        return [self._from_row(row) for row in rows]

    def add(self, track: db_models.TrackRecord) -> db_models.TrackRecord:
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(
                sql.SQL(
                    """
                    INSERT INTO {table} (id, name, {column})
                    VALUES (%(id)s, %(name)s, {geometry_value})
                    ON CONFLICT (id) DO UPDATE SET
                        name = EXCLUDED.name,
                        {column} = EXCLUDED.{column};
                    """
                ).format(
                    table=self._table,
                    column=self._column,
                    geometry_value=self._geometry_value,
                ),
                {**self._to_row(track), "srid": self.settings.geometry_srid},
            )
        track.sync_original()
        return track

    def save(self, track: db_models.TrackRecord) -> bool:
        """Write only the attributes that changed since the track was read.

        Args:
            track: Track record loaded from this repository.

        Returns:
            True if an UPDATE was issued, False for a clean record.
        """
        dirty = track.get_dirty()
        if not dirty:
            logger.debug("Track %s unchanged, skipping UPDATE", track.id)
            return False

        assignments = []
        for attribute in dirty:
            if attribute == "geom":
                assignments.append(
                    sql.SQL("{column} = {geometry_value}").format(
                        column=self._column,
                        geometry_value=self._geometry_value,
                    )
                )
            else:
                assignments.append(
                    sql.SQL("{field} = %({param})s").format(
                        field=sql.Identifier(attribute),
                        param=sql.SQL(attribute),
                    )
                )
        with self._connection() as conn, conn.cursor() as cur:
            cur.execute(
                sql.SQL("UPDATE {table} SET {assignments} WHERE id = %(id)s").format(
                    table=self._table,
                    assignments=sql.SQL(", ").join(assignments),
                ),
                {"id": track.id, "srid": self.settings.geometry_srid, **dirty},
            )
        logger.info("Track %s updated: %s", track.id, ", ".join(dirty))
        track.sync_original()
        return True

    @staticmethod
    def _to_row(track: db_models.TrackRecord) -> dict[str, object]:
        """Convert a TrackRecord to a parameter dictionary."""
        return {"id": track.id, "name": track.name, "geom": track.geom}

    @staticmethod
    def _from_row(row: dict[str, Any]) -> db_models.TrackRecord:
        """Convert a database row dictionary to a TrackRecord."""
        geom = row.get("geom")
        return db_models.TrackRecord(
            id=str(row["id"]),
            name=str(row["name"]),
            geom=str(geom) if geom is not None else None,
        )


def get_track_repository(settings: config.Settings) -> TrackRepositoryProtocol:
    """Factory function to create a track repository.

    Args:
        settings: Application settings for database connection.

    Returns:
        PostgresTrackRepository instance for production use.
    """
    return PostgresTrackRepository(settings)


@contextlib.contextmanager
def get_connection(
    settings: config.Settings,
) -> Iterator[psycopg2.extensions.connection]:
    """Open a psycopg2 connection scoped to one transaction.

    The transaction commits when the block exits normally and rolls back on
    an exception; the connection is closed either way.

    Args:
        settings: Application settings containing database connection URL.

    Yields:
        psycopg2 extensions connection object for direct database access.
    """
    conn = psycopg2.connect(settings.database_url)
    try:
        with conn:
            yield conn
    finally:
        conn.close()
