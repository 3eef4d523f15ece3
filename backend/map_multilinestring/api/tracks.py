"""Track resource endpoints used by the admin panel.

Tracks are listed, shown, created and updated with their geometry going
through the map multi-linestring field: reads attach the GeoJSON and the
``[lat, lng]`` centroid as field metadata, writes normalize the submitted
GeoJSON and only persist it when the geometry actually changed.

Request bodies are read as raw JSON objects so that a missing ``geom`` key
(field not submitted) stays distinguishable from ``"geom": null`` (clear
the geometry).

Example:
    Update a track's geometry:
        >>> response = client.put(
        ...     "/api/tracks/abc-123",
        ...     json={"geom": '{"type":"MultiLineString","coordinates":[...]}'},
        ... )
        >>> response.json()["updated"]
        True

    Submitting the same geometry again is a no-op:
        >>> client.put("/api/tracks/abc-123", json=same_body).json()["updated"]
        False
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

import fastapi

from map_multilinestring.api import fields as api_fields
from map_multilinestring.core import config
from map_multilinestring.db import database
from map_multilinestring.db import models as db_models
from map_multilinestring.fields import base, registry

logger = logging.getLogger(__name__)

router = fastapi.APIRouter(prefix="/api/tracks", tags=["tracks"])

GEOMETRY_ATTRIBUTE = "geom"


def _get_repo(
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> database.TrackRepositoryProtocol:
    """Resolve the track repository dependency.

    Args:
        settings: Application settings (injected via FastAPI Depends).

    Returns:
        TrackRepositoryProtocol implementation
            (PostgresTrackRepository in production).
    """
    return database.get_track_repository(settings)


def _geometry_field(
    field_registry: registry.FieldRegistry,
    settings: config.Settings,
) -> base.Field:
    return field_registry.create(
        settings.field_component, "Geometry", GEOMETRY_ATTRIBUTE
    )


def _serialize(
    track: db_models.TrackRecord,
    field: base.Field,
    context: base.DisplayContext,
) -> dict[str, Any]:
    """Resolve ``field`` against ``track`` and serialize the resource."""
    field.resolve(track)
    return {
        "id": track.id,
        "name": track.name,
        "fields": [field.serialize(context)],
    }


def _get_track_or_404(
    repo: database.TrackRepositoryProtocol, track_id: str
) -> db_models.TrackRecord:
    track = repo.get(track_id)
    if track is None:
        raise fastapi.HTTPException(status_code=404, detail="Track not found")
    return track


def _submitted_name(body: dict[str, Any]) -> str | None:
    """Return the submitted name, None if absent; reject blank names."""
    if "name" not in body:
        return None
    name = body["name"]
    if not isinstance(name, str) or not name.strip():
        raise fastapi.HTTPException(status_code=422, detail="Invalid track name")
    return name


@router.get("")
async def list_tracks(
    repo: database.TrackRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
    field_registry: registry.FieldRegistry = fastapi.Depends(  # noqa: B008
        api_fields.get_registry
    ),
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> list[dict[str, Any]]:
    """List all tracks for the index view.

    Returns:
        One serialized resource per track, each with its geometry field
        in the ``index`` context.
    """
    field = _geometry_field(field_registry, settings)
    return [_serialize(track, field, "index") for track in repo.all()]


@router.get("/{track_id}")
async def get_track(
    track_id: str,
    repo: database.TrackRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
    field_registry: registry.FieldRegistry = fastapi.Depends(  # noqa: B008
        api_fields.get_registry
    ),
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> dict[str, Any]:
    """Show a single track for the detail view.

    Raises:
        HTTPException: If the track is not found (404 status code).

    Example:
        >>> client.get("/api/tracks/abc-123").json()["fields"][0]
        >>> # {"component": "detail-map-multi-linestring",
        >>> #  "name": "Geometry", "attribute": "geom",
        >>> #  "value": "0105000000...", "zone": [],
        >>> #  "geojson": "{...}", "center": [1.0, 0.0]}
    """
    track = _get_track_or_404(repo, track_id)
    return _serialize(
        track, _geometry_field(field_registry, settings), "detail"
    )


@router.post("", status_code=201)
async def create_track(
    body: dict[str, Any] = fastapi.Body(...),  # noqa: B008
    repo: database.TrackRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
    field_registry: registry.FieldRegistry = fastapi.Depends(  # noqa: B008
        api_fields.get_registry
    ),
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> dict[str, Any]:
    """Create a track from a name and an optional GeoJSON geometry.

    Raises:
        HTTPException: If the name is missing or blank (422).
        GeometryParseError: If the geometry cannot be parsed (mapped to 422).
    """
    name = _submitted_name(body)
    if name is None:
        raise fastapi.HTTPException(status_code=422, detail="name required")
    track = db_models.TrackRecord(id=str(uuid.uuid4()), name=name)

    field = _geometry_field(field_registry, settings)
    field.fill(body, track)
    repo.add(track)
    logger.info("Created track %s", track.id)
    return _serialize(track, field, "detail")


@router.put("/{track_id}")
async def update_track(
    track_id: str,
    body: dict[str, Any] = fastapi.Body(...),  # noqa: B008
    repo: database.TrackRepositoryProtocol = fastapi.Depends(_get_repo),  # noqa: B008
    field_registry: registry.FieldRegistry = fastapi.Depends(  # noqa: B008
        api_fields.get_registry
    ),
    settings: config.Settings = fastapi.Depends(config.get_settings),  # noqa: B008
) -> dict[str, Any]:
    """Update a track from the form view.

    Only the keys present in ``body`` are applied. The geometry is written
    back only when its normalized form differs from the stored one, and the
    repository is only asked to save when some attribute changed.

    Returns:
        The track serialized in the ``form`` context plus an ``updated``
        flag telling whether anything was persisted.

    Raises:
        HTTPException: If the track is not found (404).
        GeometryParseError: If the geometry cannot be parsed (mapped to 422).
    """
    track = _get_track_or_404(repo, track_id)
    name = _submitted_name(body)
    field = _geometry_field(field_registry, settings)
    field.fill(body, track)
    if name is not None:
        track.name = name
    updated = repo.save(track)
    return {**_serialize(track, field, "form"), "updated": updated}
