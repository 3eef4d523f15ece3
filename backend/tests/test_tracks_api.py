"""API endpoint tests for the track and field endpoints.

This module drives the FastAPI application through TestClient with the
field registry built on the scripted spatial engine and an in-memory
repository, both injected with dependency overrides. It covers:
    - index/detail views carrying geojson and [lat, lng] center metadata,
    - updates that persist only real geometry changes,
    - the absent-key vs null distinction of request bodies,
    - error mapping of malformed GeoJSON (422) and corrupt stored data (500),
    - field component discovery.

See Also:
    - backend/map_multilinestring/api/tracks.py for API implementation.
"""

from __future__ import annotations

import json
from collections.abc import Iterator

import psycopg2
import pytest
import samples
from fastapi import testclient

from map_multilinestring import main
from map_multilinestring.api import fields as api_fields
from map_multilinestring.api import tracks as api_tracks
from map_multilinestring.core import config
from map_multilinestring.db import database
from map_multilinestring.db import models as db_models
from map_multilinestring.fields import registry


@pytest.fixture
def client(
    engine: samples.FakeSpatialEngine,
    repo: database.InMemoryTrackRepository,
) -> Iterator[testclient.TestClient]:
    app = main.create_app()
    field_registry = registry.build_registry(config.Settings(), engine)
    app.dependency_overrides[api_fields.get_registry] = lambda: field_registry
    app.dependency_overrides[api_tracks._get_repo] = lambda: repo
    try:
        yield testclient.TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _add(
    repo: database.InMemoryTrackRepository,
    geom: str | None,
    track_id: str = "t1",
) -> db_models.TrackRecord:
    return repo.add(db_models.TrackRecord(id=track_id, name="Ridge", geom=geom))


def test_list_fields(client: testclient.TestClient) -> None:
    response = client.get("/api/fields")
    assert response.status_code == 200
    assert response.json() == [
        {
            "component": "map-multi-linestring",
            "contexts": {
                "index": "index-map-multi-linestring",
                "detail": "detail-map-multi-linestring",
                "form": "form-map-multi-linestring",
            },
        }
    ]


def test_list_tracks_empty(client: testclient.TestClient) -> None:
    response = client.get("/api/tracks")
    assert response.status_code == 200
    assert response.json() == []


def test_list_tracks_index_context(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    _add(repo, samples.VERTICAL, "t1")
    _add(repo, None, "t2")
    response = client.get("/api/tracks")
    assert response.status_code == 200
    by_id = {track["id"]: track["fields"][0] for track in response.json()}
    assert by_id["t1"]["component"] == "index-map-multi-linestring"
    assert by_id["t1"]["center"] == [1.0, 0.0]
    assert "geojson" not in by_id["t2"]
    assert "center" not in by_id["t2"]


def test_get_track_detail(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    _add(repo, samples.TWO_SEGMENTS)
    response = client.get("/api/tracks/t1")
    assert response.status_code == 200
    field = response.json()["fields"][0]
    assert field["component"] == "detail-map-multi-linestring"
    assert field["attribute"] == "geom"
    assert field["value"] == samples.TWO_SEGMENTS
    assert field["geojson"] == samples.TWO_SEGMENTS_GEOJSON
    assert field["center"] == [1.0, 1.0]


def test_get_track_not_found(client: testclient.TestClient) -> None:
    response = client.get("/api/tracks/nonexistent")
    assert response.status_code == 404
    assert "not found" in response.json()["detail"].lower()


def test_get_track_corrupt_geometry(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    """Unreadable stored data fails the whole read."""
    _add(repo, samples.CORRUPT)
    response = client.get("/api/tracks/t1")
    assert response.status_code == 500
    assert "invalid geometry" in response.json()["detail"]


def test_update_changed_geometry(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    _add(repo, samples.VERTICAL)
    response = client.put(
        "/api/tracks/t1", json={"geom": samples.TWO_SEGMENTS_GEOJSON}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["updated"] is True
    assert body["fields"][0]["component"] == "form-map-multi-linestring"
    assert body["fields"][0]["value"] == samples.MERGED_WKT
    assert repo.get("t1").geom == samples.MERGED_WKT  # type: ignore[union-attr]
    assert repo.writes == 1


def test_update_same_geometry_is_not_persisted(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    """Resubmitting the displayed GeoJSON does not write."""
    _add(repo, samples.TWO_SEGMENTS)
    response = client.put(
        "/api/tracks/t1", json={"geom": samples.TWO_SEGMENTS_GEOJSON}
    )
    assert response.status_code == 200
    assert response.json()["updated"] is False
    assert repo.get("t1").geom == samples.TWO_SEGMENTS  # type: ignore[union-attr]
    assert repo.writes == 0


def test_update_without_geometry_key_skips_conversion(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
    engine: samples.FakeSpatialEngine,
) -> None:
    """Renaming a track never runs the geometry normalization."""
    _add(repo, samples.VERTICAL)
    response = client.put("/api/tracks/t1", json={"name": "Renamed"})
    assert response.status_code == 200
    assert response.json()["updated"] is True
    assert not any(call[0] == "normalize_geojson" for call in engine.calls)
    assert repo.get("t1").geom == samples.VERTICAL  # type: ignore[union-attr]


@pytest.mark.parametrize("value", [None, "null"])
def test_update_null_clears_geometry(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
    value: str | None,
) -> None:
    _add(repo, samples.VERTICAL)
    response = client.put("/api/tracks/t1", json={"geom": value})
    assert response.status_code == 200
    assert response.json()["updated"] is True
    field = response.json()["fields"][0]
    assert field["value"] is None
    assert "geojson" not in field


def test_update_null_over_null_is_noop(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    _add(repo, None)
    response = client.put("/api/tracks/t1", json={"geom": None})
    assert response.status_code == 200
    assert response.json()["updated"] is False
    assert repo.writes == 0


def test_update_geojson_object_body(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
    engine: samples.FakeSpatialEngine,
) -> None:
    """GeoJSON sent as an object is accepted like GeoJSON text."""
    _add(repo, None)
    geometry = {"type": "MultiLineString", "coordinates": [[[0, 0], [0, 2]]]}
    engine.normalized[json.dumps(geometry)] = samples.VERTICAL_WKT
    response = client.put("/api/tracks/t1", json={"geom": geometry})
    assert response.status_code == 200
    assert repo.get("t1").geom == samples.VERTICAL_WKT  # type: ignore[union-attr]


def test_update_malformed_geojson(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    """Malformed GeoJSON is rejected and nothing is written."""
    _add(repo, samples.VERTICAL)
    response = client.put(
        "/api/tracks/t1", json={"geom": samples.MALFORMED_GEOJSON}
    )
    assert response.status_code == 422
    assert "GeoJSON" in response.json()["detail"]
    assert repo.get("t1").geom == samples.VERTICAL  # type: ignore[union-attr]
    assert repo.writes == 0


def test_update_not_found(client: testclient.TestClient) -> None:
    response = client.put("/api/tracks/missing", json={"geom": None})
    assert response.status_code == 404


def test_update_blank_name(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    _add(repo, None)
    response = client.put("/api/tracks/t1", json={"name": "  "})
    assert response.status_code == 422


def test_create_track_with_geometry(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    response = client.post(
        "/api/tracks",
        json={"name": "Valley", "geom": samples.VERTICAL_GEOJSON},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Valley"
    assert body["fields"][0]["value"] == samples.VERTICAL_WKT
    assert body["fields"][0]["center"] == [1.0, 0.0]
    stored = repo.get(body["id"])
    assert stored is not None
    assert stored.geom == samples.VERTICAL_WKT


def test_create_track_without_geometry(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
) -> None:
    response = client.post("/api/tracks", json={"name": "Empty"})
    assert response.status_code == 201
    field = response.json()["fields"][0]
    assert field["value"] is None
    assert "center" not in field


def test_create_track_requires_name(client: testclient.TestClient) -> None:
    response = client.post("/api/tracks", json={"geom": None})
    assert response.status_code == 422


def test_update_database_outage_is_not_bad_input(
    client: testclient.TestClient,
    repo: database.InMemoryTrackRepository,
    engine: samples.FakeSpatialEngine,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A connection failure is a server error, never a 422."""
    _add(repo, samples.VERTICAL)

    def unreachable(_geojson: str) -> str:
        raise psycopg2.OperationalError("connection refused")

    monkeypatch.setattr(engine, "normalize_geojson", unreachable)
    with pytest.raises(psycopg2.OperationalError):
        client.put("/api/tracks/t1", json={"geom": samples.TWO_SEGMENTS_GEOJSON})
    assert repo.get("t1").geom == samples.VERTICAL  # type: ignore[union-attr]
