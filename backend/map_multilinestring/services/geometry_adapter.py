"""Conversion between stored geometries and the map widget's GeoJSON.

The adapter is the read/write bridge of the map multi-linestring field:

- ``to_display`` turns a stored geometry into a ``DisplayPayload``
  (GeoJSON text plus a ``[lat, lng]`` centroid) for read paths.
- ``from_display`` turns submitted GeoJSON into normalized WKT (forced to
  3D, contiguous lines merged) for write paths.
- ``reconcile_and_write`` assigns the normalized submission to a model
  attribute only when it differs from the normalized current value, so an
  unchanged geometry never marks the model dirty.

Request input is modelled as a three-valued ``Submission``: the key may be
absent from the request (nothing to do), present with a null value (clear
the geometry), or present with GeoJSON text.

Example:
    Resolve and update a track:
        >>> adapter = GeometryAdapter(engine)
        >>> payload = adapter.to_display(track.geom)
        >>> payload.center  # (lat, lng)
        (1.0, 0.0)
        >>> adapter.reconcile_and_write(
        ...     track, "geom", Submission.from_mapping(body, "geom")
        ... )
        True
"""

from __future__ import annotations

import dataclasses
import enum
import json
import logging
from typing import TYPE_CHECKING, Any

from map_multilinestring.db import models as db_models

if TYPE_CHECKING:
    from collections.abc import Mapping

    from map_multilinestring.services import spatial_engine

logger = logging.getLogger(__name__)

NULL_LITERAL = "null"


class SubmissionState(enum.Enum):
    ABSENT = "absent"
    NULL = "null"
    PRESENT = "present"


@dataclasses.dataclass(frozen=True)
class Submission:
    """A request value for one attribute.

    Attributes:
        state: Whether the key was absent, explicitly null, or carried a value.
        value: GeoJSON text when ``state`` is PRESENT, otherwise None.
    """

    state: SubmissionState
    value: str | None = None

    @classmethod
    def absent(cls) -> Submission:
        return cls(SubmissionState.ABSENT)

    @classmethod
    def null(cls) -> Submission:
        return cls(SubmissionState.NULL)

    @classmethod
    def present(cls, value: str) -> Submission:
        return cls(SubmissionState.PRESENT, value)

    @classmethod
    def from_value(cls, raw: Any) -> Submission:
        """Build a submission from a value known to be in the request.

        ``None`` and the literal string ``"null"`` both mean "clear the
        geometry". A GeoJSON object (as opposed to GeoJSON text) is
        serialized back to text.
        """
        if raw is None or raw == NULL_LITERAL:
            return cls.null()
        if isinstance(raw, (dict, list)):
            return cls.present(json.dumps(raw))
        return cls.present(str(raw))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], key: str) -> Submission:
        """Build a submission for ``key`` from a request body mapping."""
        if key not in data:
            return cls.absent()
        return cls.from_value(data[key])

    @property
    def is_absent(self) -> bool:
        return self.state is SubmissionState.ABSENT


class GeometryAdapter:
    """Stateless bridge between stored geometries and display GeoJSON.

    Every conversion is delegated to the spatial engine; errors it raises
    (``GeometryDecodingError``, ``GeometryParseError``) propagate unchanged.
    """

    def __init__(self, engine: spatial_engine.SpatialEngineProtocol) -> None:
        self.engine = engine

    def to_display(self, geometry: str | None) -> db_models.DisplayPayload | None:
        """Serialize a stored geometry for the map widget.

        Args:
            geometry: Stored geometry, or None.

        Returns:
            DisplayPayload with the GeoJSON text and the centroid as
            ``(lat, lng)``, or None when ``geometry`` is None.

        Raises:
            GeometryDecodingError: If the stored value cannot be serialized.
        """
        if geometry is None:
            return None

        geojson = self.engine.as_geojson(geometry)
        centroid = json.loads(self.engine.centroid_geojson(geometry))
        coordinates = centroid.get("coordinates") or []
        # GeoJSON is [lng, lat]; the map widget wants [lat, lng].
        center = (
            (float(coordinates[1]), float(coordinates[0]))
            if len(coordinates) >= 2
            else None
        )
        return db_models.DisplayPayload(geojson=geojson, center=center)

    def from_display(self, geojson: str | None) -> str | None:
        """Normalize submitted GeoJSON into WKT for storage.

        Args:
            geojson: GeoJSON text, None, or the literal ``"null"``.

        Returns:
            WKT of the 3D, line-merged geometry, or None for "no geometry".

        Raises:
            GeometryParseError: If the GeoJSON cannot be parsed.
        """
        if geojson is None or geojson == NULL_LITERAL:
            return None
        return self.engine.normalize_geojson(geojson)

    def from_submission(self, submission: Submission) -> str | None:
        if submission.state is not SubmissionState.PRESENT:
            return None
        return self.from_display(submission.value)

    def reconcile_and_write(
        self,
        model: object,
        attribute: str,
        submission: Submission,
    ) -> bool:
        """Assign the submitted geometry to ``model`` if it really changed.

        Both sides go through the same normalization before comparing, so
        a submission equal to the current geometry (or null over null)
        leaves the model untouched.

        Args:
            model: Object holding the stored geometry in ``attribute``.
            attribute: Name of the geometry attribute on ``model``.
            submission: The request value for ``attribute``.

        Returns:
            True if the attribute was assigned, False otherwise.

        Raises:
            GeometryParseError: If the submitted GeoJSON is malformed.
            GeometryDecodingError: If the current value cannot be read.
        """
        if submission.is_absent:
            return False

        new_value = self.from_submission(submission)
        old_display = self.to_display(getattr(model, attribute))
        old_value = (
            self.from_display(old_display.geojson)
            if old_display is not None
            else None
        )

        if new_value == old_value:
            logger.debug("%s unchanged, skipping write-back", attribute)
            return False

        setattr(model, attribute, new_value)
        logger.debug("%s changed, assigned normalized geometry", attribute)
        return True
