"""Package initializer for the map multi-linestring admin field backend.

This package contains the backend for an admin-panel field type that lets
editors view and edit multi-linestring geometries on a map while the values
are persisted in a PostGIS geometry column. All geometric work (GeoJSON
serialization, centroids, 3D forcing and line merging) is delegated to
PostGIS; the Python side only plumbs values between the stored geometry and
the GeoJSON contract consumed by the map widget.

- Converts stored geometries into GeoJSON plus a ``[lat, lng]`` centroid
- Normalizes submitted GeoJSON and writes it back only when it changed
- Registers field types explicitly by component name at start-up
- Exposes a small FastAPI surface for index/detail/form views of a resource

See README and module sub-docstrings for details on architecture and usage.
"""
