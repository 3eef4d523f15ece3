"""API router subpackage for the map multi-linestring field backend.

This package organizes REST endpoints consumed by the admin front-end.
Each module exposes its own APIRouter for composition in the application's
main FastAPI instance.

Submodules:
    - fields: Endpoint listing registered field components.
    - tracks: Index, detail, create and update endpoints for tracks, with
      the geometry resolved and filled through the map field.
"""
