"""Database interface and repository abstractions.

This package consolidates the track data models and the repository
patterns used to persist them. It provides a stable import location for
repository dependency injection throughout the application, supporting
production (PostGIS) and testing (in-memory) backends.

Example:
    Use in a service or FastAPI dependency:
        >>> from map_multilinestring.db import database
        >>> repo = database.get_track_repository(settings)
"""
