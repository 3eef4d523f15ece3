"""Field component discovery endpoint.

The admin front-end asks which field components exist and which component
name to mount for each display context.

Example:
    >>> response = client.get("/api/fields")
    >>> response.json()
    >>> # [{"component": "map-multi-linestring",
    >>> #   "contexts": {"index": "index-map-multi-linestring", ...}}]
"""

from typing import Any

import fastapi

from map_multilinestring.fields import base, registry

router = fastapi.APIRouter(prefix="/api/fields", tags=["fields"])


def get_registry(request: fastapi.Request) -> registry.FieldRegistry:
    """Return the field registry built by the application factory."""
    return request.app.state.field_registry


@router.get("")
async def list_fields(
    field_registry: registry.FieldRegistry = fastapi.Depends(get_registry),  # noqa: B008
) -> list[dict[str, Any]]:
    """List registered field components and their per-context names.

    Args:
        field_registry: Field registry (injected via FastAPI Depends).

    Returns:
        One entry per registered component, sorted by component name.
    """
    result = []
    for component in field_registry:
        field = field_registry.create(component, component)
        result.append(
            {
                "component": component,
                "contexts": {
                    context: field.component_for(context)
                    for context in base.DISPLAY_CONTEXTS
                },
            }
        )
    return result
