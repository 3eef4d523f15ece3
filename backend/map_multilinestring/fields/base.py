"""Base class for admin fields.

A field reads one attribute of a resource for display (``resolve``) and
writes a submitted value back (``fill``). Display metadata attached with
``with_meta`` is merged into the serialized field so the front-end component
receives it next to the value.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, ClassVar, Literal

from map_multilinestring.services import geometry_adapter

if TYPE_CHECKING:
    from collections.abc import Mapping

DisplayContext = Literal["index", "detail", "form"]
DISPLAY_CONTEXTS: tuple[DisplayContext, ...] = ("index", "detail", "form")


def _snake_case(name: str) -> str:
    return re.sub(r"\W+", "_", name.strip()).strip("_").lower()


class Field:
    """A named attribute of a resource rendered by a front-end component.

    Attributes:
        component: Component name the field registers under.
        name: Label shown to editors.
        attribute: Resource attribute the field reads and writes.
        value: Value resolved from the resource.
        meta: Extra data merged into the serialized field.
    """

    component: ClassVar[str] = "field"

    def __init__(
        self,
        name: str,
        attribute: str | None = None,
        *,
        component: str | None = None,
    ) -> None:
        if component is not None:
            self.component = component  # type: ignore[misc]
        self.name = name
        self.attribute = attribute or _snake_case(name)
        self.value: Any = None
        self.meta: dict[str, Any] = {}

    def with_meta(self, **meta: Any) -> Field:
        """Attach display metadata and return the field for chaining."""
        self.meta.update(meta)
        return self

    def resolve(self, resource: object, attribute: str | None = None) -> None:
        """Read the field value from ``resource``."""
        self.value = getattr(resource, attribute or self.attribute, None)

    def fill(self, data: Mapping[str, Any], model: object) -> bool:
        """Fill ``model`` from a request body.

        The attribute is only touched when the body carries its key; a
        missing key means the field was not submitted.

        Returns:
            True if the model attribute was assigned.
        """
        submission = geometry_adapter.Submission.from_mapping(
            data, self.attribute
        )
        if submission.is_absent:
            return False
        return self.fill_attribute_from_request(
            submission, model, self.attribute
        )

    def fill_attribute_from_request(
        self,
        submission: geometry_adapter.Submission,
        model: object,
        attribute: str,
    ) -> bool:
        setattr(model, attribute, submission.value)
        return True

    def component_for(self, context: DisplayContext) -> str:
        """Return the front-end component name for a display context."""
        if context not in DISPLAY_CONTEXTS:
            raise ValueError(f"unknown display context: {context!r}")
        return f"{context}-{self.component}"

    def serialize(self, context: DisplayContext = "detail") -> dict[str, Any]:
        return {
            "component": self.component_for(context),
            "name": self.name,
            "attribute": self.attribute,
            "value": self.value,
            **self.meta,
        }
