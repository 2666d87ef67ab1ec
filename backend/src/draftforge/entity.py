"""Live, mutable entity instances."""

import copy
from typing import Any

from draftforge.metadata.loader import EntityModel


class Entity:
    """An in-memory draftable record.

    Holds one value per declared field of its model. Setting an undeclared
    attribute raises KeyError. The attribute bag is the state the pipeline
    persists and captures; it is never refreshed implicitly, only by an
    explicit reload.
    """

    def __init__(self, model: EntityModel, attributes: dict[str, Any] | None = None):
        self.model = model
        self.attributes: dict[str, Any] = {
            f.name: copy.deepcopy(f.default) for f in model.fields
        }
        if attributes:
            self.update(attributes)

    @property
    def id(self) -> Any:
        return self.attributes.get(self.model.primary_key)

    def __getitem__(self, name: str) -> Any:
        return self.attributes[name]

    def __setitem__(self, name: str, value: Any) -> None:
        if name not in self.attributes:
            raise KeyError(
                f"'{name}' is not a declared attribute of {self.model.name}"
            )
        self.attributes[name] = value

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def update(self, values: dict[str, Any]) -> None:
        for name, value in values.items():
            self[name] = value

    def replace_attributes(self, row: dict[str, Any]) -> None:
        """Overwrite the whole attribute bag from a persisted row.

        Declared fields missing from the row are reset to None.
        """
        self.attributes = {f.name: row.get(f.name) for f in self.model.fields}

    def __repr__(self) -> str:
        return f"<{self.model.name} {self.id!r}>"
