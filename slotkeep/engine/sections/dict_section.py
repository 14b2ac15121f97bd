from __future__ import annotations

from typing import Any

from slotkeep.engine.models import NO_SLOT
from slotkeep.engine.sections.base import SaveSection
from slotkeep.engine.utils import clone_data


class DictSection(SaveSection):
    def __init__(
        self,
        category: str,
        defaults: dict[str, Any] | None = None,
        metadata: bool = False,
    ) -> None:
        if not category:
            raise ValueError("category must not be empty")
        self.category = category
        self.defaults: dict[str, Any] = clone_data(defaults or {})
        self.metadata = metadata
        self.data: dict[str, Any] = clone_data(self.defaults)
        self.loaded_index: int = NO_SLOT
        self.saved_index: int = NO_SLOT

    def get_category(self) -> str:
        return self.category

    def is_metadata(self) -> bool:
        return self.metadata

    def get_as_dict(self) -> dict[str, Any]:
        return clone_data(self.data)

    def set_from_dict(self, data: dict[str, Any], index: int = NO_SLOT) -> None:
        merged = clone_data(self.defaults)
        merged.update(clone_data(data))
        self.data = merged

    def clear(self, index: int = NO_SLOT) -> None:
        self.data = clone_data(self.defaults)
        self.loaded_index = NO_SLOT

    def selected_and_loaded(self, index: int) -> None:
        self.loaded_index = index

    def saved(self, index: int) -> None:
        self.saved_index = index

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value

    def update(self, **values: Any) -> None:
        self.data.update(values)


class MetadataSection(DictSection):
    """Lightweight per-slot summary, read for every slot when listing saves."""

    def __init__(
        self,
        category: str = "meta",
        defaults: dict[str, Any] | None = None,
        name_key: str = "name",
    ) -> None:
        base = {name_key: ""}
        base.update(defaults or {})
        super().__init__(category, base, metadata=True)
        self.name_key = name_key

    @property
    def name(self) -> str:
        return str(self.data.get(self.name_key, ""))

    @name.setter
    def name(self, value: str) -> None:
        self.data[self.name_key] = value
