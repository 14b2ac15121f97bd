from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from slotkeep.engine.models import NO_SLOT


class SaveSection(ABC):
    """One named category of slot data, e.g. ``meta`` or ``game``.

    The slot manager owns every section for its whole lifetime and overwrites
    or clears its contents whenever the selected slot changes.
    """

    @abstractmethod
    def get_category(self) -> str:
        raise NotImplementedError

    @abstractmethod
    def is_metadata(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    def get_as_dict(self) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def set_from_dict(self, data: dict[str, Any], index: int = NO_SLOT) -> None:
        raise NotImplementedError

    @abstractmethod
    def clear(self, index: int = NO_SLOT) -> None:
        raise NotImplementedError

    def selected_and_loaded(self, index: int) -> None:
        pass

    def saved(self, index: int) -> None:
        pass
