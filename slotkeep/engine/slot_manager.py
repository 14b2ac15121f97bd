"""Slot selection, loading, saving and slot-level file operations.

Usage:
    manager = SlotManager(config, [MetadataSection(), DictSection("game")])
    manager.init()
    manager.select(0)
    manager.get_section("game").set("gold", 10)
    manager.save()
    manager.exit()

Every public operation returns an ``OperationResult`` instead of raising.
Identity operations (rename, delete, import, export) need no slot selected;
content operations (load, save, exit) need one.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from slotkeep.engine.autosave import AutosaveSettings, IntervalTimer, StaticAutosaveSettings
from slotkeep.engine.cipher import KeyedTransform
from slotkeep.engine.codec import decode_string, encode_dict
from slotkeep.engine.models import NO_SLOT, OperationResult, SaveConfig
from slotkeep.engine.sections.base import SaveSection
from slotkeep.engine.slot_files import SlotFileStore, SlotSerializationError, SlotWriteError
from slotkeep.engine.utils import clone_data, is_valid_index

logger = logging.getLogger(__name__)


class SlotManager:
    def __init__(
        self,
        config: SaveConfig,
        sections: Iterable[SaveSection],
        autosave_settings: AutosaveSettings | None = None,
        store: SlotFileStore | None = None,
    ) -> None:
        self.config = config
        self.store = store or SlotFileStore(config)
        self.sections: dict[str, SaveSection] = {}
        for section in sections:
            category = section.get_category()
            if category in self.sections:
                raise ValueError(f"Duplicate save section category: {category}")
            self.sections[category] = section
        self.autosave_settings = autosave_settings or StaticAutosaveSettings(config.autosave_enabled)
        self.export_transform = KeyedTransform(config.export_cipher, config.export_secret)
        self.autosave_timer = IntervalTimer(config.autosave_interval, self._on_autosave_tick)
        self.initialized = False
        self._selected = NO_SLOT
        self._metadata_cache: list[dict[str, dict[str, Any]]] = [
            {} for _ in range(config.save_file_count)
        ]
        self._busy = False

    # -- state -----------------------------------------------------------

    @property
    def save_file_count(self) -> int:
        return self.config.save_file_count

    @property
    def selected_index(self) -> int:
        return self._selected

    @property
    def is_selected(self) -> bool:
        return self._selected != NO_SLOT

    @property
    def metadata_cache(self) -> list[dict[str, dict[str, Any]]]:
        return [clone_data(entry) for entry in self._metadata_cache]

    def get_metadata(self, index: int) -> dict[str, dict[str, Any]]:
        if not is_valid_index(index, self.save_file_count):
            return {}
        return clone_data(self._metadata_cache[index])

    def get_section(self, category: str) -> SaveSection | None:
        return self.sections.get(category)

    # -- lifecycle -------------------------------------------------------

    def init(self) -> OperationResult:
        if self.is_selected:
            return self._reject("init", f"slot {self._selected} is selected")
        self.autosave_timer.start()
        failed = [i for i in range(self.save_file_count) if not self._refresh_metadata(i)]
        self.initialized = True
        logger.info(
            "Save slots ready: count=%s sections=%s",
            self.save_file_count,
            sorted(self.sections),
        )
        if failed:
            return OperationResult.failure(f"metadata unavailable for slots {failed}")
        return OperationResult.success()

    def shutdown(self) -> OperationResult:
        self.autosave_timer.stop()
        if self.is_selected:
            self.exit()
        self.initialized = False
        return OperationResult.success()

    def update(self, dt: float) -> bool:
        return self.autosave_timer.update(dt)

    # -- content operations ---------------------------------------------

    def select(self, index: int, autoload: bool = True) -> OperationResult:
        if not is_valid_index(index, self.save_file_count):
            return self._reject("select", f"invalid slot index {index!r}")
        if self.is_selected:
            return self._reject("select", f"slot {self._selected} is already selected")
        self._selected = index
        logger.info("Selected slot %s", index)
        if autoload:
            return self.load()
        return OperationResult.success()

    def load(self) -> OperationResult:
        if not self.is_selected:
            return self._reject("load", "no slot selected")
        index = self._selected
        with self._operation():
            try:
                for section in self.sections.values():
                    section.clear(index)
                    data = self.store.read_or_create(index, section)
                    section.set_from_dict(data, index)
                    section.selected_and_loaded(index)
            except (SlotWriteError, SlotSerializationError) as exc:
                logger.error("Loading slot %s failed: %s", index, exc)
                # a half-loaded slot must not stay selected
                for section in self.sections.values():
                    section.clear(index)
                self._selected = NO_SLOT
                return OperationResult.failure(str(exc))
        logger.info("Loaded slot %s", index)
        return OperationResult.success()

    def save(self) -> OperationResult:
        if not self.is_selected:
            return self._reject("save", "no slot selected")
        index = self._selected
        with self._operation():
            snapshots = {category: section.get_as_dict() for category, section in self.sections.items()}
            try:
                # serialize everything up front so a bad value writes nothing
                records = {
                    category: self.store.encode_record(data) for category, data in snapshots.items()
                }
            except SlotSerializationError as exc:
                logger.error("Saving slot %s failed: %s", index, exc)
                return OperationResult.failure(str(exc))
            try:
                for category, section in self.sections.items():
                    self.store.write_record(index, category, records[category])
                    section.saved(index)
                    if section.is_metadata():
                        self._metadata_cache[index][category] = snapshots[category]
            except SlotWriteError as exc:
                logger.error("Saving slot %s failed: %s", index, exc)
                return OperationResult.failure(str(exc))
        logger.info("Saved slot %s", index)
        return OperationResult.success()

    def exit(self) -> OperationResult:
        if not self.is_selected:
            return self._reject("exit", "no slot selected")
        index = self._selected
        self._selected = NO_SLOT
        with self._operation():
            for section in self.sections.values():
                section.clear(index)
            self._refresh_metadata(index)
        logger.info("Exited slot %s", index)
        return OperationResult.success()

    # -- identity operations --------------------------------------------

    def rename(self, index: int, new_name: str) -> OperationResult:
        rejected = self._guard_identity("rename", index)
        if rejected:
            return rejected
        category = self.config.metadata_category
        section = self.sections.get(category)
        if section is None or not section.is_metadata():
            return self._reject("rename", f"no metadata section registered as {category!r}")

        entry = clone_data(self._metadata_cache[index].get(category, {}))
        entry[self.config.name_key] = new_name
        with self._operation():
            section.set_from_dict(entry, index)
            data = section.get_as_dict()
            section.clear(index)
            try:
                self.store.write(index, category, data)
            except (SlotWriteError, SlotSerializationError) as exc:
                logger.error("Renaming slot %s failed: %s", index, exc)
                return OperationResult.failure(str(exc))
        self._metadata_cache[index][category] = data
        logger.info("Renamed slot %s to %r", index, new_name)
        return OperationResult.success()

    def delete(self, index: int) -> OperationResult:
        rejected = self._guard_identity("delete", index)
        if rejected:
            return rejected
        if not self.store.delete_slot(index):
            return OperationResult.failure(f"could not delete slot {index}")
        with self._operation():
            self._metadata_cache[index] = self._default_metadata(index)
        return OperationResult.success()

    def import_slot(self, index: int, encoded: str) -> OperationResult:
        rejected = self._guard_identity("import", index)
        if rejected:
            return rejected
        decoded = decode_string(encoded, self.export_transform)
        if not decoded.ok:
            return self._reject("import", f"undecodable payload ({decoded.error})")
        if not decoded.data:
            return self._reject("import", "payload is empty")

        imported: list[str] = []
        with self._operation():
            try:
                for category, data in decoded.data.items():
                    if category not in self.sections:
                        logger.warning("Skipping unknown category %r on import", category)
                        continue
                    if not isinstance(data, dict):
                        logger.warning("Skipping category %r on import: not an object", category)
                        continue
                    self.store.write(index, category, data)
                    imported.append(category)
            except SlotWriteError as exc:
                logger.error("Importing into slot %s failed: %s", index, exc)
                return OperationResult.failure(str(exc), data=imported)
            if not imported:
                return self._reject("import", "payload has no known categories")
            self._refresh_metadata(index)
        logger.info("Imported categories %s into slot %s", imported, index)
        return OperationResult.success(imported)

    def export_slot(self, index: int) -> OperationResult:
        rejected = self._guard_identity("export", index)
        if rejected:
            rejected.data = ""
            return rejected
        payload: dict[str, Any] = {}
        with self._operation():
            for category, section in self.sections.items():
                result = self.store.read(index, category)
                if result.success:
                    payload[category] = result.data
                else:
                    section.clear(index)
                    payload[category] = section.get_as_dict()
        try:
            encoded = encode_dict(payload, self.export_transform)
        except (TypeError, ValueError) as exc:
            logger.error("Exporting slot %s failed: %s", index, exc)
            return OperationResult.failure(f"slot data is not JSON serializable: {exc}", data="")
        logger.info("Exported slot %s: %s", index, encoded)
        return OperationResult.success(encoded)

    # -- internals -------------------------------------------------------

    @contextmanager
    def _operation(self) -> Iterator[None]:
        previous = self._busy
        self._busy = True
        try:
            yield
        finally:
            self._busy = previous

    def _on_autosave_tick(self) -> None:
        if self._busy:
            logger.debug("Autosave skipped, another slot operation is running")
            return
        if not self.autosave_settings.get_autosave_enabled():
            return
        if not self.is_selected:
            return
        logger.info("Autosaving slot %s", self._selected)
        self.save()

    def _guard_identity(self, operation: str, index: int) -> OperationResult | None:
        if self.is_selected:
            return self._reject(operation, f"slot {self._selected} is selected, exit it first")
        if not is_valid_index(index, self.save_file_count):
            return self._reject(operation, f"invalid slot index {index!r}")
        return None

    def _reject(self, operation: str, reason: str) -> OperationResult:
        logger.warning("Cannot %s: %s", operation, reason)
        return OperationResult.failure(reason)

    def _metadata_sections(self) -> list[SaveSection]:
        return [section for section in self.sections.values() if section.is_metadata()]

    def _default_metadata(self, index: int) -> dict[str, dict[str, Any]]:
        entry: dict[str, dict[str, Any]] = {}
        for section in self._metadata_sections():
            section.clear(index)
            entry[section.get_category()] = section.get_as_dict()
        return entry

    def _refresh_metadata(self, index: int) -> bool:
        entry: dict[str, dict[str, Any]] = {}
        ok = True
        for section in self._metadata_sections():
            category = section.get_category()
            section.clear(index)
            try:
                entry[category] = self.store.read_or_create(index, section)
            except (SlotWriteError, SlotSerializationError) as exc:
                logger.error("Could not create metadata for slot %s: %s", index, exc)
                entry[category] = section.get_as_dict()
                ok = False
        self._metadata_cache[index] = entry
        return ok
