"""Signed, line-oriented slot files.

Each (slot, category) pair lives in its own file holding one compact JSON
object followed by ``SIGNATURE``. A file cut short during a write loses its
signature, and anything appended after the last signature is treated as
corruption and dropped on read.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import IO, Any

from slotkeep.engine import file_crypto
from slotkeep.engine.models import SIGNATURE, ReadResult, SaveConfig
from slotkeep.engine.sections.base import SaveSection
from slotkeep.engine.utils import strip_newline_bytes

logger = logging.getLogger(__name__)

SIGNATURE_BYTES = SIGNATURE.encode("utf-8")


class SlotWriteError(OSError):
    pass


class SlotSerializationError(ValueError):
    pass


class SlotFileStore:
    def __init__(self, config: SaveConfig) -> None:
        self.config = config
        self.root = Path(config.root)

    @property
    def encrypted(self) -> bool:
        return bool(self.config.filesystem_password)

    def path(self, index: int, category: str | None = None) -> Path:
        slot_name = f"{self.config.prefix}_{index}"
        folder = self.root / slot_name
        if category is None:
            return folder
        return folder / f"{slot_name}_{category}.{self.config.extension}"

    def slot_exists(self, index: int) -> bool:
        return self.path(index).is_dir()

    def encode_record(self, data: dict[str, Any]) -> str:
        try:
            return json.dumps(data, ensure_ascii=False, separators=(",", ":")) + SIGNATURE
        except (TypeError, ValueError) as exc:
            raise SlotSerializationError(f"Save data is not JSON serializable: {exc}") from exc

    def write(self, index: int, category: str, data: dict[str, Any]) -> None:
        self.write_record(index, category, self.encode_record(data))

    def write_record(self, index: int, category: str, record: str) -> None:
        path = self.path(index, category)
        content: str | bytes = record
        if self.encrypted:
            content = file_crypto.encrypt_text(record, self.config.filesystem_password)

        handle = self._open_for_write(index, path)
        try:
            with handle:
                handle.write(content)
        except OSError as exc:
            raise SlotWriteError(f"Failed writing save file {path}: {exc}") from exc
        logger.debug("Wrote slot=%s category=%s to %s", index, category, path)

    def read(self, index: int, category: str) -> ReadResult:
        path = self.path(index, category)
        try:
            with path.open("rb") as f:
                blob = f.read()
        except OSError as exc:
            logger.debug("No save file for slot=%s category=%s: %s", index, category, exc)
            return ReadResult()

        if self.encrypted:
            try:
                blob = file_crypto.decrypt_bytes(blob, self.config.filesystem_password)
            except file_crypto.FileDecryptionError as exc:
                logger.warning("Could not decrypt save file %s: %s", path, exc)
                return ReadResult()

        # Cut at the signature before decoding; trailing garbage may be any bytes.
        kept = self._verify_signature(strip_newline_bytes(blob), path)
        try:
            content = kept.decode("utf-8")
        except UnicodeDecodeError as exc:
            logger.warning("Save file %s is not valid UTF-8: %s", path, exc)
            return ReadResult()
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Save file %s is corrupt, JSON parse failed: %s", path, exc)
            return ReadResult()
        if not isinstance(data, dict):
            logger.warning("Save file %s holds %s, expected an object", path, type(data).__name__)
            return ReadResult()
        return ReadResult(data=data, success=True)

    def read_or_create(self, index: int, section: SaveSection) -> dict[str, Any]:
        category = section.get_category()
        result = self.read(index, category)
        if result.success:
            return result.data
        data = section.get_as_dict()
        logger.info("Creating save file for slot=%s category=%s", index, category)
        self.write(index, category, data)
        return data

    def delete_slot(self, index: int) -> bool:
        folder = self.path(index)
        if not folder.exists():
            logger.info("Slot folder %s does not exist, treating as deleted", folder)
            return True
        try:
            for entry in folder.iterdir():
                if entry.is_dir():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            folder.rmdir()
        except OSError as exc:
            logger.error("Failed to delete slot folder %s: %s", folder, exc)
            return False
        logger.info("Deleted slot folder %s", folder)
        return True

    def _open_for_write(self, index: int, path: Path) -> IO[Any]:
        try:
            return self._open(path)
        except OSError as exc:
            logger.debug("Open for write failed on %s (%s), creating slot folder", path, exc)

        try:
            self.path(index).mkdir(parents=True, exist_ok=True)
            return self._open(path)
        except OSError as exc:
            raise SlotWriteError(f"Cannot open save file {path} for writing: {exc}") from exc

    def _open(self, path: Path) -> IO[Any]:
        if self.encrypted:
            return path.open("wb")
        return path.open("w", encoding="utf-8", newline="")

    def _verify_signature(self, blob: bytes, path: Path) -> bytes:
        pos = blob.rfind(SIGNATURE_BYTES)
        if pos == -1:
            logger.warning("No signature found in %s, attempting to parse raw content", path)
            return blob
        end = pos + len(SIGNATURE_BYTES)
        if end < len(blob):
            logger.warning(
                "Save file %s is corrupt: discarding %d bytes after the signature",
                path,
                len(blob) - end,
            )
        return blob[:end].replace(SIGNATURE_BYTES, b"")
