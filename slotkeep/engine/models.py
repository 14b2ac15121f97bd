from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_SLOT = -1
SIGNATURE = "§§§"


class CipherMode(str, Enum):
    NONE = "none"
    SUBSTITUTION = "substitution"


class SaveConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    root: Path = Path("saves")
    prefix: str = "save"
    extension: str = "sav"
    save_file_count: int = Field(default=3, ge=1)
    filesystem_password: str = ""
    export_cipher: CipherMode = CipherMode.NONE
    export_secret: str = ""
    autosave_enabled: bool = True
    autosave_interval: float = Field(default=60.0, gt=0)
    metadata_category: str = "meta"
    name_key: str = "name"

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError("prefix must be a non-empty name without path separators")
        return value

    @field_validator("extension")
    @classmethod
    def strip_extension_dot(cls, value: str) -> str:
        value = value.lstrip(".")
        if not value:
            raise ValueError("extension must not be empty")
        return value


@dataclass
class ReadResult:
    data: dict[str, Any] = field(default_factory=dict)
    success: bool = False


@dataclass
class DecodeResult:
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class OperationResult:
    ok: bool
    reason: str = ""
    data: Any = None

    @classmethod
    def success(cls, data: Any = None) -> "OperationResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, reason: str, data: Any = None) -> "OperationResult":
        return cls(ok=False, reason=reason, data=data)
