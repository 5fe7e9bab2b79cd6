"""Data models for application descriptors and cached resources.

Descriptors arrive from the server as camelCase JSON and are persisted in the
same shape, so every pydantic model below declares aliases and accepts either
the alias or the Python field name on input.  Keys the server sends that the
cache does not use (``name``, ``addTime``, ``delFlag``...) are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "MetaValueType",
    "MetaValue",
    "ScriptSource",
    "EntryModule",
    "ApplicationDescriptor",
    "ApiEnvelope",
    "CacheRecord",
]

T = TypeVar("T")

_MODEL_CONFIG = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class MetaValueType(str, Enum):
    """Type tag carried by a metadata entry; serialised as a numeric string."""

    NUMBER = "0"
    STRING = "1"
    BOOL = "2"


class MetaValue(BaseModel):
    """Single metadata entry: raw ``content`` plus its declared type."""

    model_config: ClassVar[ConfigDict] = _MODEL_CONFIG

    content: str
    value_type: MetaValueType = Field(alias="valueType")
    description: str = ""

    def typed_value(self) -> Union[int, float, str, bool]:
        """Return ``content`` converted to the Python type named by ``value_type``."""

        if self.value_type is MetaValueType.NUMBER:
            try:
                return int(self.content)
            except ValueError:
                return float(self.content)
        if self.value_type is MetaValueType.BOOL:
            return self.content.strip().lower() in {"1", "true", "yes"}
        return self.content


class ScriptSource(BaseModel):
    model_config: ClassVar[ConfigDict] = _MODEL_CONFIG

    src: str
    async_: bool = Field(default=False, alias="async")


class EntryModule(BaseModel):
    """Module booted by the host: its identity plus ordered script sources."""

    model_config: ClassVar[ConfigDict] = _MODEL_CONFIG

    app_id: str = Field(alias="appId")
    id: str
    version: str
    os: str
    agent: str
    script: List[ScriptSource] = Field(default_factory=list)
    ttf: str = ""


class ApplicationDescriptor(BaseModel):
    """Versioned metadata describing a remote mini-app and its entry module."""

    model_config: ClassVar[ConfigDict] = _MODEL_CONFIG

    app_id: str = Field(alias="appId")
    version: int
    force: bool = False
    os: str
    use_app_store: bool = Field(default=False, alias="useAppStore")
    app_uri: str = Field(default="", alias="appUri")
    meta_info: Dict[str, MetaValue] = Field(default_factory=dict, alias="metaInfo")
    entry: EntryModule

    def to_json(self) -> str:
        """Serialise using the camelCase wire names."""

        return self.model_dump_json(by_alias=True)

    def to_blob(self) -> bytes:
        return self.to_json().encode("utf-8")

    @classmethod
    def from_blob(cls, blob: Union[bytes, str]) -> "ApplicationDescriptor":
        return cls.model_validate_json(blob)


class ApiEnvelope(BaseModel, Generic[T]):
    """Server response wrapper: ``code == 0`` means ``data`` is authoritative."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore")

    code: int
    data: Optional[T] = None

    @property
    def ok(self) -> bool:
        return self.code == 0


@dataclass(frozen=True)
class CacheRecord:
    """One row of the ``resource`` table."""

    id: int
    url: str
    path: str
    hash_code: str
    cache_ctrl: str = ""
