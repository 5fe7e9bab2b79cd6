"""
Pydantic v2 settings for MiniAppCache.

Provides typed configuration for the two moving parts of the cache:

- HTTP client settings (timeouts, TLS, user agent)
- Cache settings (database path, cache directory, digest algorithm)

Environment variables use the ``MINIAPPCACHE_`` prefix; nested HTTP settings
use ``__`` as delimiter (``MINIAPPCACHE_HTTP__TIMEOUT_READ_S=10``).
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__

CACHE_ROOT = Path.home() / ".cache" / "miniappcache"
SUPPORTED_DIGESTS = frozenset({"md5", "sha1", "sha256", "sha512"})

__all__ = [
    "CACHE_ROOT",
    "SUPPORTED_DIGESTS",
    "HttpSettings",
    "CacheSettings",
    "get_settings",
    "invalidate_settings_cache",
]


class HttpSettings(BaseModel):
    """Configuration for the shared HTTPX client."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")

    timeout_connect_s: float = Field(default=5.0, description="Connect timeout in seconds")
    timeout_read_s: float = Field(default=30.0, description="Read/write timeout in seconds")
    user_agent: str = Field(default=f"MiniAppCache/{__version__}", description="User-Agent header")
    verify_tls: bool = Field(default=True, description="Verify TLS certificates")
    follow_redirects: bool = Field(default=True, description="Follow 3xx responses")
    http2: bool = Field(default=False, description="Negotiate HTTP/2 when available")

    @field_validator("timeout_connect_s", "timeout_read_s")
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v


class CacheSettings(BaseSettings):
    """Top-level configuration: where the cache lives and how files are verified."""

    model_config = SettingsConfigDict(
        env_prefix="MINIAPPCACHE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    db_path: Path = Field(default=CACHE_ROOT / "cache.db", description="SQLite database file")
    cache_dir: Path = Field(default=CACHE_ROOT / "resources", description="Downloaded resource directory")
    digest_algorithm: str = Field(default="md5", description="hashlib algorithm for integrity checks")
    chunk_size_bytes: int = Field(default=1 << 20, description="Read size when hashing files")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    http: HttpSettings = Field(default_factory=HttpSettings)

    @field_validator("digest_algorithm")
    @classmethod
    def validate_digest_algorithm(cls, v: str) -> str:
        candidate = v.strip().lower()
        if candidate not in SUPPORTED_DIGESTS:
            raise ValueError(f"unsupported digest algorithm '{v}'")
        return candidate

    @field_validator("chunk_size_bytes")
    @classmethod
    def validate_chunk_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("chunk_size_bytes must be > 0")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        return v.upper() if isinstance(v, str) else v


@lru_cache(maxsize=1)
def get_settings() -> CacheSettings:
    """Return process-wide settings loaded from the environment."""

    return CacheSettings()


def invalidate_settings_cache() -> None:
    """Forget cached settings so the next call re-reads the environment (test helper)."""

    get_settings.cache_clear()
