"""Host-facing entry points bound to one database file and one cache directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from .descriptors import DescriptorResolver
from .fetcher import ContentFetcher
from .models import ApplicationDescriptor
from .resources import ResourceResolver
from .settings import CacheSettings, get_settings
from .store import CacheStore

__all__ = ["CacheContext"]

logger = logging.getLogger(__name__)


class CacheContext:
    """Configuration paths plus the two resolvers built on them.

    The context holds no live handles: every call opens its own database
    connection, so a context is cheap to create and safe to discard.

    Examples:
        >>> ctx = CacheContext("/tmp/miniapp.db", "/tmp/miniapp-cache")
        >>> ctx.db_path.name
        'miniapp.db'
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        cache_dir: Union[str, Path],
        *,
        settings: Optional[CacheSettings] = None,
        client: Optional[httpx.Client] = None,
    ):
        self.db_path = Path(db_path)
        self.cache_dir = Path(cache_dir)
        self.settings = settings or get_settings()
        self.store = CacheStore(self.db_path)
        self.fetcher = ContentFetcher(self.settings, client=client)
        self.descriptors = DescriptorResolver(self.store, self.fetcher)
        self.resources = ResourceResolver(self.store, self.fetcher, self.cache_dir)

    @classmethod
    def from_settings(cls, settings: Optional[CacheSettings] = None) -> "CacheContext":
        cfg = settings or get_settings()
        return cls(cfg.db_path, cfg.cache_dir, settings=cfg)

    def resolve_descriptor(self, server: str, app_id: str) -> Optional[ApplicationDescriptor]:
        logger.debug(f"resolve_descriptor server={server} app_id={app_id} db={self.db_path}")
        return self.descriptors.resolve(server, app_id)

    def resolve_descriptor_json(self, server: str, app_id: str) -> Optional[str]:
        return self.descriptors.resolve_json(server, app_id)

    def resolve_resource(self, url: str, disable_cache: bool = False) -> str:
        logger.debug(
            f"resolve_resource url={url} disable_cache={disable_cache} cache_dir={self.cache_dir}"
        )
        return self.resources.resolve(url, disable_cache)

    def destroy(self) -> bool:
        """Delete the database file; cached resource files are left in place."""
        return self.store.destroy()

    def __repr__(self) -> str:
        return f"CacheContext(db_path={str(self.db_path)!r}, cache_dir={str(self.cache_dir)!r})"
