"""Offline-tolerant cache for mini-app descriptors and downloadable resources.

This facade exposes the context used by host applications together with the
exception hierarchy.  Submodules are imported lazily so that importing the
package (for example to read ``__version__``) does not construct an HTTP
client or touch the filesystem.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__version__ = "0.1.0"

_EXPORTS = {
    "CacheContext": "context",
    "CacheStore": "store",
    "ContentFetcher": "fetcher",
    "DescriptorResolver": "descriptors",
    "ResourceResolver": "resources",
    "ApplicationDescriptor": "models",
    "CacheRecord": "models",
    "CacheSettings": "settings",
    "AssetCacheError": "errors",
    "DownloadFailure": "errors",
    "FilesystemError": "errors",
    "ParseError": "errors",
    "StoreError": "errors",
    "TransportError": "errors",
}

__all__ = [*_EXPORTS, "__version__"]

if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .context import CacheContext
    from .descriptors import DescriptorResolver
    from .errors import (
        AssetCacheError,
        DownloadFailure,
        FilesystemError,
        ParseError,
        StoreError,
        TransportError,
    )
    from .fetcher import ContentFetcher
    from .models import ApplicationDescriptor, CacheRecord
    from .resources import ResourceResolver
    from .settings import CacheSettings
    from .store import CacheStore


def __getattr__(name: str) -> Any:
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    value = getattr(import_module(f".{module_name}", __name__), name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(globals()) | set(__all__))
