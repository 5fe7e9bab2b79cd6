# === NAVMAP v1 ===
# {
#   "module": "MiniAppCache.errors",
#   "purpose": "Define the exception hierarchy used across descriptor and resource resolution",
#   "sections": [
#     {"id": "base", "name": "Base Exceptions", "anchor": "BAS", "kind": "api"},
#     {"id": "network", "name": "Transport & Download Errors", "anchor": "NET", "kind": "api"},
#     {"id": "local", "name": "Store & Filesystem Errors", "anchor": "LOC", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Exception hierarchy shared across descriptor and resource resolution.

The cache talks to three collaborators (the HTTP transport, the SQLite store
and the local filesystem) and each failure mode maps to one class below so
callers can react to high-level categories.  Two conditions are deliberately
absent from the hierarchy: a non-zero ``code`` in a descriptor envelope and a
digest mismatch on a cached file.  Both are recovered inside the resolvers
(cache fallback and re-download respectively) and never reach the caller.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "AssetCacheError",
    "ConfigurationError",
    "TransportError",
    "ParseError",
    "DownloadFailure",
    "StoreError",
    "FilesystemError",
]


class AssetCacheError(RuntimeError):
    """Base exception for descriptor and resource resolution failures."""


class ConfigurationError(AssetCacheError):
    """Raised when settings contain values the cache cannot honour."""


class TransportError(AssetCacheError):
    """Raised when a request never produced an HTTP response."""

    def __init__(self, message: str, *, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class ParseError(AssetCacheError):
    """Raised when a JSON payload is malformed or has an unexpected shape."""


class DownloadFailure(AssetCacheError):
    """Raised when a resource download returns a non-success status."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class StoreError(AssetCacheError):
    """Raised when the embedded SQLite store reports a failure."""


class FilesystemError(AssetCacheError):
    """Raised when cache directories or files cannot be created or read."""
