# === NAVMAP v1 ===
# {
#   "module": "MiniAppCache.host",
#   "purpose": "Marshaling shim exposing the cache context to an embedding host runtime",
#   "sections": [
#     {"id": "types", "name": "Result types", "anchor": "TYP", "kind": "models"},
#     {"id": "handles", "name": "Context handles", "anchor": "HND", "kind": "api"},
#     {"id": "calls", "name": "Host calls", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Marshaling shim between an embedding host runtime and :class:`CacheContext`.

The host never sees Python objects or exceptions.  Contexts are referred to
by integer handles, every call returns a :class:`HostResult` carrying a
:class:`ReturnCode`, and failures are logged and reported as ``FAIL``.

Ownership: strings placed in ``HostResult.data`` are ordinary ``str`` values
owned by the caller; nothing needs to be released for them.  Context handles
stay registered until :func:`free_context` is called.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Generic, Optional, TypeVar

from .context import CacheContext
from .errors import AssetCacheError

__all__ = [
    "ReturnCode",
    "HostResult",
    "get_context",
    "get_app_info",
    "get_resource",
    "destroy_context",
    "free_context",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

_HANDLES: Dict[int, CacheContext] = {}
_HANDLES_LOCK = threading.Lock()
_NEXT_HANDLE = itertools.count(1)


class ReturnCode(IntEnum):
    SUCCESS = 0
    FAIL = 1


@dataclass(frozen=True)
class HostResult(Generic[T]):
    """Outcome of a host call: ``data`` is ``None`` for failures and absent values."""

    code: ReturnCode
    data: Optional[T] = None

    @property
    def ok(self) -> bool:
        return self.code is ReturnCode.SUCCESS


def _lookup(handle: int) -> CacheContext:
    with _HANDLES_LOCK:
        try:
            return _HANDLES[handle]
        except KeyError:
            raise AssetCacheError(f"unknown context handle {handle}") from None


def get_context(db_path: str, cache_dir: str) -> HostResult[int]:
    """Register a context for the given paths and return its handle."""
    try:
        ctx = CacheContext(db_path, cache_dir)
    except (AssetCacheError, ValueError) as exc:
        logger.error(f"get_context fail: {exc}")
        return HostResult(ReturnCode.FAIL)
    handle = next(_NEXT_HANDLE)
    with _HANDLES_LOCK:
        _HANDLES[handle] = ctx
    return HostResult(ReturnCode.SUCCESS, handle)


def get_app_info(handle: int, server: str, app_id: str) -> HostResult[str]:
    """Resolve a descriptor as camelCase JSON.

    ``SUCCESS`` with ``data=None`` means no descriptor is available, which is
    not an error.
    """
    try:
        payload = _lookup(handle).resolve_descriptor_json(server, app_id)
    except AssetCacheError as exc:
        logger.error(f"get_app_info fail: {exc}")
        return HostResult(ReturnCode.FAIL)
    if payload is None:
        logger.info(f"get_app_info empty, app id {app_id} may not exist")
    return HostResult(ReturnCode.SUCCESS, payload)


def get_resource(handle: int, url: str, disable_cache: bool = False) -> HostResult[str]:
    try:
        path = _lookup(handle).resolve_resource(url, disable_cache)
    except AssetCacheError as exc:
        logger.error(f"get_resource fail: {exc}")
        return HostResult(ReturnCode.FAIL)
    return HostResult(ReturnCode.SUCCESS, path)


def destroy_context(handle: int) -> HostResult[bool]:
    """Delete the context's database file. The handle stays valid."""
    try:
        removed = _lookup(handle).destroy()
    except AssetCacheError as exc:
        logger.error(f"destroy_context fail: {exc}")
        return HostResult(ReturnCode.FAIL)
    return HostResult(ReturnCode.SUCCESS, removed)


def free_context(handle: int) -> HostResult[None]:
    """Release a handle. Freeing an unknown handle reports ``FAIL``."""
    with _HANDLES_LOCK:
        ctx = _HANDLES.pop(handle, None)
    if ctx is None:
        logger.warning(f"free_context: unknown handle {handle}")
        return HostResult(ReturnCode.FAIL)
    return HostResult(ReturnCode.SUCCESS)
