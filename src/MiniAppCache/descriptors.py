# === NAVMAP v1 ===
# {
#   "module": "MiniAppCache.descriptors",
#   "purpose": "Network-first descriptor lookup with last-known-good fallback",
#   "sections": [
#     {"id": "descriptorresolver", "name": "DescriptorResolver", "anchor": "class-descriptorresolver", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Resolve application descriptors, preferring the server over the local copy.

A positive server answer (``code == 0``) is authoritative: it is persisted,
overwriting any earlier copy, and returned.  Everything else, whether a
transport failure, a non-success HTTP status or a non-zero ``code``, falls back
to the persisted descriptor without modifying it.  "No descriptor available"
is a valid outcome and is reported as ``None``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote

from pydantic import ValidationError

from .errors import ParseError, TransportError
from .fetcher import ContentFetcher
from .models import ApiEnvelope, ApplicationDescriptor
from .store import CacheStore

__all__ = ["DescriptorResolver", "descriptor_url"]

logger = logging.getLogger(__name__)


def descriptor_url(server: str, app_id: str) -> str:
    return f"{server.rstrip('/')}/appinfo/{quote(app_id, safe='')}"


class DescriptorResolver:
    """Compose the store and the fetcher into the descriptor lookup flow."""

    def __init__(self, store: CacheStore, fetcher: ContentFetcher):
        self.store = store
        self.fetcher = fetcher

    def resolve(self, server: str, app_id: str) -> Optional[ApplicationDescriptor]:
        """Return the current descriptor for ``app_id`` or ``None``.

        Raises:
            ParseError: if the server sent a success response that is not a
                valid envelope, or the persisted copy no longer parses.
            StoreError: on any database failure.
        """
        self.store.ensure_schema()
        url = descriptor_url(server, app_id)
        log_extra = {"stage": "descriptor", "app_id": app_id, "url": url}

        try:
            status, envelope = self.fetcher.fetch_json(url, ApiEnvelope[Any])
        except TransportError as exc:
            logger.warning(f"descriptor request failed, using cache: {exc}", extra=log_extra)
            return self._cached(app_id)

        if envelope is None:
            logger.info(f"descriptor request returned HTTP {status}, using cache", extra=log_extra)
            return self._cached(app_id)

        if not envelope.ok:
            logger.info(f"server reported code {envelope.code}, using cache", extra=log_extra)
            return self._cached(app_id)

        try:
            descriptor = ApplicationDescriptor.model_validate(envelope.data)
        except ValidationError as exc:
            raise ParseError(f"Invalid descriptor payload from {url}: {exc}") from exc

        self.store.put_descriptor(app_id, descriptor.to_blob())
        logger.info(f"cached descriptor version {descriptor.version}", extra=log_extra)
        return descriptor

    def resolve_json(self, server: str, app_id: str) -> Optional[str]:
        """Like :meth:`resolve`, serialised with the camelCase wire names."""
        descriptor = self.resolve(server, app_id)
        return descriptor.to_json() if descriptor is not None else None

    def _cached(self, app_id: str) -> Optional[ApplicationDescriptor]:
        blob = self.store.get_descriptor(app_id)
        if blob is None:
            logger.info("no cached descriptor", extra={"stage": "descriptor", "app_id": app_id})
            return None
        try:
            return ApplicationDescriptor.from_blob(blob)
        except ValidationError as exc:
            raise ParseError(f"Cached descriptor for {app_id} is unreadable: {exc}") from exc
