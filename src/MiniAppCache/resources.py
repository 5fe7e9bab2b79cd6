"""Resolve resource URLs to hash-verified local files.

Lookup flow for one URL:

1. The existing record (if any) is removed from the store before it is
   validated, so the store never holds a record whose file failed a check.
2. A record whose file still exists and still hashes to ``hash_code`` is
   re-inserted as a fresh row and its path returned.
3. Otherwise the resource is downloaded under a new name, hashed, and
   recorded.

Download failures propagate: unlike descriptors there is no stale fallback.
The multi-step sequence is not transactional, so one database file and cache
directory must be driven by a single caller at a time.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from .errors import FilesystemError
from .fetcher import ContentFetcher
from .models import CacheRecord
from .store import CacheStore

__all__ = ["ResourceResolver"]

logger = logging.getLogger(__name__)


class ResourceResolver:
    def __init__(self, store: CacheStore, fetcher: ContentFetcher, cache_dir: Union[str, Path]):
        self.store = store
        self.fetcher = fetcher
        self.cache_dir = Path(cache_dir)

    def resolve(self, url: str, disable_cache: bool = False) -> str:
        """Return a local path holding the bytes of ``url``.

        Raises:
            DownloadFailure: the server answered with a non-success status.
            TransportError: the download request got no response.
            FilesystemError: the cache directory or file could not be used.
            StoreError: on any database failure.
        """
        self._ensure_cache_dir()
        self.store.ensure_schema()
        log_extra = {"stage": "resource", "url": url}

        candidate: Optional[CacheRecord] = None
        record = self.store.find_resource(url)
        if record is not None:
            self.store.delete_resource(record.id)
            if disable_cache:
                logger.info("cache bypassed", extra=log_extra)
            elif self._is_valid(record):
                candidate = record
            else:
                logger.info(f"discarded invalid record {record.id}", extra=log_extra)

        if candidate is not None:
            record_id = self.store.insert_resource(
                candidate.url, candidate.path, candidate.hash_code, candidate.cache_ctrl
            )
            logger.debug(f"cache hit, record {candidate.id} -> {record_id}", extra=log_extra)
            return candidate.path

        file_name = self.fetcher.download(url, self.cache_dir)
        file_path = self.cache_dir / file_name
        hash_code = self.fetcher.digest_file(file_path)
        record_id = self.store.insert_resource(url, str(file_path), hash_code, "")
        logger.info(f"saved record {record_id} at {file_path}", extra=log_extra)
        return str(file_path)

    def verify(self, url: str) -> bool:
        """Check the current record for ``url`` without modifying the store."""
        self.store.ensure_schema()
        record = self.store.find_resource(url)
        return record is not None and self._is_valid(record)

    def _is_valid(self, record: CacheRecord) -> bool:
        path = Path(record.path)
        if not path.is_file():
            return False
        digest = self.fetcher.digest_file(path)
        if digest != record.hash_code:
            logger.warning(
                f"digest mismatch for {path}: expected {record.hash_code}, got {digest}",
                extra={"stage": "resource", "url": record.url},
            )
            return False
        return True

    def _ensure_cache_dir(self) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FilesystemError(f"Unable to create cache directory {self.cache_dir}: {exc}") from exc
