"""Network retrieval, atomic file writes, and content digests.

**Responsibilities**
--------------------
- GET JSON payloads and validate them against a pydantic model
- GET raw resource bytes and persist them under a fresh, URL-independent name
- Compute deterministic digests for in-memory payloads and on-disk files

The fetcher carries no cache policy of its own: it never consults the store
and never retries.  Transport failures, parse failures and non-success
downloads surface as distinct :mod:`MiniAppCache.errors` types so the
resolvers can apply their own recovery rules.

**Atomic writes**
-----------------
Downloaded bodies are written to a temporary file in the destination
directory, fsynced, and moved into place with :func:`os.replace`, so a crash
never leaves a half-written file under a name the store could point at.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
import uuid
from pathlib import Path
from typing import Optional, Tuple, Type, TypeVar, Union

import httpx
from pydantic import BaseModel, ValidationError

from . import net
from .errors import ConfigurationError, DownloadFailure, FilesystemError, ParseError, TransportError
from .settings import SUPPORTED_DIGESTS, CacheSettings, get_settings

__all__ = ["ContentFetcher", "atomic_write_bytes"]

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def atomic_write_bytes(dest_path: Path, payload: bytes) -> int:
    """Write ``payload`` to ``dest_path`` via temp file + fsync + rename.

    Returns the number of bytes written. The temporary file is removed on any
    failure, so either the whole payload lands at ``dest_path`` or nothing does.
    """
    dest_dir = dest_path.parent
    dest_dir.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=dest_dir, prefix=".part-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, dest_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
    return len(payload)


class ContentFetcher:
    """Blocking fetch helpers bound to one HTTP client and one digest algorithm."""

    def __init__(
        self,
        settings: Optional[CacheSettings] = None,
        *,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings or get_settings()
        algorithm = self.settings.digest_algorithm.lower()
        if algorithm not in SUPPORTED_DIGESTS:
            raise ConfigurationError(f"unsupported digest algorithm '{algorithm}'")
        self.algorithm = algorithm
        self._client = client

    @property
    def client(self) -> httpx.Client:
        if self._client is not None:
            return self._client
        return net.get_http_client(self.settings.http)

    def _get(self, url: str) -> httpx.Response:
        try:
            return self.client.get(url)
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise TransportError(f"GET {url} failed: {exc}", url=url) from exc

    def fetch_json(self, url: str, model: Type[M]) -> Tuple[int, Optional[M]]:
        """GET ``url`` and validate its body as ``model``.

        Returns ``(status_code, instance)``. For a non-success status the body
        is not parsed and ``instance`` is ``None``.

        Raises:
            TransportError: if no response was received.
            ParseError: if a success response body is not valid for ``model``.
        """
        response = self._get(url)
        if not response.is_success:
            logger.info(
                "json request returned non-success status",
                extra={"stage": "fetch", "url": url, "status": response.status_code},
            )
            return response.status_code, None
        try:
            return response.status_code, model.model_validate_json(response.content)
        except ValidationError as exc:
            raise ParseError(f"Malformed JSON from {url}: {exc}") from exc

    def download(self, url: str, destination_dir: Union[str, Path]) -> str:
        """Download ``url`` into ``destination_dir`` and return the new file name.

        The name is a fresh ``uuid4`` hex token, never derived from the URL.
        """
        response = self._get(url)
        if not response.is_success:
            raise DownloadFailure(
                f"Download of {url} failed with HTTP {response.status_code}",
                url=url,
                status_code=response.status_code,
            )

        file_name = uuid.uuid4().hex
        dest_path = Path(destination_dir) / file_name
        try:
            written = atomic_write_bytes(dest_path, response.content)
        except OSError as exc:
            raise FilesystemError(f"Unable to write {dest_path}: {exc}") from exc
        logger.debug(
            "resource downloaded",
            extra={"stage": "fetch", "url": url, "path": str(dest_path), "bytes": written},
        )
        return file_name

    def digest_bytes(self, data: bytes) -> str:
        hasher = hashlib.new(self.algorithm)
        hasher.update(data)
        return hasher.hexdigest()

    def digest_file(self, path: Union[str, Path]) -> str:
        """Hash ``path`` in fixed-size chunks so memory stays bounded."""

        hasher = hashlib.new(self.algorithm)
        chunk_size = self.settings.chunk_size_bytes
        try:
            with Path(path).open("rb") as stream:
                for chunk in iter(lambda: stream.read(chunk_size), b""):
                    hasher.update(chunk)
        except OSError as exc:
            raise FilesystemError(f"Unable to read {path}: {exc}") from exc
        return hasher.hexdigest()
