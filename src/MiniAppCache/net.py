# === NAVMAP v1 ===
# {
#   "module": "MiniAppCache.net",
#   "purpose": "Provide the shared HTTPX client used for descriptor and resource requests",
#   "sections": [
#     {"id": "constants", "name": "Constants & globals", "anchor": "CONST", "kind": "constants"},
#     {"id": "helpers", "name": "Client construction helpers", "anchor": "HELP", "kind": "helpers"},
#     {"id": "api", "name": "Public API", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Shared HTTPX client used by the content fetcher.

Requests are blocking and single-attempt: the transport is built with
``retries=0`` and no HTTP-level cache sits in front of it, because the
resolvers implement their own cache policy on top of the raw responses.
"""

from __future__ import annotations

import contextlib
import importlib.util
import logging
import ssl
import threading
import time
from typing import Callable, MutableMapping, Optional

import certifi
import httpx

from .errors import ConfigurationError
from .settings import HttpSettings

logger = logging.getLogger(__name__)

# --- Constants & globals -------------------------------------------------------

_CLIENT_LOCK = threading.RLock()
_HTTP_CLIENT: Optional[httpx.Client] = None
_CLIENT_FACTORY: Optional[Callable[[], httpx.Client]] = None

# --- Client construction helpers ----------------------------------------------


def _build_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.load_verify_locations(certifi.where())
    return context


def _request_hook(request: httpx.Request) -> None:
    meta: MutableMapping[str, object] = request.extensions.setdefault("miniapp_meta", {})  # type: ignore[assignment]
    meta["start_time"] = time.perf_counter()


def _response_hook(response: httpx.Response) -> None:
    meta: MutableMapping[str, object] = response.request.extensions.setdefault(  # type: ignore[assignment]
        "miniapp_meta", {}
    )
    elapsed_ms: Optional[float] = None
    start = meta.get("start_time")
    if isinstance(start, (int, float)):
        elapsed_ms = round((time.perf_counter() - start) * 1000.0, 2)
        meta["elapsed_ms"] = elapsed_ms

    logger.debug(
        "http-response",
        extra={
            "stage": "http",
            "url": str(response.request.url),
            "status": response.status_code,
            "elapsed_ms": elapsed_ms,
        },
    )


def _timeout_for(config: HttpSettings) -> httpx.Timeout:
    return httpx.Timeout(
        connect=config.timeout_connect_s,
        read=config.timeout_read_s,
        write=config.timeout_read_s,
        pool=config.timeout_connect_s,
    )


def _http2_available() -> bool:
    return importlib.util.find_spec("h2") is not None


def _build_http_client(config: HttpSettings) -> httpx.Client:
    if config.http2 and not _http2_available():
        raise ConfigurationError("http2 requires the h2 package; install miniappcache[http2]")
    verify: object = _build_ssl_context() if config.verify_tls else False
    return httpx.Client(
        transport=httpx.HTTPTransport(retries=0, verify=verify, http2=config.http2),
        timeout=_timeout_for(config),
        trust_env=True,
        follow_redirects=config.follow_redirects,
        headers={"User-Agent": config.user_agent, "Accept": "*/*"},
        event_hooks={"request": [_request_hook], "response": [_response_hook]},
    )


def _close_client_unlocked() -> None:
    global _HTTP_CLIENT
    if _HTTP_CLIENT is not None:
        with contextlib.suppress(Exception):
            _HTTP_CLIENT.close()
    _HTTP_CLIENT = None


# --- Public API ----------------------------------------------------------------


def configure_http_client(
    client: Optional[httpx.Client] = None,
    *,
    factory: Optional[Callable[[], httpx.Client]] = None,
) -> None:
    """Override the shared HTTPX client or register a factory for tests."""

    if client is not None and factory is not None:
        raise ValueError("provide either a client or factory, not both")

    with _CLIENT_LOCK:
        global _HTTP_CLIENT, _CLIENT_FACTORY

        if client is None:
            _close_client_unlocked()
        else:
            if _HTTP_CLIENT is not client:
                _close_client_unlocked()
            _HTTP_CLIENT = client

        _CLIENT_FACTORY = factory


def reset_http_client() -> None:
    """Drop the shared client so the next call rebuilds it from settings (test helper)."""

    with _CLIENT_LOCK:
        global _CLIENT_FACTORY
        _CLIENT_FACTORY = None
        _close_client_unlocked()


def get_http_client(config: Optional[HttpSettings] = None) -> httpx.Client:
    """Return the shared HTTPX client, creating it if necessary."""

    global _HTTP_CLIENT
    with _CLIENT_LOCK:
        if _HTTP_CLIENT is not None:
            return _HTTP_CLIENT

        if _CLIENT_FACTORY is not None:
            candidate = _CLIENT_FACTORY()
            if not isinstance(candidate, httpx.Client):
                raise TypeError("client factory must return an httpx.Client")
            _HTTP_CLIENT = candidate
            return candidate

        cfg = config or HttpSettings()
        _HTTP_CLIENT = _build_http_client(cfg)
        logger.debug("HTTPX client created", extra={"stage": "http", "http2": cfg.http2})
        return _HTTP_CLIENT
