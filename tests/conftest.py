"""
Pytest Configuration

Shared fixtures for the MiniAppCache suite: isolated settings rooted in
``tmp_path``, a scriptable fake HTTP server served through
``httpx.MockTransport``, and a ready-to-use :class:`CacheContext`.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Tuple, Union

import httpx
import pytest

from MiniAppCache.context import CacheContext
from MiniAppCache.settings import CacheSettings, invalidate_settings_cache
from MiniAppCache.testing import use_mock_http_client

SERVER = "http://appserver.test"
APP_ID = "fbbca092cdce4694a3d43f1ba002b6f1"


def descriptor_payload(version: int = 1) -> Dict[str, object]:
    """Descriptor JSON as sent by the server, including keys the cache ignores."""
    return {
        "appId": APP_ID,
        "name": "jzhomeland",
        "force": False,
        "useAppStore": False,
        "appUri": "http://www.nikoeureka33.gr",
        "version": version,
        "os": "Android",
        "addTime": "2023-02-03T09:27:45.000Z",
        "delFlag": 0,
        "metaInfo": {
            "theme": {"content": "dark", "valueType": "1", "description": "UI theme"},
            "maxTabs": {"content": "4", "valueType": "0", "description": ""},
        },
        "entry": {
            "id": "0c0ed7fd985049d5a3dd9ae827e06e65",
            "appId": APP_ID,
            "ttf": "",
            "publish": None,
            "version": "1.0.0",
            "os": "Android",
            "agent": "RN",
            "script": [
                {
                    "id": 9,
                    "src": "http://10.20.0.18:3000/vendor_runtime_base.bundle.js",
                    "async": False,
                },
                {"id": 10, "src": "http://10.20.0.18:3000/main.bundle.js", "async": True},
            ],
        },
    }


@dataclass
class FakeServer:
    """Route table for ``httpx.MockTransport``; records every request path."""

    routes: Dict[str, Tuple[int, bytes]] = field(default_factory=dict)
    requests: List[str] = field(default_factory=list)
    offline: bool = False
    redirect_loop: bool = False

    def add(self, path: str, body: Union[bytes, str, dict], status: int = 200) -> None:
        if isinstance(body, dict):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.routes[path] = (status, body)

    def add_envelope(self, app_id: str, data: object, code: int = 0) -> None:
        self.add(f"/appinfo/{app_id}", {"code": code, "msg": "ok", "data": data})

    def count(self, path: str) -> int:
        return self.requests.count(path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.offline:
            raise httpx.ConnectError("network unreachable", request=request)
        self.requests.append(request.url.path)
        if self.redirect_loop:
            return httpx.Response(302, headers={"Location": str(request.url)})
        status, body = self.routes.get(request.url.path, (404, b"not found"))
        return httpx.Response(status, content=body)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path: Path) -> Iterator[None]:
    monkeypatch.setenv("MINIAPPCACHE_DB_PATH", str(tmp_path / "env" / "cache.db"))
    monkeypatch.setenv("MINIAPPCACHE_CACHE_DIR", str(tmp_path / "env" / "files"))
    invalidate_settings_cache()
    yield
    invalidate_settings_cache()


@pytest.fixture
def settings(tmp_path: Path) -> CacheSettings:
    return CacheSettings(db_path=tmp_path / "cache.db", cache_dir=tmp_path / "files")


@pytest.fixture
def server() -> Iterator[FakeServer]:
    fake = FakeServer()
    with use_mock_http_client(httpx.MockTransport(fake.handler), follow_redirects=True):
        yield fake


@pytest.fixture
def context(settings: CacheSettings, server: FakeServer) -> CacheContext:
    return CacheContext(settings.db_path, settings.cache_dir, settings=settings)
