"""Tests for the host marshaling shim."""

from __future__ import annotations

import json

import pytest

from MiniAppCache import host
from MiniAppCache.host import ReturnCode
from tests.conftest import APP_ID, SERVER, descriptor_payload


@pytest.fixture
def handle(settings, server):
    result = host.get_context(str(settings.db_path), str(settings.cache_dir))
    assert result.code is ReturnCode.SUCCESS
    yield result.data
    host.free_context(result.data)


def test_get_app_info_success(handle, server):
    server.add_envelope(APP_ID, descriptor_payload())

    result = host.get_app_info(handle, SERVER, APP_ID)

    assert result.ok
    assert json.loads(result.data)["appId"] == APP_ID


def test_get_app_info_absent_is_success(handle, server):
    result = host.get_app_info(handle, SERVER, "missing")

    assert result.code is ReturnCode.SUCCESS
    assert result.data is None


def test_get_app_info_parse_error_is_fail(handle, server):
    server.add(f"/appinfo/{APP_ID}", "{broken")

    result = host.get_app_info(handle, SERVER, APP_ID)

    assert result.code is ReturnCode.FAIL
    assert result.data is None


def test_get_resource(handle, server):
    server.add("/a.js", "a()")

    result = host.get_resource(handle, f"{SERVER}/a.js", False)

    assert result.ok
    with open(result.data, encoding="utf-8") as fh:
        assert fh.read() == "a()"


def test_get_resource_failure(handle, server):
    result = host.get_resource(handle, f"{SERVER}/missing.js", False)

    assert result.code is ReturnCode.FAIL


def test_redirect_loop_is_fail(handle, server):
    server.redirect_loop = True

    assert host.get_resource(handle, f"{SERVER}/a.js").code is ReturnCode.FAIL
    assert host.get_app_info(handle, SERVER, APP_ID) == host.HostResult(ReturnCode.SUCCESS)


def test_destroy_context(handle, server, settings):
    server.add("/a.js", "a()")
    host.get_resource(handle, f"{SERVER}/a.js")

    assert host.destroy_context(handle).data is True
    assert not settings.db_path.exists()


def test_free_context_releases_handle(settings, server):
    handle = host.get_context(str(settings.db_path), str(settings.cache_dir)).data

    assert host.free_context(handle).ok
    assert host.free_context(handle).code is ReturnCode.FAIL
    assert host.get_resource(handle, f"{SERVER}/a.js").code is ReturnCode.FAIL


def test_handles_are_distinct(settings):
    a = host.get_context(str(settings.db_path), str(settings.cache_dir)).data
    b = host.get_context(str(settings.db_path), str(settings.cache_dir)).data
    try:
        assert a != b
    finally:
        host.free_context(a)
        host.free_context(b)
