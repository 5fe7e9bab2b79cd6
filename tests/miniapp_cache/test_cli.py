"""CLI tests for the typer application."""

from __future__ import annotations

import json
import logging

import pytest
from typer.testing import CliRunner

from MiniAppCache.cli import app
from MiniAppCache.logging_config import LOGGER_NAME
from tests.conftest import APP_ID, SERVER, descriptor_payload


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def invoke(cli_runner, settings, server):
    base = [
        "--db",
        str(settings.db_path),
        "--cache-dir",
        str(settings.cache_dir),
        "--log-level",
        "WARNING",
    ]

    def _invoke(*args: str, **kwargs):
        return cli_runner.invoke(app, [*base, *args], **kwargs)

    return _invoke


@pytest.fixture(autouse=True)
def _drop_cli_log_handlers():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, "_miniappcache_managed", False):
            logger.removeHandler(handler)
            handler.close()


class TestDescriptorCommand:
    def test_prints_descriptor(self, invoke, server):
        server.add_envelope(APP_ID, descriptor_payload())

        result = invoke("descriptor", SERVER, APP_ID)

        assert result.exit_code == 0
        assert json.loads(result.stdout)["appId"] == APP_ID

    def test_absent_descriptor(self, invoke):
        result = invoke("descriptor", SERVER, "missing")

        assert result.exit_code == 2
        assert "No descriptor available" in result.output

    def test_parse_error(self, invoke, server):
        server.add(f"/appinfo/{APP_ID}", "{broken")

        result = invoke("descriptor", SERVER, APP_ID)

        assert result.exit_code == 1
        assert "Error" in result.output


class TestResourceCommands:
    def test_resource_then_records_and_verify(self, invoke, server, settings):
        server.add("/a.js", "a()")

        resolved = invoke("resource", f"{SERVER}/a.js")
        assert resolved.exit_code == 0
        path = resolved.stdout.strip()
        assert path.startswith(str(settings.cache_dir))

        listed = invoke("records")
        assert listed.exit_code == 0
        assert f"{SERVER}/a.js" in listed.stdout

        verified = invoke("verify", f"{SERVER}/a.js")
        assert verified.exit_code == 0

    def test_no_cache_flag(self, invoke, server):
        server.add("/a.js", "a()")

        invoke("resource", f"{SERVER}/a.js")
        invoke("resource", f"{SERVER}/a.js", "--no-cache")

        assert server.count("/a.js") == 2

    def test_download_failure(self, invoke):
        result = invoke("resource", f"{SERVER}/missing.js")

        assert result.exit_code == 1

    def test_empty_records(self, invoke):
        result = invoke("records")

        assert result.exit_code == 0
        assert "No resource records" in result.stdout

    def test_verify_unknown_url(self, invoke):
        result = invoke("verify", f"{SERVER}/never.js")

        assert result.exit_code == 1


class TestDestroyCommand:
    def test_destroy_with_yes(self, invoke, server, settings):
        server.add("/a.js", "a()")
        invoke("resource", f"{SERVER}/a.js")

        result = invoke("destroy", "--yes")

        assert result.exit_code == 0
        assert not settings.db_path.exists()

    def test_destroy_aborted(self, invoke, server, settings):
        server.add("/a.js", "a()")
        invoke("resource", f"{SERVER}/a.js")

        result = invoke("destroy", input="n\n")

        assert result.exit_code != 0
        assert settings.db_path.exists()

    def test_destroy_nothing(self, invoke):
        result = invoke("destroy", "-y")

        assert result.exit_code == 0
        assert "Nothing to delete" in result.stdout
