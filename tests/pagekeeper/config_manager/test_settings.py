from __future__ import annotations

import json
import logging

import pytest

from pagekeeper import logging_manager as log_mgr
from pagekeeper.config_manager import (
    describe_settings,
    get_client_url,
    get_database_url,
    get_settings,
    reload_settings,
)
from pagekeeper.webapi.__main__ import build_parser
from pagekeeper.webapi.application import _normalise_mount_path, _parse_cors_origins

pytestmark = pytest.mark.config


def test_environment_overrides_are_read(monkeypatch, sqlite_database):
    monkeypatch.setenv("CLIENT_URL", "https://read.example/")
    monkeypatch.setenv("PAGEKEEPER_LOG_LEVEL", "debug")
    monkeypatch.setenv("PAGEKEEPER_SESSION_TTL_HOURS", "2")
    reload_settings()

    settings = get_settings()
    assert get_client_url() == "https://read.example"
    assert get_database_url() == sqlite_database
    assert settings.log_level == "DEBUG"
    assert settings.log_level_value == logging.DEBUG
    assert settings.session_ttl_hours == 2


def test_unknown_log_levels_fall_back_to_info(monkeypatch):
    monkeypatch.setenv("PAGEKEEPER_LOG_LEVEL", "chatty")
    reload_settings()

    assert get_settings().log_level == "INFO"


def test_describe_settings_masks_secrets(monkeypatch):
    monkeypatch.setenv("POCKET_CONSUMER_KEY", "very-secret")
    reload_settings()

    described = describe_settings()

    assert described["database_url"] == "***"
    assert described["pocket_consumer_key"] == "***"
    assert described["client_url"] == "https://reader.example"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, (["http://localhost", "http://127.0.0.1", "http://localhost:3000", "http://127.0.0.1:3000"], True)),
        ("", ([], False)),
        ("*", (["*"], False)),
        ("https://a.example, https://b.example", (["https://a.example", "https://b.example"], True)),
    ],
)
def test_parse_cors_origins(raw, expected):
    assert _parse_cors_origins(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, "/api/graphql"), ("graphql/", "/graphql"), ("/", "/api/graphql")],
)
def test_normalise_mount_path(raw, expected):
    assert _normalise_mount_path(raw) == expected


def test_cli_parser_defaults():
    args = build_parser().parse_args(["--port", "8080", "--init-db"])

    assert (args.host, args.port, args.init_db, args.reload) == ("0.0.0.0", 8080, True, False)


def test_json_formatter_includes_context_and_extras():
    formatter = log_mgr.JSONLogFormatter()
    record = logging.LogRecord("pagekeeper.test", logging.INFO, __file__, 1, "hello %s", ("world",), None)
    record.event = "test.event"
    record.attributes = {"count": 2}

    with log_mgr.log_context(correlation_id="abc", user_id=None):
        log_mgr.LogContextFilter().filter(record)
        payload = json.loads(formatter.format(record))

    assert payload["message"] == "hello world"
    assert payload["event"] == "test.event"
    assert payload["correlation_id"] == "abc"
    assert "user_id" not in payload
    assert payload["extra"] == {"attributes": {"count": 2}}
    assert log_mgr.get_log_context() == {}


def test_context_filter_keeps_explicit_record_values():
    record = logging.LogRecord("pagekeeper.test", logging.INFO, __file__, 1, "hi", (), None)
    record.user_id = "explicit"

    with log_mgr.log_context(correlation_id="ctx", user_id="from-context"):
        log_mgr.LogContextFilter().filter(record)

    assert record.user_id == "explicit"
    assert record.correlation_id == "ctx"


def test_handlers_carry_the_context_filter():
    handlers = log_mgr.get_logger().handlers

    assert handlers
    assert all(
        any(isinstance(flt, log_mgr.LogContextFilter) for flt in handler.filters)
        for handler in handlers
    )
