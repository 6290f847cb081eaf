"""Tests for settings and logging setup."""

import logging

import pytest
from pydantic import ValidationError

from glean_ingest import get_logger, init_logging
from glean_ingest.config import IngestSettings


def test_settings_defaults() -> None:
    config = IngestSettings(_env_file=None)
    assert config.gzip_executable == "gzip"
    assert config.transparent_compression is True
    assert config.declaration_scan_bytes == 1024
    assert config.default_encoding == "utf-8"


def test_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("GLEAN_INGEST_GZIP_EXECUTABLE", "pigz")
    monkeypatch.setenv("GLEAN_INGEST_TRANSPARENT_COMPRESSION", "false")
    config = IngestSettings(_env_file=None)
    assert config.gzip_executable == "pigz"
    assert config.transparent_compression is False


def test_get_logger_is_namespaced() -> None:
    assert get_logger("feeds").name == "glean_ingest.feeds"
    assert get_logger("glean_ingest.timestamps").name == "glean_ingest.timestamps"


def test_init_logging_is_idempotent() -> None:
    root = init_logging("debug")
    handlers = len(root.handlers)
    assert init_logging("WARNING") is root
    assert len(root.handlers) == handlers
    assert root.level == logging.WARNING


def test_settings_log_level_is_case_insensitive() -> None:
    assert IngestSettings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_settings_reject_unknown_log_level(monkeypatch) -> None:
    with pytest.raises(ValidationError):
        IngestSettings(_env_file=None, log_level="verbose")

    monkeypatch.setenv("GLEAN_INGEST_LOG_LEVEL", "loud")
    with pytest.raises(ValidationError):
        IngestSettings(_env_file=None)


def test_init_logging_unknown_level_falls_back_to_info() -> None:
    root = init_logging("verbose")
    assert root.level == logging.INFO
