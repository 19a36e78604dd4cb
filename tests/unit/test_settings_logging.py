"""Unit tests for configuration and logging.

Covers:
- :class:`~instasafar.core.settings.Settings` defaults, env overrides and
  validators.
- :func:`~instasafar.core.logging_config.configure_logging`,
  :class:`~instasafar.core.logging_config.JsonFormatter` and
  :class:`~instasafar.core.logging_config.SessionContextFilter`.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

from instasafar.core.logging_config import (
    SESSION_ID_CTX,
    JsonFormatter,
    SessionContextFilter,
    configure_logging,
    session_context,
)
from instasafar.core.models import HotelListing
from instasafar.core.settings import Settings
from instasafar.filters.predicates import PredicateEvaluator
from instasafar.filters.state import FilterState

logger = logging.getLogger(__name__)


def _make_record(msg: str = "test", level: int = logging.INFO) -> logging.LogRecord:
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, clean_env: None) -> None:
        settings = Settings()
        assert settings.api_base_url == ""
        assert settings.api_configured is False
        assert settings.api_max_attempts == 3
        assert settings.comparison_capacity == 3
        assert settings.default_currency == "SAR"
        assert settings.log_level == "INFO"
        assert settings.log_format == "text"

    def test_env_overrides(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("API_BASE_URL", "https://x.supabase.co/functions/v1/")
        monkeypatch.setenv("COMPARISON_CAPACITY", "5")
        monkeypatch.setenv("DEFAULT_CURRENCY", "usd")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = Settings()
        assert settings.api_base_url == "https://x.supabase.co/functions/v1"
        assert settings.api_configured is True
        assert settings.comparison_capacity == 5
        assert settings.default_currency == "USD"
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("capacity", [0, 11])
    def test_comparison_capacity_bounds(self, clean_env: None, capacity: int) -> None:
        with pytest.raises(ValidationError):
            Settings(comparison_capacity=capacity)

    def test_invalid_log_level(self, clean_env: None) -> None:
        with pytest.raises(ValidationError):
            Settings(log_level="VERBOSE")

    def test_invalid_log_format(self, clean_env: None) -> None:
        with pytest.raises(ValidationError):
            Settings(log_format="xml")

    def test_zero_attempts_rejected(self, clean_env: None) -> None:
        with pytest.raises(ValidationError):
            Settings(api_max_attempts=0)

    def test_database_path_resolved(self, clean_env: None, tmp_path: Path) -> None:
        settings = Settings(database_path=str(tmp_path / "x.db"))
        assert settings.database_path_resolved == (tmp_path / "x.db").resolve()

    def test_reads_env_file(self, clean_env: None, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("API_KEY=from-file\nCOMPARISON_CAPACITY=4\n", encoding="utf-8")
        settings = Settings(_env_file=env_file)  # type: ignore[call-arg]
        assert settings.api_key == "from-file"
        assert settings.comparison_capacity == 4


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_text_mode(self) -> None:
        configure_logging(level="INFO", fmt="text", force=True)
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert any(isinstance(f, SessionContextFilter) for f in root.handlers[0].filters)
        configure_logging(level="DEBUG", fmt="text", force=True)

    def test_json_mode(self) -> None:
        configure_logging(level="DEBUG", fmt="json", force=True)
        assert isinstance(logging.getLogger().handlers[0].formatter, JsonFormatter)
        configure_logging(level="DEBUG", fmt="text", force=True)

    def test_invalid_level(self) -> None:
        with pytest.raises(ValueError, match="Unknown LOG_LEVEL"):
            configure_logging(level="VERBOSE", force=True)

    def test_invalid_format(self) -> None:
        with pytest.raises(ValueError, match="Unknown LOG_FORMAT"):
            configure_logging(fmt="xml", force=True)

    def test_values_are_case_insensitive(self) -> None:
        configure_logging(level="warning", fmt="JSON", force=True)
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        configure_logging(level="DEBUG", fmt="text", force=True)

    def test_falls_back_to_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "error")
        configure_logging(fmt="text", force=True)
        assert logging.getLogger().level == logging.ERROR
        configure_logging(level="DEBUG", fmt="text", force=True)

    def test_quiets_http_loggers_above_debug(self) -> None:
        configure_logging(level="INFO", fmt="text", force=True)
        assert logging.getLogger("httpx").level == logging.WARNING
        configure_logging(level="DEBUG", fmt="text", force=True)


# ---------------------------------------------------------------------------
# Session context
# ---------------------------------------------------------------------------


class TestSessionContextFilter:
    def test_default_is_dash(self) -> None:
        record = _make_record()
        token = SESSION_ID_CTX.set("-")
        try:
            assert SessionContextFilter().filter(record) is True
        finally:
            SESSION_ID_CTX.reset(token)
        assert record.session_id == "-"  # type: ignore[attr-defined]

    def test_injects_active_session(self) -> None:
        record = _make_record()
        token = SESSION_ID_CTX.set("a1b2c3d4")
        try:
            SessionContextFilter().filter(record)
        finally:
            SESSION_ID_CTX.reset(token)
        assert record.session_id == "a1b2c3d4"  # type: ignore[attr-defined]

    def test_session_context_binds_and_restores(self) -> None:
        before = SESSION_ID_CTX.get()
        with session_context("5e55101d"):
            record = _make_record()
            SessionContextFilter().filter(record)
        assert record.session_id == "5e55101d"  # type: ignore[attr-defined]
        assert SESSION_ID_CTX.get() == before

    def test_session_context_restores_on_error(self) -> None:
        before = SESSION_ID_CTX.get()
        with pytest.raises(RuntimeError), session_context("abc"):
            raise RuntimeError("boom")
        assert SESSION_ID_CTX.get() == before


class TestJsonFormatter:
    def test_shape(self) -> None:
        record = _make_record("Predicate filter: 2/3 listings passed")
        SessionContextFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["level"] == "INFO"
        assert payload["logger"] == "test.logger"
        assert payload["message"] == "Predicate filter: 2/3 listings passed"
        assert payload["ts"].endswith("Z")
        assert "session_id" in payload["extra"]

    def test_includes_exception(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("t", logging.ERROR, "t.py", 1, "failed", (), sys.exc_info())
        payload = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in payload["exc_info"]

    def test_lifts_listing_context_only(self) -> None:
        record = _make_record("DROP  hotel:h1: price")
        record.listing_id = "h1"  # type: ignore[attr-defined]
        record.listing_type = "hotel"  # type: ignore[attr-defined]
        record.unrelated = "ignored"  # type: ignore[attr-defined]
        with session_context("s1"):
            SessionContextFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["extra"] == {"session_id": "s1", "listing_id": "h1", "listing_type": "hotel"}
        assert "exc_info" not in payload

    def test_predicate_drop_carries_listing_context(self, caplog: pytest.LogCaptureFixture) -> None:
        state = FilterState(price_range=(0.0, 10.0))
        with caplog.at_level(logging.DEBUG, logger="instasafar.filters.predicates"):
            PredicateEvaluator(state).evaluate(HotelListing(id="h9", price=50))
        drop = next(r for r in caplog.records if r.getMessage().startswith("DROP"))
        assert drop.listing_id == "h9"  # type: ignore[attr-defined]
        assert drop.listing_type == "hotel"  # type: ignore[attr-defined]
