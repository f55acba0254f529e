"""Tests for logging helpers."""

from __future__ import annotations

import json
import logging

import pytest

from ipfsdag.models import LogLevel, ObservabilityConfig
from ipfsdag.utils.logging_config import (
    CorrelationFilter,
    StructuredFormatter,
    correlation_scope,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)
from ipfsdag.utils.rich_logging import CorrelationRichHandler, strip_rich_markup

pytestmark = [pytest.mark.unit]


def _record(message: str = "fetched %s") -> logging.LogRecord:
    return logging.LogRecord("ipfsdag.test", logging.INFO, __file__, 1, message, ("QmX",), None)


class TestCorrelation:
    def test_set_generates_id(self):
        corr_id = set_correlation_id()
        assert corr_id == get_correlation_id()
        assert len(corr_id) == 36

    def test_scope_sets_and_restores(self):
        set_correlation_id("outer")
        with correlation_scope() as inner:
            assert inner != "outer"
            assert get_correlation_id() == inner
        assert get_correlation_id() == "outer"

    def test_scope_restores_after_error(self):
        set_correlation_id("outer")
        with pytest.raises(RuntimeError):
            with correlation_scope("request-1"):
                assert get_correlation_id() == "request-1"
                raise RuntimeError
        assert get_correlation_id() == "outer"

    def test_filter_adds_id(self):
        set_correlation_id("abc")
        record = _record()
        assert CorrelationFilter().filter(record) is True
        assert record.correlation_id == "abc"

    def test_filter_without_id(self):
        record = _record()
        CorrelationFilter().filter(record)
        assert record.correlation_id == "no-correlation-id"


class TestFormatters:
    def test_structured_formatter(self):
        record = _record()
        record.correlation_id = "abc"
        record.identifier = "QmX"
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["message"] == "fetched QmX"
        assert entry["level"] == "INFO"
        assert entry["correlation_id"] == "abc"
        assert entry["identifier"] == "QmX"

    def test_strip_rich_markup(self):
        assert strip_rich_markup("[green]Saved[/green] to [bold]x[/bold]") == "Saved to x"


class TestSetup:
    def test_setup_installs_rich_handler(self):
        setup_logging(ObservabilityConfig(log_level=LogLevel.DEBUG, log_correlation_id=False))
        logger = logging.getLogger("ipfsdag")
        assert logger.level == logging.DEBUG
        assert any(isinstance(handler, CorrelationRichHandler) for handler in logger.handlers)
        assert get_correlation_id() is None

    def test_get_logger_namespaces(self):
        assert get_logger("storage").name == "ipfsdag.storage"
        assert get_logger("ipfsdag.core").name == "ipfsdag.core"
