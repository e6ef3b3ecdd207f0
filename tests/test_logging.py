"""Tests for the structured logging system (inventory_kernel/logging_config.py)."""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.domain.items import StockStatus
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "inventory_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("stock_updated", extra={"new_stock": 42, "item_id": "towel"})

        record = _parse_log(stream)
        assert record["new_stock"] == 42
        assert record["item_id"] == "towel"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(entity_id="towel-1", actor_id="maria")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["entity_id"] == "towel-1"
        assert record["actor_id"] == "maria"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        """Kernel exceptions carry .code and structured attributes."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from inventory_kernel.exceptions import NegativeStockError

        try:
            raise NegativeStockError("towel", 5, -3)
        except NegativeStockError:
            logger.error("stock_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "NEGATIVE_STOCK"
        assert record["exc_type"] == "NegativeStockError"
        assert record["exc_item_id"] == "towel"
        assert record["exc_requested_stock"] == -3

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "actor_id" not in record
        assert "entity_id" not in record

    def test_domain_values_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info(
            "with_values",
            extra={
                "request_id": uid,
                "amount": Decimal("12.50"),
                "day": date(2024, 9, 20),
                "at": datetime(2024, 9, 20, 8, 0, tzinfo=timezone.utc),
                "bucket": StockStatus.LOW_STOCK,
            },
        )

        record = _parse_log(stream)
        assert record["request_id"] == str(uid)
        assert record["amount"] == "12.50"
        assert record["day"] == "2024-09-20"
        assert record["at"].startswith("2024-09-20T08:00:00")
        assert record["bucket"] == "low-stock"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO, so the debug line is dropped.
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(actor_id="x", entity_id="y")
        assert LogContext.get_all() == {"actor_id": "x", "entity_id": "y"}

    def test_clear(self):
        LogContext.set(actor_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(entity_id="outer")
        with LogContext.bind(entity_id="inner"):
            assert LogContext.get_all()["entity_id"] == "inner"
        assert LogContext.get_all()["entity_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "actor_id" not in LogContext.get_all()
        with LogContext.bind(actor_id="temp"):
            assert LogContext.get_all()["actor_id"] == "temp"
        assert "actor_id" not in LogContext.get_all()

    def test_none_leaves_field_unchanged(self):
        LogContext.set(actor_id="a", entity_id="e")
        LogContext.set(actor_id=None, entity_id="f")
        assert LogContext.get_all() == {"actor_id": "a", "entity_id": "f"}

    def test_bind_restored_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(actor_id="temp"):
                raise RuntimeError("boom")
        assert LogContext.get_all() == {}

    @pytest.mark.parametrize("field", ["trace_id", "correlation_id"])
    def test_unknown_field_rejected(self, field):
        with pytest.raises(TypeError):
            LogContext.set(**{field: "x"})
        with pytest.raises(TypeError):
            with LogContext.bind(**{field: "x"}):
                pass


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        assert len(logging.getLogger("inventory_kernel").handlers) == 1

    def test_get_logger_returns_child(self):
        assert get_logger("services.cache_store").name == "inventory_kernel.services.cache_store"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "inventory_kernel.deep.nested.module"
