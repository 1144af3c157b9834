"""Tests for budget_kernel.logging_config."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from budget_kernel.domain.dtos import PaymentStatus
from budget_kernel.exceptions import InvalidPeriodError
from budget_kernel.logging_config import (
    CONTEXT_FIELDS,
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture
def json_log():
    """
    Fresh logging configuration writing to a buffer.

    Returns a function that parses every line written so far.
    """
    reset_logging()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(handler=handler)

    def _records() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    yield _records
    reset_logging()
    configure_logging(level=logging.DEBUG)


class TestStructuredFormatter:

    def test_envelope(self, json_log):
        get_logger("services.reporting").info("report_built")

        (record,) = json_log()
        assert record["level"] == "INFO"
        assert record["message"] == "report_built"
        assert record["logger"] == "budget_kernel.services.reporting"
        assert record["ts"].endswith("+00:00")

    def test_extra_values_serialized(self, json_log):
        invoice_id = uuid4()
        get_logger("t").info(
            "reconciled",
            extra={
                "invoice_id": invoice_id,
                "balance": Decimal("12500.00"),
                "due_date": date(2025, 5, 31),
                "payment_status": PaymentStatus.PARTIALLY_PAID,
                "rows": 3,
            },
        )

        (record,) = json_log()
        assert record["invoice_id"] == str(invoice_id)
        assert record["balance"] == "12500.00"
        assert record["due_date"] == "2025-05-31"
        assert record["payment_status"] == "PARTIALLY_PAID"
        assert record["rows"] == 3

    def test_context_stamped(self, json_log):
        with LogContext.bind(document_id="INV-1", idempotency_key="stripe:cs_1"):
            get_logger("t").info("inside")
        get_logger("t").info("outside")

        inside, outside = json_log()
        assert inside["document_id"] == "INV-1"
        assert inside["idempotency_key"] == "stripe:cs_1"
        assert "document_id" not in outside

    def test_kernel_error_fields(self, json_log):
        try:
            raise InvalidPeriodError(date(2025, 12, 31), date(2025, 1, 1))
        except InvalidPeriodError:
            get_logger("t").error("report_rejected", exc_info=True)

        (record,) = json_log()
        assert record["exc_type"] == "InvalidPeriodError"
        assert record["exc_code"] == "INVALID_PERIOD"
        assert record["exc_period_start"] == "2025-12-31"
        assert "Traceback" in record["traceback"]

    def test_plain_exception(self, json_log):
        try:
            {}["missing"]
        except KeyError:
            get_logger("t").warning("lookup_failed", exc_info=True)

        (record,) = json_log()
        assert record["exc_type"] == "KeyError"
        assert "exc_code" not in record

    def test_formatter_standalone(self):
        record = logging.LogRecord("budget_kernel.x", logging.WARNING, __file__, 1, "m", (), None)
        assert json.loads(StructuredFormatter().format(record))["level"] == "WARNING"


class TestLogContext:

    @pytest.fixture(autouse=True)
    def _empty(self):
        LogContext.clear()
        yield
        LogContext.clear()

    def test_set_ignores_none_and_unknown(self):
        LogContext.set(correlation_id="c", actor_id=None, shoe_size="9")
        assert LogContext.get_all() == {"correlation_id": "c"}

    def test_every_field_settable(self):
        LogContext.set(**{name: name.upper() for name in CONTEXT_FIELDS})
        assert LogContext.get_all() == {name: name.upper() for name in CONTEXT_FIELDS}

    def test_bind_nests(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner", trace_id="t1"):
            with LogContext.bind(trace_id="t2"):
                assert LogContext.get_all() == {"correlation_id": "inner", "trace_id": "t2"}
            assert LogContext.get_all()["trace_id"] == "t1"
        assert LogContext.get_all() == {"correlation_id": "outer"}

    def test_bind_stringifies(self):
        doc = uuid4()
        with LogContext.bind(document_id=doc):
            assert LogContext.get_all()["document_id"] == str(doc)


class TestConfigureLogging:

    def test_first_call_wins(self, json_log):
        configure_logging(handler=logging.StreamHandler(StringIO()), level=logging.DEBUG)

        root = logging.getLogger("budget_kernel")
        assert len(root.handlers) == 1
        assert root.level == logging.INFO

    def test_debug_filtered_at_info(self, json_log):
        logger = get_logger("engines.aggregation")
        logger.debug("actuals_aggregated")
        logger.info("BUDGET_ENGINE_TRACE")

        assert [r["message"] for r in json_log()] == ["BUDGET_ENGINE_TRACE"]

    def test_level_name_accepted(self):
        reset_logging()
        configure_logging(level="debug", handler=logging.StreamHandler(StringIO()))
        try:
            assert logging.getLogger("budget_kernel").level == logging.DEBUG
        finally:
            reset_logging()
            configure_logging(level=logging.DEBUG)
