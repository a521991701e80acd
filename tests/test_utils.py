"""Tests for shared utility functions and request-context logging."""

import logging

from scheduling_engine.logging_context import (
    RequestContextFilter,
    get_request_id,
    get_request_logger,
    get_tenant_id,
    set_request_context,
)
from scheduling_engine.utils import normalize_phone, round_cents


class TestNormalizePhone:
    def test_strips_spaces(self):
        assert normalize_phone("212 555 0147") == "2125550147"

    def test_strips_dashes(self):
        assert normalize_phone("212-555-0147") == "2125550147"

    def test_strips_parentheses(self):
        assert normalize_phone("(212) 555-0147") == "2125550147"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+1 212 555 0147") == "+12125550147"

    def test_empty(self):
        assert normalize_phone("") == ""


class TestRoundCents:
    def test_half_rounds_up(self):
        assert round_cents(2.5) == 3
        assert round_cents(787.5) == 788

    def test_below_half_rounds_down(self):
        assert round_cents(1499.4999) == 1499

    def test_negative_half_rounds_toward_positive(self):
        assert round_cents(-2.5) == -2

    def test_integer_unchanged(self):
        assert round_cents(9000) == 9000


class TestRequestContext:
    def test_generates_request_id(self):
        request_id = set_request_context("tenant_x")
        assert request_id.startswith("REQ-")
        assert get_request_id() == request_id
        assert get_tenant_id() == "tenant_x"

    def test_explicit_request_id(self):
        set_request_context("tenant_x", "REQ-fixed")
        assert get_request_id() == "REQ-fixed"

    def test_filter_adds_context_fields(self):
        set_request_context("tenant_y", "REQ-123")
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
        assert RequestContextFilter().filter(record)
        assert record.tenant_id == "tenant_y"
        assert record.request_id == "REQ-123"

    def test_logger_filter_attached_once(self):
        logger = get_request_logger("scheduling_engine.test")
        get_request_logger("scheduling_engine.test")
        filters = [f for f in logger.filters if isinstance(f, RequestContextFilter)]
        assert len(filters) == 1
