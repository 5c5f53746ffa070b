"""Tests for logging setup."""

import logging

import pytest
from asgi_correlation_id.context import correlation_id

from tripcoord.core.logging import add_correlation_id, configure_structlog

pytestmark = pytest.mark.unit


@pytest.fixture
def restore_logging():
    yield
    configure_structlog()


class TestConfigureStructlog:
    def test_app_logger_level_is_separate_from_root(self, restore_logging):
        configure_structlog(log_level="DEBUG", json_logs=True, third_party_level="WARNING")

        assert logging.getLogger("tripcoord").level == logging.DEBUG
        assert logging.getLogger("tripcoord.services.trip_service").getEffectiveLevel() == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("uvicorn.access").level == logging.WARNING

    def test_quiet_app_logger(self, restore_logging):
        configure_structlog(log_level="ERROR", json_logs=False)

        assert not logging.getLogger("tripcoord.db.store").isEnabledFor(logging.INFO)
        assert logging.getLogger("uvicorn").isEnabledFor(logging.INFO)


class TestAddCorrelationId:
    def test_added_inside_request(self):
        token = correlation_id.set("req-123")
        try:
            assert add_correlation_id(None, "info", {"event": "x"}) == {"event": "x", "correlation_id": "req-123"}
        finally:
            correlation_id.reset(token)

    def test_absent_outside_request(self):
        assert add_correlation_id(None, "info", {"event": "x"}) == {"event": "x"}
