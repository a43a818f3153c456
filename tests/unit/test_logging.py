"""Tests for structured logging helpers"""

import logging

import structlog

from extractor_api.core.logging import (
    add_request_id,
    clear_request_id,
    configure_logging,
    get_request_id,
    set_request_id,
)


class TestRequestId:
    """Test request id propagation"""

    def test_generated_id_format(self) -> None:
        request_id = set_request_id()
        try:
            assert request_id.startswith("req_")
            assert len(request_id) == len("req_") + 12
            assert get_request_id() == request_id
        finally:
            clear_request_id()

    def test_explicit_id(self) -> None:
        set_request_id("req_custom")
        try:
            assert get_request_id() == "req_custom"
        finally:
            clear_request_id()
        assert get_request_id() is None

    def test_processor_adds_request_id(self) -> None:
        set_request_id("req_abc")
        try:
            event = add_request_id(None, "info", {"event": "x"})
        finally:
            clear_request_id()

        assert event == {"event": "x", "request_id": "req_abc"}

    def test_processor_without_request_id(self) -> None:
        assert add_request_id(None, "info", {"event": "x"}) == {"event": "x"}


class TestConfigureLogging:
    """Test logger configuration"""

    def test_json_format(self) -> None:
        configure_logging("DEBUG", "json")

        assert structlog.is_configured()

    def test_console_format(self) -> None:
        configure_logging("INFO", "console")

        assert structlog.is_configured()

    def test_http_client_loggers_are_quieted(self) -> None:
        configure_logging("DEBUG", "json")

        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger().level == logging.DEBUG
