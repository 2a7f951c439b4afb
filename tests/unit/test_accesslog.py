"""
Unit tests for the access log.
"""

import json
import logging

from filedelivery.accesslog import AccessLog, log_download
from filedelivery.delivery import DeliveryResult
from filedelivery.http import HTTPRequest, HTTPStatus


def make_request() -> HTTPRequest:
    return HTTPRequest(
        method="GET",
        path="/media/clip.mp4",
        headers={"range": "bytes=0-99", "user-agent": "pytest"},
        client_address=("10.0.0.7", 51234),
    )


class TestAccessLog:
    """Tests for AccessLog formatting and emission."""

    def test_from_result(self):
        result = DeliveryResult(status=HTTPStatus.PARTIAL_CONTENT, mode="stream", bytes_sent=100)

        entry = AccessLog.from_result("abc123", make_request(), result, 12.345)

        assert entry.status_code == 206
        assert entry.client_ip == "10.0.0.7"
        assert entry.range_header == "bytes=0-99"
        assert entry.user_agent == "pytest"

    def test_to_dict(self):
        result = DeliveryResult(status=HTTPStatus.OK, mode="sendfile")

        data = AccessLog.from_result("abc123", make_request(), result, 1.23456).to_dict()

        assert data["request_id"] == "abc123"
        assert data["mode"] == "sendfile"
        assert data["complete"] is True
        assert data["duration_ms"] == 1.23
        json.dumps(data)

    def test_to_text(self):
        result = DeliveryResult(
            status=HTTPStatus.OK, mode="stream", bytes_sent=300, complete=False
        )

        line = AccessLog.from_result("abc123", make_request(), result, 5.0).to_text()

        assert line.startswith("10.0.0.7 - - [")
        assert '"GET /media/clip.mp4" 200 300 stream aborted "bytes=0-99" 5.00ms' in line

    def test_log_download_levels(self, caplog):
        """Test that aborted transfers log at WARNING, complete ones at INFO."""
        request = make_request()

        with caplog.at_level(logging.INFO, logger="filedelivery.access"):
            log_download("a", request, DeliveryResult(HTTPStatus.OK, "stream", 1000), 1.0)
            log_download(
                "b", request,
                DeliveryResult(HTTPStatus.OK, "stream", 10, complete=False), 1.0,
            )

        levels = [record.levelno for record in caplog.records]
        assert levels == [logging.INFO, logging.WARNING]

    def test_json_format(self, caplog):
        with caplog.at_level(logging.INFO, logger="filedelivery.access"):
            log_download(
                "a", make_request(), DeliveryResult(HTTPStatus.OK, "stream", 1000), 1.0,
                log_format="json",
            )

        payload = json.loads(caplog.records[0].getMessage())
        assert payload["status_code"] == 200
        assert payload["bytes_sent"] == 1000
