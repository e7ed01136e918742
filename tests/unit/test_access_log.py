"""
Unit tests for access logging.
"""

import logging

from staticserver.access_log import RequestLog, log_request
from staticserver.http.request import HTTPRequest, Method
from staticserver.http.response import HTTPResponse
from staticserver.http.status_codes import HTTPStatus


def make_entry(**headers) -> RequestLog:
    request = HTTPRequest(
        method=Method.GET,
        path="/a.txt",
        headers=headers,
        client_address=("10.0.0.7", 51234),
    )
    response = HTTPResponse(status=HTTPStatus.NOT_MODIFIED, body=b"")
    return RequestLog.build(request, response, duration_ms=1.2345, request_id="ab12cd34")


class TestRequestLog:

    def test_build(self):
        entry = make_entry(**{"user-agent": "curl/8.0"})

        assert entry.method == "GET"
        assert entry.client_ip == "10.0.0.7"
        assert entry.user_agent == "curl/8.0"
        assert entry.status_code == 304
        assert entry.content_length == 0

    def test_missing_user_agent(self):
        assert make_entry().user_agent == "-"

    def test_to_text(self):
        entry = make_entry()
        entry.timestamp = "19/Oct/2021:21:42:22 +0000"

        assert entry.to_text() == (
            '10.0.0.7 - - [19/Oct/2021:21:42:22 +0000] "GET /a.txt" 304 0 1.23ms'
        )

    def test_to_dict_rounds_duration(self):
        data = make_entry().to_dict()

        assert data["duration_ms"] == 1.23
        assert data["request_id"] == "ab12cd34"


class TestLogRequest:

    def test_goes_to_access_logger(self, caplog):
        with caplog.at_level(logging.INFO, logger="staticserver.access"):
            log_request(make_entry())

        record = caplog.records[-1]
        assert record.name == "staticserver.access"
        assert '"GET /a.txt" 304' in record.getMessage()
        assert record.access["status_code"] == 304
