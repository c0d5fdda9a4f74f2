import datetime

import pytest
from werkzeug.datastructures import Headers

from funchost.exceptions import UnexpectedResponseType
from funchost.wire.response import Response, WireResponse
from funchost.runtime.outcome import (
    ExplicitResponse,
    FailureOutcome,
    ResponseNormalizer,
    StructuredOutcome,
    TextOutcome,
    classify,
)


def _body(response: WireResponse) -> bytes:
    return b"".join(response.body)


class TestClassify:
    def test_text(self):
        assert classify("hello") == TextOutcome("hello")
        assert classify(b"hello") == TextOutcome(b"hello")
        assert classify(bytearray(b"hello")) == TextOutcome(b"hello")

    def test_mapping(self):
        assert classify({"a": 1}) == StructuredOutcome({"a": 1})

    def test_response_tuple(self):
        outcome = classify((201, {"X-Foo": "bar"}, [b"created"]))

        assert isinstance(outcome, ExplicitResponse)
        assert outcome.response.status == 201
        assert outcome.response.headers == {"X-Foo": "bar"}

    def test_wire_response(self):
        response = WireResponse(204, Headers(), [])
        assert classify(response) == ExplicitResponse(response)

    def test_werkzeug_response(self):
        outcome = classify(Response("teapot", status=418))

        assert isinstance(outcome, ExplicitResponse)
        assert outcome.response.status == 418
        assert b"".join(outcome.response.body) == b"teapot"

    def test_exception(self):
        error = ValueError("oh no")
        assert classify(error) == FailureOutcome(error)

    @pytest.mark.parametrize("value", [None, 42, ["a", "b"], (True, {}, []), object()])
    def test_unexpected_values(self, value):
        outcome = classify(value)

        assert isinstance(outcome, FailureOutcome)
        assert isinstance(outcome.error, UnexpectedResponseType)


class TestResponseNormalizer:
    def test_text(self):
        response = ResponseNormalizer().normalize(TextOutcome("hällo"))

        assert response.status == 200
        assert response.headers["Content-Type"] == "text/plain"
        assert response.headers["Content-Length"] == "6"
        assert _body(response) == "hällo".encode("utf-8")

    def test_structured(self):
        doc = {"greeting": "hello", "date": datetime.date(2024, 1, 2)}
        response = ResponseNormalizer().normalize(StructuredOutcome(doc))

        assert response.status == 200
        assert response.headers["Content-Type"] == "application/json"
        assert _body(response) == b'{"greeting": "hello", "date": "2024-01-02"}'
        assert response.headers["Content-Length"] == str(len(_body(response)))

    def test_unserializable_structure_is_an_error(self):
        response = ResponseNormalizer(show_error_details=False).normalize(
            StructuredOutcome({"value": object()})
        )

        assert response.status == 500
        assert _body(response) == b"Unexpected internal error"

    def test_explicit_response_is_unchanged(self):
        wire = WireResponse(302, Headers([("Location", "/")]), [])
        assert ResponseNormalizer().normalize(ExplicitResponse(wire)) is wire

    def test_failure_without_details(self):
        try:
            raise ValueError("secret details")
        except ValueError as e:
            error = e

        response = ResponseNormalizer(show_error_details=False).normalize(FailureOutcome(error))

        assert response.status == 500
        assert response.headers["Content-Type"] == "text/plain"
        assert _body(response) == b"Unexpected internal error"

    def test_failure_with_details(self):
        try:
            raise ValueError("secret details")
        except ValueError as e:
            error = e

        response = ResponseNormalizer(show_error_details=True).normalize(FailureOutcome(error))
        body = _body(response).decode("utf-8")

        assert response.status == 500
        assert body.startswith("ValueError: secret details\n")
        assert "test_failure_with_details" in body

    def test_unexpected_response_type_with_details(self):
        response = ResponseNormalizer(show_error_details=True).normalize(classify(None))

        assert response.status == 500
        assert _body(response).startswith(b"UnexpectedResponseType: Unexpected response type: NoneType")

    def test_usage_response(self):
        error = ValueError("bad event")

        hidden = ResponseNormalizer(show_error_details=False).usage_response(error)
        shown = ResponseNormalizer(show_error_details=True).usage_response(error)

        assert hidden.status == 400
        assert _body(hidden) == b"Failed to decode CloudEvent"
        assert shown.status == 400
        assert _body(shown) == b"Failed to decode CloudEvent: ValueError('bad event')"
