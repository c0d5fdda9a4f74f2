"""The outcome of invoking a hosted function, and its translation into a wire response.

Whatever a function returns (or raises) is first classified into one of a closed set of outcomes by ``classify``.
The ``ResponseNormalizer`` then maps each kind of outcome to exactly one response.
"""
import traceback
from dataclasses import dataclass
from typing import Any, Mapping, Union

from werkzeug.wrappers import Response as WerkzeugResponse

from funchost.exceptions import UnexpectedResponseType
from funchost.wire.response import WireResponse, finalize_response, string_response
from funchost.utils.json import canonical_json

GENERIC_ERROR_MESSAGE = "Unexpected internal error"
DECODE_ERROR_MESSAGE = "Failed to decode CloudEvent"


class Outcome:
    """Base class of all handler outcomes."""


@dataclass(frozen=True)
class ExplicitResponse(Outcome):
    """The handler produced a complete response."""

    response: WireResponse


@dataclass(frozen=True)
class TextOutcome(Outcome):
    """The handler returned plain text."""

    body: Union[str, bytes]


@dataclass(frozen=True)
class StructuredOutcome(Outcome):
    """The handler returned a mapping, which is rendered as JSON."""

    value: Mapping


@dataclass(frozen=True)
class FailureOutcome(Outcome):
    """The handler raised an exception, or produced something that cannot be rendered."""

    error: BaseException


def classify(value: Any) -> Outcome:
    """
    Classifies the value returned by a handler. Values that are already an ``Outcome`` are returned unchanged.

    :param value: the return value of the handler (or the exception it raised)
    :return: the outcome
    """
    if isinstance(value, Outcome):
        return value
    if isinstance(value, WireResponse):
        return ExplicitResponse(value)
    if isinstance(value, WerkzeugResponse):
        return ExplicitResponse(finalize_response(value))
    if _is_response_tuple(value):
        status, headers, body = value
        return ExplicitResponse(WireResponse(status, headers, body))
    if isinstance(value, (str, bytes, bytearray)):
        return TextOutcome(bytes(value) if isinstance(value, bytearray) else value)
    if isinstance(value, Mapping):
        return StructuredOutcome(value)
    if isinstance(value, Exception):
        return FailureOutcome(value)
    return FailureOutcome(UnexpectedResponseType(value))


def _is_response_tuple(value: Any) -> bool:
    return (
        isinstance(value, tuple)
        and len(value) == 3
        and isinstance(value[0], int)
        and not isinstance(value[0], bool)
    )


class ResponseNormalizer:
    """
    Renders outcomes as wire responses. Unless ``show_error_details`` is set, the body of every error response is
    a fixed generic message that does not reveal anything about the failure.
    """

    def __init__(self, show_error_details: bool = False):
        self.show_error_details = show_error_details

    def normalize(self, outcome: Outcome) -> WireResponse:
        """
        Creates the response for the given outcome.

        :param outcome: the outcome of a handler invocation
        :return: the response
        """
        if isinstance(outcome, ExplicitResponse):
            return outcome.response

        if isinstance(outcome, TextOutcome):
            return string_response(outcome.body, "text/plain", 200)

        if isinstance(outcome, StructuredOutcome):
            try:
                doc = canonical_json(outcome.value)
            except (TypeError, ValueError) as e:
                return self.error_response(e)
            return string_response(doc, "application/json", 200)

        if isinstance(outcome, FailureOutcome):
            return self.error_response(outcome.error)

        return self.error_response(UnexpectedResponseType(outcome))

    def error_response(self, error: BaseException) -> WireResponse:
        return string_response(self.error_message(error), "text/plain", 500)

    def error_message(self, error: BaseException) -> str:
        if self.show_error_details:
            trace = "".join(traceback.format_tb(error.__traceback__))
            return f"{type(error).__name__}: {error}\n{trace}\n"
        return GENERIC_ERROR_MESSAGE

    def usage_response(self, error: BaseException) -> WireResponse:
        return string_response(self.usage_message(error), "text/plain", 400)

    def usage_message(self, error: BaseException) -> str:
        if self.show_error_details:
            return f"{DECODE_ERROR_MESSAGE}: {error!r}"
        return DECODE_ERROR_MESSAGE
