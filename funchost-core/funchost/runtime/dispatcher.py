import abc
import logging

from werkzeug.wrappers.request import Request

from funchost.config import ServerConfig
from funchost.events import decode_event
from funchost.exceptions import UnrecognizedFunctionKind
from funchost.function import Function, FunctionKind
from funchost.wire.request import get_request_path
from funchost.wire.response import WireResponse, not_found_response
from funchost.runtime.outcome import FailureOutcome, ResponseNormalizer, TextOutcome, classify

# requests to these paths are sent by browsers and crawlers, they never reach the function
DENIED_PATHS = ("/favicon.ico", "/robots.txt")


class Dispatcher(abc.ABC):
    """
    Turns a request into a response by invoking the hosted function. A dispatcher is the per-request error
    boundary: whatever the function does, ``handle`` returns a response.
    """

    function: Function
    config: ServerConfig
    normalizer: ResponseNormalizer

    def __init__(self, function: Function, config: ServerConfig):
        self.function = function
        self.config = config
        self.normalizer = ResponseNormalizer(config.show_error_details)

    @property
    def logger(self) -> logging.Logger:
        return self.config.logger

    def is_denied_path(self, request: Request) -> bool:
        return get_request_path(request) in DENIED_PATHS

    @abc.abstractmethod
    def handle(self, request: Request) -> WireResponse:
        """
        Handles the given request.

        :param request: the request
        :return: the response
        """
        raise NotImplementedError


class HttpDispatcher(Dispatcher):
    """Invokes an HTTP function with the request, and renders whatever it returns."""

    def handle(self, request: Request) -> WireResponse:
        if self.is_denied_path(request):
            return not_found_response()

        try:
            self.logger.info("Handling HTTP %s request", request.method)
            result = self.function.call(request)
        except Exception as e:
            self.logger.warning("Function %s failed: %s", self.function.name, e, exc_info=e)
            result = FailureOutcome(e)

        return self.normalizer.normalize(classify(result))


class EventDispatcher(Dispatcher):
    """Decodes the event carried by the request and invokes an event function with it."""

    def handle(self, request: Request) -> WireResponse:
        if self.is_denied_path(request):
            return not_found_response()

        try:
            event = decode_event(request)
        except Exception as e:
            self.logger.warning("Failed to decode CloudEvent: %r", e)
            return self.normalizer.usage_response(e)

        try:
            self.logger.info("Handling CloudEvent %s of type %s", event.id, event.type)
            self.function.call(event)
        except Exception as e:
            self.logger.warning("Function %s failed: %s", self.function.name, e, exc_info=e)
            return self.normalizer.normalize(FailureOutcome(e))

        return self.normalizer.normalize(TextOutcome("ok"))


def create_dispatcher(function: Function, config: ServerConfig) -> Dispatcher:
    """
    Creates the dispatcher for the given function, based on the function's kind.

    :param function: the hosted function
    :param config: the server configuration
    :return: a new dispatcher
    :raises UnrecognizedFunctionKind: if the function's kind is neither ``http`` nor ``event``
    """
    if function.kind == FunctionKind.HTTP:
        return HttpDispatcher(function, config)
    if function.kind == FunctionKind.EVENT:
        return EventDispatcher(function, config)
    raise UnrecognizedFunctionKind(function.kind)
