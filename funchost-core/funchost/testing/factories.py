"""Helpers for unit testing functions without starting a server."""
import logging
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

from rolo import Request
from werkzeug.datastructures import Headers

from funchost.config import ConfigBuilder, resolve_config
from funchost.constants import ENV_DEVELOPMENT
from funchost.events.models import SPEC_VERSION, CloudEvent
from funchost.function import Function, FunctionKind
from funchost.wire.response import WireResponse
from funchost.registry import GLOBAL_REGISTRY, Registry
from funchost.runtime.dispatcher import HttpDispatcher
from funchost.utils.strings import short_uid

LOG = logging.getLogger(__name__)

HeadersType = Union[Mapping[str, str], Iterable[str], None]

DEFAULT_EVENT_SOURCE = "funchost-testing"
DEFAULT_EVENT_TYPE = "com.example.test"


def _header_items(headers: HeadersType) -> List[Tuple[str, str]]:
    if not headers:
        return []
    if hasattr(headers, "items"):
        return list(headers.items())

    items = []
    for header in headers:
        name, _, value = header.partition(":")
        items.append((name.strip(), value.strip()))
    return items


def _make_request(method: str, url: str, body: Any = None, headers: HeadersType = None) -> Request:
    parsed = urlparse(url)
    scheme = parsed.scheme or "http"
    port = parsed.port or (443 if scheme == "https" else 80)

    header_items = _header_items(headers)
    if parsed.netloc and not any(name.lower() == "host" for name, _ in header_items):
        header_items.insert(0, ("Host", parsed.netloc))

    return Request(
        method=method,
        path=parsed.path or "/",
        query_string=parsed.query,
        headers=Headers(header_items),
        body=body,
        scheme=scheme,
        server=(parsed.hostname or "localhost", port),
    )


def make_get_request(url: str, headers: HeadersType = None) -> Request:
    """
    Creates a GET request that can be passed to an HTTP function.

    :param url: the full URL of the request
    :param headers: either a mapping, or a list of ``"Name: value"`` strings
    :return: a sans-IO request object
    """
    return _make_request("GET", url, headers=headers)


def make_post_request(url: str, data: Union[str, bytes], headers: HeadersType = None) -> Request:
    """
    Creates a POST request that can be passed to an HTTP function.

    :param url: the full URL of the request
    :param data: the request body
    :param headers: either a mapping, or a list of ``"Name: value"`` strings
    :return: a sans-IO request object
    """
    return _make_request("POST", url, body=data, headers=headers)


def make_cloud_event(
    data: Any,
    id: str = None,
    source: str = None,
    type: str = None,
    specversion: str = None,
    datacontenttype: str = None,
    dataschema: str = None,
    subject: str = None,
    time: str = None,
) -> CloudEvent:
    """Creates a CloudEvent that can be passed to an event function. Unset required attributes get test values."""
    return CloudEvent(
        id=id or f"random-id-{short_uid()}",
        source=source or DEFAULT_EVENT_SOURCE,
        type=type or DEFAULT_EVENT_TYPE,
        specversion=specversion or SPEC_VERSION,
        data=data,
        datacontenttype=datacontenttype,
        dataschema=dataschema,
        subject=subject,
        time=time,
    )


def _lookup(function_or_name: Union[Function, str], registry: Optional[Registry]) -> Function:
    if isinstance(function_or_name, Function):
        return function_or_name
    registry = registry or GLOBAL_REGISTRY
    function = registry.get(function_or_name)
    if function is None:
        raise ValueError(f"Undefined function: {function_or_name!r}")
    return function


def call_http(
    function_or_name: Union[Function, str],
    request: Request,
    show_error_details: bool = True,
    registry: Registry = None,
) -> WireResponse:
    """
    Calls an HTTP function with the given request, and returns the response the server would send.

    :param function_or_name: the function, or the name it is registered under
    :param request: the request (see ``make_get_request`` and ``make_post_request``)
    :param show_error_details: whether error responses contain the exception details
    :param registry: the registry to look up function names in (defaults to the global registry)
    :return: the normalized response
    :raises ValueError: if the function is undefined or is not an HTTP function
    """
    function = _lookup(function_or_name, registry)
    if function.kind != FunctionKind.HTTP:
        raise ValueError(f"Function {function.name!r} is not an HTTP function")

    builder = ConfigBuilder()
    builder.environment = ENV_DEVELOPMENT
    builder.show_error_details = show_error_details
    dispatcher = HttpDispatcher(function, resolve_config(builder, environ={}))
    return dispatcher.handle(request)


def call_event(
    function_or_name: Union[Function, str], event: CloudEvent, registry: Registry = None
) -> Any:
    """
    Calls an event function with the given event. Exceptions raised by the function are propagated.

    :param function_or_name: the function, or the name it is registered under
    :param event: the event (see ``make_cloud_event``)
    :param registry: the registry to look up function names in (defaults to the global registry)
    :return: whatever the function returns
    :raises ValueError: if the function is undefined or is not an event function
    """
    function = _lookup(function_or_name, registry)
    if function.kind != FunctionKind.EVENT:
        raise ValueError(f"Function {function.name!r} is not an event function")
    LOG.debug("calling %s with event %s", function.name, event.id)
    return function.call(event)
