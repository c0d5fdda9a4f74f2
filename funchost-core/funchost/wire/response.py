from json import JSONEncoder
from typing import Any, Iterable, NamedTuple, Type, Union

from rolo import Response as RoloResponse
from werkzeug.datastructures import Headers
from werkzeug.wrappers import Response as WerkzeugResponse

from funchost.utils.json import CustomEncoder
from funchost.utils.strings import to_bytes


class WireResponse(NamedTuple):
    """The protocol-level representation of the outcome of a request."""

    status: int
    headers: Headers
    body: Iterable[bytes]


class Response(RoloResponse):
    """
    An HTTP Response object, which simply extends werkzeug's Response object with a few convenience methods.
    HTTP functions can return instances of it (or of any other werkzeug ``Response``).
    """

    def set_json(self, doc: Any, cls: Type[JSONEncoder] = CustomEncoder):
        """
        Serializes the given dictionary using funchost's ``CustomEncoder`` into a json response, and sets the
        mimetype automatically to ``application/json``.

        :param doc: the response dictionary to be serialized as JSON
        :param cls: the json encoder used
        """
        return super().set_json(doc, cls or CustomEncoder)


def string_response(body: Union[str, bytes], content_type: str, status: int) -> WireResponse:
    """
    Creates a response with a single-chunk body. The ``Content-Length`` header is set to the byte length of the
    encoded body.
    """
    data = to_bytes(body)
    headers = Headers([("Content-Type", content_type), ("Content-Length", str(len(data)))])
    return WireResponse(status, headers, [data])


def not_found_response() -> WireResponse:
    return string_response("Not found", "text/plain", 404)


def finalize_response(response: WerkzeugResponse) -> WireResponse:
    """
    Turns a werkzeug response object into a ``WireResponse``.

    :param response: the response object
    :return: the wire response
    """
    return WireResponse(response.status_code, Headers(response.headers), response.iter_encoded())
