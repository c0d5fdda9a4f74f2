"""Decoding of CloudEvents delivered over HTTP, in structured or binary content mode.

See https://github.com/cloudevents/spec/blob/v1.0.2/cloudevents/bindings/http-protocol-binding.md
"""
import base64
import binascii
import json
from typing import Any, Dict, Optional
from urllib.parse import unquote

from werkzeug.wrappers.request import Request

from funchost.events.models import CloudEvent
from funchost.exceptions import EventDecodeError
from funchost.utils.strings import to_str


STRUCTURED_MIMETYPE_PREFIX = "application/cloudevents"
BATCH_MIMETYPE_PREFIX = "application/cloudevents-batch"
BINARY_HEADER_PREFIX = "ce-"


def decode_request(request: Request) -> Optional[CloudEvent]:
    """
    Decodes a CloudEvent from the given HTTP request.

    :param request: the request
    :return: the decoded event, or None if the request does not carry a CloudEvent
    :raises EventDecodeError: if the request carries a CloudEvent that cannot be decoded
    """
    mimetype = request.mimetype

    if mimetype.startswith(BATCH_MIMETYPE_PREFIX):
        raise EventDecodeError("Batched CloudEvents are not supported")

    if mimetype.startswith(STRUCTURED_MIMETYPE_PREFIX):
        _, _, event_format = mimetype.partition("+")
        if event_format != "json":
            raise EventDecodeError(f"Unsupported CloudEvents format: {mimetype}")
        return decode_structured(request.get_data(), request.mimetype_params.get("charset"))

    if f"{BINARY_HEADER_PREFIX}specversion" in request.headers:
        return decode_binary(request)

    return None


def decode_structured(data: bytes, charset: str = None) -> CloudEvent:
    """
    Decodes a CloudEvent in structured content mode, where attributes and data are encoded in a JSON document.

    :param data: the body of the request
    :param charset: the charset of the body (defaults to utf-8)
    :return: the decoded event
    :raises EventDecodeError: if the document is not a valid CloudEvent
    """
    try:
        doc = json.loads(data.decode(charset or "utf-8"))
    except (ValueError, LookupError) as e:
        raise EventDecodeError(f"Malformed JSON in structured CloudEvent: {e}") from e

    if not isinstance(doc, dict):
        raise EventDecodeError("Structured CloudEvent must be a JSON object")

    attributes = {k: v for k, v in doc.items() if k not in ("data", "data_base64")}

    if "data_base64" in doc:
        try:
            payload = base64.b64decode(doc["data_base64"], validate=True)
        except (binascii.Error, TypeError, ValueError) as e:
            raise EventDecodeError(f"Invalid data_base64 in structured CloudEvent: {e}") from e
    else:
        payload = doc.get("data")

    return CloudEvent.from_dict(attributes, payload)


def decode_binary(request: Request) -> CloudEvent:
    """
    Decodes a CloudEvent in binary content mode, where attributes are encoded in ``ce-`` prefixed headers and the
    body carries the event data.

    :param request: the request
    :return: the decoded event
    :raises EventDecodeError: if the headers do not describe a valid CloudEvent
    """
    attributes: Dict[str, Any] = {}
    for name, value in request.headers.items():
        name = name.lower()
        if name.startswith(BINARY_HEADER_PREFIX):
            attributes[name[len(BINARY_HEADER_PREFIX) :]] = unquote(value)

    content_type = request.headers.get("Content-Type")
    if content_type:
        attributes["datacontenttype"] = content_type

    data = _decode_data(request.get_data(), request.mimetype, request.mimetype_params.get("charset"))
    return CloudEvent.from_dict(attributes, data)


def _decode_data(data: bytes, mimetype: str, charset: str = None) -> Any:
    if not data:
        return None

    if mimetype == "application/json" or mimetype.endswith("+json"):
        try:
            return json.loads(data.decode(charset or "utf-8"))
        except (ValueError, LookupError) as e:
            raise EventDecodeError(f"Malformed JSON data in binary CloudEvent: {e}") from e

    if mimetype.startswith("text/"):
        try:
            return to_str(data, charset or "utf-8")
        except (ValueError, LookupError) as e:
            raise EventDecodeError(f"Undecodable text data in binary CloudEvent: {e}") from e

    return data
