from typing import Callable, List, Optional

from werkzeug.wrappers.request import Request

from funchost.events import cloudevents, legacy
from funchost.events.models import CloudEvent
from funchost.exceptions import EventDecodeError

EventDecoder = Callable[[Request], Optional[CloudEvent]]

# decoders are tried in this order, the first one that recognizes the request wins
DECODERS: List[EventDecoder] = [cloudevents.decode_request, legacy.decode_request]


def decode_event(request: Request) -> CloudEvent:
    """
    Decodes the event carried by the given request, trying the CloudEvents decoder first and the legacy event
    decoder second.

    :param request: the request
    :return: the decoded event
    :raises EventDecodeError: if no decoder recognizes the request, or the recognizing decoder fails
    """
    for decoder in DECODERS:
        event = decoder(request)
        if event is not None:
            return event

    raise EventDecodeError("Unknown event type")


__all__ = ["CloudEvent", "EventDecodeError", "decode_event"]
