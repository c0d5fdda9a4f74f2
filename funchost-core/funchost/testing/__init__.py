from .factories import (
    call_event,
    call_http,
    make_cloud_event,
    make_get_request,
    make_post_request,
)

__all__ = [
    "call_event",
    "call_http",
    "make_cloud_event",
    "make_get_request",
    "make_post_request",
]
