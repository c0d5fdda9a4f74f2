from typing import TYPE_CHECKING

from werkzeug.wrappers.request import Request as WerkzeugRequest

if TYPE_CHECKING:
    from _typeshed.wsgi import WSGIEnvironment


class Request(WerkzeugRequest):
    """
    The request object handed to HTTP functions. It is werkzeug's WSGI request wrapper created from the
    environment of a live connection. For sans-IO requests (e.g., in tests), use ``funchost.testing``.
    """


def get_request_path(request: WerkzeugRequest) -> str:
    """
    Returns the full path the request was made to, i.e., the concatenation of ``SCRIPT_NAME`` and ``PATH_INFO``.

    :param request: the request
    :return: the request path
    """
    environ: "WSGIEnvironment" = request.environ
    return f"{environ.get('SCRIPT_NAME', '')}{environ.get('PATH_INFO', '')}"
