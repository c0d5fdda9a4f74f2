from .request import Request, get_request_path
from .response import Response, WireResponse

__all__ = ["Request", "Response", "WireResponse", "get_request_path"]
