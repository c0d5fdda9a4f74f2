from funchost.events.models import CloudEvent
from funchost.function import Function, FunctionKind
from funchost.registry import GLOBAL_REGISTRY, cloud_event, http
from funchost.runtime.server import Server
from funchost.version import __version__

__all__ = [
    "CloudEvent",
    "Function",
    "FunctionKind",
    "GLOBAL_REGISTRY",
    "Server",
    "__version__",
    "cloud_event",
    "http",
]
