from enum import Enum
from typing import Any, Callable, Union


class FunctionKind(str, Enum):
    """The kinds of functions a server knows how to dispatch."""

    HTTP = "http"
    EVENT = "event"

    def __str__(self):
        return self.value


class Function:
    """
    A function hosted by a server. ``kind`` declares how the server presents the function: ``http`` functions
    receive the request and return a response value, ``event`` functions receive a decoded ``CloudEvent`` and do
    not return anything.
    """

    name: str
    kind: Union[FunctionKind, str]
    handler: Callable[[Any], Any]

    def __init__(self, name: str, kind: Union[FunctionKind, str], handler: Callable[[Any], Any]):
        if not callable(handler):
            raise TypeError(f"handler of function {name!r} is not callable")
        self.name = name
        self.kind = kind
        self.handler = handler

    @classmethod
    def http(cls, name: str, handler: Callable[[Any], Any]) -> "Function":
        return cls(name, FunctionKind.HTTP, handler)

    @classmethod
    def event(cls, name: str, handler: Callable[[Any], Any]) -> "Function":
        return cls(name, FunctionKind.EVENT, handler)

    def call(self, argument: Any) -> Any:
        return self.handler(argument)

    def __repr__(self):
        return f"Function(name={self.name!r}, kind={str(self.kind)!r})"
