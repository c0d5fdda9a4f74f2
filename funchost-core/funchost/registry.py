import threading
from typing import Any, Callable, Dict, List, Optional

from funchost.function import Function, FunctionKind


class Registry:
    """
    A thread safe collection of named functions. Functions defined in a source file register themselves here (see
    ``funchost.http`` and ``funchost.cloud_event``), so they can be looked up by name when a server is started.
    """

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._functions: Dict[str, Function] = {}

    def add(self, function: Function) -> Function:
        """
        Adds the given function.

        :raises ValueError: if a function with the same name already exists
        """
        with self._mutex:
            if function.name in self._functions:
                raise ValueError(f"Function {function.name!r} is already defined")
            self._functions[function.name] = function
        return function

    def add_http(self, name: str, handler: Callable[[Any], Any]) -> Function:
        return self.add(Function(name, FunctionKind.HTTP, handler))

    def add_event(self, name: str, handler: Callable[[Any], Any]) -> Function:
        return self.add(Function(name, FunctionKind.EVENT, handler))

    def get(self, name: str) -> Optional[Function]:
        with self._mutex:
            return self._functions.get(name)

    def names(self) -> List[str]:
        with self._mutex:
            return sorted(self._functions.keys())

    def clear(self) -> None:
        with self._mutex:
            self._functions.clear()

    def __contains__(self, name: str) -> bool:
        with self._mutex:
            return name in self._functions

    def __getitem__(self, name: str) -> Function:
        function = self.get(name)
        if function is None:
            raise KeyError(name)
        return function


GLOBAL_REGISTRY = Registry()


def http(name: str = None, registry: Registry = None):
    """
    Decorator that registers the decorated callable as an HTTP function. The function receives a werkzeug
    ``Request`` and may return a string, a dict (rendered as JSON), a werkzeug ``Response``, or a
    ``(status, headers, body)`` tuple.

    :param name: the function name (defaults to the name of the callable)
    :param registry: the registry to add the function to (defaults to the global registry)
    """

    def _decorator(handler):
        (registry or GLOBAL_REGISTRY).add_http(name or handler.__name__, handler)
        return handler

    return _decorator


def cloud_event(name: str = None, registry: Registry = None):
    """
    Decorator that registers the decorated callable as an event function, which receives a ``CloudEvent``.

    :param name: the function name (defaults to the name of the callable)
    :param registry: the registry to add the function to (defaults to the global registry)
    """

    def _decorator(handler):
        (registry or GLOBAL_REGISTRY).add_event(name or handler.__name__, handler)
        return handler

    return _decorator
