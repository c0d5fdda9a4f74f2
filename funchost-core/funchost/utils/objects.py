import functools
import threading
from typing import Callable, List, TypeVar

_T = TypeVar("_T")


def singleton_factory(factory: Callable[[], _T]) -> Callable[[], _T]:
    """
    Decorator for a factory that must run at most once. Concurrent first calls block until the single instance
    exists, and every call returns that instance. ``clear()`` on the decorated function forgets the instance.

    :param factory: the method to decorate
    :return: a threadsafe singleton factory
    """
    lock = threading.Lock()
    # holds at most one element, the created instance
    slot: List[_T] = []

    @functools.wraps(factory)
    def _singleton_factory() -> _T:
        if slot:
            return slot[0]

        with lock:
            if not slot:
                slot.append(factory())
            return slot[0]

    def _clear():
        with lock:
            slot.clear()

    _singleton_factory.clear = _clear

    return _singleton_factory
