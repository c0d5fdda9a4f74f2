import logging
from typing import Callable

import pytest

from funchost.config import ConfigBuilder
from funchost.function import Function
from funchost.runtime.server import Server

LOG = logging.getLogger(__name__)


@pytest.fixture
def cleanups():
    cleanup_fns = []

    yield cleanup_fns

    for cleanup_callback in cleanup_fns[::-1]:
        try:
            cleanup_callback()
        except Exception as e:
            LOG.warning("Failed to execute cleanup", exc_info=e)


@pytest.fixture
def function_server(cleanups) -> Callable[..., Server]:
    """
    Factory fixture that starts a server for a function on a free local port. Keyword arguments are set on the
    ``ConfigBuilder``. The servers are stopped when the test finishes.
    """

    def _create(function: Function, **settings) -> Server:
        def _configure(builder: ConfigBuilder):
            builder.bind_addr = "127.0.0.1"
            builder.port = 0
            for key, value in settings.items():
                setattr(builder, key, value)

        server = Server(function, _configure, environ={})
        cleanups.append(lambda: server.stop(force=True, wait=True))
        return server.start()

    yield _create
