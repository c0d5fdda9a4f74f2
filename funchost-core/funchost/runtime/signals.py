import logging
import queue
import signal
from typing import TYPE_CHECKING, Optional, Tuple

from funchost.utils.objects import singleton_factory
from funchost.utils.threads import FuncThread, start_worker_thread

if TYPE_CHECKING:
    from funchost.runtime.server import Server

LOG = logging.getLogger(__name__)

# the termination signals servers respond to (SIGHUP does not exist on all platforms)
TERMINATION_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGHUP") if hasattr(signal, name)
)

SignalRequest = Tuple[str, logging.Logger, Optional["Server"]]


class SignalRelay:
    """
    Decouples the delivery of OS signals from the shutdown of servers. Signal handlers only ``enqueue`` a request,
    which never blocks and never takes a server's lifecycle lock. A single consumer thread takes the requests off
    the queue in arrival order and gracefully stops the named server.
    """

    def __init__(self) -> None:
        # SimpleQueue.put is reentrant, and can therefore be called from signal handlers
        self._queue: "queue.SimpleQueue[SignalRequest]" = queue.SimpleQueue()
        self._thread: Optional[FuncThread] = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread:
            return
        self._thread = start_worker_thread(self._consume, name="funchost-signals")

    def enqueue(self, signal_name: str, logger: logging.Logger, server: Optional["Server"]) -> None:
        """
        Requests the given server to be stopped. This is the only operation that may be called from a signal
        handler.

        :param signal_name: the name of the signal that was received
        :param logger: the logger to report the signal to
        :param server: the server to stop
        """
        self._queue.put((signal_name, logger, server))

    def _consume(self, *_):
        while True:
            signal_name, logger, server = self._queue.get()
            logger.info("Caught %s; shutting down server...", signal_name)
            if server is None:
                continue
            try:
                server.stop()
            except Exception as e:
                LOG.warning("error while stopping server after %s: %s", signal_name, e, exc_info=e)


@singleton_factory
def get_signal_relay() -> SignalRelay:
    """
    Returns the process-wide SignalRelay, creating and starting it on the first call.

    :return: the active signal relay
    """
    relay = SignalRelay()
    relay.start()
    return relay
