import logging
import threading
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

from werkzeug.http import HTTP_STATUS_CODES
from werkzeug.serving import BaseWSGIServer, WSGIRequestHandler

from funchost.wire.request import Request
from funchost.runtime.dispatcher import Dispatcher
from funchost.runtime.outcome import ResponseNormalizer
from funchost.utils.strings import to_bytes
from funchost.utils.threads import FuncThread, WorkerPool, start_thread, start_worker_thread

if TYPE_CHECKING:
    from _typeshed.wsgi import StartResponse, WSGIEnvironment

LOG = logging.getLogger(__name__)


class DispatcherApplication:
    """
    A WSGI application that hands every request to a dispatcher and writes the returned ``WireResponse``.
    """

    def __init__(self, dispatcher: Dispatcher, leak_stack_on_error: bool = False):
        self.dispatcher = dispatcher
        self.leak_stack_on_error = leak_stack_on_error

    def __call__(
        self, environ: "WSGIEnvironment", start_response: "StartResponse"
    ) -> Iterable[bytes]:
        request = Request(environ)
        try:
            status, headers, body = self.dispatcher.handle(request)
        except Exception as e:
            # dispatchers are not supposed to raise, this is the last line of defense
            LOG.exception("error while dispatching %s request to %s", request.method, request.path)
            normalizer = ResponseNormalizer(self.leak_stack_on_error)
            status, headers, body = normalizer.error_response(e)

        start_response(f"{status} {HTTP_STATUS_CODES.get(status, 'UNKNOWN')}", _header_list(headers))

        if isinstance(body, (str, bytes)):
            body = [body]
        return (to_bytes(chunk) for chunk in body)


def _header_list(headers) -> List[Tuple[str, str]]:
    items = headers.items() if hasattr(headers, "items") else headers
    return [(str(name), str(value)) for name, value in items]


class RequestHandler(WSGIRequestHandler):
    """Request handler that closes the connection after each response, so idle connections never hold a worker."""

    protocol_version = "HTTP/1.0"


class PooledWSGIServer(BaseWSGIServer):
    """
    A werkzeug WSGI server that handles each connection on a thread of a bounded ``WorkerPool``.
    """

    multithread = True

    def __init__(self, host: str, port: int, app, pool: WorkerPool, handler=None):
        self.pool = pool
        self._bind_error: Optional[OSError] = None
        super().__init__(host, port, app, handler=handler or RequestHandler)
        if self._bind_error:
            # werkzeug exits the process if binding fails, we raise the error instead
            self.server_close()
            raise self._bind_error

    def server_bind(self):
        try:
            super().server_bind()
        except OSError as e:
            self._bind_error = e

    def server_activate(self):
        if not self._bind_error:
            super().server_activate()

    def process_request(self, request, client_address):
        self.pool.submit(self.process_request_thread, request, client_address)

    def process_request_thread(self, request, client_address):
        try:
            self.finish_request(request, client_address)
        except Exception:
            self.handle_error(request, client_address)
        finally:
            self.shutdown_request(request)


class WsgiEngine:
    """
    The embedded HTTP engine of a server. It serves a dispatcher through a ``PooledWSGIServer`` whose loop runs in
    a dedicated serving thread. The lifecycle is: ``add_tcp_listener``, ``run``, and finally ``stop`` (graceful, in
    flight requests are completed) or ``halt`` (requests that have not started yet are dropped). An engine cannot
    be restarted.
    """

    thread: Optional[FuncThread]

    def __init__(
        self,
        dispatcher: Dispatcher,
        min_threads: int = 1,
        max_threads: int = 16,
        leak_stack_on_error: bool = False,
    ):
        self.app = DispatcherApplication(dispatcher, leak_stack_on_error)
        self.min_threads = min_threads
        self.max_threads = max_threads
        self.thread = None

        self._server: Optional[PooledWSGIServer] = None
        self._mutex = threading.Lock()
        self._shutdown_requested = False
        self._halt = False

    @property
    def leak_stack_on_error(self) -> bool:
        return self.app.leak_stack_on_error

    @property
    def stopping(self) -> bool:
        """Whether a shutdown of the engine has been requested."""
        return self._shutdown_requested

    @property
    def port(self) -> Optional[int]:
        """The port the listener is bound to (which differs from the configured one if that was 0)."""
        if not self._server:
            return None
        return self._server.server_address[1]

    def add_tcp_listener(self, host: str, port: int) -> None:
        """
        Binds the listening socket.

        :raises OSError: if the address cannot be bound
        """
        if self._server:
            raise RuntimeError("engine already has a listener")
        pool = WorkerPool(self.min_threads, self.max_threads, name="funchost-worker")
        self._server = PooledWSGIServer(host, port, self.app, pool)

    def run(self) -> FuncThread:
        """
        Starts accepting connections in the serving thread.

        :return: the serving thread
        """
        if not self._server:
            raise RuntimeError("cannot run engine without a listener")
        if self.thread:
            raise RuntimeError("engine is already running")
        self.thread = start_thread(self._serve, name="funchost-engine")
        return self.thread

    def stop(self, wait: bool = False) -> None:
        """Stops accepting connections and lets the in-flight requests finish."""
        self._shutdown(halt=False, wait=wait)

    def halt(self, wait: bool = False) -> None:
        """Stops accepting connections and drops all connections that have not been handled yet."""
        self._shutdown(halt=True, wait=wait)

    def _shutdown(self, halt: bool, wait: bool) -> None:
        thread = self.thread
        if not thread:
            return

        with self._mutex:
            if halt:
                self._halt = True
            first_request = not self._shutdown_requested
            self._shutdown_requested = True

        if first_request and thread.is_alive():
            if wait:
                self._server.shutdown()
            else:
                # shutdown() blocks until the server loop has exited
                start_worker_thread(lambda *_: self._server.shutdown(), name="funchost-shutdown")

        if wait and thread is not threading.current_thread():
            thread.join()

    def _serve(self, *_):
        server = self._server
        server.pool.start()
        try:
            server.serve_forever()
        finally:
            cancelled = server.pool.shutdown(wait=not self._halt, cancel_pending=self._halt)
            for _, (request, _address) in cancelled:
                server.shutdown_request(request)
            server.server_close()
            LOG.debug("engine on port %s stopped", self.port)
