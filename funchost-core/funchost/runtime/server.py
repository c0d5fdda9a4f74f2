import signal
import threading
from typing import Callable, Mapping, Optional

from funchost.config import ConfigBuilder, ServerConfig, resolve_config
from funchost.function import Function
from funchost.runtime.dispatcher import Dispatcher, create_dispatcher
from funchost.runtime.engine import WsgiEngine
from funchost.runtime.signals import TERMINATION_SIGNALS, SignalRelay, get_signal_relay


class Server:
    """
    A web server that hosts a single function. The server owns the lifecycle of its embedded HTTP engine, and all
    lifecycle transitions (``start``, ``stop``, ``respond_to_signals``) are serialized by one lock. Queries
    (``is_running``, ``wait_until_stopped``) do not take the lock.

    The configuration can only be changed through the ``configure`` callback passed to the constructor. Once the
    server is created, its ``config`` is frozen.
    """

    def __init__(
        self,
        function: Function,
        configure: Optional[Callable[[ConfigBuilder], None]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Creates a new server for the given function.

        :param function: the function to host
        :param configure: called with a ``ConfigBuilder`` that can be used to set configuration values
        :param environ: the environment to resolve unset configuration values from (defaults to ``os.environ``)
        :raises UnrecognizedFunctionKind: if the function is neither an http nor an event function
        :raises ConfigurationError: if the configuration is invalid
        """
        builder = ConfigBuilder()
        if configure:
            configure(builder)
        self._config = resolve_config(builder, environ)
        self._function = function
        self._dispatcher = create_dispatcher(function, self._config)

        self._engine: Optional[WsgiEngine] = None
        self._lifecycle_lock = threading.RLock()
        self._signals_installed = False
        self._signal_relay: SignalRelay = get_signal_relay()

    @property
    def function(self) -> Function:
        """The hosted function."""
        return self._function

    @property
    def config(self) -> ServerConfig:
        """The final configuration. This is a frozen object that cannot be modified."""
        return self._config

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def port(self) -> int:
        """The port the server listens on. If the configured port is 0, this is the port chosen by the system."""
        engine = self._engine
        if engine and engine.port is not None:
            return engine.port
        return self._config.port

    @property
    def url(self) -> str:
        host = self._config.bind_addr
        if host in ("0.0.0.0", ""):
            host = "localhost"
        return "http://%s:%s" % (host, self.port)

    def start(self) -> "Server":
        """
        Starts the web server in the background. Does nothing if the web server is already running.

        :return: the server
        :raises OSError: if the listener cannot be bound
        """
        with self._lifecycle_lock:
            if not self.is_running():
                engine = WsgiEngine(
                    self._dispatcher,
                    min_threads=self._config.min_threads,
                    max_threads=self._config.max_threads,
                    leak_stack_on_error=self._config.show_error_details,
                )
                engine.add_tcp_listener(self._config.bind_addr, self._config.port)
                engine.run()
                self._engine = engine
                self._config.logger.info(
                    "Serving function %r on port %s...", self._function.name, engine.port
                )
        return self

    def stop(self, force: bool = False, wait: bool = False) -> "Server":
        """
        Stops the web server. Does nothing if the web server is not running.

        :param force: halt immediately instead of letting in-flight requests finish
        :param wait: block until the shutdown is complete
        :return: the server
        """
        with self._lifecycle_lock:
            if self.is_running():
                engine = self._engine
                if not engine.stopping:
                    self._config.logger.info("Shutting down server...")
                if force:
                    engine.halt(wait)
                else:
                    engine.stop(wait)
        return self

    def wait_until_stopped(self, timeout: Optional[float] = None) -> "Server":
        """
        Waits for the server to stop. Returns immediately if the server is not running.

        :param timeout: the time in seconds to wait. If None (the default), waits indefinitely.
        :return: the server
        """
        engine = self._engine
        if engine and engine.thread:
            engine.thread.join(timeout)
        return self

    def is_running(self) -> bool:
        """
        Determines whether the web server is currently running, i.e., whether its serving thread is alive.
        """
        engine = self._engine
        return bool(engine and engine.thread and engine.thread.is_alive())

    def respond_to_signals(self) -> "Server":
        """
        Causes this server to respond to SIGINT, SIGTERM, and SIGHUP by shutting down gracefully. Needs to be
        called from the main thread.

        :return: the server
        """
        with self._lifecycle_lock:
            if self._signals_installed:
                return self
            for signum in TERMINATION_SIGNALS:
                signal.signal(signum, self._handle_signal)
            self._signals_installed = True
        return self

    def _handle_signal(self, signum: int, frame) -> None:
        # runs in signal context: never take the lifecycle lock here
        self._signal_relay.enqueue(signal.Signals(signum).name, self._config.logger, self)

    def __repr__(self):
        return f"Server(function={self._function.name!r}, port={self.port}, running={self.is_running()})"
