import logging
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from funchost.constants import (
    DEFAULT_BIND_ADDR,
    DEFAULT_LOGGER_NAME,
    DEFAULT_MAX_THREADS_DEVELOPMENT,
    DEFAULT_MAX_THREADS_PRODUCTION,
    DEFAULT_MIN_THREADS,
    DEFAULT_PORT,
    ENV_DEVELOPMENT,
    ENV_PRODUCTION,
    ENV_VAR_BIND_ADDR,
    ENV_VAR_DEPLOYMENT_MARKER,
    ENV_VAR_DETAILED_ERRORS,
    ENV_VAR_MAX_THREADS,
    ENV_VAR_MIN_THREADS,
    ENV_VAR_MODE,
    ENV_VAR_PORT,
    FALSE_STRINGS,
    LOG_LEVELS,
    LOG_LEVEL_TRACE,
    TRUE_STRINGS,
)
from funchost.exceptions import ConfigurationError


def eval_log_type(env_var_name: str, env: Mapping[str, str] = os.environ) -> Union[str, bool]:
    """Get the log type from environment variable"""
    log_type = env.get(env_var_name, "").lower().strip()
    return log_type if log_type in LOG_LEVELS else False


def parse_boolean_env(env_var_name: str, env: Mapping[str, str] = os.environ) -> Optional[bool]:
    """Parse the value of the given env variable and return True/False, or None if it is not a boolean value."""
    value = env.get(env_var_name, "").strip()
    if value in TRUE_STRINGS:
        return True
    if value in FALSE_STRINGS:
        return False
    return None


def is_env_true(env_var_name: str, env: Mapping[str, str] = os.environ) -> bool:
    """Whether the given environment variable has a truthy value."""
    return env.get(env_var_name, "").strip() in TRUE_STRINGS


# process-wide settings (used by the CLI and the logging setup)
DEBUG = is_env_true("DEBUG")

# log level for funchost loggers (trace, debug, info, warn, error)
FUNCHOST_LOG = eval_log_type("FUNCHOST_LOG")


def is_trace_logging_enabled() -> bool:
    return FUNCHOST_LOG == LOG_LEVEL_TRACE


class ConfigBuilder:
    """
    Mutable set of explicit configuration overrides. An instance is handed to the configuration callback of a
    ``Server``, which is the only place where server configuration can be changed. Every attribute left at
    ``None`` falls back to the process environment, and then to the built-in default.

    Attributes:
        environment:        the server mode, ``development`` or ``production``
        bind_addr:          the address to bind the listener to
        port:               the port to listen on
        min_threads:        the minimum number of request worker threads
        max_threads:        the maximum number of request worker threads
        show_error_details: whether error responses contain exception details and stack traces
        logger:             the logger used for server messages
    """

    environment: Optional[str]
    bind_addr: Optional[str]
    port: Optional[int]
    min_threads: Optional[int]
    max_threads: Optional[int]
    show_error_details: Optional[bool]
    logger: Optional[logging.Logger]

    def __init__(self) -> None:
        self.environment = None
        self.bind_addr = None
        self.port = None
        self.min_threads = None
        self.max_threads = None
        self.show_error_details = None
        self.logger = None

    def __repr__(self):
        return f"ConfigBuilder({self.__dict__})"


@dataclass(frozen=True)
class ServerConfig:
    """
    The fully resolved configuration of a server. Instances are immutable: assigning any attribute raises a
    ``dataclasses.FrozenInstanceError``.
    """

    environment: str
    bind_addr: str
    port: int
    min_threads: int
    max_threads: int
    show_error_details: bool
    logger: logging.Logger = field(compare=False, repr=False)

    @property
    def is_development(self) -> bool:
        return self.environment == ENV_DEVELOPMENT


def _to_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"invalid value for {name}: {value!r}") from None


def resolve_config(
    overrides: Optional[ConfigBuilder] = None, environ: Optional[Mapping[str, str]] = None
) -> ServerConfig:
    """
    Resolves the given overrides against a snapshot of the process environment into a ``ServerConfig``. This
    function has no side effects and does not read anything but its arguments.

    :param overrides: explicit settings, ``None`` values fall back to the environment and then to the defaults
    :param environ: the environment snapshot (defaults to a copy of ``os.environ``)
    :return: the resolved and frozen configuration
    :raises ConfigurationError: if a setting has an invalid value
    """
    overrides = overrides or ConfigBuilder()
    env = dict(os.environ) if environ is None else environ

    environment = overrides.environment or env.get(ENV_VAR_MODE)
    if not environment:
        environment = ENV_PRODUCTION if env.get(ENV_VAR_DEPLOYMENT_MARKER) else ENV_DEVELOPMENT
    development = environment == ENV_DEVELOPMENT

    bind_addr = overrides.bind_addr or env.get(ENV_VAR_BIND_ADDR) or DEFAULT_BIND_ADDR

    port = overrides.port
    if port is None:
        port = env.get(ENV_VAR_PORT) or DEFAULT_PORT
    port = _to_int(port, "port")
    if not 0 <= port <= 65535:
        raise ConfigurationError(f"invalid value for port: {port}")

    min_threads = overrides.min_threads
    if min_threads is None:
        min_threads = env.get(ENV_VAR_MIN_THREADS) or DEFAULT_MIN_THREADS
    min_threads = _to_int(min_threads, "min_threads")

    max_threads = overrides.max_threads
    if max_threads is None:
        max_threads = env.get(ENV_VAR_MAX_THREADS)
    if max_threads is None or max_threads == "":
        # the default never undercuts an explicitly configured minimum
        default = DEFAULT_MAX_THREADS_DEVELOPMENT if development else DEFAULT_MAX_THREADS_PRODUCTION
        max_threads = max(default, min_threads)
    max_threads = _to_int(max_threads, "max_threads")

    if min_threads < 1:
        raise ConfigurationError(f"min_threads must be at least 1, was {min_threads}")
    if max_threads < min_threads:
        raise ConfigurationError(
            f"max_threads ({max_threads}) must not be smaller than min_threads ({min_threads})"
        )

    show_error_details = overrides.show_error_details
    if show_error_details is None:
        show_error_details = parse_boolean_env(ENV_VAR_DETAILED_ERRORS, env)
    if show_error_details is None:
        show_error_details = development

    logger = overrides.logger or logging.getLogger(DEFAULT_LOGGER_NAME)

    return ServerConfig(
        environment=environment,
        bind_addr=bind_addr,
        port=port,
        min_threads=min_threads,
        max_threads=max_threads,
        show_error_details=bool(show_error_details),
        logger=logger,
    )
