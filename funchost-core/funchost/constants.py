from funchost.version import __version__

# funchost version
VERSION = __version__

# default network settings of the invocation server
DEFAULT_BIND_ADDR = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_MIN_THREADS = 1
DEFAULT_MAX_THREADS_DEVELOPMENT = 1
DEFAULT_MAX_THREADS_PRODUCTION = 16

# server modes
ENV_DEVELOPMENT = "development"
ENV_PRODUCTION = "production"

# environment variables read when resolving the server configuration
ENV_VAR_MODE = "FUNCHOST_ENV"
ENV_VAR_DEPLOYMENT_MARKER = "K_REVISION"
ENV_VAR_BIND_ADDR = "BIND_ADDR"
ENV_VAR_PORT = "PORT"
ENV_VAR_MIN_THREADS = "MIN_THREADS"
ENV_VAR_MAX_THREADS = "MAX_THREADS"
ENV_VAR_DETAILED_ERRORS = "DETAILED_ERRORS"

# environment variables read by the CLI
ENV_VAR_FUNCTION_TARGET = "FUNCTION_TARGET"
ENV_VAR_FUNCTION_SOURCE = "FUNCTION_SOURCE"
ENV_VAR_FUNCTION_SIGNATURE_TYPE = "FUNCTION_SIGNATURE_TYPE"

DEFAULT_FUNCTION_TARGET = "function"
DEFAULT_FUNCTION_SOURCE = "main.py"

# name of the logger used by servers that are not given a custom one
DEFAULT_LOGGER_NAME = "funchost"

TRUE_STRINGS = ("1", "true", "True")
FALSE_STRINGS = ("0", "false", "False")

LOG_LEVELS = ("trace", "debug", "info", "warn", "error", "warning")
LOG_LEVEL_TRACE = "trace"
