import logging
import sys
import warnings

from funchost import config, constants

from .format import AddFormattedAttributes, DefaultFormatter

# log levels of third-party and internal loggers, applied on top of the global level
default_log_levels = {
    "requests": logging.WARNING,
    "urllib3": logging.WARNING,
    "werkzeug": logging.WARNING,
    "rolo": logging.WARNING,
    "funchost.runtime.engine": logging.INFO,
    "funchost.utils.threads": logging.INFO,
}

trace_log_levels = {
    "werkzeug": logging.INFO,
    "rolo": logging.DEBUG,
    "funchost.runtime.engine": logging.DEBUG,
    "funchost.utils.threads": logging.DEBUG,
}


def setup_logging_for_cli(log_level=logging.INFO) -> None:
    logging.basicConfig(level=log_level)

    logging.root.setLevel(log_level)
    logging.getLogger(constants.DEFAULT_LOGGER_NAME).setLevel(log_level)
    for logger, level in default_log_levels.items():
        logging.getLogger(logger).setLevel(level)


def get_log_level_from_config() -> int:
    # FUNCHOST_LOG overrides DEBUG
    if config.FUNCHOST_LOG:
        log_level = str(config.FUNCHOST_LOG).upper()
        if log_level.lower() == constants.LOG_LEVEL_TRACE:
            log_level = "DEBUG"
        return logging.getLevelName(log_level)

    return logging.DEBUG if config.DEBUG else logging.INFO


def setup_logging_from_config() -> None:
    setup_logging(get_log_level_from_config())

    if config.is_trace_logging_enabled():
        for name, level in trace_log_levels.items():
            logging.getLogger(name).setLevel(level)


def create_default_handler(log_level: int) -> logging.Handler:
    log_handler = logging.StreamHandler(stream=sys.stderr)
    log_handler.setLevel(log_level)
    log_handler.setFormatter(DefaultFormatter())
    log_handler.addFilter(AddFormattedAttributes())
    return log_handler


def setup_logging(log_level=logging.INFO) -> None:
    """
    Configures the python logging environment for funchost.

    :param log_level: the optional log level.
    """
    log_handler = create_default_handler(log_level)

    # replace any existing handlers
    logging.basicConfig(level=log_level, handlers=[log_handler], force=True)

    warnings.filterwarnings("ignore")
    logging.captureWarnings(True)

    logging.root.setLevel(log_level)
    logging.getLogger(constants.DEFAULT_LOGGER_NAME).setLevel(log_level)
    for logger, level in default_log_levels.items():
        logging.getLogger(logger).setLevel(level)
