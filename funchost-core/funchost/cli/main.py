import logging
import traceback
from typing import Optional

import click

from funchost import config
from funchost.config import ConfigBuilder
from funchost.constants import (
    DEFAULT_FUNCTION_SOURCE,
    DEFAULT_FUNCTION_TARGET,
    ENV_DEVELOPMENT,
    ENV_PRODUCTION,
    ENV_VAR_FUNCTION_SIGNATURE_TYPE,
    ENV_VAR_FUNCTION_SOURCE,
    ENV_VAR_FUNCTION_TARGET,
    VERSION,
)
from funchost.exceptions import FunctionHostError
from funchost.function import FunctionKind
from funchost.runtime.server import Server

from .exceptions import CLIError
from .loader import load_function

LOG = logging.getLogger(__name__)


class FunctionHostCommand(click.Command):
    """
    The ``funchost`` command. Errors raised while loading or serving the function are reported as ``CLIError``,
    with the stack trace if ``--debug`` is set.
    """

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except click.exceptions.Exit:
            raise
        except click.ClickException:
            if ctx and ctx.params.get("debug"):
                click.echo(traceback.format_exc())
            raise
        except Exception as e:
            if ctx and ctx.params.get("debug"):
                click.echo(traceback.format_exc())
            raise CLIError(str(e)) from e


def _setup_logging(debug: bool) -> None:
    from funchost.logging.setup import setup_logging_from_config

    if debug:
        config.DEBUG = True
    setup_logging_from_config()


@click.command(name="funchost", cls=FunctionHostCommand, help="Serve a function over HTTP.")
@click.version_option(version=VERSION, message="%(version)s")
@click.option(
    "--target",
    envvar=ENV_VAR_FUNCTION_TARGET,
    default=DEFAULT_FUNCTION_TARGET,
    show_default=True,
    help="Name of the function to serve",
)
@click.option(
    "--source",
    envvar=ENV_VAR_FUNCTION_SOURCE,
    default=DEFAULT_FUNCTION_SOURCE,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Python file that defines the function",
)
@click.option(
    "--signature-type",
    envvar=ENV_VAR_FUNCTION_SIGNATURE_TYPE,
    type=click.Choice([kind.value for kind in FunctionKind]),
    default=None,
    help="How the function is invoked. Defaults to the kind it is registered as, otherwise http.",
)
@click.option("--port", type=int, default=None, help="Port to listen on")
@click.option("--bind", default=None, help="Address to bind to")
@click.option(
    "--env",
    "environment",
    type=click.Choice([ENV_DEVELOPMENT, ENV_PRODUCTION]),
    default=None,
    help="Server mode",
)
@click.option("--min-threads", type=int, default=None, help="Minimum number of request worker threads")
@click.option("--max-threads", type=int, default=None, help="Maximum number of request worker threads")
@click.option(
    "--detailed-errors/--no-detailed-errors",
    default=None,
    help="Whether error responses contain exception details",
)
@click.option("--verify", is_flag=True, default=False, help="Load the function and exit without serving it")
@click.option("--debug", is_flag=True, default=False, help="Enable debug logging")
def funchost(
    target: str,
    source: str,
    signature_type: Optional[str],
    port: Optional[int],
    bind: Optional[str],
    environment: Optional[str],
    min_threads: Optional[int],
    max_threads: Optional[int],
    detailed_errors: Optional[bool],
    verify: bool,
    debug: bool,
) -> None:
    _setup_logging(debug)

    function = load_function(source, target, signature_type)

    def _configure(builder: ConfigBuilder):
        builder.environment = environment
        builder.bind_addr = bind
        builder.port = port
        builder.min_threads = min_threads
        builder.max_threads = max_threads
        builder.show_error_details = detailed_errors

    try:
        server = Server(function, _configure)
    except FunctionHostError as e:
        raise CLIError(str(e)) from e

    if verify:
        click.echo(f"OK: {function.kind} function {function.name!r} loaded from {source}")
        return

    try:
        server.respond_to_signals().start()
    except OSError as e:
        raise CLIError(f"Failed to start server on port {server.config.port}: {e}") from e

    server.wait_until_stopped()
    LOG.debug("server stopped, exiting")


def main():
    funchost(prog_name="funchost")


if __name__ == "__main__":
    main()
