"""Command line entry point: `linkwarden-mcp-server stdio`."""
import asyncio
import logging
import signal
import sys
from pathlib import Path

import click
from click.core import ParameterSource

from . import __version__
from .client import LinkwardenClient
from .config import Settings, load_settings
from .errors import ConfigurationError, TransportClosed, TransportError
from .logconfig import LogConfig, setup_logging
from .server import StdioServer, open_stdio_streams
from .tools import ToolExecutor, new_toolsets

logger = logging.getLogger(__name__)

# CLI option name -> Settings field
OPTION_FIELDS = {
    "base_url": "base_url",
    "token": "token",
    "toolsets": "toolsets",
    "read_only": "read_only",
    "log_file": "log_file",
    "log_level": "log_level",
}


def _explicit_options(ctx: click.Context) -> dict:
    """Options the user actually passed on the command line."""
    overrides = {}
    for option, field in OPTION_FIELDS.items():
        if ctx.get_parameter_source(option) is ParameterSource.COMMANDLINE:
            overrides[field] = ctx.params[option]
    return overrides


@click.group()
@click.version_option(__version__, prog_name="linkwarden-mcp-server")
@click.option("-b", "--base-url", default=None, help="Base URL of the Linkwarden instance.")
@click.option("-s", "--token", default=None, help="Linkwarden access token.")
@click.option("-t", "--toolsets", default=None,
              help="Comma separated toolsets to enable (search, collection, link, tags, or all).")
@click.option("--read-only", is_flag=True, default=False, help="Expose read-only tools only.")
@click.option("-l", "--log-file", default=None, type=click.Path(dir_okay=False),
              help="Write logs to this file instead of stderr.")
@click.option("--log-level", default=None,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.option("-c", "--config", "config_file", default=None, type=click.Path(dir_okay=False, path_type=Path),
              help="YAML config file (default: ~/linkwarden-mcp-server.yaml).")
@click.pass_context
def main(ctx, base_url, token, toolsets, read_only, log_file, log_level, config_file):
    """MCP server exposing a Linkwarden instance as tools."""
    ctx.ensure_object(dict)
    ctx.obj["overrides"] = _explicit_options(ctx)
    ctx.obj["config_file"] = config_file


@main.command()
@click.option("--list-tools", is_flag=True, default=False,
              help="Print the tools that would be exposed and exit.")
@click.pass_context
def stdio(ctx, list_tools):
    """Serve MCP over stdin/stdout."""
    try:
        settings = load_settings(ctx.obj["overrides"], ctx.obj["config_file"]).require_backend()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    setup_logging(LogConfig(level=settings.log_level, path=settings.log_file))

    try:
        if list_tools:
            click.echo(asyncio.run(_describe_tools(settings)))
            return
        stopped_by_signal = asyncio.run(run_stdio_server(settings))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except TransportClosed as e:
        logger.info("Input stream closed, exiting")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except TransportError as e:
        logger.error(f"Transport error: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if stopped_by_signal:
        logger.info("Shut down on signal")


def _toolset_names(settings: Settings):
    return settings.toolsets or ["all"]


async def _describe_tools(settings: Settings) -> str:
    async with LinkwardenClient(settings.base_url, settings.token, timeout=settings.timeout) as client:
        group = new_toolsets(client, _toolset_names(settings), settings.read_only)
        return group.tool_descriptions()


async def run_stdio_server(settings: Settings) -> bool:
    """Serve until end of input or a signal. Returns True when stopped by a signal."""
    async with LinkwardenClient(settings.base_url, settings.token, timeout=settings.timeout) as client:
        group = new_toolsets(client, _toolset_names(settings), settings.read_only)
        server = StdioServer(ToolExecutor(group.exposed_tools()))

        signalled = []

        def on_signal(signum):
            logger.info(f"Received {signal.Signals(signum).name}")
            signalled.append(signum)
            server.shutdown()

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, on_signal, signum)
            except NotImplementedError:
                # no signal handlers on this platform's event loop
                pass

        reader, writer = await open_stdio_streams()
        click.echo("Linkwarden MCP Server running on stdio", err=True)
        try:
            await server.listen(reader, writer)
        finally:
            for signum in (signal.SIGINT, signal.SIGTERM):
                try:
                    loop.remove_signal_handler(signum)
                except NotImplementedError:
                    pass
        return bool(signalled)
