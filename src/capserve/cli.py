"""Command-line interface for capserve."""

import asyncio
import functools
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click

from capserve import __version__
from capserve.api.mcp.app import CapabilityServer
from capserve.api.mcp.server import FastMcpServerAdapter
from capserve.core.config.settings import Settings, get_settings
from capserve.core.mcp.descriptors import InvocationResult
from capserve.core.mcp.dispatcher import McpRequest, McpResponse
from capserve.servers.demo import register_demo
from capserve.servers.prompts import YamlPromptProvider


def configure_logging(level: str) -> None:
    """Send logs to stderr so stdout stays clean for stdio transport."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_server(
    settings: Settings,
    demo: bool = True,
    prompts_dir: Path | None = None,
) -> CapabilityServer:
    """Create a server with the demo capabilities and the YAML prompt library."""
    server = CapabilityServer.from_settings(settings)
    if demo:
        register_demo(server)
    server.add_provider(
        YamlPromptProvider(prompts_dir=prompts_dir or settings.server.prompts_dir)
    )
    return server


def parse_arguments(pairs: tuple[str, ...], raw_json: str | None) -> dict[str, Any]:
    """Merge ``--json`` and repeated ``--arg key=value`` options."""
    arguments: dict[str, Any] = {}
    if raw_json:
        try:
            loaded = json.loads(raw_json)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Invalid JSON: {e}", param_hint="--json") from e
        if not isinstance(loaded, dict):
            raise click.BadParameter("Must be a JSON object", param_hint="--json")
        arguments.update(loaded)

    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(
                f"Expected key=value, got '{pair}'", param_hint="--arg"
            )
        arguments[key] = value
    return arguments


def run_request(command_func):
    """Decorator: build the server, run the returned request, print the result."""

    @functools.wraps(command_func)
    def wrapper(ctx: click.Context, *args, **kwargs):
        settings: Settings = ctx.obj["settings"]
        server = build_server(settings, demo=not ctx.obj["no_demo"])
        request: McpRequest = command_func(*args, **kwargs)
        response: McpResponse = asyncio.run(server.handle(request))

        if response.error is not None:
            raise click.ClickException(
                f"{response.error.kind}: {response.error.detail}"
            )

        result = response.result
        if isinstance(result, InvocationResult) and result.error is not None:
            raise click.ClickException(f"{result.error.kind}: {result.error.detail}")

        payload = response.to_payload()["result"]
        click.echo(json.dumps(payload, indent=2, default=str))

    return click.pass_context(wrapper)


@click.group()
@click.version_option(version=__version__, prog_name="capserve")
@click.option("--no-demo", is_flag=True, help="Do not register demo capabilities")
@click.pass_context
def cli(ctx: click.Context, no_demo: bool) -> None:
    """capserve - Model Context Protocol capability server"""
    settings = get_settings()
    configure_logging(settings.application.log_level)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["no_demo"] = no_demo


@cli.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """Show project information."""
    settings: Settings = ctx.obj["settings"]
    click.echo(f"capserve v{__version__}")
    click.echo("capserve - Model Context Protocol capability server")
    click.echo(f"Environment: {settings.application.app_env}")


@cli.command()
@click.option(
    "--transport",
    "-t",
    type=click.Choice(["stdio", "http", "sse"]),
    default=None,
    help="Transport type (defaults to MCP_TRANSPORT)",
)
@click.option("--host", default=None, help="Bind host for http/sse")
@click.option("--port", type=int, default=None, help="Bind port for http/sse")
@click.option("--path", default=None, help="Endpoint path for http")
@click.option("--no-demo", is_flag=True, help="Do not register demo capabilities")
@click.pass_context
def serve(
    ctx: click.Context,
    transport: str | None,
    host: str | None,
    port: int | None,
    path: str | None,
    no_demo: bool,
) -> None:
    """Start the MCP server."""
    settings: Settings = ctx.obj["settings"]
    server = build_server(settings, demo=not (no_demo or ctx.obj["no_demo"]))
    adapter = FastMcpServerAdapter(server)
    adapter.start(
        transport or settings.server.transport,
        host=host or settings.server.host,
        port=port or settings.server.port,
        path=path or settings.server.path,
    )


@cli.command()
@run_request
def tools() -> McpRequest:
    """List registered tools."""
    return McpRequest(method="tools/list")


@cli.command()
@click.option("--templates", is_flag=True, help="Only list templated resources")
@run_request
def resources(templates: bool) -> McpRequest:
    """List registered resources."""
    method = "resources/templates/list" if templates else "resources/list"
    return McpRequest(method=method)


@cli.command()
@run_request
def prompts() -> McpRequest:
    """List registered prompts."""
    return McpRequest(method="prompts/list")


@cli.command()
@click.argument("name")
@click.option("--arg", "-a", "pairs", multiple=True, help="Argument as key=value")
@click.option("--json", "raw_json", default=None, help="Arguments as a JSON object")
@click.option("--timeout", type=float, default=None, help="Handler timeout in seconds")
@run_request
def call(
    name: str, pairs: tuple[str, ...], raw_json: str | None, timeout: float | None
) -> McpRequest:
    """Call a tool."""
    params: dict[str, Any] = {
        "name": name,
        "arguments": parse_arguments(pairs, raw_json),
    }
    if timeout is not None:
        params["timeout"] = timeout
    return McpRequest(method="tools/call", params=params)


@cli.command()
@click.argument("uri")
@click.option("--timeout", type=float, default=None, help="Handler timeout in seconds")
@run_request
def read(uri: str, timeout: float | None) -> McpRequest:
    """Read a resource by URI."""
    params: dict[str, Any] = {"uri": uri}
    if timeout is not None:
        params["timeout"] = timeout
    return McpRequest(method="resources/read", params=params)


@cli.command()
@click.argument("name")
@click.option("--arg", "-a", "pairs", multiple=True, help="Argument as key=value")
@click.option("--json", "raw_json", default=None, help="Arguments as a JSON object")
@run_request
def prompt(name: str, pairs: tuple[str, ...], raw_json: str | None) -> McpRequest:
    """Expand a prompt."""
    return McpRequest(
        method="prompts/get",
        params={"name": name, "arguments": parse_arguments(pairs, raw_json)},
    )


if __name__ == "__main__":
    cli()
