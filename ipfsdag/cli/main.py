"""ipfsdag command-line interface.

Commands:
- get      resolve an identifier to file content
- put      store a file as a single UnixFS node
- inspect  show the root node of an identifier
- hash     compute the identifier ``put`` would produce, offline
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from ipfsdag.config.config import init_config
from ipfsdag.core.dag import DagNodeCodec, DataNode, LinksNode
from ipfsdag.core.multihash import identifier_for_block
from ipfsdag.core.resolver import DagResolver
from ipfsdag.core.unixfs import UnixFsCodec
from ipfsdag.exceptions import IpfsDagError
from ipfsdag.models import Config, LogLevel
from ipfsdag.storage.block_store import create_block_store

logger = logging.getLogger(__name__)


def _run(config: Config, operation: Any) -> Any:
    """Run ``operation(resolver)`` against a freshly opened block store."""

    async def _main() -> Any:
        async with create_block_store(config.ipfs) as store:
            return await operation(DagResolver(store))

    return asyncio.run(_main())


def _fail(e: IpfsDagError) -> click.ClickException:
    logger.debug("Command failed", exc_info=e)
    return click.ClickException(str(e))


@click.group()
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to ipfsdag.toml",
)
@click.option(
    "--log-level",
    type=click.Choice([level.value for level in LogLevel], case_sensitive=False),
    help="Override the configured log level",
)
@click.option("--api-url", help="Override the IPFS RPC base URL")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    log_level: str | None,
    api_url: str | None,
) -> None:
    """Fetch and store UnixFS files over dag-pb blocks."""
    overrides: dict[str, Any] = {}
    if log_level:
        overrides.setdefault("observability", {})["log_level"] = log_level.upper()
    if api_url:
        overrides.setdefault("ipfs", {})["api_url"] = api_url
    try:
        manager = init_config(config_file, overrides)
    except IpfsDagError as e:
        raise _fail(e) from e
    ctx.obj = {"config": manager.config, "console": Console(stderr=True)}


@cli.command("get")
@click.argument("identifier", type=str)
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Output file path"
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def get_cmd(ctx: click.Context, identifier: str, output: Path | None, json_output: bool) -> None:
    """Resolve IDENTIFIER and print or save the file content."""
    config: Config = ctx.obj["config"]
    console: Console = ctx.obj["console"]
    try:
        content = _run(config, lambda resolver: resolver.resolve(identifier))
    except IpfsDagError as e:
        raise _fail(e) from e

    if output:
        output.write_bytes(content)
        if json_output:
            click.echo(json.dumps({"cid": identifier, "size": len(content), "saved_to": str(output)}))
        else:
            console.print(f"[green]Content saved to:[/green] {output} ({len(content)} bytes)")
    elif json_output:
        click.echo(json.dumps({"cid": identifier, "size": len(content)}))
    else:
        click.get_binary_stream("stdout").write(content)


@cli.command("put")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def put_cmd(ctx: click.Context, path: Path, json_output: bool) -> None:
    """Store the file at PATH as a single UnixFS node."""
    config: Config = ctx.obj["config"]
    data = path.read_bytes()
    try:
        identifier = _run(config, lambda resolver: resolver.store(data))
    except IpfsDagError as e:
        raise _fail(e) from e

    if json_output:
        click.echo(json.dumps({"cid": identifier, "size": len(data)}))
    else:
        click.echo(identifier)


@cli.command("inspect")
@click.argument("identifier", type=str)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def inspect_cmd(ctx: click.Context, identifier: str, json_output: bool) -> None:
    """Show the verified root node of IDENTIFIER."""
    config: Config = ctx.obj["config"]
    try:
        node = _run(config, lambda resolver: resolver.inspect(identifier))
        if isinstance(node, DataNode):
            payload = UnixFsCodec.parse(node.data)
    except IpfsDagError as e:
        raise _fail(e) from e

    if isinstance(node, LinksNode):
        links = [{"cid": link.cid, "name": link.name, "size": link.tsize} for link in node.links]
        if json_output:
            click.echo(json.dumps({"cid": identifier, "kind": "links", "links": links}))
            return
        table = Table(title=f"Links of {identifier}")
        table.add_column("#", style="dim")
        table.add_column("CID", style="cyan")
        table.add_column("Name")
        table.add_column("Size", style="green", justify="right")
        for index, link in enumerate(links):
            table.add_row(str(index), link["cid"], link["name"], str(link["size"]))
        Console().print(table)
        return

    summary = {
        "cid": identifier,
        "kind": "data",
        "type": getattr(payload.type, "name", payload.type),
        "filesize": payload.filesize,
        "data_length": len(payload.data or b""),
    }
    if json_output:
        click.echo(json.dumps(summary))
    else:
        for key, value in summary.items():
            Console().print(f"[cyan]{key}:[/cyan] {value}")


@cli.command("hash")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def hash_cmd(path: Path) -> None:
    """Print the identifier PATH would be stored under by ``put``."""
    click.echo(identifier_for_block(DagNodeCodec.encode(path.read_bytes())))


def main() -> None:
    """Console script entry point."""
    cli()
