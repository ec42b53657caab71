"""
component-bridge CLI.

Commands:
  component-bridge listen [URL]         Register with a host and print what it pushes
  component-bridge send ACTION [URL]    Send one custom event and print the reply
  component-bridge config <cmd>         Show or change saved defaults
"""

import asyncio
from typing import Optional

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install component-bridge[cli]")

from component_bridge import __version__
from component_bridge.config import BridgeConfig, bridge_config_from, load_config, save_config

console = Console()


def _resolve_url(url: Optional[str]) -> str:
    url = url or load_config().get("url")
    if not url:
        console.print("[red]No host URL. Pass one or run `component-bridge config set-url` first.[/red]")
        raise SystemExit(1)
    return url


def _bridge_config() -> BridgeConfig:
    return bridge_config_from(load_config())


def _alert(message: str) -> None:
    console.print(f"[bold red]{message}[/bold red]")


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option(__version__)
def main():
    """Component bridge CLI — talk to a component host over Socket.IO."""


@click.group()
def config():
    """Saved defaults."""


@config.command("show")
def config_show():
    cfg = load_config()
    console.print(f"url: {cfg.get('url') or '[dim]unset[/dim]'}")
    for key, value in _bridge_config().model_dump().items():
        console.print(f"{key}: {value}")


@config.command("set-url")
@click.argument("url")
def config_set_url(url: str):
    cfg = load_config()
    cfg["url"] = url
    save_config(cfg)
    console.print(f"[green]Default host URL set to {url}[/green]")


# Register subcommands from separate modules
from component_bridge.cli.listen import listen_cmd, send_cmd

main.add_command(config)
main.add_command(listen_cmd)
main.add_command(send_cmd)


if __name__ == "__main__":
    main()
