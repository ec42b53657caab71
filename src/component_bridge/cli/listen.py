"""CLI: component-bridge listen, component-bridge send"""

import asyncio
import json
from typing import Any, Optional

import click
from rich.console import Console

from component_bridge.bridge import ComponentBridge
from component_bridge.themes import InMemoryStylesheetSet, Stylesheet
from component_bridge.transport.socketio import SocketIOHost

console = Console()


def _helpers():
    from component_bridge.cli import main
    return main


class ConsoleStylesheetSet(InMemoryStylesheetSet):
    def add(self, stylesheet: Stylesheet) -> None:
        super().add(stylesheet)
        console.print(f"[magenta]theme:[/magenta] {stylesheet.href}")


def _print_session(bridge: ComponentBridge) -> None:
    session = bridge.session
    if session is None:
        return
    console.print(f"[green]Registered[/green] uuid={session.uuid} environment={session.environment}")
    if session.component_data:
        console.print(f"[dim]component data: {json.dumps(session.component_data, default=str)}[/dim]")


@click.command("listen")
@click.argument("url", required=False)
@click.option("-p", "--permission", "permissions", multiple=True,
              help="Permission requested on handshake (JSON object or name).")
def listen_cmd(url: Optional[str], permissions: tuple[str, ...]):
    """Register with a host and print what it pushes until interrupted."""
    helpers = _helpers()
    host_url = helpers._resolve_url(url)

    async def _listen():
        host = SocketIOHost(host_url)
        bridge = ComponentBridge(
            host.post,
            initial_permissions=[_parse_permission(p) for p in permissions],
            on_ready=lambda: _print_session(bridge),
            config=helpers._bridge_config(),
            stylesheets=ConsoleStylesheetSet(),
            alert=helpers._alert,
        )
        host.attach(bridge.transport)
        with console.status(f"Connecting to {host_url}..."):
            await host.connect()
        console.print("[cyan]Waiting for the host (Ctrl+C to exit)[/cyan]")
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            bridge.shutdown()
            await host.disconnect()

    try:
        helpers._run(_listen())
    except KeyboardInterrupt:
        pass


@click.command("send")
@click.argument("action")
@click.argument("url", required=False)
@click.option("-d", "--data", "data_json", default=None, help="JSON payload.")
@click.option("-t", "--timeout", default=15.0, show_default=True)
@click.option("--json-output", "--json", is_flag=True)
def send_cmd(action: str, url: Optional[str], data_json: Optional[str], timeout: float, json_output: bool):
    """Send one custom event and print the reply."""
    helpers = _helpers()
    host_url = helpers._resolve_url(url)
    try:
        data = json.loads(data_json) if data_json else None
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"--data is not valid JSON: {e}")

    async def _send() -> Any:
        loop = asyncio.get_running_loop()
        reply: asyncio.Future = loop.create_future()
        host = SocketIOHost(host_url)
        bridge = ComponentBridge(host.post, config=helpers._bridge_config(), alert=helpers._alert)
        host.attach(bridge.transport)
        await host.connect()
        # Queued until the handshake, then sent.
        bridge.send_custom_event(action, data, lambda r: reply.done() or reply.set_result(r))
        try:
            return await asyncio.wait_for(reply, timeout=timeout)
        finally:
            bridge.shutdown()
            await host.disconnect()

    try:
        result = helpers._run(_send())
    except asyncio.TimeoutError:
        console.print(f"[red]No reply to {action} within {timeout}s[/red]")
        raise SystemExit(1)
    if json_output:
        click.echo(json.dumps(result, default=str))
    else:
        console.print(f"[green]{action}:[/green] {result}")


def _parse_permission(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return {"name": raw}
