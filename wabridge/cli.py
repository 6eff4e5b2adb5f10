from __future__ import annotations
import json
from typing import Optional
import typer
import httpx
from rich import print
from rich.table import Table

app = typer.Typer(help="Relay CLI - operator client for a running Messages API relay.")

def _http_url(host: str, port: int, path: str) -> str:
    return f"http://{host}:{port}{path}"

def _metadata(name: str, jwt: str, whatsapp_number: str) -> str:
    return json.dumps({"name": name, "jwt": jwt, "whatsappNumber": whatsapp_number})

def _check(res: httpx.Response) -> httpx.Response:
    if not res.is_success:
        print(f"[bold red]{res.status_code}[/bold red] {res.text}")
        raise typer.Exit(code=1)
    return res

@app.command()
def serve(host: Optional[str] = typer.Option(None), port: Optional[int] = typer.Option(None)):
    """Run the relay server (settings from RELAY_* env, overridable here)."""
    from wabridge.__main__ import serve as run_server
    from wabridge.config import load_settings
    settings = load_settings()
    if host:
        settings.host = host
    if port:
        settings.port = port
    run_server(settings)

@app.command()
def health(host: str = "127.0.0.1", port: int = 8080):
    """Check that the relay answers its healthcheck."""
    res = httpx.get(_http_url(host, port, "/healthcheck"))
    print(f"[bold]{res.status_code}[/bold] {res.text}")

@app.command()
def manifest(host: str = "127.0.0.1", port: int = 8080):
    """Show the manifest advertised to the ticketing platform."""
    res = _check(httpx.get(_http_url(host, port, "/manifest")))
    print(res.json())

@app.command()
def register(
    whatsapp_number: str,
    name: str = "Relay",
    jwt: str = typer.Option("", envvar="RELAY_JWT"),
    return_url: str = "about:blank",
    host: str = "127.0.0.1",
    port: int = 8080,
):
    """Submit the admin setup form, registering a queue for a WhatsApp number."""
    res = httpx.post(_http_url(host, port, "/admin_ui_2"), data={
        "name": name, "jwt": jwt, "whatsappNumber": whatsapp_number, "return_url": return_url,
    })
    _check(res)
    if 'id="finish"' not in res.text:
        print(f"[bold red]rejected[/bold red] {whatsapp_number} was not registered")
        raise typer.Exit(code=1)
    print(f"[bold]{res.status_code}[/bold] registered {whatsapp_number}")

@app.command()
def inbound(
    sender: str,
    recipient: str,
    text: str,
    host: str = "127.0.0.1",
    port: int = 8080,
):
    """Simulate a provider inbound WhatsApp message."""
    event = {
        "direction": "inbound",
        "from": {"type": "whatsapp", "number": sender},
        "to": {"type": "whatsapp", "number": recipient},
        "message": {"content": {"type": "text", "text": text}},
    }
    res = httpx.post(_http_url(host, port, "/inbound"), json=event)
    print(f"[bold]{res.status_code}[/bold] {res.text}")

@app.command()
def pull(
    whatsapp_number: str,
    name: str = "Relay",
    jwt: str = typer.Option("", envvar="RELAY_JWT"),
    host: str = "127.0.0.1",
    port: int = 8080,
):
    """Drain the queue of a WhatsApp number, exactly like the ticketing platform does."""
    res = httpx.post(_http_url(host, port, "/pull"), data={
        "metadata": _metadata(name, jwt, whatsapp_number), "state": "{}",
    })
    resources = _check(res).json().get("external_resources", [])
    t = Table(title=f"Pulled for {whatsapp_number}")
    t.add_column("external_id"); t.add_column("thread_id"); t.add_column("created_at"); t.add_column("message")
    for r in resources:
        t.add_row(r["external_id"], r["thread_id"], r["created_at"], r["message"])
    print(t)

@app.command()
def channelback(
    thread_id: str,
    message: str,
    whatsapp_number: str,
    name: str = "Relay",
    jwt: str = typer.Option("", envvar="RELAY_JWT"),
    host: str = "127.0.0.1",
    port: int = 8080,
):
    """Send a reply to a WhatsApp user through the relay."""
    res = httpx.post(_http_url(host, port, "/channelback"), data={
        "message": message, "thread_id": thread_id, "metadata": _metadata(name, jwt, whatsapp_number),
    })
    print(_check(res).json())

def main():
    """Entry point for the CLI."""
    app()
