import asyncio

import click
from rich.console import Console

from adpilot.config import Config
from adpilot.logging import configure_logging, uvicorn_log_config

console = Console()


@click.group(invoke_without_command=True)
@click.pass_context
def main(ctx):
    """adpilot - chat-driven ad campaign assistant"""
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = Config()
    except ValueError as e:
        # Only fail if we're running a command that needs config
        ctx.obj["config_error"] = str(e)

    if ctx.invoked_subcommand is None:
        console.print("[bold]adpilot[/bold] - chat-driven ad campaign assistant\n")
        console.print("Run [cyan]adpilot serve[/cyan] to start the webhook server,")
        console.print("or [cyan]adpilot chat[/cyan] to talk to the assistant locally.")
        console.print("\nUse [cyan]adpilot --help[/cyan] for all commands.")


def _require_config(ctx) -> Config:
    if "config_error" in ctx.obj:
        console.print(f"[red]Error:[/red] {ctx.obj['config_error']}")
        raise SystemExit(1)
    return ctx.obj["config"]


def _flag(value: object) -> str:
    return "[green]configured[/green]" if value else "[yellow]not set[/yellow]"


@main.command()
@click.pass_context
def status(ctx):
    """Show configuration and which integrations are set up."""
    config = _require_config(ctx)

    console.print("[bold]adpilot status[/bold]")
    console.print()
    console.print(f"Session store: [cyan]{config.store}[/cyan]")
    if config.store == "sqlite":
        console.print(f"Database: [cyan]{config.sessions_db_path}[/cyan]")
    console.print(f"Chat model: {config.chat_model}")
    console.print(f"Image model: {config.image_model}")
    console.print(f"Video model: {config.video_model}")
    console.print(f"Confirmation token: {config.accept_token}")
    console.print(f"Logging: {config.log_level} ({config.log_format})")
    console.print(f"Admins: {', '.join(config.admin_user_ids) or '[yellow]everyone[/yellow]'}")
    console.print()
    console.print(f"WhatsApp: {_flag(config.whatsapp_configured)}")
    console.print(f"WooCommerce: {_flag(config.catalog_configured)}")
    console.print(f"Meta ads: {_flag(config.meta_access_token)}")
    console.print(f"Gemini media: {_flag(config.gemini_api_key)}")


@main.command()
@click.option("--host", default="127.0.0.1", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
@click.pass_context
def serve(ctx, host: str, port: int, reload: bool):
    """Start the webhook server."""
    config = _require_config(ctx)

    import uvicorn

    if not config.whatsapp_configured:
        console.print("[yellow]Warning:[/yellow] WhatsApp is not configured, replies will not be delivered")
    console.print(f"[bold]adpilot server[/bold] starting on http://{host}:{port}")
    console.print("[dim]Press Ctrl+C to stop[/dim]")
    console.print()

    uvicorn.run(
        "adpilot.server.app:app",
        host=host,
        port=port,
        reload=reload,
        log_config=uvicorn_log_config(config.log_level, config.log_format),
    )


@main.command()
@click.option("--user", default="local", help="User id to chat as")
@click.option("--media-dir", type=click.Path(file_okay=False), default=None, help="Save generated media here")
@click.pass_context
def chat(ctx, user: str, media_dir: str | None):
    """Talk to the assistant in the terminal."""
    config = _require_config(ctx)
    configure_logging("WARNING", config.log_format)
    asyncio.run(_chat(config, user, media_dir))


async def _chat(config: Config, user: str, media_dir: str | None):
    from pathlib import Path

    from adpilot.integrations.console import ConsoleTransport
    from adpilot.server.runtime import Runtime

    transport = ConsoleTransport(console=console, media_dir=Path(media_dir) if media_dir else None)
    runtime = Runtime(config=config, transport=transport)
    await runtime.connect()

    console.print("[bold]adpilot chat[/bold] - say 'menu' to start, Ctrl+D to quit\n")
    try:
        while True:
            try:
                text = await asyncio.to_thread(console.input, "[bold cyan]> [/bold cyan]")
            except EOFError:
                break
            if text.strip():
                await runtime.assistant.handle(user, text)
    finally:
        await runtime.close()
