"""
Main CLI application entry point.

This module contains the Typer application and command handlers for
toolchat.
"""

from typing import Optional
import asyncio
import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from toolchat import VERSION
from toolchat.config.settings import ToolChatSettings
from toolchat.core.client.chat_client import ChatClient
from toolchat.core.client.errors import ToolChatError, create_user_friendly_message
from toolchat.core.client.streaming import StreamEvent
from toolchat.core.client.turn import CallConvention
from toolchat.core.function_calling.result_processor import create_execution_summary_for_user
from toolchat.core.function_calling.session import ConversationSession
from toolchat.core.function_calling.tool_executor import ToolExecutionResult
from toolchat.tools.demo import create_demo_registry
from toolchat.tools.registry import ToolRegistry

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Use the available functions when they help "
    "answer the user's question."
)

# Create the main Typer application
app = typer.Typer(
    name="toolchat",
    help="toolchat - chat with a GigaChat-compatible model that can call functions",
    add_completion=False,
    rich_markup_mode="rich",
)

# Rich console for output
console = Console()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_settings(**overrides) -> ToolChatSettings:
    """Load settings, dropping overrides the user did not give."""
    try:
        return ToolChatSettings(**{k: v for k, v in overrides.items() if v is not None})
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"[bold blue]toolchat[/bold blue] version [green]{VERSION}[/green]")
        raise typer.Exit()


@app.callback()
def app_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    toolchat - chat with a model that can call Python functions.
    """
    pass


@app.command("chat")
def chat_command(
    message: Optional[str] = typer.Argument(None, help="Message to send; starts an interactive chat when omitted"),
    stream: bool = typer.Option(True, "--stream/--no-stream", help="Enable/disable streamed output"),
    tools: bool = typer.Option(True, "--tools/--no-tools", help="Enable/disable the demo tools"),
    convention: Optional[CallConvention] = typer.Option(
        None, "--convention", "-c", help="How function calls are offered to the model",
    ),
    max_function_calls: Optional[int] = typer.Option(
        None, "--max-function-calls", min=0, help="Maximum tool invocations per answer",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Send a single message or start an interactive chat."""
    settings = load_settings(
        call_convention=convention,
        max_function_calls=max_function_calls,
        debug=debug or None,
    )
    configure_logging(settings.effective_log_level)

    if not settings.is_configured:
        console.print("[red]Error:[/red] No credentials configured.")
        console.print("[dim]Set TOOLCHAT_CREDENTIALS (Basic auth data) or TOOLCHAT_ACCESS_TOKEN.[/dim]")
        raise typer.Exit(1)

    registry = create_demo_registry() if tools else None
    asyncio.run(_async_chat_command(settings, message, stream, registry))


async def _async_chat_command(
    settings: ToolChatSettings,
    message: Optional[str],
    stream: bool,
    registry: Optional[ToolRegistry],
) -> None:
    """Async implementation of chat command."""
    try:
        async with ChatClient(settings) as client:
            session = client.create_session(system_prompt=DEFAULT_SYSTEM_PROMPT)
            if message:
                await _send_message(client, session, message, stream, registry)
            else:
                await _interactive_chat(client, session, stream, registry)
    except ToolChatError as e:
        console.print(f"[red]Error:[/red] {create_user_friendly_message(e)}")
        if settings.debug:
            console.print(f"[dim]{e}[/dim]")
        raise typer.Exit(1)


def _print_tool_result(result: ToolExecutionResult) -> None:
    status = "[green]ok[/green]" if result.success else "[red]failed[/red]"
    console.print(f"[dim]-> {result.tool_name}({escape(str(result.arguments))}) {status}[/dim]")
    if result.inferred:
        console.print("[dim yellow]   some arguments were guessed from free text[/dim yellow]")


async def _send_message(
    client: ChatClient,
    session: ConversationSession,
    message: str,
    stream: bool,
    registry: Optional[ToolRegistry],
) -> None:
    """Send one message within the session and print the answer."""
    if stream:
        console.print("[blue]AI:[/blue] ", end="")
        async for event in client.get_streaming_events(
            message, tools=registry, session=session, on_tool_result=_print_tool_result,
        ):
            if event.type == StreamEvent.CONTENT:
                console.print(event.value, end="", markup=False, highlight=False)
            elif event.type == StreamEvent.FINISHED:
                console.print()
                total = (event.value or {}).get("usage", {}).get("total_token_count")
                if total is not None:
                    console.print(f"[dim]({total} tokens)[/dim]")
            elif event.type == StreamEvent.USER_CANCELLED:
                console.print("\n[dim]Cancelled[/dim]")
    else:
        with console.status("[dim]Thinking...[/dim]"):
            response = await client.get_response(
                message, tools=registry, session=session, on_tool_result=_print_tool_result,
            )
        console.print("[blue]AI:[/blue] ", end="")
        console.print(response.text, markup=False, highlight=False)
        if response.tool_results:
            console.print(
                create_execution_summary_for_user(response.tool_results), style="dim", markup=False, highlight=False,
            )
        if response.usage.total_token_count is not None:
            console.print(f"[dim]({response.usage.total_token_count} tokens)[/dim]")


async def _interactive_chat(
    client: ChatClient,
    session: ConversationSession,
    stream: bool,
    registry: Optional[ToolRegistry],
) -> None:
    """Start an interactive chat session."""
    console.print("[bold green]toolchat[/bold green] - Interactive Chat")
    console.print(f"[dim]Model: {client.settings.model}[/dim]")
    console.print(f"[dim]Tools: {', '.join(registry.get_tool_names()) if registry else 'disabled'}[/dim]")
    console.print("[dim]Type 'exit', 'quit', or press Ctrl+C to exit[/dim]")
    console.print("[dim]Type '/help' for commands[/dim]\n")

    while True:
        try:
            user_input = typer.prompt("You")
        except (KeyboardInterrupt, EOFError, typer.Abort):
            console.print("\n[dim]Goodbye![/dim]")
            break

        command = user_input.lower().strip()
        if command in ["exit", "quit", "q"]:
            console.print("[dim]Goodbye![/dim]")
            break
        elif command == "/help":
            _show_chat_help()
            continue
        elif command == "/stream":
            stream = not stream
            console.print(f"[dim]Streaming {'enabled' if stream else 'disabled'}[/dim]")
            continue
        elif command == "/stats":
            _show_session_stats(session)
            continue
        elif command == "":
            continue

        session.reset_invocation_budget()
        await _send_message(client, session, user_input, stream, registry)


def _show_chat_help() -> None:
    """Show help for chat commands."""
    help_text = """[bold]Chat Commands:[/bold]

[cyan]/help[/cyan]     - Show this help message
[cyan]/stats[/cyan]    - Show conversation statistics
[cyan]/stream[/cyan]   - Toggle streaming mode
[cyan]exit[/cyan]      - Exit the chat session

[dim]Press Ctrl+C or type 'exit' to quit[/dim]"""

    console.print(Panel(help_text, title="Help", border_style="blue"))


def _show_session_stats(session: ConversationSession) -> None:
    stats_table = Table(title="Chat Session Statistics", show_header=True, header_style="bold magenta")
    stats_table.add_column("Metric", style="cyan")
    stats_table.add_column("Value", style="green")

    stats_table.add_row("Messages", str(len(session.messages)))
    stats_table.add_row("Requests", str(len(session.turn_usages)))
    stats_table.add_row("Function calls (last answer)", str(session.function_call_count))
    total = sum(u.total_token_count or 0 for u in session.turn_usages)
    stats_table.add_row("Total Tokens", str(total))

    console.print(stats_table)


@app.command("tools")
def tools_command(
    schema: bool = typer.Option(False, "--schema", help="Print full JSON schemas"),
) -> None:
    """List the demo tools and their parameters."""
    from toolchat.core.function_calling.schema_generator import (
        generate_all_function_schemas,
        pretty_print_schemas,
    )

    registry = create_demo_registry()
    schemas = generate_all_function_schemas(registry)

    if schema:
        console.print_json(pretty_print_schemas(schemas))
        return

    table = Table(title="Available Tools", show_header=True, header_style="bold magenta")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Parameters", style="green")

    for function_schema in schemas:
        parameters = function_schema["parameters"]
        required = set(parameters.get("required", []))
        rendered = [
            f"{name}: {prop['type']}{'' if name in required else '?'}"
            for name, prop in parameters["properties"].items()
        ]
        table.add_row(function_schema["name"], function_schema["description"], ", ".join(rendered))

    console.print(table)


@app.command("config")
def config_command() -> None:
    """Show the effective configuration with secrets masked."""
    settings = load_settings()

    table = Table(title="toolchat Configuration", show_header=True, header_style="bold magenta")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for key, value in settings.to_dict().items():
        table.add_row(key, "" if value is None else str(value))

    console.print(table)
    if not settings.is_configured:
        console.print("[yellow]No credentials configured.[/yellow] Set TOOLCHAT_CREDENTIALS or TOOLCHAT_ACCESS_TOKEN.")


def main() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
