"""Main CLI application using Typer."""
import asyncio
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.table import Table

from ..chat import ChatMessage, PromptRelay, RelayInput, history_for_request, transcript
from ..datauri import file_to_data_uri
from ..errors import TranscriptFormatError
from ..llm import ModelConfig
from .providers import check_model_id, get_registry, get_settings, require_model

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="modelverse",
    help="Multi-provider LLM chat client (Gemini, OpenAI, Anthropic)",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()


@app.command(name="tui")
def tui_command(
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Initially selected model, e.g. 'openai/gpt-4o' (default: MODELVERSE_DEFAULT_MODEL)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
):
    """Launch interactive TUI chat interface."""
    settings = get_settings(console)
    registry, warnings = get_registry(settings, console, quiet=True)
    model = model or settings.default_model
    if model:
        check_model_id(registry, model, console)

    async def _tui():
        from ..ui import run_textual_tui

        await run_textual_tui(
            registry=registry,
            model=model,
            timeout=settings.timeout,
            log_level=log_level,
            startup_warnings=warnings,
        )

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass
    for warning in warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")
    console.print("\n[dim]Goodbye![/dim]")


@app.command()
def ask(
    prompt: str = typer.Argument(
        "",
        help="Text prompt (may be empty when --image is given)"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Model identifier, e.g. 'anthropic/claude-3-haiku-20240307'"
    ),
    image: Path | None = typer.Option(
        None,
        "--image",
        "-i",
        exists=True,
        dir_okay=False,
        help="Image file to send with the prompt"
    ),
    history: Path | None = typer.Option(
        None,
        "--history",
        "-H",
        exists=True,
        dir_okay=False,
        help="Chat transcript (JSON) to use as conversation history"
    ),
    save: Path | None = typer.Option(
        None,
        "--save",
        "-o",
        help="Write the history plus this exchange to a transcript file"
    ),
    max_output_tokens: int | None = typer.Option(
        None,
        "--max-output-tokens",
        min=1,
        help="Maximum tokens in the response"
    ),
    temperature: float | None = typer.Option(
        None,
        "--temperature",
        "-t",
        min=0.0,
        max=2.0,
        help="Sampling temperature"
    ),
    top_p: float | None = typer.Option(
        None,
        "--top-p",
        min=0.0,
        max=1.0,
        help="Nucleus sampling probability mass"
    ),
    top_k: int | None = typer.Option(
        None,
        "--top-k",
        min=1,
        help="Top-k sampling (ignored by OpenAI models)"
    ),
):
    """Send one prompt (optionally with an image and history) and print the reply."""
    settings = get_settings(console)
    registry, _ = get_registry(settings, console)
    model_id = model or settings.default_model
    require_model(registry, model_id, console)

    try:
        previous = transcript.load(history) if history else []
        image_url = file_to_data_uri(image) if image else None
    except (TranscriptFormatError, ValueError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    config = ModelConfig(
        max_output_tokens=max_output_tokens,
        temperature=temperature,
        top_p=top_p,
        top_k=top_k,
    )

    async def _ask() -> str:
        relay = PromptRelay(registry, timeout=settings.timeout)
        try:
            output = await relay.generate(RelayInput(
                prompt=prompt,
                model=model_id,
                photo_data_uri=image_url,
                history=history_for_request(previous),
                config=config,
            ))
        finally:
            await registry.close()
        return output.response

    try:
        response = asyncio.run(_ask())
    except Exception as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print(Markdown(response))

    if save:
        messages = previous + [
            ChatMessage(sender="user", text=prompt.strip(), image_url=image_url),
            ChatMessage(sender="ai", text=response),
        ]
        saved = transcript.save(messages, save)
        console.print(f"[dim]Transcript saved to {saved}[/dim]")


@app.command()
def models():
    """List selectable models and whether their provider is configured."""
    settings = get_settings(console)
    registry, _ = get_registry(settings, console, quiet=True)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Model", style="cyan", no_wrap=True)
    table.add_column("Label")
    table.add_column("Images", width=7)
    table.add_column("Available", width=10)

    for descriptor in registry.models:
        table.add_row(
            descriptor.id,
            descriptor.label,
            "[green]yes[/green]" if descriptor.supports_images else "[dim]no[/dim]",
            "[green]yes[/green]" if registry.is_available(descriptor.id) else "[yellow]no key[/yellow]",
        )

    console.print(table)
    if settings.default_model:
        console.print(f"[dim]Default model: {settings.default_model}[/dim]")


@app.command()
def health():
    """Check which provider API keys are configured."""
    settings = get_settings(console)
    configured = settings.provider_configs()
    missing = set(settings.missing_keys())

    for var in ("GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"):
        if var in missing:
            console.print(f"[yellow]![/yellow] {var}: NOT SET")
        else:
            console.print(f"[green]+[/green] {var}: SET")

    if settings.openai_base_url:
        console.print(f"[dim]OpenAI base URL: {settings.openai_base_url}[/dim]")
    if settings.timeout:
        console.print(f"[dim]Provider timeout: {settings.timeout:g}s[/dim]")

    if not configured:
        console.print("[red]No provider configured; at least one API key is required[/red]")
        raise typer.Exit(code=1)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
