"""Provider factory functions for CLI.

Centralizes creation of settings and the model registry from environment variables.
Hides configuration details from command implementations.
"""

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from ..errors import ModelVerseError
from ..llm import ModelRegistry, ProviderSettings

# Default console for output
_console = Console()


def get_settings(console: Console | None = None) -> ProviderSettings:
    """Read provider settings from environment variables.

    Raises:
        typer.Exit: If a variable holds an invalid value (e.g. MODELVERSE_TIMEOUT)
    """
    con = console or _console
    try:
        return ProviderSettings.from_env()
    except (ValidationError, ValueError) as e:
        con.print(f"[red]Error: invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def get_registry(
    settings: ProviderSettings,
    console: Console | None = None,
    quiet: bool = False,
) -> tuple[ModelRegistry, list[str]]:
    """Create the model registry for every configured provider.

    Args:
        settings: Resolved provider settings
        console: Optional Rich console for output
        quiet: Collect warnings without printing them

    Returns:
        The registry and the warnings for providers left unconfigured
    """
    con = console or _console
    warnings: list[str] = []

    def _warn(message: str) -> None:
        warnings.append(message)
        if not quiet:
            con.print(f"[yellow]Warning: {message}[/yellow]")

    registry = ModelRegistry.from_settings(settings, warn=_warn)
    return registry, warnings


def require_model(registry: ModelRegistry, model_id: str, console: Console | None = None) -> None:
    """Exit unless ``model_id`` is well-formed and its provider is configured."""
    con = console or _console
    try:
        registry.provider_for(model_id)
    except ModelVerseError as e:
        con.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)


def check_model_id(registry: ModelRegistry, model_id: str, console: Console | None = None) -> None:
    """Exit unless ``model_id`` is well-formed; its provider may be unconfigured."""
    con = console or _console
    try:
        registry.describe(model_id)
    except ModelVerseError as e:
        con.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)
