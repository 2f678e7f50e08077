from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import get_settings, load_configuration
from utils.errors import ConfigError, RunAbortedError, TodoPurgeError
from utils.linear import LinearService, LinearTeam
from utils.llm import ModelClient
from utils.store import ConfigStore, Workspace
from workflows.purge import resolve_provider, run_purge

console = Console()
app = typer.Typer(context_settings={"help_option_names": ["-h", "--help"]})

AI_COST_NOTE = (
    "Note: Using AI will consume API credits. "
    "You can disable it with `todo-purge config set ai.enabled false` or the --no-ai flag."
)


def _fail(message: str) -> None:
    console.print(f"[bold red]Error:[/bold red] {message}")
    raise typer.Exit(code=1)


@app.callback()
def main(
    env_file: Annotated[
        Optional[Path],
        typer.Option(
            "--env-file",
            "-e",
            help="Explicit path to a .env file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """
    todo-purge: file TODO/FIXME comments as Linear issues.
    """
    load_configuration(env_file=str(env_file) if env_file else None)


@app.command()
def run(
    root_dir: str = typer.Argument(".", help="Directory to scan for TODO comments"),
    lines_above: Optional[int] = typer.Option(
        None, "--lines-above", "-a", min=0, help="Context lines above each TODO (default: 5)"
    ),
    lines_below: Optional[int] = typer.Option(
        None, "--lines-below", "-b", min=0, help="Context lines below each TODO (default: 10)"
    ),
    ai: Optional[bool] = typer.Option(
        None, "--ai/--no-ai", help="Use AI for context and descriptions (default: stored setting)"
    ),
    remove: bool = typer.Option(
        True, "--remove/--keep", help="Remove each comment once its issue is created"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Preview tickets without creating issues"
    ),
) -> None:
    """
    Scan for TODO/FIXME comments and create a Linear issue for each.

    Examples:
        todo-purge run                    # Scan the current directory
        todo-purge run src --no-ai        # Scan src/ with fixed-window context
        todo-purge run --dry-run          # Preview tickets
        todo-purge run --keep -a 3 -b 3   # Keep comments, smaller context window
    """
    try:
        run_purge(
            root_dir=root_dir,
            lines_above=lines_above,
            lines_below=lines_below,
            use_ai=ai,
            remove=remove,
            dry_run=dry_run,
        )
    except RunAbortedError as e:
        _fail(f"Failed while processing {e.file_path}:{e.line_number}: {e.cause}")
    except TodoPurgeError as e:
        _fail(str(e))


# =============================================================================
# Login
# =============================================================================


def _select_team(client: LinearService) -> Optional[LinearTeam]:
    teams = client.get_teams()
    if not teams:
        console.print("[yellow]No teams found. You may need to select a team later.[/yellow]")
        return None

    console.print("\n[blue]Available teams:[/blue]")
    for index, team in enumerate(teams, start=1):
        console.print(f"  [cyan]{index}. {team.name} ({team.key})[/cyan]")

    choice = Prompt.ask(f"\nSelect a team (1-{len(teams)})")
    if not choice.isdigit() or not 1 <= int(choice) <= len(teams):
        console.print("[yellow]Invalid team selection.[/yellow]")
        return None
    return teams[int(choice) - 1]


def _add_workspace(store: ConfigStore) -> None:
    console.print("\n[blue]Please enter your Linear API key.[/blue]")
    console.print(
        "[dim]You can create one at: https://linear.app/settings/api. "
        "(Ensure you're in the right Linear workspace.)[/dim]"
    )
    api_key = Prompt.ask("API Key", password=True).strip()
    if not api_key:
        _fail("API key cannot be empty.")

    cfg = get_settings()
    client = LinearService(api_key, api_url=cfg.linear_api_url, timeout=cfg.request_timeout)
    with console.status("[cyan]Validating API key...[/cyan]"):
        valid = client.validate_api_key()
    if not valid:
        _fail("Invalid API key. Please check your API key and try again.")
    console.print("[green]✓ API key validated.[/green]")

    team = _select_team(client)
    if team is None:
        _fail("No team selected. Cannot create workspace.")

    workspace = Workspace(api_key=api_key, team_id=team.id, team_name=team.name, team_key=team.key)
    store.add_workspace(workspace)
    console.print(f'[green]✓ Workspace "{workspace.label}" added and set as active.[/green]')
    console.print("[green]\nLogin successful! Run `todo-purge run` to process TODOs.[/green]")


def _list_workspaces(store: ConfigStore, active_note: str = " (active)") -> list[Workspace]:
    workspaces = store.get_workspaces()
    active_index = store.get_active_index()
    for index, workspace in enumerate(workspaces):
        marker = f"[green]{active_note}[/green]" if index == active_index else ""
        console.print(f"  [cyan]{index + 1}. {workspace.label}[/cyan]{marker}")
    return workspaces


def _delete_workspace(store: ConfigStore) -> None:
    workspaces = store.get_workspaces()
    if len(workspaces) <= 1:
        console.print("[yellow]Cannot delete the last workspace. Add another workspace first.[/yellow]")
        return

    console.print("\n[blue]Select workspace to delete:[/blue]")
    _list_workspaces(store, active_note=" (active - will switch to another)")
    choice = Prompt.ask(f"\nSelect workspace to delete (1-{len(workspaces)})")
    if not choice.isdigit() or not 1 <= int(choice) <= len(workspaces):
        _fail("Invalid selection.")

    target = workspaces[int(choice) - 1]
    if not Confirm.ask(f'Delete workspace "{target.label}"?', default=False):
        console.print("[green]Deletion cancelled.[/green]")
        return

    store.remove_workspace(int(choice) - 1)
    console.print(f"[green]✓ Deleted workspace: {target.label}[/green]")
    active = store.get_active_workspace()
    if active:
        console.print(f"[green]✓ Active workspace: {active.label}[/green]")


def _switch_team(store: ConfigStore) -> None:
    workspaces = store.get_workspaces()
    if not workspaces:
        console.print("[yellow]No saved workspaces found. Adding a new workspace...[/yellow]")
        _add_workspace(store)
        return

    console.print("\n[blue]Saved workspaces:[/blue]")
    _list_workspaces(store)
    console.print(f"  [cyan]{len(workspaces) + 1}. Add new workspace[/cyan]")
    console.print(f"  [cyan]{len(workspaces) + 2}. Delete workspace[/cyan]")

    choice = Prompt.ask(f"\nSelect option (1-{len(workspaces) + 2})")
    if not choice.isdigit() or not 1 <= int(choice) <= len(workspaces) + 2:
        _fail("Invalid selection.")

    index = int(choice) - 1
    if index == len(workspaces):
        _add_workspace(store)
    elif index == len(workspaces) + 1:
        _delete_workspace(store)
    else:
        workspace = store.set_active_workspace(index)
        console.print(f"[green]✓ Switched to workspace: {workspace.label}[/green]")


def _store_model_key(store: ConfigStore, provider: str, api_key: str) -> None:
    api_key = api_key.strip()
    if not api_key:
        _fail(f"{provider.title()} API key cannot be empty.")

    client = ModelClient(
        api_key=api_key,
        context_model=store.get_context_model(provider),
        description_model=store.get_description_model(provider),
        provider=provider,
        max_retries=0,
    )
    with console.status(f"[cyan]Validating {provider.title()} API key...[/cyan]"):
        valid = client.validate_api_key()
    if not valid:
        _fail(f"Invalid {provider.title()} API key. Please check your API key and try again.")

    store.set_model_api_key(provider, api_key)
    store.update(ai_enabled=True)
    console.print(f"[green]✓ {provider.title()} API key validated and stored.[/green]")

    if not store.read().ai_warning_seen:
        console.print(f"\n[yellow]{AI_COST_NOTE}[/yellow]")
        store.update(ai_warning_seen=True)


@app.command()
def login(
    switch_team: bool = typer.Option(
        False, "--switch-team", help="Switch teams using your existing login"
    ),
    openai_key: Optional[str] = typer.Option(
        None, "--openai-key", help="OpenAI API key for enhanced ticket descriptions"
    ),
    gemini_key: Optional[str] = typer.Option(
        None, "--gemini-key", help="Gemini API key for enhanced ticket descriptions"
    ),
) -> None:
    """
    Authenticate with Linear, store the workspace and optionally add a model API key.

    Examples:
        todo-purge login
        todo-purge login --switch-team
        todo-purge login --gemini-key=AIza...
    """
    store = ConfigStore()
    model_key_given = bool(openai_key or gemini_key)

    try:
        if switch_team:
            _switch_team(store)
        elif not (model_key_given and store.get_workspaces()):
            workspaces = store.get_workspaces()
            if workspaces and not Confirm.ask(
                f"You have {len(workspaces)} workspace(s) saved. Add another?", default=False
            ):
                console.print("[green]Login cancelled.[/green]")
            else:
                _add_workspace(store)

        if openai_key:
            _store_model_key(store, "openai", openai_key)
        if gemini_key:
            _store_model_key(store, "gemini", gemini_key)
        if not model_key_given and not store.has_model_api_key():
            if Confirm.ask(
                "\nWould you like to add a Gemini API key for enhanced descriptions?", default=False
            ):
                console.print("[dim]You can create one at: https://aistudio.google.com/apikey[/dim]")
                _store_model_key(store, "gemini", Prompt.ask("Gemini API Key", password=True))
    except TodoPurgeError as e:
        _fail(str(e))


# =============================================================================
# Config
# =============================================================================


def _show_config(store: ConfigStore) -> None:
    stored = store.read()
    active = store.get_active_workspace()
    provider, _ = resolve_provider(store)

    table = Table(title="todo-purge Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("AI Enabled", "[green]Yes[/green]" if stored.ai_enabled else "[red]No[/red]")
    table.add_row("Context Model", f"[yellow]{store.get_context_model(provider)}[/yellow]")
    table.add_row("Description Model", f"[yellow]{store.get_description_model(provider)}[/yellow]")
    table.add_row(
        "Active Workspace", f"[green]{active.label}[/green]" if active else "[red]None[/red]"
    )
    console.print(table)


@app.command("config")
def config_command(
    action: Optional[str] = typer.Argument(None, help="Subcommand: set or get"),
    key: Optional[str] = typer.Argument(None, help="Config key (for set/get)"),
    value: Optional[str] = typer.Argument(None, help="Config value (for set)"),
) -> None:
    """
    Configure todo-purge settings (AI, models, workspace).

    Keys: ai.enabled, ai.context-model, ai.description-model, workspace.active

    Examples:
        todo-purge config
        todo-purge config set ai.enabled false
        todo-purge config get ai.context-model
    """
    store = ConfigStore()

    if action is None:
        _show_config(store)
        return

    try:
        if action == "set":
            if not key or value is None:
                _fail("Usage: todo-purge config set <key> <value>")
            stored_value = store.set(key, value)
            console.print(f"[green]✓ Set {key} to {stored_value}[/green]")
        elif action == "get":
            if not key:
                _fail("Usage: todo-purge config get <key>")
            typer.echo(store.get(key))
        else:
            _fail(f"Unknown subcommand: {action}. Use 'set' or 'get'.")
    except ConfigError as e:
        _fail(str(e))


@app.command()
def status() -> None:
    """
    Show the active workspace, AI settings and stored keys.
    """
    store = ConfigStore()
    stored = store.read()
    active = store.get_active_workspace()
    provider, api_key = resolve_provider(store)

    lines = [
        f"Workspace: {active.label if active else '[red]None[/red]'}",
        f"Saved workspaces: {len(stored.workspaces)}",
        f"AI: {'[green]ENABLED[/green]' if stored.ai_enabled else '[dim]DISABLED[/dim]'}",
        f"Provider: {provider}",
        f"Context model: {store.get_context_model(provider)}",
        f"Description model: {store.get_description_model(provider)}",
        "Model API key: " + ("[green]CONFIGURED[/green]" if api_key else "[yellow]MISSING[/yellow]"),
        f"Config file: {store.path}",
    ]
    console.print(Panel("\n".join(lines), title="System Diagnostics", border_style="cyan"))


if __name__ == "__main__":
    app()
