"""
Purge workflow: turn TODO/FIXME comments into Linear issues.

Each comment is processed end to end (context, optional AI description,
ticket, optional comment removal) before the next one starts. A failure to
create an issue, or to read or rewrite a source file, stops the run; issues
already created are kept.
"""

from typing import Optional, Tuple

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from utils.errors import ConfigError, ModelClientError, RunAbortedError
from utils.io.logger import logger
from utils.linear import LinearService
from utils.llm import ModelClient
from utils.store import ConfigStore
from utils.todo import (
    TodoMatch,
    build_ticket_title,
    extract_context,
    format_ticket_description,
    remove_todo_from_file,
    scan_directory,
)

console = Console()

FALLBACK_PROVIDERS = ("gemini", "openai")


def resolve_provider(store: ConfigStore) -> Tuple[str, Optional[str]]:
    """
    Pick the provider and key to use for AI features.

    The configured provider wins when it has a key. Otherwise the first stored
    key among FALLBACK_PROVIDERS is used, so a login with only an OpenAI key
    still enables AI.
    """
    provider = get_settings().llm_provider
    api_key = store.get_model_api_key(provider)
    if api_key or provider == "ollama":
        return provider, api_key

    for fallback in FALLBACK_PROVIDERS:
        fallback_key = store.get_model_api_key(fallback)
        if fallback_key:
            logger.debug(f"No key for '{provider}', using stored {fallback} key")
            return fallback, fallback_key
    return provider, None


def build_model_client(store: ConfigStore) -> Optional[ModelClient]:
    """Create a model client from stored keys, or None when no key is available."""
    settings = get_settings()
    provider, api_key = resolve_provider(store)
    if api_key is None and provider != "ollama":
        logger.warning(
            f"AI is enabled but no API key is stored for '{provider}'. Continuing without AI."
        )
        return None

    return ModelClient(
        api_key=api_key,
        context_model=store.get_context_model(provider),
        description_model=store.get_description_model(provider),
        provider=provider,
        max_retries=settings.llm_max_retries,
        backoff_base=settings.llm_backoff_base,
    )


def _generate_description(
    todo: TodoMatch, code_context: str, file_content: str, model_client: ModelClient
) -> Optional[str]:
    try:
        return model_client.generate_description(
            todo.description, todo.file_path, todo.line_number, code_context, file_content
        )
    except ModelClientError as e:
        logger.warning(
            f"AI description failed for {todo.file_path}:{todo.line_number} ({e}). "
            "Using the TODO text."
        )
        return None


def _process_todo(
    todo: TodoMatch,
    team_id: Optional[str],
    tracker: Optional[LinearService],
    model_client: Optional[ModelClient],
    lines_above: int,
    lines_below: int,
    remove: bool,
    dry_run: bool,
    results: dict,
) -> None:
    """Run the full pipeline for a single TODO."""
    settings = get_settings()
    use_ai = model_client is not None

    try:
        context = extract_context(
            todo, lines_above, lines_below, use_ai=use_ai, model_client=model_client
        )
    except (OSError, UnicodeDecodeError) as e:
        raise RunAbortedError(todo.file_path, todo.line_number, e) from e

    ai_description = None
    if model_client is not None:
        ai_description = _generate_description(
            todo, context.full_context, context.file_content, model_client
        )

    body = format_ticket_description(context, ai_description)
    title = build_ticket_title(todo.description, settings.title_max_length)
    location = f"{todo.file_path}:{todo.line_number}"

    if dry_run:
        console.print(Panel(body, title=f"[cyan]Would create:[/cyan] {title}", border_style="dim"))
        results["skipped"].append({"file": todo.file_path, "line": todo.line_number, "title": title})
        return

    try:
        issue = tracker.create_issue(team_id, title, body)
    except Exception as e:
        raise RunAbortedError(todo.file_path, todo.line_number, e) from e

    console.print(f"[green]Created:[/green] {issue.identifier} ← {location}")
    results["created"].append(
        {
            "file": todo.file_path,
            "line": todo.line_number,
            "identifier": issue.identifier,
            "url": issue.url,
        }
    )

    if not remove:
        return
    try:
        removed = remove_todo_from_file(todo)
    except (OSError, UnicodeDecodeError) as e:
        raise RunAbortedError(todo.file_path, todo.line_number, e) from e
    if removed:
        results["removed"] += 1
        logger.debug(f"Removed TODO comment at {location}")


def run_purge(
    root_dir: str = ".",
    lines_above: Optional[int] = None,
    lines_below: Optional[int] = None,
    use_ai: Optional[bool] = None,
    remove: bool = True,
    dry_run: bool = False,
    store: Optional[ConfigStore] = None,
    tracker: Optional[LinearService] = None,
    model_client: Optional[ModelClient] = None,
) -> dict:
    """
    Scan root_dir and file a Linear issue for every TODO/FIXME comment.

    Args:
        root_dir: Directory to scan
        lines_above: Context lines before each comment (settings default)
        lines_below: Context lines after each comment (settings default)
        use_ai: Use the model for context and descriptions (stored preference by default)
        remove: Strip each comment from source after its issue is created
        dry_run: Preview tickets without creating issues or editing files
        store: Config store holding workspaces and keys
        tracker: Issue tracker client (built from the active workspace by default)
        model_client: Model client (built from stored keys by default)

    Returns:
        Dict with 'created', 'skipped' lists and 'removed' count

    Raises:
        ConfigError: No active workspace outside dry-run
        RunAbortedError: An issue could not be created
    """
    settings = get_settings()
    store = store or ConfigStore()
    lines_above = settings.lines_above if lines_above is None else lines_above
    lines_below = settings.lines_below if lines_below is None else lines_below

    results = {"created": [], "skipped": [], "removed": 0}

    workspace = store.get_active_workspace()
    if workspace is None and not dry_run:
        raise ConfigError("No active workspace. Run `todo-purge login` first.")
    if tracker is None and not dry_run:
        tracker = LinearService(
            workspace.api_key, api_url=settings.linear_api_url, timeout=settings.request_timeout
        )

    if use_ai is None:
        use_ai = store.read().ai_enabled
    if use_ai and model_client is None:
        model_client = build_model_client(store)
    if not use_ai:
        model_client = None

    with console.status("[cyan]Scanning for TODO comments...[/cyan]"):
        todos = scan_directory(root_dir, excluded_dirs=settings.excluded_dirs)

    if not todos:
        console.print("[dim]No TODO comments found.[/dim]")
        return results

    console.print(f"[bold]Found {len(todos)} TODO comments.[/bold]\n")

    for todo in todos:
        _process_todo(
            todo,
            workspace.team_id if workspace else None,
            tracker,
            model_client,
            lines_above,
            lines_below,
            remove,
            dry_run,
            results,
        )

    _print_summary(results, dry_run, remove)
    return results


def _print_summary(results: dict, dry_run: bool, remove: bool) -> None:
    """Print a summary table of purge results."""
    console.print()
    console.rule("[bold]Purge Summary[/bold]")

    table = Table()
    table.add_column("Action", style="bold")
    table.add_column("Count", justify="right")

    if dry_run:
        table.add_row("[cyan]Would create[/cyan]", str(len(results["skipped"])))
    else:
        table.add_row("[green]Created[/green]", str(len(results["created"])))
        if remove:
            table.add_row("[blue]Comments removed[/blue]", str(results["removed"]))

    console.print(table)

    if dry_run:
        console.print("\n[dim]Run without --dry-run to create these issues.[/dim]")
