import logging
import os
from pathlib import Path
from typing import Optional

from rich.console import Console

from utils.security.scrubber import scrubber

console = Console()

logger_instance = logging.getLogger("todo_purge")
logger_instance.setLevel(logging.DEBUG)


def _log_file_path() -> Path:
    explicit = os.getenv("TODO_PURGE_LOG_FILE")
    if explicit:
        return Path(explicit)
    config_dir = os.getenv("TODO_PURGE_CONFIG_DIR") or str(Path.home() / ".todo-purge")
    return Path(config_dir) / "todo-purge.log"


def _ensure_file_handler() -> None:
    """Attach the persistent file handler on first use."""
    if logger_instance.handlers:
        return

    log_file = _log_file_path()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Ensure log file exists with restrictive permissions (0600)
    if not log_file.exists():
        with open(log_file, "a"):
            os.chmod(log_file, 0o600)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
    logger_instance.addHandler(file_handler)


class SystemLogger:
    """
    Centralized logger for todo-purge.
    Respects TODO_PURGE_QUIET and provides consistent styling and file persistence.
    """

    @staticmethod
    def _is_quiet() -> bool:
        return os.getenv("TODO_PURGE_QUIET", "false").lower() == "true"

    @staticmethod
    def _is_verbose() -> bool:
        return os.getenv("TODO_PURGE_VERBOSE", "false").lower() == "true"

    @staticmethod
    def info(msg: str):
        """Log info - writes to file and console (unless quiet mode)."""
        _ensure_file_handler()
        scrubbed_msg = scrubber.scrub(msg)
        logger_instance.info(scrubbed_msg)
        if not SystemLogger._is_quiet():
            console.print(f"[dim]INFO:[/dim] {scrubbed_msg}")

    @staticmethod
    def debug(msg: str):
        """Debug log - always goes to file, console only in verbose mode."""
        _ensure_file_handler()
        scrubbed_msg = scrubber.scrub(msg)
        logger_instance.debug(scrubbed_msg)
        if SystemLogger._is_verbose() and not SystemLogger._is_quiet():
            console.print(f"[dim]{scrubbed_msg}[/dim]")

    @staticmethod
    def success(msg: str):
        """Success log - shows in console with green checkmark."""
        _ensure_file_handler()
        scrubbed_msg = scrubber.scrub(msg)
        logger_instance.info(f"SUCCESS: {scrubbed_msg}")
        if not SystemLogger._is_quiet():
            console.print(f"[green]✓ {scrubbed_msg}[/green]")

    @staticmethod
    def warning(msg: str):
        """Warning log - always shows in console."""
        _ensure_file_handler()
        scrubbed_msg = scrubber.scrub(msg)
        logger_instance.warning(scrubbed_msg)
        console.print(f"[yellow]⚠ WARNING:[/yellow] {scrubbed_msg}")

    @staticmethod
    def error(msg: str, detail: Optional[str] = None):
        """Error log - always shows in console."""
        _ensure_file_handler()
        scrubbed_msg = scrubber.scrub(msg)
        scrubbed_detail = scrubber.scrub(detail) if detail else None

        if scrubbed_detail:
            logger_instance.error(f"{scrubbed_msg} - {scrubbed_detail}")
        else:
            logger_instance.error(scrubbed_msg)
        console.print(f"[bold red]✗ ERROR:[/bold red] {scrubbed_msg}")
        if scrubbed_detail and not SystemLogger._is_quiet():
            console.print(f"[dim red]  {scrubbed_detail}[/dim red]")

    @staticmethod
    def status(msg: str):
        """Returns a status context for rich spinners."""
        return console.status(msg)


# Global singleton
logger = SystemLogger()
