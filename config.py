"""
Configuration module for todo-purge.

Handles:
- Environment variable loading (.env files)
- Runtime settings (window sizes, model defaults, tracker endpoint)
- Project root utilities
"""

import os
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console

console = Console()

# =============================================================================
# Settings
# =============================================================================


class Settings(BaseSettings):
    """Runtime settings, overridable through TODO_PURGE_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="TODO_PURGE_")

    lines_above: int = 5
    lines_below: int = 10
    title_max_length: int = 100

    llm_provider: str = "gemini"
    default_context_model: str = "gemini-1.5-pro"
    default_description_model: str = "gemini-1.5-pro"
    openai_default_model: str = "gpt-3.5-turbo"
    llm_max_retries: int = 2
    llm_backoff_base: float = 1.0

    linear_api_url: str = "https://api.linear.app/graphql"
    request_timeout: float = 30.0

    config_dir: str = str(Path.home() / ".todo-purge")
    excluded_dirs: list[str] = []

    command_allowlist: set[str] = {"git"}


settings = Settings()


# =============================================================================
# Project Utilities
# =============================================================================


def get_project_root() -> Path:
    """Get the project root directory, preferably the Git root."""
    try:
        from utils.io.safe import run_safe_command

        result = run_safe_command(
            ["git", "rev-parse", "--show-toplevel"], stderr=subprocess.DEVNULL, text=True
        )
        return Path(result.stdout.strip())
    except (subprocess.CalledProcessError, FileNotFoundError, ValueError):
        return Path(os.getcwd())


# =============================================================================
# Environment Loading
# =============================================================================


def load_configuration(env_file: str | None = None) -> None:
    """Load environment variables from multiple sources in priority order."""
    sources = []

    # 1. Explicitly provided file
    if env_file and os.path.exists(env_file):
        sources.append(env_file)
    elif env_file:
        console.print(f"[bold red]Error:[/bold red] Env file '{env_file}' not found.")
        sys.exit(1)

    # 2. TODO_PURGE_ENV pointer
    env_var_path = os.getenv("TODO_PURGE_ENV")
    if env_var_path and os.path.exists(env_var_path):
        sources.append(env_var_path)

    # 3. Project root .env
    root_env = get_project_root() / ".env"
    if root_env.exists():
        sources.append(str(root_env))

    # 4. CWD .env (if different)
    cwd_env = Path(os.getcwd()) / ".env"
    if cwd_env.exists() and cwd_env != root_env:
        sources.append(str(cwd_env))

    # 5. Global config
    tool_env = Path.home() / ".config" / "todo-purge" / ".env"
    if tool_env.exists():
        sources.append(str(tool_env))

    if not sources:
        return

    load_dotenv(dotenv_path=sources[0], override=True)
    for path in sources[1:]:
        load_dotenv(dotenv_path=path, override=False)

    # Re-read settings so values from .env files take effect
    global settings
    settings = Settings()


def get_settings() -> Settings:
    """Return the currently loaded settings."""
    return settings
