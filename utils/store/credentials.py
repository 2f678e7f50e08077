"""
Persistent credential and preference store.

Settings live in a single JSON file (default ~/.todo-purge/config.json) holding
the saved Linear workspaces, model API keys and AI preferences.
"""

import json
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from filelock import FileLock
from pydantic import BaseModel, Field, ValidationError

from utils.errors import ConfigError
from utils.io.logger import logger
from utils.io.safe import atomic_write, read_text

CONFIG_KEYS = ("ai.enabled", "ai.context-model", "ai.description-model", "workspace.active")

TRUE_VALUES = {"true", "1", "yes"}


class Workspace(BaseModel):
    api_key: str
    team_id: str
    team_name: str
    team_key: str

    @property
    def label(self) -> str:
        return f"{self.team_name} ({self.team_key})"


class StoredConfig(BaseModel):
    workspaces: List[Workspace] = Field(default_factory=list)
    active_workspace_index: int = 0
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    ai_enabled: bool = False
    ai_context_model: Optional[str] = None
    ai_description_model: Optional[str] = None
    ai_warning_seen: bool = False


def default_model(provider: Optional[str], kind: str) -> str:
    """Default model for a provider; Gemini defaults apply to anything but OpenAI."""
    from config import get_settings

    settings = get_settings()
    if provider == "openai":
        return settings.openai_default_model
    if kind == "context":
        return settings.default_context_model
    return settings.default_description_model


def default_config_path() -> Path:
    config_dir = os.getenv("TODO_PURGE_CONFIG_DIR")
    if not config_dir:
        from config import get_settings

        config_dir = get_settings().config_dir
    return Path(config_dir) / "config.json"


class ConfigStore:
    """Read-modify-write access to the stored configuration."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_config_path()
        self.lock = FileLock(str(self.path) + ".lock")

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def read(self) -> StoredConfig:
        """Load the stored config; a missing or corrupt file yields defaults."""
        if not self.path.exists():
            return StoredConfig()
        try:
            return StoredConfig.model_validate(json.loads(read_text(str(self.path))))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.debug(f"Ignoring unreadable config {self.path}: {e}")
            return StoredConfig()

    def write(self, stored: StoredConfig) -> None:
        with self.locked():
            try:
                atomic_write(str(self.path), stored.model_dump_json(indent=2), mode=0o600)
            except OSError as e:
                raise ConfigError(f"Failed to write config file: {e}") from e

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Hold the file lock; the lock is reentrant so writes inside it nest."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create config directory: {e}") from e
        with self.lock:
            yield

    # -------------------------------------------------------------------------
    # Workspaces
    # -------------------------------------------------------------------------

    def get_workspaces(self) -> List[Workspace]:
        return self.read().workspaces

    def get_active_workspace(self) -> Optional[Workspace]:
        stored = self.read()
        if not stored.workspaces:
            return None
        index = stored.active_workspace_index
        if 0 <= index < len(stored.workspaces):
            return stored.workspaces[index]
        return stored.workspaces[0]

    def get_active_index(self) -> int:
        return self.read().active_workspace_index

    def add_workspace(self, workspace: Workspace, activate: bool = True) -> None:
        with self.locked():
            stored = self.read()
            stored.workspaces.append(workspace)
            if activate:
                stored.active_workspace_index = len(stored.workspaces) - 1
            self.write(stored)

    def set_active_workspace(self, index: int) -> Workspace:
        with self.locked():
            stored = self.read()
            if not 0 <= index < len(stored.workspaces):
                raise ConfigError(
                    f"Workspace index {index + 1} out of range (1-{len(stored.workspaces)})"
                )
            stored.active_workspace_index = index
            self.write(stored)
            return stored.workspaces[index]

    def remove_workspace(self, index: int) -> Workspace:
        """Delete a workspace, keeping the active index pointed at a valid entry."""
        with self.locked():
            stored = self.read()
            if not 0 <= index < len(stored.workspaces):
                raise ConfigError(
                    f"Workspace index {index + 1} out of range (1-{len(stored.workspaces)})"
                )
            if len(stored.workspaces) == 1:
                raise ConfigError("Cannot delete the last workspace. Add another workspace first.")

            removed = stored.workspaces.pop(index)
            active = stored.active_workspace_index
            if active > index or active >= len(stored.workspaces):
                stored.active_workspace_index = max(0, active - 1)
            self.write(stored)
            return removed

    def find_workspace(self, value: str) -> int:
        """Resolve a 1-based index, team name or team key to a workspace index."""
        workspaces = self.get_workspaces()
        if not workspaces:
            raise ConfigError("No workspaces found. Add one with `todo-purge login`.")

        if value.isdigit():
            index = int(value)
            if 1 <= index <= len(workspaces):
                return index - 1

        lowered = value.lower()
        for index, workspace in enumerate(workspaces):
            if workspace.team_name.lower() == lowered or workspace.team_key.lower() == lowered:
                return index

        raise ConfigError(
            f'Workspace "{value}" not found. Use a number (1-{len(workspaces)}) '
            "or workspace name/key."
        )

    # -------------------------------------------------------------------------
    # Model keys and AI preferences
    # -------------------------------------------------------------------------

    def set_model_api_key(self, provider: str, api_key: str) -> None:
        with self.locked():
            stored = self.read()
            if provider == "openai":
                stored.openai_api_key = api_key
            elif provider == "gemini":
                stored.gemini_api_key = api_key
            else:
                raise ConfigError(f"Unsupported model provider: {provider}")
            self.write(stored)

    def get_model_api_key(self, provider: str) -> Optional[str]:
        stored = self.read()
        if provider == "openai":
            return stored.openai_api_key or os.getenv("OPENAI_API_KEY")
        if provider == "gemini":
            return stored.gemini_api_key or os.getenv("GEMINI_API_KEY")
        if provider == "anthropic":
            return os.getenv("ANTHROPIC_API_KEY")
        if provider == "openrouter":
            return os.getenv("OPENROUTER_API_KEY")
        return None

    def has_model_api_key(self) -> bool:
        stored = self.read()
        return bool(stored.openai_api_key or stored.gemini_api_key)

    def update(self, **fields) -> StoredConfig:
        with self.locked():
            stored = self.read().model_copy(update=fields)
            self.write(stored)
            return stored

    def get_context_model(self, provider: Optional[str] = None) -> str:
        return self.read().ai_context_model or default_model(provider, "context")

    def get_description_model(self, provider: Optional[str] = None) -> str:
        return self.read().ai_description_model or default_model(provider, "description")

    # -------------------------------------------------------------------------
    # Dotted key access for `todo-purge config get/set`
    # -------------------------------------------------------------------------

    def set(self, key: str, value: str) -> str:
        """Set a dotted config key and return the value as stored."""
        if key == "ai.enabled":
            enabled = value.strip().lower() in TRUE_VALUES
            self.update(ai_enabled=enabled)
            return str(enabled).lower()
        if key == "ai.context-model":
            self.update(ai_context_model=value.strip())
            return value.strip()
        if key == "ai.description-model":
            self.update(ai_description_model=value.strip())
            return value.strip()
        if key == "workspace.active":
            workspace = self.set_active_workspace(self.find_workspace(value))
            return workspace.label
        raise ConfigError(f"Unknown config key: {key}. Available keys: {', '.join(CONFIG_KEYS)}")

    def get(self, key: str) -> str:
        if key == "ai.enabled":
            return str(self.read().ai_enabled).lower()
        if key == "ai.context-model":
            return self.get_context_model()
        if key == "ai.description-model":
            return self.get_description_model()
        if key == "workspace.active":
            if self.get_active_workspace() is None:
                return "none"
            return str(self.get_active_index() + 1)
        raise ConfigError(f"Unknown config key: {key}. Available keys: {', '.join(CONFIG_KEYS)}")
