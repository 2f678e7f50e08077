from .credentials import CONFIG_KEYS, ConfigStore, StoredConfig, Workspace

__all__ = ["CONFIG_KEYS", "ConfigStore", "StoredConfig", "Workspace"]
