from .logger import console, logger
from .safe import atomic_write, read_text, run_safe_command

__all__ = [
    "atomic_write",
    "console",
    "logger",
    "read_text",
    "run_safe_command",
]
