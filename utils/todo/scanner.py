"""
File enumerator for TODO/FIXME comments.

Walks a directory tree in sorted order and yields one TodoMatch per line that
carries a `// TODO:` or `# FIXME(owner):` style comment.
"""

import os
import re
from typing import Iterable, List, Optional

from utils.io.logger import logger
from utils.io.safe import read_text

from .models import TodoMatch

# Matches: // TODO: description, # TODO: description, // TODO(issue): description, // FIXME: ...
TODO_PATTERNS = [
    re.compile(r"//\s*(TODO|FIXME)(\([^)]+\))?\s*:\s*(.+)", re.IGNORECASE),
    re.compile(r"#\s*(TODO|FIXME)(\([^)]+\))?\s*:\s*(.+)", re.IGNORECASE),
]

EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        ".next",
        ".nuxt",
        ".cache",
        "coverage",
        ".nyc_output",
        ".vscode",
        ".idea",
        "bin",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
    }
)

SOURCE_EXTENSIONS = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".py",
    ".java",
    ".go",
    ".rs",
    ".cpp",
    ".c",
    ".h",
    ".hpp",
    ".cs",
    ".php",
    ".rb",
    ".swift",
    ".kt",
    ".scala",
    ".m",
    ".mm",
    ".vue",
    ".svelte",
    ".dart",
    ".r",
    ".sql",
    ".sh",
    ".bash",
    ".zsh",
    ".fish",
    ".yaml",
    ".yml",
    ".json",
    ".md",
    ".html",
    ".css",
    ".scss",
    ".sass",
    ".less",
    ".styl",
)


def is_source_file(filename: str) -> bool:
    """Check whether a filename has one of the scanned source extensions."""
    return filename.endswith(SOURCE_EXTENSIONS)


def match_line(line: str) -> Optional[re.Match]:
    """Return the first TODO pattern match for a line, `//` before `#`."""
    for pattern in TODO_PATTERNS:
        found = pattern.search(line)
        if found:
            return found
    return None


def scan_file(file_path: str) -> List[TodoMatch]:
    """Collect every TODO/FIXME comment in a single file."""
    todos: List[TodoMatch] = []
    abs_path = os.path.abspath(file_path)

    try:
        content = read_text(abs_path)
    except PermissionError:
        logger.debug(f"Skipping unreadable file: {abs_path}")
        return todos
    except UnicodeDecodeError:
        logger.debug(f"Skipping non UTF-8 file: {abs_path}")
        return todos

    for index, line in enumerate(content.split("\n")):
        found = match_line(line)
        if not found:
            continue
        description = found.group(3) or found.group(0)
        todos.append(
            TodoMatch(
                file_path=abs_path,
                line_number=index + 1,
                line=line,
                match=found.group(0),
                description=description.strip(),
            )
        )

    return todos


def scan_directory(root_dir: str = ".", excluded_dirs: Optional[Iterable[str]] = None) -> List[TodoMatch]:
    """
    Recursively scan root_dir for TODO/FIXME comments.

    Args:
        root_dir: Directory to start from
        excluded_dirs: Extra directory names to skip on top of EXCLUDED_DIRS

    Returns:
        Matches in deterministic order: entries sorted by name, depth-first
    """
    skip = set(EXCLUDED_DIRS)
    if excluded_dirs:
        skip.update(excluded_dirs)

    todos: List[TodoMatch] = []

    def _scan_dir(directory: str) -> None:
        try:
            entries = sorted(os.listdir(directory))
        except PermissionError:
            logger.debug(f"Skipping unreadable directory: {directory}")
            return

        for entry in entries:
            full_path = os.path.join(directory, entry)
            if os.path.isdir(full_path):
                if entry in skip or os.path.islink(full_path):
                    continue
                _scan_dir(full_path)
            elif os.path.isfile(full_path) and is_source_file(entry):
                todos.extend(scan_file(full_path))

    _scan_dir(os.path.abspath(root_dir))
    return todos
