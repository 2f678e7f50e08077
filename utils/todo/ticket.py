"""Ticket rendering and in-source comment removal."""

import os
from pathlib import PurePath
from typing import Optional

from utils.io.logger import logger
from utils.io.safe import atomic_write, read_text

from .models import TodoContext, TodoMatch

TICKET_TEMPLATE = """{body}

**Location:** `{location}:{line_number}`

**Code Context:**
```
{code_context}
```
"""


def relative_location(file_path: str, cwd: Optional[str] = None) -> str:
    """Path of file_path relative to cwd, with forward slashes."""
    relative = os.path.relpath(file_path, cwd or os.getcwd())
    return PurePath(relative).as_posix()


def format_ticket_description(
    context: TodoContext,
    ai_description: Optional[str] = None,
    cwd: Optional[str] = None,
) -> str:
    """Render the markdown ticket body for a TODO and its code context."""
    body = ai_description.strip() if ai_description and ai_description.strip() else None
    return TICKET_TEMPLATE.format(
        body=body or context.todo.description,
        location=relative_location(context.todo.file_path, cwd),
        line_number=context.todo.line_number,
        code_context=context.full_context,
    )


def build_ticket_title(description: str, max_length: int = 100) -> str:
    """Use the TODO text as title, cut to max_length with a trailing ellipsis."""
    title = description.strip() or "TODO"
    if len(title) > max_length:
        return title[: max_length - 3] + "..."
    return title


def _find_comment_start(line: str, match_index: int) -> int:
    """Index of the `//` or `#` opening the comment at match_index, or -1."""
    for i in range(match_index, -1, -1):
        if line[i : i + 2] == "//":
            return i
    for i in range(match_index, -1, -1):
        if line[i] == "#":
            return i
    return -1


def remove_todo_from_file(todo: TodoMatch) -> bool:
    """
    Strip the TODO comment from its source line.

    Code before the comment on the same line is kept with trailing whitespace
    trimmed; a comment-only line becomes blank so later line numbers do not
    shift. The file is re-read first and left untouched when the comment is
    no longer where the scan found it.

    Returns:
        True if the file was rewritten
    """
    content = read_text(todo.file_path)
    lines = content.split("\n")
    line_index = todo.line_number - 1

    if line_index >= len(lines):
        logger.debug(f"Line {todo.line_number} no longer exists in {todo.file_path}")
        return False

    original_line = lines[line_index]
    match_index = original_line.find(todo.match)
    if match_index == -1:
        logger.debug(f"TODO changed since scan, leaving {todo.file_path}:{todo.line_number}")
        return False

    comment_start = _find_comment_start(original_line, match_index)
    if comment_start == -1:
        logger.debug(f"No comment opener found at {todo.file_path}:{todo.line_number}")
        return False

    lines[line_index] = original_line[:comment_start].rstrip()
    atomic_write(todo.file_path, "\n".join(lines))
    return True
