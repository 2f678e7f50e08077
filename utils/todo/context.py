"""
Context extraction for TODO tickets.

A fixed window of lines around the comment is always available. When a model
client is supplied, the model picks the window instead, and any failure on
that path quietly falls back to the fixed window.
"""

import re
from typing import TYPE_CHECKING, List, Optional, Tuple

from utils.io.logger import logger
from utils.io.safe import read_text

from .models import TodoContext, TodoMatch

if TYPE_CHECKING:
    from utils.llm.client import ModelClient

# "   7 | code" -> (7, "code"); the space after the pipe is optional for blank lines
NUMBERED_LINE = re.compile(r"^\s*(\d+)\s*\| ?(.*)$")


def format_numbered_line(line_number: int, text: str) -> str:
    """Render one source line as `<number padded to 4> | <text>`."""
    return f"{line_number:>4} | {text}"


def number_lines(lines: List[str], start: int = 1) -> str:
    """Render consecutive lines with numbers starting at `start`."""
    return "\n".join(format_numbered_line(start + i, line) for i, line in enumerate(lines))


def _fixed_window(
    todo: TodoMatch, content: str, lines_above: int, lines_below: int
) -> TodoContext:
    lines = content.split("\n")
    line_index = todo.line_number - 1

    start_index = max(0, line_index - lines_above)
    end_index = min(len(lines), line_index + 1 + lines_below)

    context_above = lines[start_index:line_index]
    context_below = lines[line_index + 1 : end_index]

    rendered = [format_numbered_line(start_index + 1 + i, line) for i, line in enumerate(context_above)]
    rendered.append(format_numbered_line(todo.line_number, todo.line))
    rendered.extend(
        format_numbered_line(todo.line_number + 1 + i, line) for i, line in enumerate(context_below)
    )

    return TodoContext(
        todo=todo,
        context_above=context_above,
        context_below=context_below,
        full_context="\n".join(rendered),
        file_content=content,
    )


def _strip_numbering(line: str) -> str:
    numbered = NUMBERED_LINE.match(line)
    return numbered.group(2) if numbered else line


def split_numbered_context(text: str, todo: TodoMatch) -> Tuple[List[str], List[str]]:
    """
    Split model-selected context into raw lines above and below the TODO line.

    The TODO line is located by its number and recorded text; a line carrying
    only the right number is accepted when no exact match exists. Returns two
    empty lists when the TODO line is not present at all.
    """
    lines = text.split("\n")
    exact_index = None
    number_index = None

    for index, line in enumerate(lines):
        numbered = NUMBERED_LINE.match(line)
        if not numbered or int(numbered.group(1)) != todo.line_number:
            continue
        if numbered.group(2) == todo.line:
            exact_index = index
            break
        if number_index is None:
            number_index = index

    todo_index = exact_index if exact_index is not None else number_index
    if todo_index is None:
        return [], []

    above = [_strip_numbering(line) for line in lines[:todo_index]]
    below = [_strip_numbering(line) for line in lines[todo_index + 1 :]]
    return above, below


def _model_window(todo: TodoMatch, content: str, model_client: "ModelClient") -> TodoContext:
    generated = model_client.generate_context(
        todo.description, todo.file_path, todo.line_number, content
    )
    if not generated or not generated.strip():
        raise ValueError("model returned empty context")

    above, below = split_numbered_context(generated, todo)
    if not above and not below:
        logger.debug(
            f"TODO line {todo.line_number} not found in model context for {todo.file_path}"
        )

    return TodoContext(
        todo=todo,
        context_above=above,
        context_below=below,
        full_context=generated,
        file_content=content,
    )


def extract_context(
    todo: TodoMatch,
    lines_above: int,
    lines_below: int,
    use_ai: bool = False,
    model_client: Optional["ModelClient"] = None,
) -> TodoContext:
    """
    Build the code context shown in a TODO ticket.

    Args:
        todo: The scanned TODO comment
        lines_above: Lines of code to include before the comment
        lines_below: Lines of code to include after the comment
        use_ai: Ask the model to choose the window
        model_client: Client used when use_ai is set

    Returns:
        TodoContext for the comment. Model failures never propagate; only
        reading the file can raise.
    """
    if lines_above < 0 or lines_below < 0:
        raise ValueError("lines_above and lines_below must be non-negative")

    content = read_text(todo.file_path)

    if use_ai and model_client is not None:
        try:
            return _model_window(todo, content, model_client)
        except Exception as e:
            logger.warning(
                f"AI context selection failed for {todo.file_path}:{todo.line_number} ({e}). "
                "Using fixed window."
            )

    return _fixed_window(todo, content, lines_above, lines_below)
