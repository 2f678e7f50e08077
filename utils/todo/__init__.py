from .context import extract_context, number_lines, split_numbered_context
from .models import TodoContext, TodoMatch
from .scanner import scan_directory, scan_file
from .ticket import build_ticket_title, format_ticket_description, remove_todo_from_file

__all__ = [
    "TodoContext",
    "TodoMatch",
    "build_ticket_title",
    "extract_context",
    "format_ticket_description",
    "number_lines",
    "remove_todo_from_file",
    "scan_directory",
    "scan_file",
    "split_numbered_context",
]
