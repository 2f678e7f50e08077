from typing import List

from pydantic import BaseModel, ConfigDict, Field


class TodoMatch(BaseModel):
    """A single TODO/FIXME comment found by the scanner."""

    model_config = ConfigDict(frozen=True)

    file_path: str = Field(..., description="Absolute path of the file containing the comment")
    line_number: int = Field(..., ge=1, description="1-based line number of the comment")
    line: str = Field(..., description="Raw text of the line at scan time")
    match: str = Field(..., description="Matched comment substring, e.g. '// TODO: fix x'")
    description: str = Field(..., description="Trimmed text following the marker")


class TodoContext(BaseModel):
    """Source code surrounding a TODO, as presented in the ticket."""

    model_config = ConfigDict(frozen=True)

    todo: TodoMatch
    context_above: List[str] = Field(default_factory=list)
    context_below: List[str] = Field(default_factory=list)
    full_context: str = Field(..., description="Line-numbered, pipe-delimited window")
    file_content: str = Field(..., description="Entire file text at read time")
