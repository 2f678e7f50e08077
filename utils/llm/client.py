"""
Language-model client used for ticket context selection and descriptions.

Both operations run a DSPy signature against a per-operation LM and retry
transient network failures with exponential backoff before giving up.
"""

import re
import time
from typing import Callable, Optional, TypeVar

import dspy
import httpx

from agents.workflow import ContextSelector, TicketDescriber
from utils.errors import ModelClientError
from utils.io.logger import logger
from utils.todo.context import number_lines

T = TypeVar("T")

SleepFn = Callable[[float], None]

TRANSIENT_MARKERS = ("timeout", "timed out", "etimedout", "econnreset", "connection reset")

CODE_FENCE_OPEN = re.compile(r"^```[\w-]*\n?", re.MULTILINE)
CODE_FENCE_CLOSE = re.compile(r"\n?```$", re.MULTILINE)


def is_transient_error(error: BaseException) -> bool:
    """Timeouts and dropped connections are worth another attempt."""
    if isinstance(error, (httpx.TimeoutException, httpx.TransportError, TimeoutError, ConnectionError)):
        return True
    message = str(error).lower()
    return any(marker in message for marker in TRANSIENT_MARKERS)


def strip_code_fences(text: str) -> str:
    """Remove markdown fences a model wraps around its answer."""
    return CODE_FENCE_CLOSE.sub("", CODE_FENCE_OPEN.sub("", text)).strip("\n")


def build_lm(
    model_name: str,
    provider: str,
    api_key: Optional[str],
    temperature: float,
    max_tokens: int,
) -> dspy.LM:
    """Create a DSPy LM for the given provider."""
    if provider == "openai":
        return dspy.LM(
            model=f"openai/{model_name}",
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    if provider == "gemini":
        return dspy.LM(
            model=f"gemini/{model_name}",
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    if provider == "anthropic":
        return dspy.LM(
            model=f"anthropic/{model_name}",
            api_key=api_key,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    if provider == "openrouter":
        return dspy.LM(
            model=f"openai/{model_name}",
            api_key=api_key,
            api_base="https://openrouter.ai/api/v1",
            temperature=temperature,
            max_tokens=max_tokens,
        )

    if provider == "ollama":
        return dspy.LM(model=f"ollama/{model_name}", temperature=temperature, max_tokens=max_tokens)

    raise ValueError(f"Unsupported provider: {provider}")


class ModelClient:
    """Generates ticket context windows and descriptions with an LLM."""

    def __init__(
        self,
        api_key: Optional[str],
        context_model: str,
        description_model: str,
        provider: str = "gemini",
        max_retries: int = 2,
        backoff_base: float = 1.0,
        sleeper: Optional[SleepFn] = None,
    ):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if backoff_base < 0:
            raise ValueError("backoff_base must be >= 0")

        self.provider = provider
        self.context_model = context_model
        self.description_model = description_model
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self._sleeper = sleeper or time.sleep

        self.context_lm = build_lm(context_model, provider, api_key, temperature=0.3, max_tokens=2000)
        self.description_lm = build_lm(
            description_model, provider, api_key, temperature=0.7, max_tokens=300
        )

    def _with_retry(self, label: str, call: Callable[[], T]) -> T:
        for attempt in range(self.max_retries + 1):
            try:
                return call()
            except Exception as e:
                if is_transient_error(e) and attempt < self.max_retries:
                    delay = self.backoff_base * (2**attempt)
                    logger.debug(f"{label} attempt {attempt + 1} failed ({e}); retrying in {delay}s")
                    self._sleeper(delay)
                    continue
                raise ModelClientError(f"{label} failed: {e}") from e
        raise ModelClientError(f"{label} failed")

    def generate_context(
        self,
        todo_description: str,
        file_path: str,
        line_number: int,
        file_content: str,
    ) -> str:
        """Ask the model to pick the code lines that explain a TODO."""
        lines = file_content.split("\n")
        todo_line = lines[line_number - 1] if 0 < line_number <= len(lines) else ""
        numbered = number_lines(lines)

        def _call() -> str:
            with dspy.context(lm=self.context_lm):
                result = dspy.Predict(ContextSelector)(
                    todo_description=todo_description,
                    file_path=file_path,
                    line_number=line_number,
                    todo_line=todo_line,
                    numbered_file_content=numbered,
                )
            context = strip_code_fences(result.selected_context or "")
            if not context.strip():
                raise ModelClientError("model returned empty context")
            return context

        return self._with_retry("Context generation", _call)

    def generate_description(
        self,
        todo_description: str,
        file_path: str,
        line_number: int,
        code_context: str,
        file_content: str,
    ) -> str:
        """Ask the model for a short professional ticket description."""

        def _call() -> str:
            with dspy.context(lm=self.description_lm):
                result = dspy.Predict(TicketDescriber)(
                    todo_description=todo_description,
                    file_path=file_path,
                    line_number=line_number,
                    code_context=code_context,
                    file_content=file_content,
                )
            description = (result.ticket_description or "").strip()
            if not description:
                raise ModelClientError("model returned empty description")
            return description

        return self._with_retry("Description generation", _call)

    def validate_api_key(self) -> bool:
        """Send a tiny prompt to check the key is accepted."""
        try:
            self.description_lm("test", max_tokens=5)
            return True
        except Exception as e:
            logger.debug(f"Model key validation failed: {e}")
            return False
