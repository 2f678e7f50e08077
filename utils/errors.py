"""Exception hierarchy shared by the scanner, clients and the purge workflow."""


class TodoPurgeError(Exception):
    """Base class for all todo-purge errors."""


class ConfigError(TodoPurgeError):
    """Missing credentials, missing workspace or an unknown config key."""


class ModelClientError(TodoPurgeError):
    """A language-model call failed after retries or returned nothing usable."""


class TrackerError(TodoPurgeError):
    """The issue tracker rejected a request or could not be reached."""


class RunAbortedError(TodoPurgeError):
    """A fatal failure while processing one TODO stopped the whole run."""

    def __init__(self, file_path: str, line_number: int, cause: Exception):
        self.file_path = file_path
        self.line_number = line_number
        self.cause = cause
        super().__init__(f"Aborted at {file_path}:{line_number}: {cause}")
