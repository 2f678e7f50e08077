import os
import subprocess
import tempfile
from typing import List, Optional


def run_safe_command(
    cmd: List[str],
    cwd: Optional[str] = None,
    capture_output: bool = True,
    text: bool = True,
    check: bool = True,
    **kwargs,
) -> subprocess.CompletedProcess:
    """
    Safely execute a command from an allowlist.
    Disallows shell=True and validates the executable.
    """
    if kwargs.get("shell"):
        raise ValueError("Running commands with shell=True is disallowed for security.")

    if not cmd:
        raise ValueError("Empty command list.")

    executable = os.path.basename(cmd[0])

    try:
        from config import settings

        allowlist = settings.command_allowlist
    except (ImportError, AttributeError):
        # Bootstrapping fallback if config is not yet fully loaded
        allowlist = {"git"}

    if executable not in allowlist:
        raise ValueError(f"Command '{executable}' is not in the security allowlist.")

    # stderr/stdout passed explicitly conflicts with capture_output; still capture stdout
    if "stderr" in kwargs or "stdout" in kwargs:
        if capture_output:
            kwargs.setdefault("stdout", subprocess.PIPE)
            kwargs.setdefault("stderr", subprocess.PIPE)
        capture_output = False

    return subprocess.run(
        cmd, cwd=cwd, capture_output=capture_output, text=text, check=check, **kwargs
    )


def atomic_write(file_path: str, content: str, mode: Optional[int] = None) -> None:
    """
    Replace file_path with content via a temp file in the same directory.

    The original file is either fully replaced or left untouched. File
    permissions of an existing target are preserved unless mode is given.
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    os.makedirs(directory, exist_ok=True)

    if mode is None and os.path.exists(file_path):
        mode = os.stat(file_path).st_mode & 0o777

    fd, tmp_path = tempfile.mkstemp(
        dir=directory, prefix=f".{os.path.basename(file_path)}.", suffix=".tmp"
    )
    try:
        # newline="" keeps "\n" as written on every platform
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, file_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def read_text(file_path: str) -> str:
    """Read a source file as UTF-8 without newline translation."""
    with open(file_path, "r", encoding="utf-8", newline="") as f:
        return f.read()
