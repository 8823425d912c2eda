"""
Helpers for running external tools such as ffmpeg.
"""

import shlex
import subprocess
from typing import List, Sequence

from loguru import logger


def display_command(cmd_list: Sequence[str]) -> str:
    """Quotes a command list into a single string that can be pasted into a shell."""
    return shlex.join(cmd_list)


def run_cmd(cmd_list: List[str], show_cmd: bool = True) -> subprocess.CompletedProcess:
    """
    Executes an external command and captures its combined output.

    stderr is merged into stdout so that ffmpeg's diagnostics, which it writes
    to stderr, arrive in the order they were printed. The command is never run
    through a shell.

    Args:
        cmd_list: The executable followed by its arguments.
        show_cmd: If True, the command is logged at DEBUG level before execution.

    Returns:
        The `subprocess.CompletedProcess`; `stdout` holds the combined output.
        A non-zero return code is not raised, the caller decides what it means.

    Raises:
        ValueError: If the command list is empty.
        OSError: If the executable cannot be started (e.g. not found).
    """
    if not cmd_list:
        raise ValueError("run_cmd received an empty command list.")

    if show_cmd:
        logger.debug(f"Executing command: {display_command(cmd_list)}")

    result = subprocess.run(
        cmd_list,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        encoding="utf-8",
        errors="replace",
        shell=False,
    )

    if result.returncode != 0:
        logger.debug(f"Command output (rc={result.returncode}): {result.stdout}")
    elif result.stdout:
        logger.trace(f"Command output: {result.stdout[-500:]}")
    return result


def tail(output: str, lines: int = 20) -> str:
    """Returns the last `lines` lines of a command's output, for log excerpts."""
    return "\n".join((output or "").splitlines()[-lines:])
