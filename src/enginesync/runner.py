"""
Subprocess execution with live line streaming.
"""

from __future__ import annotations

import os
import subprocess
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Tuple

from enginesync.constants import COMMAND_OUTPUT_TAIL_LINES
from enginesync.exceptions import BackendCommandFailed, ToolMissingError
from enginesync.log_utils import logger

LineSink = Callable[[str], None]


@dataclass(frozen=True)
class CommandSpec:
    argv: Tuple[str, ...]
    env: Mapping[str, str] = field(default_factory=dict)
    description: str = ""

    def display(self) -> str:
        """
        Return the command line as a single string for logging.
        """
        return subprocess.list2cmdline(list(self.argv))


def build_process_env(overlay: Mapping[str, str]) -> Dict[str, str]:
    """
    Return a copy of the current environment with `overlay` applied.

    The parent process environment is never modified.
    """
    env = os.environ.copy()
    env.update({key: str(value) for key, value in overlay.items()})
    return env


def run_command(
    spec: CommandSpec,
    sink: LineSink,
    cwd: Optional[str] = None,
) -> int:
    """
    Run `spec` and forward each output line to `sink` as soon as it arrives.

    stderr is merged into stdout so error text reaches the sink in order.

    Returns:
        int: The process exit status (always 0; non-zero raises).

    Raises:
        ToolMissingError: If the executable cannot be found.
        BackendCommandFailed: If the process cannot be started or exits non-zero.
    """
    if spec.description:
        logger.info(spec.description)
    logger.debug(f"Running: {spec.display()}")

    tail: deque = deque(maxlen=COMMAND_OUTPUT_TAIL_LINES)
    try:
        process = subprocess.Popen(
            list(spec.argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            env=build_process_env(spec.env),
            cwd=cwd,
            text=True,
            encoding="utf-8",
            errors="replace",
            bufsize=1,
        )
    except FileNotFoundError as exc:
        raise ToolMissingError(
            f"Executable not found: {spec.argv[0]}",
            executable=spec.argv[0],
            details=str(exc),
        ) from exc
    except OSError as exc:
        raise BackendCommandFailed(spec.argv, -1, [str(exc)]) from exc

    with process:
        assert process.stdout is not None
        for raw_line in process.stdout:
            line = raw_line.rstrip("\r\n")
            tail.append(line)
            sink(line)
        returncode = process.wait()

    if returncode != 0:
        raise BackendCommandFailed(spec.argv, returncode, list(tail))
    return returncode
