"""
shell.py

Responsibility: run external commands (git, cmake, package managers).

Every command and its output are logged at DEBUG level, so `--debug` traces
the whole scaffolding session the way `set -x` would. Long-running steps
(package installs, cmake configure) run with `verbose=True` and log at INFO.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)


class CommandError(RuntimeError):
    def __init__(self, cmd: Sequence[str], returncode: int | None, output: str = "") -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.output = output
        message = f"Command failed: {' '.join(self.cmd)}"
        if returncode is None:
            message = f"Command not found: {self.cmd[0]}"
        if output.strip():
            message = f"{message}\n\n{output.rstrip()}"
        super().__init__(message)


def run(
    cmd: Sequence[str],
    *,
    cwd: str | Path | None = None,
    display: Sequence[str] | None = None,
    verbose: bool = False,
) -> str:
    """
    Run a subprocess command and return its combined stdout/stderr.

    Output is logged line by line as it arrives: at INFO when `verbose`,
    otherwise at DEBUG. `display` replaces the logged and reported command
    line when `cmd` carries a secret.
    Raises CommandError if the executable is missing or exits non-zero.
    """
    args = [str(c) for c in cmd]
    shown = [str(c) for c in display] if display is not None else args
    level = logging.INFO if verbose else logging.DEBUG
    logger.log(level, "+ %s", " ".join(shown))

    lines: list[str] = []
    try:
        with subprocess.Popen(
            args,
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        ) as proc:
            for line in proc.stdout or ():
                lines.append(line)
                logger.log(level, "%s", line.rstrip())
            returncode = proc.wait()
    except FileNotFoundError as e:
        raise CommandError(shown, None) from e

    output = "".join(lines)
    if returncode != 0:
        raise CommandError(shown, returncode, output)
    return output
