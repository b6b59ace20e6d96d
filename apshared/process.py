"""
External Command Runner
========================

Single place where wifiap starts external processes.  Commands are
always passed as argument lists (never through a shell), run to
completion, and reported back as a :class:`CommandResult` rather than
raising -- callers decide whether a non-zero exit is fatal.
"""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from typing import Sequence

from apshared.logger import ToolLogger

logger = ToolLogger("process")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one external command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.args)


# Return codes for failures that happen before the tool produces one.
RC_NOT_FOUND = 127
RC_CANNOT_EXECUTE = 126
RC_TIMEOUT = 124


def run_command(
    args: Sequence[str],
    *,
    timeout: float | None = 30.0,
    redact: Sequence[str] = (),
) -> CommandResult:
    """Run *args* and capture its output.

    Args:
        args:    Program and arguments.
        timeout: Seconds before the process is killed (``None`` = wait).
        redact:  Values (passwords) replaced by ``***`` in log output.

    Returns:
        A :class:`CommandResult`; a missing binary yields return code 127,
        any other start-up failure (permission denied) 126,
        and a timeout yields 124, mirroring the shell conventions.
    """
    argv = tuple(str(a) for a in args)
    shown = shlex.join("***" if a in redact else a for a in argv)
    logger.debug("exec: %s", shown)

    try:
        proc = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        logger.warning("Command not found: %s", argv[0])
        return CommandResult(argv, RC_NOT_FOUND, "", f"{argv[0]}: command not found")
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %ss: %s", timeout, shown)
        return CommandResult(argv, RC_TIMEOUT, "", f"timed out after {timeout}s")
    except OSError as exc:
        logger.warning("Cannot execute %s: %s", argv[0], exc)
        return CommandResult(argv, RC_CANNOT_EXECUTE, "", f"{argv[0]}: {exc.strerror or exc}")

    if proc.returncode != 0:
        logger.debug(
            "exit %d from %s: %s", proc.returncode, shown, proc.stderr.strip()
        )
    return CommandResult(argv, proc.returncode, proc.stdout, proc.stderr)
