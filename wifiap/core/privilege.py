"""
Privilege Gate
===============

Mutating NetworkManager state needs root.  When the current process is
not root the command is either re-executed through ``sudo`` (the
default) or refused.
"""

from __future__ import annotations

import os
import shutil
import sys
from typing import Callable, NoReturn, Optional, Sequence

from apshared.logger import ToolLogger

from wifiap.core.errors import PreconditionError

logger = ToolLogger("core.privilege")


def is_root() -> bool:
    return os.geteuid() == 0


def sudo_command(argv: Sequence[str], sudo_binary: str = "sudo") -> list[str]:
    """Command line re-running this invocation as root.

    ``-E`` is deliberately not passed: the configuration path, if any,
    is part of *argv*.
    """
    return [sudo_binary, sys.executable, "-m", "wifiap", *argv]


def ensure_root(
    argv: Sequence[str],
    *,
    operation: str,
    auto_sudo: bool = True,
    sudo_binary: str = "sudo",
    announce: Optional[Callable[[str], None]] = None,
    execvp: Callable[[str, list[str]], NoReturn] = os.execvp,
) -> None:
    """Return if running as root, otherwise re-exec under sudo or fail.

    Args:
        argv: Arguments of the current invocation (without program name).
        operation: Operation name used in messages.
        auto_sudo: Re-execute through sudo instead of failing.
        sudo_binary: sudo executable.
        announce: Callback for the operator-facing notice.
        execvp: Process replacement function (injectable for tests).

    Raises:
        PreconditionError: Not root and re-execution is disabled or sudo
            is unavailable.
    """
    if is_root():
        return

    if not auto_sudo:
        raise PreconditionError(
            f"The '{operation}' operation requires root privileges. "
            f"Run it again with sudo."
        )

    sudo_path = shutil.which(sudo_binary)
    if sudo_path is None:
        raise PreconditionError(
            f"The '{operation}' operation requires root privileges "
            f"and '{sudo_binary}' was not found."
        )

    command = sudo_command(argv, sudo_path)
    if announce is not None:
        announce(
            f"'{operation}' requires administrator privileges. "
            f"Requesting sudo access..."
        )
    logger.info("Re-executing under sudo: %s", " ".join(command))
    sys.stdout.flush()
    sys.stderr.flush()
    execvp(command[0], command)
