"""
wifiap Errors
==============

Exception hierarchy for the access point manager.  Each error carries
the process exit code the CLI should end with.

    WifiAPError
     +-- ValidationError         bad arguments, nothing touched      (1)
     +-- PreconditionError       system not in a usable state        (1)
     |    +-- InterfaceSelectionError
     +-- OperatorAbort           operator declined a prompt          (0)
     +-- ExternalToolError       nmcli/iw step failed                (1)
"""

from __future__ import annotations

from typing import Optional, Sequence

from apshared.process import CommandResult


class WifiAPError(Exception):
    """Base class for errors reported to the operator."""

    exit_code: int = 1

    def __init__(self, message: str, *, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ValidationError(WifiAPError):
    """Missing or invalid argument."""


class PreconditionError(WifiAPError):
    """Privilege, interface, band or profile precondition not met."""


class InterfaceSelectionError(PreconditionError):
    """No interface could be chosen automatically."""

    def __init__(self, message: str, candidates: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.candidates = list(candidates)


class OperatorAbort(WifiAPError):
    """The operator answered no."""

    exit_code = 0


class ExternalToolError(WifiAPError):
    """An external configuration step failed.

    Attributes:
        step: Human description of the failed step.
        result: The failed command's result, when there is one.
    """

    def __init__(
        self,
        step: str,
        result: Optional[CommandResult] = None,
        hint: str = "",
    ) -> None:
        detail = ""
        if result is not None:
            stderr = result.stderr.strip()
            detail = f" (exit status {result.returncode}" + (f": {stderr})" if stderr else ")")
        super().__init__(f"{step}{detail}")
        self.step = step
        self.result = result
        self.hint = hint
