"""
Operator Prompts
=================

Confirmation and choice prompts are injected into the engine as a
:class:`Prompter`, so the same command logic runs interactively, under
``--force``/``--replace`` automation, or inside tests.

Flag semantics:

- no flags: every question is asked.
- ``--replace``: confirmations are still asked; an existing profile is
  replaced without asking.
- ``--force``: nothing is asked; an existing profile is kept and
  restarted, unless ``--replace`` is also given.
"""

from __future__ import annotations

from typing import Optional, Protocol

from apshared.console import ToolConsole

from wifiap.core.models import ExistingProfileAction


class Prompter(Protocol):
    """Confirm(prompt) -> bool plus the existing-profile choice."""

    def confirm(self, question: str) -> bool: ...

    def existing_profile_action(self, name: str) -> ExistingProfileAction: ...


_ACTION_BY_KEY = {
    "1": ExistingProfileAction.REPLACE,
    "2": ExistingProfileAction.KEEP,
    "3": ExistingProfileAction.ABORT,
}


def _announce(console: ToolConsole, name: str, action: ExistingProfileAction) -> None:
    flag = "--replace" if action is ExistingProfileAction.REPLACE else "--force"
    console.info(
        f"Connection '{name}' already exists: auto-selecting "
        f"'{action.value}' ({flag} mode)"
    )


class InteractivePrompter:
    """Asks the operator on the terminal.

    Args:
        console: Console used for the questions.
        existing_action: Fixed answer for an existing profile; ``None``
            asks the operator.
    """

    def __init__(
        self,
        console: ToolConsole,
        existing_action: Optional[ExistingProfileAction] = None,
    ) -> None:
        self._console = console
        self._existing_action = existing_action

    def confirm(self, question: str) -> bool:
        return self._console.confirm(question, default=False)

    def existing_profile_action(self, name: str) -> ExistingProfileAction:
        if self._existing_action is not None:
            _announce(self._console, name, self._existing_action)
            return self._existing_action
        self._console.print(f"Connection '{name}' already exists. Do you want to:")
        self._console.print("  1) Replace the existing configuration (recommended)")
        self._console.print("  2) Keep existing and just restart it")
        self._console.print("  3) Abort")
        key = self._console.choose("Choose", ["1", "2", "3"], default="3")
        return _ACTION_BY_KEY[key]


class AutomaticPrompter:
    """Answers every prompt without asking; confirmations are accepted."""

    def __init__(
        self,
        existing_action: ExistingProfileAction = ExistingProfileAction.KEEP,
        console: Optional[ToolConsole] = None,
    ) -> None:
        self._existing_action = existing_action
        self._console = console

    def confirm(self, question: str) -> bool:
        return True

    def existing_profile_action(self, name: str) -> ExistingProfileAction:
        if self._console is not None:
            _announce(self._console, name, self._existing_action)
        return self._existing_action


def build_prompter(
    console: ToolConsole,
    *,
    force: bool = False,
    replace: bool = False,
) -> Prompter:
    """Pick the prompter matching the automation flags."""
    existing = ExistingProfileAction.REPLACE if replace else None
    if force:
        return AutomaticPrompter(existing or ExistingProfileAction.KEEP, console)
    return InteractivePrompter(console, existing)
