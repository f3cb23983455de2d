"""
Confirmation gate for destructive booster operations.

Reverting to the remote state, deleting branches and deleting tags can
lose work that only exists locally. Unless confirmations are disabled
(batch mode), the operator has to answer affirmatively before they run.
"""

import logging
from enum import Enum
from typing import Callable, Optional

import click

from .. import output

logger = logging.getLogger(__name__)

AFFIRMATIVE = frozenset({'y', 'yes'})


def _prompt(prompt: str) -> str:
    return click.prompt(prompt, default="", show_default=False, prompt_suffix="")


class Answer(Enum):
    YES = "yes"
    NO = "no"


class ConfirmationGate:
    """
    Asks the operator before destructive actions.

    Example:
        gate = ConfirmationGate(interactive=True)
        if gate.confirm("delete 1.5.13-2 locally and on remote", branch="master") is Answer.YES:
            ...
    """

    def __init__(
        self,
        interactive: bool = True,
        read_answer: Optional[Callable[[str], str]] = None
    ):
        """
        Initialize ConfirmationGate.

        Args:
            interactive: Ask the operator; when False every action is confirmed
            read_answer: Prompt function (defaults to a click prompt)
        """
        self.interactive = interactive
        self._read_answer = read_answer or _prompt

    def confirm(self, action: str = "revert", branch: str = "") -> Answer:
        """
        Confirm an action.

        Only ``Y``/``yes`` (any case) confirms; anything else, including
        end of input, declines.
        """
        if not self.interactive:
            return Answer.YES

        output.branch_line(branch, f"Are you sure you want to {action}?")
        output.danger(branch, "YOU WILL LOSE ALL UNPUSHED LOCAL COMMITS SO BE CAREFUL!")
        output.branch_line(branch, f"Press Y to {action} or any other key to leave the booster as-is.")

        try:
            answer = self._read_answer("> ")
        except (EOFError, click.Abort):
            answer = ""

        confirmed = answer.strip().lower() in AFFIRMATIVE
        logger.debug(f"Confirmation for '{action}': {answer!r} -> {confirmed}")
        return Answer.YES if confirmed else Answer.NO
