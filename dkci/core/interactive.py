"""Interactive prompts using InquirerPy.

Every menu in dkci is either a checkbox list or a yes/no confirmation, so
this module only wraps those two prompt types.
"""

from __future__ import annotations

import sys
from typing import List, Sequence

from InquirerPy import inquirer


def _execute(prompt):
    """Execute a prompt and handle ``Ctrl-C`` gracefully."""
    try:
        return prompt.execute()
    except KeyboardInterrupt:
        print("\n[x] Cancelled by user", file=sys.stderr)
        sys.exit(1)


def multi_select(message: str, options: Sequence[str]) -> List[str]:
    """Show a checkbox list and return the chosen option strings."""
    prompt = inquirer.checkbox(
        message=message,
        choices=list(options),
        instruction="↑/↓, Space: select, Enter: confirm",
        transformer=lambda res: f"{len(res)} selected",
        height="90%",
        keybindings={
            "toggle": [{"key": "space"}],
            "pageup": [{"key": "pageup"}],
            "pagedown": [{"key": "pagedown"}],
        },
    )
    result = _execute(prompt)
    return list(result or [])


def confirm(message: str, default: bool = False) -> bool:
    return bool(_execute(inquirer.confirm(message=message, default=default)))
