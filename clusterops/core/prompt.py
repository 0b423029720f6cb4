"""Interactive confirmation helpers."""

from __future__ import annotations

from typing import Callable

import questionary

Confirm = Callable[[str, bool], bool]


def confirm(message: str, default: bool = True) -> bool:
    """Ask a yes/no question; a cancelled prompt counts as "no"."""
    answer = questionary.confirm(message, default=default).ask()
    return bool(answer)


def auto_confirm(message: str, default: bool = True) -> bool:
    del message, default
    return True
