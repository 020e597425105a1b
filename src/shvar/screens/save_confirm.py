"""Confirmation before a file is rewritten, listing what will change."""

from rich.text import Text
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Static

from shvar.constants import NEUTRALIZE_MARKER
from shvar.models import Action, ActionKind
from shvar.screens.confirm import ConfirmScreen


def _describe(action: Action) -> tuple[str, str]:
    if action.kind is ActionKind.RENAME:
        return "yellow", f"~  {action.old_key}  →  {action.key}"
    if action.kind is ActionKind.DELETE:
        return "red", f"-  {action.key}"
    if action.previous_value is None:
        return "green", f"+  {action.key}"
    return "blue", f"*  {action.key}"


class SaveConfirmScreen(ConfirmScreen):
    """Confirmation listing pending changes before the file is rewritten.

    Changes are listed in the order they were made, followed by every line
    that write-back will comment out although nobody touched it.

    ``+`` added, ``*`` edited, ``-`` removed, ``~`` renamed, ``!``
    commented out.
    """

    BINDINGS = [Binding("q", "cancel", show=False)]

    yes_label = "Write"
    no_label = "Cancel"

    def __init__(self, file_name: str, actions: list[Action], neutralized: list[str]) -> None:
        super().__init__(f"Write {file_name}?")
        self._actions = actions
        self._neutralized = neutralized

    def diff_lines(self) -> list[tuple[str, str]]:
        """``(style, text)`` for each line of the summary."""
        lines = [_describe(action) for action in self._actions]
        lines += [("magenta", f"!  {text}") for text in self._neutralized]
        return lines or [("dim", "(no changes)")]

    def compose_body(self) -> ComposeResult:
        summary = Text("\n").join(Text(text, style=style) for style, text in self.diff_lines())
        with VerticalScroll(id="save-confirm-diff"):
            yield Static(summary)
        if self._neutralized:
            yield Static(
                f"! lines are kept as comments starting with '{NEUTRALIZE_MARKER}'",
                id="save-confirm-note",
                markup=False,
            )

    def has_change(self, key: str) -> bool:
        """Return True if *key* was added, edited, removed or renamed."""
        return any(key in (action.key, action.old_key) for action in self._actions)
