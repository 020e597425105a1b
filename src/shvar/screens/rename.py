"""Rename screen: move a value to another key."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label

from shvar.models import key_problem


class RenameScreen(ModalScreen[str | None]):
    """Ask for the new name of *current_key*.

    Dismisses with the new key, or None on Escape or when the name is left
    unchanged.  The same rules as for adding a variable apply.
    """

    BINDINGS = [Binding("escape", "cancel", show=False)]

    def __init__(self, current_key: str, existing_keys: set[str]) -> None:
        super().__init__()
        self._current_key = current_key
        self._taken = existing_keys - {current_key}

    def compose(self) -> ComposeResult:
        with Vertical(id="rename-container"):
            yield Label(f"Rename  {self._current_key}  to", id="rename-title")
            yield Input(value=self._current_key, id="rename-key")
            yield Label("", id="rename-error")
            yield Label("Enter: rename   Escape: cancel", id="rename-hint")

    def on_mount(self) -> None:
        field = self.query_one("#rename-key", Input)
        field.focus()
        field.cursor_position = len(field.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        new_key = event.value.strip()
        if new_key == self._current_key:
            self.dismiss(None)
            return
        problem = key_problem(new_key, self._taken)
        if problem:
            self.query_one("#rename-error", Label).update(problem)
            return
        self.dismiss(new_key)

    def action_cancel(self) -> None:
        self.dismiss(None)
