"""Add screen: key and value for a new variable."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label

from shvar.models import EnvVar, key_problem


class AddScreen(ModalScreen[EnvVar | None]):
    """Ask for a new variable.

    Enter in the key field moves on to the value; Enter in the value field
    checks the key and dismisses with the new ``EnvVar``.  A key that is
    blank, not a shell name or already in the file keeps the screen open
    with the reason shown.  Escape dismisses with None.
    """

    BINDINGS = [Binding("escape", "cancel", show=False)]

    def __init__(self, existing_keys: set[str]) -> None:
        super().__init__()
        self._existing_keys = existing_keys

    def compose(self) -> ComposeResult:
        with Vertical(id="add-container"):
            yield Label("New variable", id="add-title")
            yield Input(placeholder="NAME", id="add-key")
            yield Input(placeholder="value (may be empty)", id="add-value")
            yield Label("", id="add-error")
            yield Label("Enter: next / save   Escape: cancel", id="add-hint")

    def on_mount(self) -> None:
        self.query_one("#add-key", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        key_input = self.query_one("#add-key", Input)
        value_input = self.query_one("#add-value", Input)
        if event.input is key_input:
            value_input.focus()
            return

        key = key_input.value.strip()
        problem = key_problem(key, self._existing_keys)
        if problem:
            self.query_one("#add-error", Label).update(problem)
            key_input.focus()
            return
        self.dismiss(EnvVar(key=key, value=value_input.value))

    def action_cancel(self) -> None:
        self.dismiss(None)
