"""Modal for changing the value of one assignment."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label

from shvar.escape import escape


class EditScreen(ModalScreen[str | None]):
    """Edit the decoded value of *key*.

    The preview under the input is the line as it will be written, so the
    user can see which quoting style the new value ends up with.  Dismisses
    with the new value, or None when cancelled.
    """

    BINDINGS = [Binding("escape", "dismiss(None)", show=False)]

    def __init__(self, key: str, current_value: str) -> None:
        super().__init__()
        self._key = key
        self._initial = current_value

    def line_for(self, value: str) -> str:
        return f"{self._key}={escape(value)}"

    def compose(self) -> ComposeResult:
        field = Input(value=self._initial, id="edit-value", placeholder="empty")
        field.cursor_position = len(self._initial)
        with Vertical(id="edit-container"):
            yield Label(f"Value of {self._key}", id="edit-title", markup=False)
            yield field
            yield Label(self.line_for(self._initial), id="edit-preview", markup=False)
            yield Label("Enter keeps the change, Escape drops it", id="edit-hint")

    def on_mount(self) -> None:
        self.query_one("#edit-value", Input).focus()

    def on_input_changed(self, event: Input.Changed) -> None:
        event.stop()
        self.query_one("#edit-preview", Label).update(self.line_for(event.value))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value)
