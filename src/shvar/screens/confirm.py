"""Yes/no modal, and the base of the save confirmation."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label


class ConfirmScreen(ModalScreen[bool]):
    """Ask a yes/no question; dismisses True for yes.

    *detail* is shown verbatim under the question, e.g. the line about to
    disappear from the file.  ``No`` has focus initially.  Subclasses add
    content between the question and the buttons with ``compose_body``.
    """

    BINDINGS = [
        Binding("y", "confirm", show=False),
        Binding("n", "cancel", show=False),
        Binding("escape", "cancel", show=False),
        Binding("left,h", "focus_button('no')", show=False),
        Binding("right,l", "focus_button('yes')", show=False),
    ]

    yes_label = "Yes"
    no_label = "No"

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__()
        self._message = message
        self._detail = detail

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-container"):
            yield Label(self._message, id="confirm-message", markup=False)
            if self._detail:
                yield Label(self._detail, id="confirm-detail", markup=False)
            yield from self.compose_body()
            with Horizontal(id="confirm-buttons"):
                yield Button(self.no_label, variant="primary", id="confirm-no")
                yield Button(self.yes_label, variant="error", id="confirm-yes")

    def compose_body(self) -> ComposeResult:
        yield from ()

    def on_mount(self) -> None:
        self.action_focus_button("no")

    def action_focus_button(self, which: str) -> None:
        self.query_one(f"#confirm-{which}", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
