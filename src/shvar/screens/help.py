"""Key reference overlay."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Static

from shvar.constants import HELP_TEXT, NEUTRALIZE_MARKER


class HelpScreen(ModalScreen[None]):
    """Shortcut list for the file being edited.

    Closed by ``?``, ``q``, Escape or a click anywhere.
    """

    BINDINGS = [
        Binding(key, "dismiss(None)", show=False) for key in ("escape", "question_mark", "q")
    ]

    def __init__(self, file_name: str) -> None:
        super().__init__()
        self._file_name = file_name

    def compose(self) -> ComposeResult:
        with Vertical(id="help-container"):
            yield Static(f" {self._file_name}", id="help-file", markup=False)
            yield Static(HELP_TEXT, id="help-text", markup=False)
            yield Static(
                f" Unreadable lines are kept as\n comments starting with '{NEUTRALIZE_MARKER}'.",
                id="help-footnote",
                markup=False,
            )

    def on_click(self) -> None:
        self.dismiss(None)
