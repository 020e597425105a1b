"""Variable table widget."""

from rich.text import Text
from textual.binding import Binding
from textual.events import Click
from textual.message import Message
from textual.widgets import DataTable

from shvar.constants import TABLE_COLUMNS
from shvar.models import EnvVar

_MALFORMED_BADGE = ("[ malformed ] ", "bold red")
# seconds a first "g" waits for the second one
CHORD_TIMEOUT = 0.5


class VarTable(DataTable):
    """Row-cursor table of the variables in one file.

    ``j``/``k`` wrap around at either end, ``G`` jumps to the last row and
    ``g g`` to the first.  Rows are keyed by variable name.

    Entries whose value cannot be decoded are shown with their stored text
    behind a red ``[ malformed ]`` badge; ``selected_value`` returns None
    for them so they cannot be copied as if they were a value.
    """

    class RowDoubleClicked(Message):
        """Posted when the user double-clicks a row."""

    BINDINGS = [
        Binding("j", "cursor_down", show=False),
        Binding("k", "cursor_up", show=False),
        Binding("g", "first_row", show=False),
        Binding("G", "last_row", show=False),
    ]

    _g_armed = False
    _malformed: frozenset[str] = frozenset()

    def on_mount(self) -> None:
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns(*TABLE_COLUMNS)

    def action_cursor_down(self) -> None:
        if self.row_count and self.cursor_row == self.row_count - 1:
            self.move_cursor(row=0)
        elif self.row_count:
            super().action_cursor_down()

    def action_cursor_up(self) -> None:
        if self.row_count and self.cursor_row == 0:
            self.move_cursor(row=self.row_count - 1)
        elif self.row_count:
            super().action_cursor_up()

    def action_first_row(self) -> None:
        """Jump to the first row on the second of two quick ``g`` presses."""
        if not self._g_armed:
            self._g_armed = True
            self.set_timer(CHORD_TIMEOUT, self._disarm)
            return
        self._g_armed = False
        self.move_cursor(row=0)

    def _disarm(self) -> None:
        self._g_armed = False

    def action_last_row(self) -> None:
        self.move_cursor(row=self.row_count - 1)

    def load(self, vars: list[EnvVar]) -> None:
        """Show *vars*, keeping the cursor on the same key where possible."""
        current = self.selected_key()
        self.clear()
        self._malformed = frozenset(var.key for var in vars if var.is_malformed)
        for number, var in enumerate(vars, start=1):
            # values are shown literally, never as markup
            cell = Text(var.value)
            if var.is_malformed:
                cell = Text.assemble(_MALFORMED_BADGE, cell)
            self.add_row(str(number), Text(var.key), cell, key=var.key)
        if current is not None:
            for row, var in enumerate(vars):
                if var.key == current:
                    self.move_cursor(row=row)
                    break

    def _cell(self, column: int) -> object:
        return self.get_cell_at(self.cursor_coordinate._replace(column=column))

    def selected_key(self) -> str | None:
        if self.row_count == 0:
            return None
        return str(self._cell(1))

    def selected_value(self) -> str | None:
        """Decoded value of the highlighted row; None for a malformed row or an empty table."""
        if self.row_count == 0:
            return None
        if self.selected_key() in self._malformed:
            return None
        return str(self._cell(2))

    def on_click(self, event: Click) -> None:
        if event.chain == 2 and self.row_count > 0:
            self.post_message(VarTable.RowDoubleClicked())
