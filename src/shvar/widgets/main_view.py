"""Main view: search bar stacked above the variable table."""

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input

from shvar.widgets.var_table import VarTable


class MainView(Vertical):
    """Composes the search input and the variable table into a single panel."""

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Search keys and values…", id="search")
        yield VarTable(id="var-table")
