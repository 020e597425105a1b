"""Terminal editor for shell variable files."""

from collections.abc import Callable
from dataclasses import dataclass

from rich.markup import escape as escape_markup
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.reactive import reactive
from textual.widgets import Footer, Header, Input

from shvar.config import load_theme, save_theme
from shvar.constants import APP_TITLE
from shvar.document import Checkpoint
from shvar.models import Action, ActionKind, EnvVar, InvalidKeyError
from shvar.providers import ShvarFileProvider
from shvar.screens.add import AddScreen
from shvar.screens.confirm import ConfirmScreen
from shvar.screens.edit import EditScreen
from shvar.screens.help import HelpScreen
from shvar.screens.rename import RenameScreen
from shvar.screens.save_confirm import SaveConfirmScreen
from shvar.storage import ShvarFileError, neutralized_lines
from shvar.widgets.main_view import MainView
from shvar.widgets.var_table import CHORD_TIMEOUT, VarTable


@dataclass
class _Staged:
    """An applied change and the document state to go back to on undo."""

    action: Action
    before: Checkpoint


class ShvarApp(App):
    """Edit one ``KEY=VALUE`` file.

    Changes go straight into the in-memory document, which is checkpointed
    before each one so ``u`` can step back exactly, malformed lines and
    duplicate assignments included.  The file is only rewritten by ``s``.
    """

    CSS_PATH = "app.tcss"
    TITLE = APP_TITLE

    dirty: reactive[bool] = reactive(False)

    BINDINGS = [
        Binding("q", "quit_app", "Quit"),
        Binding("s", "save", "Write"),
        Binding("i", "edit_var", "Edit"),
        Binding("enter", "edit_var", show=False),
        Binding("o", "add_var", "Add"),
        Binding("r", "rename_var", "Rename"),
        Binding("d", "delete_var", "dd Delete"),
        Binding("u", "undo", "Undo"),
        Binding("y", "copy_value", "Copy"),
        Binding("/", "focus_search", "Search"),
        Binding("escape", "clear_search", show=False),
        Binding("?", "toggle_help", "Help"),
    ]

    def __init__(self, provider: ShvarFileProvider) -> None:
        super().__init__()
        self._provider = provider
        self._vars: list[EnvVar] = []
        self._query = ""
        self._staged: list[_Staged] = []
        self._d_armed = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield MainView(id="main")
        yield Footer()

    def on_mount(self) -> None:
        self._search.display = False
        theme = load_theme()
        if theme:
            self.theme = theme
        self._load_initial()

    @work
    async def _load_initial(self) -> None:
        self._refresh()
        self._table.focus()

    def watch_theme(self, theme: str) -> None:
        save_theme(theme)

    def watch_dirty(self, dirty: bool) -> None:
        self._show_status()

    @property
    def _table(self) -> VarTable:
        return self.query_one("#var-table", VarTable)

    @property
    def _search(self) -> Input:
        return self.query_one("#search", Input)

    def _show_status(self) -> None:
        pending = len(self._staged)
        status = str(self._provider.path)
        if pending:
            status += f"  {pending} unsaved change" + ("s" if pending > 1 else "")
        self.sub_title = status

    def _refresh(self) -> None:
        """Re-read the document into the table and status line."""
        self._vars = self._provider.list_vars()
        shown = [v for v in self._vars if v.matches(self._query)] if self._query else self._vars
        self._table.load(shown)
        self.dirty = bool(self._staged)
        self._show_status()

    def _stage(self, action: Action, change: Callable[[], None]) -> bool:
        """Run *change* against the document and remember how to undo it."""
        before = self._provider.document.checkpoint()
        try:
            change()
        except InvalidKeyError as exc:
            self._provider.document.restore(before)
            self.notify(escape_markup(str(exc)), severity="error", timeout=8)
            return False
        self._staged.append(_Staged(action, before))
        self._refresh()
        return True

    def _back_to_table(self) -> None:
        self._table.focus()

    # ------------------------------------------------------------------
    # editing

    def action_edit_var(self) -> None:
        """Edit the highlighted value.  A malformed entry starts out empty."""
        key = self._table.selected_key()
        if key is None:
            return
        before = self._provider.get(key) or ""

        def done(value: str | None) -> None:
            if value is not None and value != before:
                action = Action(ActionKind.SET, key, value, previous_value=before)
                if self._stage(action, lambda: self._provider.set(key, value)):
                    self.notify(f"Updated {key}", timeout=2)
            self._back_to_table()

        self.push_screen(EditScreen(key=key, current_value=before), done)

    def action_add_var(self) -> None:
        def done(var: EnvVar | None) -> None:
            if var is not None:
                action = Action(ActionKind.SET, var.key, var.value)
                if self._stage(action, lambda: self._provider.set(var.key, var.value)):
                    self.notify(f"Added {var.key}", timeout=2)
            self._back_to_table()

        self.push_screen(AddScreen(existing_keys={v.key for v in self._vars}), done)

    def action_rename_var(self) -> None:
        old = self._table.selected_key()
        if old is None:
            return
        value = self._provider.get(old)
        if value is None:
            self.notify(f"{old} has no readable value to move", severity="error", timeout=4)
            return

        def done(new: str | None) -> None:
            if new is not None:

                def rename() -> None:
                    self._provider.delete(old)
                    self._provider.set(new, value)

                action = Action(ActionKind.RENAME, new, value, old_key=old)
                if self._stage(action, rename):
                    self.notify(f"Renamed {old} to {new}", timeout=2)
            self._back_to_table()

        existing = {v.key for v in self._vars}
        self.push_screen(RenameScreen(current_key=old, existing_keys=existing), done)

    def action_delete_var(self) -> None:
        """``d d``: ask before deleting the highlighted variable."""
        if not self._d_armed:
            self._d_armed = True
            self.set_timer(CHORD_TIMEOUT, self._disarm_delete)
            return
        self._d_armed = False
        key = self._table.selected_key()
        if key is None:
            return

        def done(confirmed: bool | None) -> None:
            if confirmed:
                action = Action(ActionKind.DELETE, key, self._provider.get(key) or "")
                if self._stage(action, lambda: self._provider.delete(key)):
                    self.notify(f"Deleted {key}", timeout=2)
            self._back_to_table()

        line = f"{key}={self._provider.document.get_raw(key)}"
        self.push_screen(ConfirmScreen(f"Delete  {key}?", detail=line), done)

    def _disarm_delete(self) -> None:
        self._d_armed = False

    def action_undo(self) -> None:
        if not self._staged:
            self.notify("Nothing to undo", timeout=2)
            return
        staged = self._staged.pop()
        self._provider.document.restore(staged.before)
        self._refresh()
        self.notify(f"Undid change to {staged.action.key}", timeout=2)

    # ------------------------------------------------------------------
    # saving and quitting

    def action_save(self) -> None:
        """Show what will change on disk, then rewrite the file if confirmed."""
        if not self._provider.modified:
            self.notify("No changes to save", timeout=2)
            return

        def done(confirmed: bool | None) -> None:
            if confirmed:
                self._write()
            self._back_to_table()

        screen = SaveConfirmScreen(
            str(self._provider.path),
            [staged.action for staged in self._staged],
            neutralized_lines(self._provider.document),
        )
        self.push_screen(screen, done)

    def _write(self) -> None:
        try:
            self._provider.save()
        except ShvarFileError as exc:
            self.notify(escape_markup(f"Write failed: {exc}"), severity="error", timeout=8)
            return
        self._staged.clear()
        self._refresh()
        self.notify(escape_markup(f"Wrote {self._provider.path}"), timeout=2)

    def action_quit_app(self) -> None:
        if not self._provider.modified:
            self.exit()
            return

        def done(confirmed: bool | None) -> None:
            if confirmed:
                self.exit()
            else:
                self._back_to_table()

        self.push_screen(ConfirmScreen("Discard unsaved changes and quit?"), done)

    # ------------------------------------------------------------------
    # search, clipboard, help

    def action_focus_search(self) -> None:
        self._search.display = True
        self._search.focus()

    def action_clear_search(self) -> None:
        self._search.value = ""
        self._search.display = False
        self._back_to_table()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search":
            self._query = event.value
            self._refresh()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search":
            self._back_to_table()

    def action_copy_value(self) -> None:
        value = self._table.selected_value()
        if value is None:
            self.notify("Nothing to copy", timeout=2)
            return
        self.copy_to_clipboard(value)
        self.notify("Copied value to clipboard", timeout=2)

    def action_toggle_help(self) -> None:
        self.push_screen(HelpScreen(str(self._provider.path)))

    def on_var_table_row_double_clicked(self, event: VarTable.RowDoubleClicked) -> None:
        event.stop()
        self.action_edit_var()

    def on_unmount(self) -> None:
        self._provider.close()


def run(path: str, mode: int) -> None:
    ShvarApp(ShvarFileProvider(path, mode)).run()
