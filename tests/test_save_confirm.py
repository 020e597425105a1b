"""Tests for the save-confirm diff.

Changes are staged in memory; pressing 's' shows what will happen to the
file, including lines that will be commented out, before anything is
written.
"""

from pathlib import Path
from typing import cast

from shvar.app import ShvarApp
from shvar.models import Action, ActionKind
from shvar.providers import ShvarFileProvider
from shvar.screens.save_confirm import SaveConfirmScreen


def _screen(actions: list[Action], neutralized: list[str] | None = None) -> SaveConfirmScreen:
    return SaveConfirmScreen("ifcfg-eth0", actions, neutralized or [])


class TestDiffLines:
    def test_each_kind_has_its_marker(self):
        """
        Given one action of each kind
        When the diff is built
        Then added, edited, removed and renamed lines use + * - ~
        """
        lines = _screen(
            [
                Action(kind=ActionKind.SET, key="NEW", value="1"),
                Action(kind=ActionKind.SET, key="MTU", value="9000", previous_value="1500"),
                Action(kind=ActionKind.DELETE, key="OLD", value="x"),
                Action(kind=ActionKind.RENAME, key="B", value="v", old_key="A"),
            ]
        ).diff_lines()

        assert lines == [
            ("green", "+  NEW"),
            ("blue", "*  MTU"),
            ("red", "-  OLD"),
            ("yellow", "~  A  →  B"),
        ]

    def test_neutralized_lines_are_listed_verbatim(self):
        """
        Given a line that will be commented out and contains brackets
        When the diff is built
        Then it is listed unchanged after a ! marker
        """
        lines = _screen([], ["echo [x]"]).diff_lines()
        assert lines == [("magenta", "!  echo [x]")]

    def test_no_changes_placeholder(self):
        """
        Given no actions and nothing to neutralize
        When the diff is built
        Then a placeholder line is shown
        """
        assert _screen([]).diff_lines() == [("dim", "(no changes)")]


class TestHasChange:
    def test_rename_matches_both_keys(self):
        """
        Given a rename from A to B
        When has_change is asked about either key
        Then it returns True, and False for other keys
        """
        screen = _screen([Action(kind=ActionKind.RENAME, key="B", value="v", old_key="A")])
        assert screen.has_change("A") is True
        assert screen.has_change("B") is True
        assert screen.has_change("C") is False


async def test_save_neutralizes_command_lines(ifcfg):
    """
    Given a file with an export line and a pending change
    When the user saves
    Then the export line is shown in the diff and commented out on disk
    """
    path: Path = ifcfg("export X=1\nA=1\n")
    async with ShvarApp(ShvarFileProvider(path)).run_test(headless=True) as pilot:
        await pilot.app.workers.wait_for_complete()
        await pilot.pause()
        app = cast(ShvarApp, pilot.app)

        await pilot.press("d")
        await pilot.press("d")
        await pilot.press("y")
        await pilot.pause()
        await pilot.press("s")
        screen = app.screen
        assert isinstance(screen, SaveConfirmScreen)
        assert ("magenta", "!  export X=1") in screen.diff_lines()
        await pilot.press("y")
        await pilot.pause()

    assert path.read_text() == "#NM: export X=1\n"
