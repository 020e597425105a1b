"""In-memory view of a ``KEY=VALUE`` file.

A document keeps every line of the file as a record, in order, so that lines
it does not understand are written back untouched.  Values are looked up and
stored through the escape codec; the records themselves are never handed out
for mutation.
"""

from __future__ import annotations

import copy
import os
from collections.abc import Iterable, Iterator

from shvar.constants import INT64_MAX, INT64_MIN
from shvar.escape import MalformedEscapeError, escape, unescape
from shvar.log import get_logger
from shvar.models import Assignment, Record, check_key, parse_boolean, parse_integer

logger = get_logger(__name__)

Checkpoint = tuple[list[Record], bool]


def _assigns(record: Record, key: str) -> bool:
    return isinstance(record, Assignment) and record.key == key


class ShvarDocument:
    """Ordered records of one file plus a modified flag.

    When several assignments share a key, the last one wins.  ``modified`` is
    set by every change that alters what would be written; write-back does
    nothing while it is False.

    Documents are normally obtained from ``shvar.storage.open_file`` or
    ``create_file``.  They own the file descriptor kept for write-back, so
    use them as a context manager or call ``close``.
    """

    def __init__(
        self,
        file_name: str,
        records: Iterable[Record] = (),
        fd: int | None = None,
    ) -> None:
        self.file_name = file_name
        self.records: list[Record] = list(records)
        self.modified = False
        self._fd = fd

    def __repr__(self) -> str:
        return (
            f"ShvarDocument({self.file_name!r}, records={len(self.records)}, "
            f"modified={self.modified})"
        )

    def __enter__(self) -> ShvarDocument:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def fd(self) -> int | None:
        """Descriptor kept open for write-back, if the file was opened read/write."""
        return self._fd

    def attach_fd(self, fd: int) -> None:
        self._fd = fd

    def close(self) -> None:
        """Release the file descriptor.  Safe to call more than once."""
        fd, self._fd = self._fd, None
        if fd is not None:
            os.close(fd)

    def set_modified(self) -> None:
        """Force the next write-back even if nothing changed."""
        self.modified = True

    def checkpoint(self) -> Checkpoint:
        """Capture the records and modified flag for a later ``restore``."""
        return copy.deepcopy(self.records), self.modified

    def restore(self, state: Checkpoint) -> None:
        """Return to a state captured by ``checkpoint``."""
        records, modified = state
        self.records = copy.deepcopy(records)
        self.modified = modified

    # ------------------------------------------------------------------
    # lookup

    def _assignments(self, key: str) -> Iterator[Assignment]:
        for record in self.records:
            if isinstance(record, Assignment) and record.key == key:
                yield record

    def _find_last(self, key: str) -> Assignment | None:
        check_key(key)
        last = None
        for last in self._assignments(key):
            pass
        return last

    def _live(self) -> list[Assignment]:
        """Authoritative, non-deleted assignment of every key, in file order."""
        last: dict[str, Assignment] = {}
        for record in self.records:
            if isinstance(record, Assignment):
                last[record.key] = record
        winners = {id(record) for record in last.values() if record.value is not None}
        return [r for r in self.records if id(r) in winners]

    def keys(self) -> list[str]:
        """Keys with a value, ordered by the line that defines them."""
        return [record.key for record in self._live()]

    def entries(self) -> list[tuple[str, str]]:
        """``(key, stored text)`` for every key with a value, still encoded."""
        return [(record.key, record.value) for record in self._live() if record.value is not None]

    def __contains__(self, key: str) -> bool:
        return self.get_raw(key) is not None

    def get_raw(self, key: str) -> str | None:
        """Return the stored, still-encoded text for *key*."""
        record = self._find_last(key)
        return record.value if record else None

    def get_value(self, key: str) -> str | None:
        """Return the decoded value, keeping an empty value as ``""``.

        Returns None if the key is absent, deleted, or cannot be decoded.
        """
        text = self.get_raw(key)
        if text is None:
            return None
        try:
            return unescape(text)
        except MalformedEscapeError as exc:
            logger.debug("undecodable value", file=self.file_name, key=key, error=str(exc))
            return None

    def get(self, key: str) -> str | None:
        """Return the decoded value, or None if absent, empty or malformed.

        A malformed value is indistinguishable from a missing one here;
        write-back checks values again on its own.
        """
        return self.get_value(key) or None

    get_string = get

    def get_boolean(self, key: str, fallback: bool) -> bool:
        return parse_boolean(self.get_value(key), fallback)

    def get_integer(
        self,
        key: str,
        base: int = 10,
        min_value: int = INT64_MIN,
        max_value: int = INT64_MAX,
        fallback: int = 0,
    ) -> tuple[int, bool]:
        """Read *key* as an integer.

        Returns ``(value, True)`` on success and ``(fallback, False)`` when the
        key is missing, undecodable, not a number or out of range, so a value
        that happens to equal the fallback can still be told apart.
        """
        text = self.get_value(key)
        if text is None:
            return fallback, False
        number = parse_integer(text, base, min_value, max_value)
        if number is None:
            return fallback, False
        return number, True

    # ------------------------------------------------------------------
    # mutation

    def set(self, key: str, value: str | None) -> None:
        """Store *value* under *key*, or delete it when *value* is None.

        Duplicate assignments of *key* are collapsed into the last one.  An
        existing line keeps its position; a new key is appended at the end.
        Unlike ``set_string``, an empty string is stored as ``KEY=``.
        """
        check_key(key)
        matches = list(self._assignments(key))
        survivor = matches[-1] if matches else None

        if len(matches) > 1:
            self.records = [r for r in self.records if r is survivor or not _assigns(r, key)]
            self.modified = True

        if value is None:
            if survivor is not None and survivor.value is not None:
                survivor.value = None
                self.modified = True
            return

        encoded = escape(value)
        if survivor is None:
            self.records.append(Assignment(key_prefix=key, key=key, value=encoded))
            self.modified = True
            return

        if survivor.key_prefix != key:
            survivor.key_prefix = key
            self.modified = True
        if survivor.value != encoded:
            survivor.value = encoded
            self.modified = True

    def set_string(self, key: str, value: str | None) -> None:
        """Like ``set``, but an empty string deletes the key."""
        self.set(key, value or None)

    def set_boolean(self, key: str, value: bool) -> None:
        self.set(key, "yes" if value else "no")

    def set_integer(self, key: str, value: int) -> None:
        self.set(key, str(value))

    def unset(self, key: str) -> None:
        self.set(key, None)
