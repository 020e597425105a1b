"""Domain models."""

import re
import string
from collections.abc import Collection
from dataclasses import dataclass
from enum import Enum, auto

from shvar.constants import FALSE_WORDS, INT64_MAX, INT64_MIN, SHELL_WHITESPACE, TRUE_WORDS

_NAME_START = frozenset(string.ascii_letters + "_")
_NAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")
_DIGITS_RE = re.compile(r"[0-9A-Za-z]+")


class InvalidKeyError(ValueError):
    """Raised when a caller passes a key that is not a shell identifier."""


@dataclass
class RawLine:
    """A line that is not an assignment: blank, comment, or not understood.

    Kept exactly as read.
    """

    text: str


@dataclass
class Assignment:
    """A ``KEY=value`` line.

    ``key_prefix`` is the key including any leading whitespace of the
    original line.  ``value`` is the still-encoded text after ``=``; None
    marks an entry that was deleted but whose slot is kept until write-back.
    """

    key_prefix: str
    key: str
    value: str | None


Record = RawLine | Assignment


def is_shell_name(key: str) -> bool:
    """Return True if *key* is a valid shell variable name."""
    return bool(key) and key[0] in _NAME_START and all(ch in _NAME_CHARS for ch in key[1:])


def check_key(key: str) -> None:
    if not is_shell_name(key):
        raise InvalidKeyError(f"{key!r} is not a valid shell variable name")


def key_problem(key: str, taken: Collection[str]) -> str | None:
    """Say why *key* cannot name a new variable, or return None if it can."""
    if not key:
        return "Key cannot be blank"
    if not is_shell_name(key):
        return f"'{key}' is not a valid shell variable name"
    if key in taken:
        return f"'{key}' is already set in this file"
    return None


def parse_line(line: str) -> Record:
    """Parse one physical line (without its newline) into a record.

    Only one attempt is made, from the first non-blank character, so
    ``123 FOO=bar`` stays a raw line.
    """
    start = len(line) - len(line.lstrip(SHELL_WHITESPACE))
    if start < len(line) and line[start] in _NAME_START:
        for end in range(start + 1, len(line)):
            ch = line[end]
            if ch == "=":
                return Assignment(key_prefix=line[:end], key=line[start:end], value=line[end + 1 :])
            if ch not in _NAME_CHARS:
                break
    return RawLine(text=line)


def parse_boolean(value: str | None, fallback: bool) -> bool:
    """Map yes/true/t/y/1 and no/false/f/n/0 (any case) to a bool, else *fallback*."""
    if value is None:
        return fallback
    word = value.lower()
    if word in TRUE_WORDS:
        return True
    if word in FALSE_WORDS:
        return False
    return fallback


def parse_integer(
    text: str,
    base: int = 10,
    min_value: int = INT64_MIN,
    max_value: int = INT64_MAX,
) -> int | None:
    """Parse *text* the way ``strtoll`` would, rejecting trailing garbage.

    Surrounding whitespace is ignored.  Base 0 picks hex for ``0x`` and octal
    for a leading ``0``; base 16 also accepts the ``0x`` prefix.  Returns None
    if the text is not a number or the number is outside
    ``[min_value, max_value]``.
    """
    digits = text.strip(SHELL_WHITESPACE)
    negative = digits[:1] == "-"
    if digits[:1] in ("+", "-"):
        digits = digits[1:]

    if base in (0, 16) and digits[:2].lower() == "0x" and len(digits) > 2:
        digits = digits[2:]
        base = 16
    elif base == 0:
        base = 8 if len(digits) > 1 and digits[0] == "0" else 10

    if not _DIGITS_RE.fullmatch(digits):
        return None
    try:
        number = int(digits, base)
    except ValueError:
        return None

    if negative:
        number = -number
    if not min_value <= number <= max_value:
        return None
    return number


@dataclass
class EnvVar:
    """A variable as shown to a user: its key and decoded value.

    ``value`` holds the stored text when ``is_malformed`` is set, since the
    value could not be decoded.
    """

    key: str
    value: str
    is_malformed: bool = False

    def matches(self, query: str) -> bool:
        """Case-insensitive substring search over key and value."""
        q = query.lower()
        return q in self.key.lower() or q in self.value.lower()


class ActionKind(Enum):
    SET = auto()
    DELETE = auto()
    RENAME = auto()


@dataclass
class Action:
    """One change made in the editor since the last write.

    Listed in the write confirmation.  A SET with ``previous_value`` None
    added the key; RENAME keeps the former name in ``old_key``.
    """

    kind: ActionKind
    key: str
    value: str
    previous_value: str | None = None
    old_key: str | None = None
