"""String-keyed configuration sources."""

from pathlib import Path
from typing import Protocol

from shvar.constants import DEFAULT_FILE_MODE, INT64_MAX, INT64_MIN
from shvar.document import ShvarDocument
from shvar.escape import MalformedEscapeError, unescape
from shvar.models import EnvVar
from shvar.storage import create_file, write_file


def env_vars(document: ShvarDocument) -> list[EnvVar]:
    """Return every variable of *document* with a value, in file order.

    Values that cannot be decoded are listed with their stored text and
    ``is_malformed`` set.
    """
    result: list[EnvVar] = []
    for key, text in document.entries():
        try:
            result.append(EnvVar(key=key, value=unescape(text)))
        except MalformedEscapeError:
            result.append(EnvVar(key=key, value=text, is_malformed=True))
    return result


class ConfigSource(Protocol):
    """Protocol that every key/value backend must satisfy."""

    def list_vars(self) -> list[EnvVar]: ...

    def get(self, key: str) -> str | None:
        """Return the current value for a key, or None if absent."""
        ...

    def get_boolean(self, key: str, fallback: bool) -> bool: ...

    def get_integer(
        self,
        key: str,
        base: int = 10,
        min_value: int = INT64_MIN,
        max_value: int = INT64_MAX,
        fallback: int = 0,
    ) -> tuple[int, bool]: ...

    def set(self, key: str, value: str) -> None:
        """Insert or update a variable."""
        ...

    def set_boolean(self, key: str, value: bool) -> None: ...

    def set_integer(self, key: str, value: int) -> None: ...

    def delete(self, key: str) -> None:
        """Remove a variable by key. No-op if the key does not exist."""
        ...

    def save(self) -> None:
        """Persist pending changes."""
        ...

    def close(self) -> None: ...


class ShvarFileProvider:
    """Configuration source backed by a shell variable file.

    Changes stay in memory until ``save`` rewrites the file.  A missing file
    is treated as empty and created on the first save with *mode*.
    """

    def __init__(self, path: str | Path, mode: int = DEFAULT_FILE_MODE) -> None:
        self.path = Path(path)
        self._mode = mode
        self._document: ShvarDocument = create_file(self.path)

    @property
    def document(self) -> ShvarDocument:
        return self._document

    @property
    def modified(self) -> bool:
        return self._document.modified

    def list_vars(self) -> list[EnvVar]:
        return env_vars(self._document)

    def get(self, key: str) -> str | None:
        return self._document.get_value(key)

    def get_boolean(self, key: str, fallback: bool) -> bool:
        return self._document.get_boolean(key, fallback)

    def get_integer(
        self,
        key: str,
        base: int = 10,
        min_value: int = INT64_MIN,
        max_value: int = INT64_MAX,
        fallback: int = 0,
    ) -> tuple[int, bool]:
        return self._document.get_integer(key, base, min_value, max_value, fallback)

    def set(self, key: str, value: str) -> None:
        """Store a value; an empty string is kept as ``KEY=``."""
        self._document.set(key, value)

    def set_boolean(self, key: str, value: bool) -> None:
        """Store ``yes`` or ``no``."""
        self._document.set_boolean(key, value)

    def set_integer(self, key: str, value: int) -> None:
        self._document.set_integer(key, value)

    def delete(self, key: str) -> None:
        self._document.unset(key)

    def save(self) -> None:
        write_file(self._document, self._mode)

    def close(self) -> None:
        self._document.close()
