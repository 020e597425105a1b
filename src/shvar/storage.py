"""Reading and rewriting ``KEY=VALUE`` files.

The file is rewritten in place: it is truncated and written again from the
document's records.  There is no temporary file and rename, so a crash in
the middle of a write can leave a partial file behind.

On write-back, lines that the shell would execute but that were not
understood, and assignments whose value cannot be decoded, are commented out
with the ``#NM: `` marker instead of being written back as they were.
"""

from __future__ import annotations

import errno
import os
from collections.abc import Iterator
from pathlib import Path

from shvar.constants import DEFAULT_FILE_MODE, MAX_FILE_SIZE, NEUTRALIZE_MARKER, SHELL_WHITESPACE
from shvar.document import ShvarDocument
from shvar.escape import MalformedEscapeError, unescape
from shvar.log import get_logger
from shvar.models import Assignment, RawLine, Record, parse_line

logger = get_logger(__name__)

_READ_CHUNK = 64 * 1024


class ShvarFileError(Exception):
    """Raised when a file cannot be opened, read or written."""

    def __init__(self, path: str, message: str, errno: int | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.errno = errno


class ShvarFileNotFoundError(ShvarFileError):
    """Raised by ``open_file`` when the file does not exist."""


def _file_error(path: str, action: str, exc: OSError) -> ShvarFileError:
    cls = ShvarFileNotFoundError if exc.errno == errno.ENOENT else ShvarFileError
    return cls(path, f"Could not {action} file '{path}': {exc.strerror}", exc.errno)


def parse_content(data: bytes) -> list[Record]:
    """Split file content into lines and parse each into a record.

    A final line without a newline is kept unless it is empty.
    """
    text = data.decode("utf-8", "surrogateescape")
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [parse_line(line) for line in lines]


def _read_fd(path: str, fd: int) -> bytes:
    chunks: list[bytes] = []
    total = 0
    try:
        while True:
            chunk = os.read(fd, _READ_CHUNK)
            if not chunk:
                break
            total += len(chunk)
            if total > MAX_FILE_SIZE:
                raise ShvarFileError(
                    path,
                    f"Could not read file '{path}': larger than {MAX_FILE_SIZE} bytes",
                    errno.EFBIG,
                )
            chunks.append(chunk)
    except OSError as exc:
        raise _file_error(path, "read", exc) from exc
    return b"".join(chunks)


def _load(path: str, create: bool) -> ShvarDocument:
    fd = None
    writable = False
    if create:
        try:
            fd = os.open(path, os.O_RDWR | os.O_CLOEXEC)
            writable = True
        except OSError:
            fd = None

    if fd is None:
        try:
            fd = os.open(path, os.O_RDONLY | os.O_CLOEXEC)
        except OSError as exc:
            if create:
                logger.debug("starting empty document", file=path, error=exc.strerror)
                return ShvarDocument(path)
            raise _file_error(path, "read", exc) from exc

    try:
        records = parse_content(_read_fd(path, fd))
    except ShvarFileError:
        os.close(fd)
        raise

    if writable:
        document = ShvarDocument(path, records, fd=fd)
    else:
        os.close(fd)
        document = ShvarDocument(path, records)
    logger.debug("opened file", file=path, lines=len(records), writable=writable)
    return document


def open_file(path: str | Path) -> ShvarDocument:
    """Read an existing file.  The returned document keeps no descriptor.

    Raises:
        ShvarFileNotFoundError: if the file does not exist.
        ShvarFileError: on any other failure, or if the file exceeds 10 MiB.
    """
    return _load(os.fspath(path), create=False)


def create_file(path: str | Path) -> ShvarDocument:
    """Open *path* for editing, or start an empty document if it cannot be opened.

    A file that can be opened read/write keeps its descriptor for a later
    ``write_file``.  Errors while reading a file that did open are still
    raised as ``ShvarFileError``.
    """
    return _load(os.fspath(path), create=True)


def _is_inert(text: str) -> bool:
    """Blank lines and comments are the only raw lines the shell ignores."""
    stripped = text.lstrip(SHELL_WHITESPACE)
    return not stripped or stripped.startswith("#")


def _decodes(text: str) -> bool:
    try:
        unescape(text)
    except MalformedEscapeError:
        return False
    return True


def neutralized_lines(document: ShvarDocument) -> list[str]:
    """Return the lines write-back would comment out, as they are now."""
    result: list[str] = []
    for record in document.records:
        if isinstance(record, RawLine):
            if not _is_inert(record.text):
                result.append(record.text)
        elif record.value is not None and not _decodes(record.value):
            result.append(f"{record.key_prefix}={record.value}")
    return result


def render_lines(document: ShvarDocument) -> Iterator[str]:
    """Yield the lines write-back produces, without newlines."""
    for record in document.records:
        if isinstance(record, RawLine):
            if _is_inert(record.text):
                yield record.text
            else:
                logger.info("neutralized line", file=document.file_name, line=record.text)
                yield NEUTRALIZE_MARKER + record.text
            continue

        assert isinstance(record, Assignment)
        if record.value is None:
            continue

        if _decodes(record.value):
            yield f"{record.key_prefix}={record.value}"
        else:
            logger.info("neutralized malformed value", file=document.file_name, key=record.key)
            yield f"{record.key}="
            yield f"{NEUTRALIZE_MARKER}{record.key_prefix}={record.value}"


def write_file(document: ShvarDocument, mode: int = DEFAULT_FILE_MODE) -> None:
    """Write *document* back to its file if it was modified.

    *mode* is only used when the file has to be created.

    Raises:
        ShvarFileError: if the file cannot be opened, truncated or written.
    """
    if not document.modified:
        return

    path = document.file_name
    if document.fd is None:
        try:
            document.attach_fd(os.open(path, os.O_WRONLY | os.O_CREAT | os.O_CLOEXEC, mode))
        except OSError as exc:
            raise _file_error(path, "open for writing", exc) from exc
    fd = document.fd
    assert fd is not None

    lines = list(render_lines(document))
    payload = "".join(line + "\n" for line in lines).encode("utf-8", "surrogateescape")

    try:
        os.ftruncate(fd, 0)
    except OSError as exc:
        raise _file_error(path, "overwrite", exc) from exc

    try:
        os.lseek(fd, 0, os.SEEK_SET)
        view = memoryview(payload)
        while view:
            written = os.write(fd, view)
            view = view[written:]
    except OSError as exc:
        raise _file_error(path, "write", exc) from exc

    document.modified = False
    logger.info("wrote file", file=path, lines=len(lines), bytes=len(payload))
