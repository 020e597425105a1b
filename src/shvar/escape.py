"""Shell quoting for values stored in ``KEY=VALUE`` files.

Only the subset of bash quoting needed to store opaque strings is supported:
plain words, backslash escapes, ``'single'``, ``"double"`` and ANSI-C
``$'...'`` quoting.  Anything that would make the shell expand or execute
something is rejected.

Values are ``str``.  File content that is not valid UTF-8 arrives as
surrogate escapes (PEP 383), so the codec works on the underlying bytes and
hands them back unchanged.
"""

from shvar.constants import SHELL_WHITESPACE

_BACKSLASH = ord("\\")
_SQUOTE = ord("'")
_DQUOTE = ord('"')
_DOLLAR = ord("$")
_SEMICOLON = ord(";")
_HASH = ord("#")

_WHITESPACE = frozenset(SHELL_WHITESPACE.encode())
_REQUIRES_ESCAPE = frozenset(b'"\\$`')
_REQUIRES_ESCAPE_LEGACY = frozenset(b"\"\\'$`~")
_REQUIRES_QUOTES = frozenset(b" '~\t|&;()<>")
_METACHARACTERS = frozenset(b"|&()<>")
_OCTAL_DIGITS = frozenset(b"01234567")
_HEX_DIGITS = frozenset(b"0123456789abcdefABCDEF")

_ANSI_C_ENCODE = {
    0x08: b"\\b",
    0x0C: b"\\f",
    0x0A: b"\\n",
    0x0D: b"\\r",
    0x09: b"\\t",
    0x0B: b"\\v",
    _BACKSLASH: b"\\\\",
    _DQUOTE: b'\\"',
    _SQUOTE: b"\\'",
}

_ANSI_C_DECODE = {
    ord("a"): 0x07,
    ord("b"): 0x08,
    ord("e"): 0x1B,
    ord("E"): 0x1B,
    ord("f"): 0x0C,
    ord("n"): 0x0A,
    ord("r"): 0x0D,
    ord("t"): 0x09,
    ord("v"): 0x0B,
    ord("?"): ord("?"),
    _DQUOTE: _DQUOTE,
    _BACKSLASH: _BACKSLASH,
    _SQUOTE: _SQUOTE,
}

# escape letter -> maximum number of hex digits
_HEX_ESCAPES = {ord("x"): 2, ord("u"): 4, ord("U"): 8}


class MalformedEscapeError(ValueError):
    """Raised when a stored value is not valid in the supported shell subset."""


def _to_bytes(text: str, error: type[ValueError] = ValueError) -> bytes:
    try:
        return text.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError as exc:
        # only U+DC80..U+DCFF stand for raw bytes
        code = ord(text[exc.start])
        raise error(f"lone surrogate U+{code:04X} at index {exc.start} cannot be stored") from exc


def _from_bytes(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def escape(value: str) -> str:
    """Return the narrowest shell representation of *value*.

    Plain text is returned as is.  Text containing shell-special characters
    is double quoted.  Text containing control characters uses ANSI-C
    quoting, which is also how newlines are expressed since line
    continuation is not supported.

    Raises:
        ValueError: if *value* holds a surrogate that does not stand for a
            raw byte, i.e. one outside U+DC80..U+DCFF.
    """
    raw = _to_bytes(value)
    mangle = 0
    requires_quotes = False

    for ch in raw:
        if ch in _REQUIRES_ESCAPE:
            mangle += 1
        elif ch in _REQUIRES_QUOTES:
            requires_quotes = True
        elif ch < 0x20:
            return _escape_ansi_c(raw)

    if not mangle and not requires_quotes:
        return value

    out = bytearray(b'"')
    for ch in raw:
        if ch in _REQUIRES_ESCAPE:
            out.append(_BACKSLASH)
        out.append(ch)
    out.append(_DQUOTE)
    return _from_bytes(bytes(out))


def _escape_ansi_c(raw: bytes) -> str:
    out = bytearray(b"$'")
    for ch in raw:
        special = _ANSI_C_ENCODE.get(ch)
        if special is not None:
            out += special
        elif ch < 0x20 or ch >= 0x7F:
            out += b"\\%03o" % ch
        else:
            out.append(ch)
    out.append(_SQUOTE)
    return out.decode("ascii")


def looks_like_legacy_escaped(text: str) -> bool:
    """Return True if *text* has the exact shape older writers produced.

    Older versions double-quoted every value and put a backslash before each
    of ``" \\ ' $ ` ~``.  For such values a backslash before ``'`` or ``~``
    inside double quotes was meant to be dropped, unlike in bash.
    """
    value = _to_bytes(text)
    if not value.startswith(b'"'):
        return False

    k = 1
    while k < len(value):
        ch = value[k]
        if ch not in _REQUIRES_ESCAPE_LEGACY:
            k += 1
            continue
        if ch == _DQUOTE:
            return k + 1 == len(value)
        if ch != _BACKSLASH:
            return False
        k += 1
        if k >= len(value) or value[k] not in _REQUIRES_ESCAPE_LEGACY:
            return False
        k += 1
    return False


def unescape(text: str) -> str:
    """Decode the text following ``KEY=`` into the value it stands for.

    Unquoted whitespace or ``;`` ends the value, but only if the rest of the
    line is empty or a ``#`` comment.

    Raises:
        MalformedEscapeError: on unterminated quotes, a trailing backslash,
            shell metacharacters, expansions or trailing garbage.
    """
    value = _to_bytes(text, MalformedEscapeError)
    out = bytearray()
    i = 0

    while i < len(value):
        ch = value[i]

        if ch in _WHITESPACE or ch == _SEMICOLON:
            _check_trailer(value, i)
            break

        if ch == _BACKSLASH:
            i += 1
            if i >= len(value):
                raise MalformedEscapeError(
                    "trailing backslash (line continuation is not supported)"
                )
            out.append(value[i])
            i += 1
        elif ch == _SQUOTE:
            end = value.find(b"'", i + 1)
            if end < 0:
                raise MalformedEscapeError("unterminated single quote")
            out += value[i + 1 : end]
            i = end + 1
        elif ch == _DQUOTE:
            i = _read_double_quoted(text, value, i + 1, out)
        elif ch == _DOLLAR and value[i + 1 : i + 2] == b"'":
            i = _read_ansi_c(value, i + 2, out)
        elif ch in _METACHARACTERS:
            raise MalformedEscapeError(f"unquoted shell metacharacter {chr(ch)!r}")
        else:
            out.append(ch)
            i += 1

    return _from_bytes(bytes(out))


def _check_trailer(value: bytes, i: int) -> None:
    """Allow ``FOO=a``, ``FOO=a;`` or ``FOO=a ; # comment`` but not ``FOO=a ls``."""
    has_semicolon = value[i] == _SEMICOLON
    j = i + 1
    while j < len(value):
        ch = value[j]
        if ch in _WHITESPACE:
            j += 1
        elif ch == _SEMICOLON and not has_semicolon:
            has_semicolon = True
            j += 1
        else:
            break
    if j < len(value) and value[j] != _HASH:
        raise MalformedEscapeError("unexpected text after value")


def _read_double_quoted(text: str, value: bytes, i: int, out: bytearray) -> int:
    """Decode a double-quoted run starting after the opening quote.

    Returns the index after the closing quote.
    """
    legacy: bool | None = None

    while True:
        if i >= len(value):
            raise MalformedEscapeError("unterminated double quote")
        ch = value[i]
        if ch == _DQUOTE:
            return i + 1
        if ch in (ord("`"), _DOLLAR):
            raise MalformedEscapeError("shell expansion inside double quotes is not supported")
        if ch == _BACKSLASH:
            i += 1
            if i >= len(value):
                raise MalformedEscapeError("unterminated double quote")
            ch = value[i]
            if ch in _REQUIRES_ESCAPE:
                pass
            elif ch in (_SQUOTE, ord("~")):
                if legacy is None:
                    legacy = looks_like_legacy_escaped(text)
                if not legacy:
                    out.append(_BACKSLASH)
            else:
                out.append(_BACKSLASH)
        out.append(ch)
        i += 1


def _take_digits(value: bytes, start: int, allowed: frozenset[int], limit: int) -> bytes:
    end = start
    while end < len(value) and end - start < limit and value[end] in allowed:
        end += 1
    return value[start:end]


def _read_ansi_c(value: bytes, i: int, out: bytearray) -> int:
    """Decode a ``$'...'`` run starting after the opening quote.

    Returns the index after the closing quote.
    """
    while True:
        if i >= len(value):
            raise MalformedEscapeError("unterminated ANSI-C quote")
        ch = value[i]
        if ch == _SQUOTE:
            return i + 1
        if ch != _BACKSLASH:
            out.append(ch)
            i += 1
            continue

        i += 1
        if i >= len(value):
            raise MalformedEscapeError("unterminated ANSI-C quote")
        ch = value[i]

        simple = _ANSI_C_DECODE.get(ch)
        if simple is not None:
            out.append(simple)
            i += 1
        elif ch in _OCTAL_DIGITS:
            digits = _take_digits(value, i, _OCTAL_DIGITS, 3)
            # like bash, too large numbers are cut off: $'\772' is 0xfa
            out.append(int(digits, 8) & 0xFF)
            i += len(digits)
        elif ch in _HEX_ESCAPES:
            digits = _take_digits(value, i + 1, _HEX_DIGITS, _HEX_ESCAPES[ch])
            if not digits:
                out += bytes((_BACKSLASH, ch))
                i += 1
                continue
            code = int(digits, 16)
            i += 1 + len(digits)
            if ch == ord("x"):
                out.append(code)
            elif code > 0x10FFFF:
                raise MalformedEscapeError(f"invalid code point U+{code:X}")
            else:
                out += chr(code).encode("utf-8", "surrogatepass")
        else:
            out += bytes((_BACKSLASH, ch))
            i += 1
