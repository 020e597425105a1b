"""Application-wide constants."""

APP_TITLE = "shvar"

# Characters treated as blanks when parsing lines and values.
SHELL_WHITESPACE = " \t\n\r\v\f"

# Prefix of comments synthesized when a line is neutralized on write-back.
NEUTRALIZE_MARKER = "#NM: "

MAX_FILE_SIZE = 10 * 1024 * 1024
DEFAULT_FILE_MODE = 0o644

TRUE_WORDS = frozenset({"yes", "true", "t", "y", "1"})
FALSE_WORDS = frozenset({"no", "false", "f", "n", "0"})

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

TABLE_COLUMNS = ("#", "Key", "Value")

HELP_TEXT = """\
 Moving
   j, k        next / previous row
   g g         first row
   G           last row

 Changing
   i, Enter    edit the value
   o           new variable
   r           rename
   d d         remove
   u           undo
   s           review and write

 Finding
   /           filter by key or value
   Escape      clear the filter

 Other
   y           copy the value
   ?           this screen
   q           quit\
"""
