"""User settings stored as JSON under ~/.config/shvar.

Schema on disk (~/.config/shvar/config.json):

    {
        "file_mode": "0600",
        "log_level": "INFO",
        "log_file": "~/.cache/shvar/shvar.log"
    }

Every field is optional.  Keys prefixed with "_" are reserved (e.g.
"_comment") and are stripped on load.
"""

import json
from pathlib import Path

from pydantic import BaseModel, ValidationError, field_validator

from shvar.constants import DEFAULT_FILE_MODE

CONFIG_PATH = Path("~/.config/shvar/config.json").expanduser()

_README_PATH = Path("~/.config/shvar/README.md").expanduser()

_README_CONTENT = """\
# shvar configuration

Edit `config.json` in this directory to change how shvar writes files.

## Schema

```json
{
    "file_mode": "0644",
    "log_level": "WARNING",
    "log_file": null
}
```

- `file_mode`: permissions (octal) for files shvar has to create.
- `log_level`: DEBUG, INFO, WARNING or ERROR.
- `log_file`: write logs to this file instead of stderr.

Keys prefixed with `_` (e.g. `_comment`) are ignored by shvar.
"""


class Settings(BaseModel):
    """User settings shared by the command line and the editor."""

    file_mode: int = DEFAULT_FILE_MODE
    log_level: str = "WARNING"
    log_file: str | None = None

    @field_validator("file_mode", mode="before")
    @classmethod
    def _parse_octal(cls, value: object) -> object:
        """Accept modes written as octal strings, e.g. ``"0600"``."""
        if isinstance(value, str):
            try:
                return int(value, 8)
            except ValueError as exc:
                raise ValueError(f"file_mode must be an octal string, got {value!r}") from exc
        return value

    @field_validator("file_mode")
    @classmethod
    def _check_mode(cls, value: int) -> int:
        if not 0 <= value <= 0o7777:
            raise ValueError(f"file_mode {value:o} is out of range")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level


class ConfigError(Exception):
    """The settings file is present but unusable."""


def _read_object(path: Path) -> dict:
    try:
        raw = json.loads(path.read_text() or "{}")
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path.name} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError(f"{path.name} must hold a JSON object, not {type(raw).__name__}")
    return raw


def load_settings() -> Settings:
    """Return the validated settings, or the defaults on first run.

    A missing file is created empty, next to a README describing the keys.
    """
    if not CONFIG_PATH.exists():
        _bootstrap()
        return Settings()

    # "_comment" and friends are for humans only.
    fields = {k: v for k, v in _read_object(CONFIG_PATH).items() if not k.startswith("_")}
    try:
        return Settings.model_validate(fields)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config: {exc}") from exc


def _write_object(path: Path, payload: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n")


def _bootstrap() -> None:
    _write_object(CONFIG_PATH, {})
    if not _README_PATH.exists():
        _README_PATH.write_text(_README_CONTENT)


THEME_CONFIG_PATH = Path("~/.config/shvar/theme.json").expanduser()


def load_theme() -> str | None:
    """Name of the last theme picked in the editor, if any."""
    if not THEME_CONFIG_PATH.exists():
        return None
    try:
        theme = _read_object(THEME_CONFIG_PATH).get("theme")
    except ConfigError:
        return None
    return theme if isinstance(theme, str) else None


def save_theme(theme: str) -> None:
    _write_object(THEME_CONFIG_PATH, {"theme": theme})
