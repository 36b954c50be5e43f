"""
Settings File Codec.

Reads and writes the "changed from default" subset of a Configuration as a
line-oriented text file::

    ; comment
    BoolTest = false
    IntTest = 100

Blank lines and lines starting with ``;`` are skipped, there are no section
headers and no escaping. Untouched defaults are left out so that new
defaults shipped with a mod still take effect.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Tuple, Union

from zmu.config.options import OptionSchema, OptionType, SettingValue

if TYPE_CHECKING:
    from zmu.config.configuration import Configuration

PathLike = Union[str, Path]

LINE_PATTERN = re.compile(r"^(\w+)\s*=\s*(.+)$")
COMMENT_PREFIX = ";"
LINE_ENDING = "\r\n"


def parse_line(line: str) -> Optional[Tuple[str, str]]:
    """
    Split one line into ``(key, raw_value)``.

    Returns:
        None for blank lines, comments and lines that are not ``key = value``.
    """
    line = line.strip()
    if not line or line.startswith(COMMENT_PREFIX):
        return None
    match = LINE_PATTERN.match(line)
    if match is None:
        return None
    return match.group(1), match.group(2).strip()


def iter_pairs(lines: Iterable[str]) -> Iterator[Tuple[str, str]]:
    """Yield every ``(key, raw_value)`` pair found in ``lines``."""
    for line in lines:
        pair = parse_line(line)
        if pair is not None:
            yield pair


def parse_value(option_type: OptionType, raw: str) -> object:
    """
    Convert file text into a value for ``option_type``.

    Booleans only recognise the exact tokens ``true`` and ``false``; any other
    text is returned unchanged so that validation falls back to the default.
    Numbers that cannot be parsed become None for the same reason.
    """
    if option_type is OptionType.BOOLEAN:
        if raw == "true":
            return True
        if raw == "false":
            return False
        return raw
    if option_type.is_numeric:
        return _to_number(raw)
    return raw


def _to_number(raw: str) -> Optional[Union[int, float]]:
    try:
        return int(raw)
    except ValueError:
        pass
    try:
        return float(raw)
    except ValueError:
        return None


def format_value(value: SettingValue) -> str:
    """Render a setting value as file text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def should_persist(option: Optional[OptionSchema], value: SettingValue) -> bool:
    """A key is written when it was loaded this pass or differs from its default."""
    return option is not None and (option.was_loaded or value != option.default)


def render_lines(config: "Configuration") -> List[str]:
    """Build the ``key = value`` lines to persist for ``config``."""
    lines = []
    for key, value in config.settings_table().items():
        if should_persist(config.option(key), value):
            lines.append(f"{key} = {format_value(value)}")
    return lines


def read_settings(config: "Configuration", path: PathLike) -> bool:
    """
    Apply the settings stored at ``path`` to ``config``.

    Every ``was_loaded`` flag is cleared first. Each pair read from the file
    is converted, flagged as loaded and committed through ``config.set``.
    Unknown keys are logged as warnings and skipped.

    Returns:
        True if the file was read, False if it is missing or unreadable.
    """
    path = Path(path)
    log = config.logger
    log.debug("Loading config file %s", path)

    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return False
    except (OSError, UnicodeDecodeError) as e:
        log.error("Failed to read config file %s: %s", path, e)
        return False

    for option in config.options_table().values():
        option.was_loaded = False

    for key, raw in iter_pairs(content.splitlines()):
        option = config.option(key)
        if option is None:
            log.warn("Config: Invalid setting in %s (%s = %s)", path, key, raw)
            continue
        option.was_loaded = True
        config.set(key, parse_value(option.type, raw))

    return True


def write_settings(config: "Configuration", path: PathLike) -> bool:
    """
    Write the persistable subset of ``config`` to ``path``.

    Returns:
        True if the file was written, False if it could not be opened.
    """
    path = Path(path)
    log = config.logger
    log.debug("Saving config file %s", path)

    lines = render_lines(config)
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            for line in lines:
                f.write(line + LINE_ENDING)
    except OSError as e:
        log.error("Failed to write config file %s: %s", path, e)
        return False

    return True
