"""Parse the timestamp embedded in a backup file name.

Backup files are named ``<prefix><date><anything>``, e.g.
``db_dump_20230105.sql.gz`` with prefix ``db_dump_`` and date format
``yyyyMMdd``. The date occupies exactly ``DatePattern.width`` characters
right after the prefix.

Two pattern styles are accepted:

* date-pattern letters (``yyyy``/``uuuu``, ``yy``/``uu``, ``MM``, ``dd``,
  ``HH``, ``mm``, ``ss``) with non-letter characters and single-quoted text
  taken literally, e.g. ``yyyy-MM-dd_HHmm`` or ``yyyyMMdd'T'HHmm``;
* plain :func:`~datetime.datetime.strftime` directives, e.g. ``%Y%m%d``.
"""

from __future__ import annotations

import re
from datetime import datetime

from backup_rotate.core.exceptions import ConfigError, InvalidDateFormat

_LETTER_TOKENS: dict[str, str] = {
    "yyyy": "%Y",
    "uuuu": "%Y",
    "yy": "%y",
    "uu": "%y",
    "MM": "%m",
    "dd": "%d",
    "HH": "%H",
    "mm": "%M",
    "ss": "%S",
}

_QUOTED_RE = re.compile(r"'[^']*'")

# Used to measure how many characters a pattern renders to.
_REFERENCE = datetime(2000, 12, 31, 23, 59, 59)


def _letters_to_strftime(pattern: str) -> str:
    """Translate a letter pattern (``yyyyMMdd``) into a strftime format.

    Text inside single quotes is literal (``yyyy-MM-dd'T'HHmm``) and ``''``
    stands for one quote character.
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "'":
            if pattern.startswith("''", i):
                parts.append("'")
                i += 2
                continue
            literal: list[str] = []
            i += 1
            while True:
                if i >= len(pattern):
                    raise ConfigError(f"Unterminated quote in date_format '{pattern}'")
                if pattern.startswith("''", i):
                    literal.append("'")
                    i += 2
                elif pattern[i] == "'":
                    i += 1
                    break
                else:
                    literal.append(pattern[i])
                    i += 1
            parts.append("".join(literal).replace("%", "%%"))
        elif char.isalpha():
            j = i
            while j < len(pattern) and pattern[j] == char:
                j += 1
            token = pattern[i:j]
            if token not in _LETTER_TOKENS:
                raise ConfigError(
                    f"Unsupported token '{token}' in date_format '{pattern}' "
                    f"(supported: {', '.join(_LETTER_TOKENS)})"
                )
            parts.append(_LETTER_TOKENS[token])
            i = j
        else:
            parts.append(char)
            i += 1
    return "".join(parts)


class DatePattern:
    """A fixed-width date format used to read and write backup timestamps."""

    def __init__(self, pattern: str) -> None:
        if not pattern:
            raise ConfigError("date_format must not be empty")
        self.pattern = pattern
        if "%" in _QUOTED_RE.sub("", pattern):
            self.strftime_format = pattern
        else:
            self.strftime_format = _letters_to_strftime(pattern)
        try:
            self.width = len(_REFERENCE.strftime(self.strftime_format))
        except ValueError as exc:
            raise ConfigError(f"Invalid date_format '{pattern}': {exc}") from exc

    def __repr__(self) -> str:
        return f"DatePattern({self.pattern!r})"

    def format(self, timestamp: datetime) -> str:
        return timestamp.strftime(self.strftime_format)

    def parse(self, text: str) -> datetime:
        """Parse ``text`` strictly: it must render back to itself."""
        if len(text) != self.width:
            raise InvalidDateFormat(
                f"'{text}' does not match date_format '{self.pattern}' "
                f"(expected {self.width} characters)"
            )
        try:
            parsed = datetime.strptime(text, self.strftime_format)
        except ValueError as exc:
            raise InvalidDateFormat(
                f"'{text}' does not match date_format '{self.pattern}'; "
                f"check date_format in your config"
            ) from exc
        if self.format(parsed) != text:
            raise InvalidDateFormat(
                f"'{text}' does not match date_format '{self.pattern}'; "
                f"check date_format in your config"
            )
        return parsed


def parse_date(filename: str, prefix: str, pattern: DatePattern) -> datetime:
    """Return the timestamp that follows ``prefix`` in ``filename``.

    Raises:
        InvalidDateFormat: If the characters after the prefix are not a date
            in ``pattern``. This points at a wrong ``date_format`` setting and
            is never treated as a per-file skip.
    """
    start = len(prefix)
    return pattern.parse(filename[start:start + pattern.width])
