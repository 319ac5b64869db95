"""
NetworkManager keyfile (*.nmconnection) load/mutate/save.

Built on configparser with interpolation off and key case preserved, so
every section/key/value pair survives a load-save cycle. Like NetworkManager's
own reader, leading whitespace is insignificant and a repeated key keeps its
last value. Comments are not carried over by save(); the text as read is
kept in ``text`` for installing a profile unchanged.
"""

import configparser
import io
import os
from pathlib import Path
from typing import List, Tuple

from .errors import ProfileParseError

# NetworkManager refuses to load connection files readable by others.
PROFILE_MODE = 0o600


def _new_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        interpolation=None,
        delimiters=("=",),
        comment_prefixes=("#",),
        strict=False,
        default_section="\x00default",
    )
    parser.optionxform = str  # keep "addr-gen-mode", "ID" etc. as written
    return parser


def write_profile(path: Path, text: str) -> None:
    """Write keyfile *text* to *path* and restrict it to owner read/write."""
    path = Path(path)
    path.write_text(text, encoding="utf-8")
    os.chmod(path, PROFILE_MODE)


class ConnectionProfile:
    """One connection profile: ordered sections of ordered key/value pairs."""

    def __init__(self, parser: configparser.ConfigParser, source: str = "<string>", text: str = ""):
        self._parser = parser
        self.source = source
        self.text = text

    @classmethod
    def parse(cls, text: str, source: str = "<string>") -> "ConnectionProfile":
        parser = _new_parser()
        # configparser reads an indented line as a continuation of the previous value.
        lines = "\n".join(line.lstrip() for line in text.splitlines())
        try:
            parser.read_string(lines, source=source)
        except configparser.Error as exc:
            raise ProfileParseError(source, str(exc)) from exc
        return cls(parser, source, text)

    @classmethod
    def load(cls, path: Path) -> "ConnectionProfile":
        """Read and parse *path*. OSError propagates; bad syntax or encoding raises ProfileParseError."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ProfileParseError(path, str(exc)) from exc
        return cls.parse(text, source=str(path))

    def sections(self) -> List[str]:
        return self._parser.sections()

    def items(self, section: str) -> List[Tuple[str, str]]:
        return [(k, self._parser.get(section, k)) for k in self._parser.options(section)]

    def get(self, section: str, key: str) -> str:
        return self._parser.get(section, key)

    def set(self, section: str, key: str, value: str) -> None:
        self._parser.set(section, key, value)

    def replace_value(self, old: str, new: str) -> int:
        """Set every key whose value is exactly *old* to *new*, in every section.

        Values that merely contain *old* are left alone. Returns the number of
        keys changed.
        """
        changed = 0
        for section in self._parser.sections():
            for key in self._parser.options(section):
                if self._parser.get(section, key) == old:
                    self._parser.set(section, key, new)
                    changed += 1
        return changed

    def dumps(self) -> str:
        buf = io.StringIO()
        self._parser.write(buf, space_around_delimiters=False)
        return buf.getvalue()

    def save(self, path: Path) -> None:
        """Write the parsed profile to *path* and restrict it to owner read/write."""
        write_profile(path, self.dumps())
