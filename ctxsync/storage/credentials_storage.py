import configparser
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from ctxsync.exceptions import (
    ConfigIOError,
    ConfigNotFoundError,
    ConfigParseError,
    UnknownProfileError,
)
from ctxsync.utils.utils import atomic_write, get_credentials_path

logger = logging.getLogger(__name__)

DEFAULT_SECTION = "default"
KEY_FIELDS = ("aws_access_key_id", "aws_secret_access_key")
SECTION_RE = re.compile(r"^\s*\[([^\]]+)\]\s*$")
COMMENT_PREFIXES = ("#", ";")


class CredentialsStorage:
    """AWS shared credentials file with the [default] section as active profile.

    The active profile is not stored by name: [default] holds a copy of the
    selected profile's keys, which is what the AWS tooling reads.

    Only the [default] block of the file is ever rewritten. Every other line,
    comments included, is written back as it was read.
    """

    def __init__(self, path: Path = None):
        """Initialize an empty credentials file bound to path"""
        self.path = Path(path) if path else get_credentials_path()
        self._config = self._new_parser()
        self._raw = ""

    @staticmethod
    def _new_parser() -> configparser.ConfigParser:
        # no interpolation (secrets may contain '%') and no implicit DEFAULT section
        parser = configparser.ConfigParser(interpolation=None, default_section="__ctxsync_none__")
        parser.optionxform = str
        return parser

    @classmethod
    def load(cls, path: Path = None) -> "CredentialsStorage":
        """Read and parse the credentials file"""
        storage = cls(path)
        storage._read_data()
        return storage

    def _read_data(self):
        try:
            raw = self.path.read_text()
        except FileNotFoundError as e:
            raise ConfigNotFoundError(self.path) from e
        except OSError as e:
            raise ConfigIOError(self.path, e.strerror or str(e)) from e

        parser = self._new_parser()
        try:
            parser.read_string(raw, source=str(self.path))
        except configparser.Error as e:
            raise ConfigParseError(f"cannot parse '{self.path}': {e}") from e
        self._config = parser
        self._raw = raw
        logger.debug("loaded %d profiles from %s", len(self.list_profile_names()), self.path)

    def _default_block(self) -> Tuple[int, int]:
        """Line range [start, end) of the [default] block, (-1, -1) if absent.

        Comment and blank lines directly before the next section header belong
        to that section, not to [default].
        """
        lines = self._raw.splitlines(keepends=True)
        start = -1
        for i, line in enumerate(lines):
            match = SECTION_RE.match(line)
            if match is None:
                continue
            if start >= 0:
                end = i
                while end > start + 1 and _is_blank_or_comment(lines[end - 1]):
                    end -= 1
                return start, end
            if match.group(1).strip() == DEFAULT_SECTION:
                start = i
        if start < 0:
            return -1, -1
        return start, len(lines)

    def _render(self) -> str:
        """Return the raw text with the [default] block replaced by the parsed one"""
        lines = self._raw.splitlines(keepends=True)
        block = []
        if self._config.has_section(DEFAULT_SECTION):
            block.append(f"[{DEFAULT_SECTION}]\n")
            for key, value in self._config[DEFAULT_SECTION].items():
                value = str(value).replace("\n", "\n\t")
                block.append(f"{key} = {value}\n")

        start, end = self._default_block()
        if start >= 0:
            if block and end < len(lines) and not _is_blank_or_comment(lines[end]):
                block.append("\n")
            lines[start:end] = block
        elif block:
            if lines and not lines[-1].endswith("\n"):
                lines[-1] += "\n"
            if lines:
                block.insert(0, "\n")
            lines.extend(block)
        return "".join(lines)

    def save(self):
        """Persist the credentials file, changing only the [default] block"""
        text = self._render()
        atomic_write(self.path, text, mode=0o600)
        self._raw = text

    def list_profile_names(self) -> List[str]:
        """Sorted names of all profiles (without the default section)"""
        return sorted(s for s in self._config.sections() if s != DEFAULT_SECTION)

    def get_active_profile(self) -> Tuple[Optional[str], int]:
        """Return name and position of the profile copied into [default].

        (None, -1) when there is no [default] section or it matches no profile.
        """
        if not self._config.has_section(DEFAULT_SECTION):
            return None, -1
        default = self._config[DEFAULT_SECTION]
        wanted = tuple(default.get(k) for k in KEY_FIELDS)
        if not any(wanted):
            return None, -1
        for idx, name in enumerate(self.list_profile_names()):
            section = self._config[name]
            if tuple(section.get(k) for k in KEY_FIELDS) == wanted:
                return name, idx
        return None, -1

    def set_active_profile(self, name: str):
        """Copy the named profile into [default] and save"""
        if name not in self.list_profile_names():
            raise UnknownProfileError(name, self.path)
        if self._config.has_section(DEFAULT_SECTION):
            for key in list(self._config[DEFAULT_SECTION]):
                self._config.remove_option(DEFAULT_SECTION, key)
        else:
            self._config.add_section(DEFAULT_SECTION)
        for key, value in self._config[name].items():
            self._config.set(DEFAULT_SECTION, key, value)
        self.save()
        logger.debug("active AWS profile is now '%s'", name)

    def clear_active_profile(self):
        """Remove the [default] section and save"""
        self._config.remove_section(DEFAULT_SECTION)
        self.save()


def _is_blank_or_comment(line: str) -> bool:
    stripped = line.strip()
    return not stripped or stripped.startswith(COMMENT_PREFIXES)
