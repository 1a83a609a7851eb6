"""INI file parsing, generation and ``${section:key}`` interpolation."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TextIO

_SPACE = " \t\n\v\f\r"
_INT = re.compile(r"[+-]?\d+")
_FLOAT = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

MAX_INTERPOLATION_DEPTH = 10


def extract(value: str, kind: type = str):
    """Convert ``value`` to ``kind`` (str, bool, int or float).

    Booleans accept only ``true`` and ``false``. Surrounding whitespace is
    allowed, anything else after the value is not.
    """
    if kind is str:
        return value
    text = value.strip(_SPACE)
    if kind is bool:
        if text == "true":
            return True
        if text == "false":
            return False
    elif kind is int:
        if _INT.fullmatch(text):
            return int(text)
    elif kind is float:
        if _FLOAT.fullmatch(text):
            return float(text)
    else:
        raise TypeError(f"unsupported kind: {kind!r}")
    raise ValueError(f"cannot read {value!r} as {kind.__name__}")


@dataclass(frozen=True)
class IniFormat:
    """The characters that make up the INI syntax."""

    section_start: str = "["
    section_end: str = "]"
    assign: str = "="
    comment: str = ";"
    interpol: str = "$"
    interpol_start: str = "{"
    interpol_sep: str = ":"
    interpol_end: str = "}"

    def local_symbol(self, name: str) -> str:
        return f"{self.interpol}{self.interpol_start}{name}{self.interpol_end}"

    def global_symbol(self, section: str, name: str) -> str:
        return self.local_symbol(f"{section}{self.interpol_sep}{name}")


def _replace_symbols(symbols: list[tuple[str, str]], section: dict[str, str]) -> bool:
    changed = False
    for symbol, replacement in symbols:
        for key in sorted(section):
            value = section[key]
            if symbol in value:
                section[key] = value.replace(symbol, replacement)
                changed = True
    return changed


@dataclass
class Ini:
    """Sections of key/value pairs, with the lines that failed to parse."""

    format: IniFormat = field(default_factory=IniFormat)
    sections: dict[str, dict[str, str]] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    def __init__(self, fmt: IniFormat | None = None) -> None:
        self.format = fmt or IniFormat()
        self.sections = {}
        self.errors = []

    def parse(self, stream: TextIO | Iterable[str] | str) -> None:
        """Read lines into sections; bad and duplicate lines go to ``errors``."""
        lines = stream.split("\n") if isinstance(stream, str) else stream
        fmt = self.format
        section = ""
        for raw in lines:
            line = raw.strip(_SPACE)
            if not line:
                continue
            pos = line.find(fmt.assign)
            if line[0] == fmt.comment:
                continue
            if line[0] == fmt.section_start:
                if line[-1] == fmt.section_end:
                    section = line[1:-1]
                else:
                    self.errors.append(line)
            elif pos > 0:
                variable = line[:pos].rstrip(_SPACE)
                value = line[pos + 1:].lstrip(_SPACE)
                entries = self.sections.setdefault(section, {})
                if variable in entries:
                    self.errors.append(line)
                else:
                    entries[variable] = value
            else:
                self.errors.append(line)

    def generate(self, stream: TextIO) -> None:
        """Write all sections, sorted by name and key."""
        fmt = self.format
        for name in sorted(self.sections):
            stream.write(f"{fmt.section_start}{name}{fmt.section_end}\n")
            entries = self.sections[name]
            for key in sorted(entries):
                stream.write(f"{key}{fmt.assign}{entries[key]}\n")
            stream.write("\n")

    def interpolate(self) -> None:
        """Replace ``${key}`` and ``${section:key}`` references by their values."""
        fmt = self.format
        for name in sorted(self.sections):
            entries = self.sections[name]
            local = [
                (fmt.local_symbol(key), fmt.global_symbol(name, key))
                for key in sorted(entries)
            ]
            _replace_symbols(local, entries)
        iteration = 0
        while True:
            symbols = [
                (fmt.global_symbol(name, key), self.sections[name][key])
                for name in sorted(self.sections)
                for key in sorted(self.sections[name])
            ]
            changed = False
            for name in sorted(self.sections):
                changed |= _replace_symbols(symbols, self.sections[name])
            more = MAX_INTERPOLATION_DEPTH > iteration
            iteration += 1
            if not (changed and more):
                break

    def default_section(self, section: dict[str, str]) -> None:
        """Add the given entries to every section that lacks them."""
        for entries in self.sections.values():
            for key, value in section.items():
                entries.setdefault(key, value)

    def strip_trailing_comments(self) -> None:
        """Cut every value at its first comment character."""
        comment = self.format.comment
        for entries in self.sections.values():
            for key, value in entries.items():
                entries[key] = value.split(comment, 1)[0].rstrip(_SPACE)

    def clear(self) -> None:
        self.sections.clear()
        self.errors.clear()

    def get(self, section: str, key: str, kind: type = str):
        """Read one value as ``kind``; raise KeyError if it is missing."""
        try:
            value = self.sections[section][key]
        except KeyError:
            raise KeyError(f"{section}:{key}") from None
        return extract(value, kind)