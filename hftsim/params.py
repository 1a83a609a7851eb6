"""String-keyed parameters with typed lookups."""

from __future__ import annotations

import re
from collections.abc import Mapping

from hftsim.types import Code

_LEADING_INT = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")
_LEADING_FLOAT = re.compile(
    r"[ \t\n\v\f\r]*([+-]?(?:\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)
_TRUE_WORDS = frozenset({"true", "True", "TRUE"})


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def _leading_float(text: str) -> float:
    match = _LEADING_FLOAT.match(text)
    return float(match.group(1)) if match else 0.0


class Params:
    """A mapping of string parameters read as strings, numbers, flags or codes.

    Numbers are read from the leading part of a value; a value with no
    leading number reads as zero.
    """

    def __init__(self, data: Mapping[str, str] | None = None) -> None:
        self._params: dict[str, str] = dict(data or {})

    @classmethod
    def parse(cls, text: str) -> Params:
        """Parse ``key=value&key=value`` text."""
        params: dict[str, str] = {}
        for pair in text.split("&"):
            if not pair:
                continue
            parts = pair.split("=")
            if len(parts) < 2:
                raise ValueError(f"malformed parameter: {pair!r}")
            params[parts[0]] = parts[1]
        return cls(params)

    def data(self) -> dict[str, str]:
        """A copy of the raw parameters."""
        return dict(self._params)

    def __contains__(self, key: object) -> bool:
        return key in self._params

    def __repr__(self) -> str:
        return f"Params({self._params!r})"

    def get_str(self, key: str) -> str:
        try:
            return self._params[key]
        except KeyError:
            raise KeyError(f"key not found: {key}") from None

    def get_int(self, key: str) -> int:
        return _leading_int(self.get_str(key))

    def get_float(self, key: str) -> float:
        return _leading_float(self.get_str(key))

    def get_bool(self, key: str) -> bool:
        value = self.get_str(key)
        return value in _TRUE_WORDS or _leading_int(value) > 0

    def get_code(self, key: str) -> Code:
        return Code(self.get_str(key))