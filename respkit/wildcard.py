"""Glob-style wildcard patterns compiled to regular expressions."""

from __future__ import annotations

import re

END_WITH_ESCAPE = "end with escape \\"

_REPLACEMENTS = {
    "+": r"\+",
    ")": r"\)",
    "$": r"\$",
    ".": r"\.",
    "{": r"\{",
    "}": r"\}",
    "|": r"\|",
    "*": ".*",
    "?": ".",
}


class Pattern:
    """A compiled wildcard pattern."""

    def __init__(self, regex: re.Pattern[str]) -> None:
        self._regex = regex

    def is_match(self, s: str) -> bool:
        """Return whether the whole string matches the pattern."""
        return self._regex.fullmatch(s) is not None


def _caret(src: str, i: int) -> str:
    # A caret directly after an unescaped '[' negates the class; elsewhere it is literal.
    if i == 0:
        return r"\^"
    if i == 1:
        return "^" if src[0] == "[" else r"\^"
    if src[i - 1] == "[" and src[i - 2] != "\\":
        return "^"
    return r"\^"


def compile_pattern(src: str) -> Pattern:
    """Compile a wildcard string; raise ValueError on a malformed pattern."""
    parts: list[str] = []
    chars = iter(enumerate(src))
    for i, ch in chars:
        if ch == "\\":
            escaped = next(chars, None)
            if escaped is None:
                raise ValueError(END_WITH_ESCAPE)
            parts.append(ch + escaped[1])
        elif ch == "^":
            parts.append(_caret(src, i))
        else:
            parts.append(_REPLACEMENTS.get(ch, ch))
    try:
        regex = re.compile("".join(parts))
    except re.error as err:
        raise ValueError(str(err)) from err
    return Pattern(regex)