"""Glob matching for inherited metadata keys.

Patterns follow POSIX glob rules:

- ``*`` matches any run of characters, including ``/``
- ``?`` matches a single character
- ``[abc]``, ``[a-z]``, ``[!a-z]`` / ``[^a-z]`` character classes
- ``\\`` escapes the following character

A malformed pattern never matches and does not stop the evaluation of the
remaining patterns of the list.
"""
import re
import logging
from functools import lru_cache
from typing import Iterable, Pattern

logger = logging.getLogger(__name__)


class InvalidPatternError(ValueError):
    """Glob pattern could not be compiled."""


def _translate_class(pattern: str, start: int):
    """Translate the character class starting right after ``[``.

    Returns the regex fragment and the index following the closing ``]``.
    """
    i, n = start, len(pattern)
    negate = False
    if i < n and pattern[i] in "!^":
        negate = True
        i += 1
    items = []
    first = True
    while True:
        if i >= n:
            raise InvalidPatternError(f"unterminated character class in {pattern!r}")
        c = pattern[i]
        if c == "]" and not first:
            i += 1
            break
        first = False
        if c == "\\":
            i += 1
            if i >= n:
                raise InvalidPatternError(f"trailing escape in {pattern!r}")
            c = pattern[i]
        lo = c
        i += 1
        if i + 1 < n and pattern[i] == "-" and pattern[i + 1] != "]":
            hi = pattern[i + 1]
            i += 2
            if hi == "\\":
                if i >= n:
                    raise InvalidPatternError(f"trailing escape in {pattern!r}")
                hi = pattern[i]
                i += 1
            if hi < lo:
                raise InvalidPatternError(f"bad range {lo}-{hi} in {pattern!r}")
            items.append(f"{re.escape(lo)}-{re.escape(hi)}")
        else:
            items.append(re.escape(lo))
    return ("[^" if negate else "[") + "".join(items) + "]", i


def translate(pattern: str) -> str:
    """Convert a glob pattern to an anchored regular expression."""
    i, n = 0, len(pattern)
    out = []
    while i < n:
        c = pattern[i]
        i += 1
        if c == "*":
            # collapse consecutive stars
            while i < n and pattern[i] == "*":
                i += 1
            out.append(".*")
        elif c == "?":
            out.append(".")
        elif c == "[":
            fragment, i = _translate_class(pattern, i)
            out.append(fragment)
        elif c == "\\":
            if i >= n:
                raise InvalidPatternError(f"trailing escape in {pattern!r}")
            out.append(re.escape(pattern[i]))
            i += 1
        else:
            out.append(re.escape(c))
    return r"(?s:" + "".join(out) + r")\Z"


@lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> Pattern:
    return re.compile(translate(pattern))


def matches(pattern: str, key: str) -> bool:
    """Return True if ``key`` matches ``pattern``.

    Raises:
        InvalidPatternError: the pattern is malformed.
    """
    return compile_pattern(pattern).match(key) is not None


def is_inherited(patterns: Iterable[str], key: str) -> bool:
    """Decide whether a label/annotation ``key`` is inherited by managed resources."""
    for pattern in patterns or ():
        try:
            if matches(pattern, key):
                return True
        except InvalidPatternError as ex:
            logger.debug(f"Skipping inheritance pattern: {ex}")
    return False
