from __future__ import annotations

import re
from functools import lru_cache

from wcmatch import glob as wcglob

from ._path import IS_WINDOWS, glob_flags
from ._typing import GlobOptions


class GlobMatcher:
    """A compiled full-path glob.

    Brace expansion can turn one glob into several regular expressions; a
    path matches when any of them does.
    """

    __slots__ = ("pattern", "_regexes")

    def __init__(self, pattern: str, regexes: tuple[re.Pattern[str], ...]) -> None:
        self.pattern = pattern
        self._regexes = regexes

    def match(self, path: str) -> bool:
        return any(r.fullmatch(path) is not None for r in self._regexes)

    def __repr__(self) -> str:
        return f"GlobMatcher({self.pattern!r})"


@lru_cache(maxsize=256)
def _translate(pattern: str, flags: int) -> tuple[re.Pattern[str], ...]:
    positive, _ = wcglob.translate(pattern, flags=flags)
    return tuple(re.compile(p) for p in positive)


def compile_glob(
    pattern: str, options: GlobOptions = GlobOptions(), *, windows: bool | None = None
) -> GlobMatcher:
    flags = glob_flags(options, IS_WINDOWS if windows is None else windows)
    return GlobMatcher(pattern, _translate(pattern, flags))


def matches_any(path: str, matchers: list[GlobMatcher] | tuple[GlobMatcher, ...]) -> bool:
    return any(m.match(path) for m in matchers)
