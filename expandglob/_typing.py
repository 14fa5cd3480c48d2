from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple


@dataclass(frozen=True)
class GlobOptions:
    extended: bool = False
    globstar: bool = False


@dataclass(frozen=True)
class ExpandOptions(GlobOptions):
    root: str = ""
    exclude: tuple[str, ...] = ()
    include_dirs: bool = True


class SplitPath(NamedTuple):
    segments: tuple[str, ...]
    is_absolute: bool
    has_trailing_sep: bool
    win_root: str | None = None
