"""Glob expansion against the real filesystem.

The matching logic lives in :class:`GlobExpansion`, which never touches the
filesystem itself: it resolves the glob, decides how each working-set entry
advances through the next segment, and merges the results. The blocking
driver here and the asyncio driver in :mod:`._async` only execute the stat
and walk steps it plans.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from ._exceptions import GlobUsageError
from ._path import (
    escape_path,
    is_absolute,
    is_glob,
    join_globs,
    normalize,
    normalize_glob,
    parent_path,
    split_parents,
    split_path,
    strip_trailing_sep,
)
from ._pattern import GlobMatcher, compile_glob, matches_any
from ._typing import ExpandOptions, GlobOptions
from ._walk import WalkEntry, WalkOptions, stat_entry, walk_options, walk_with

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParentStep:
    """Stat the parent directory reached through a ``..`` segment."""
    path: str


@dataclass(frozen=True)
class WalkStep:
    """Walk below an already matched directory."""
    root: WalkEntry
    options: WalkOptions


AdvanceStep = ParentStep | WalkStep | None


def resolve_options(
    *,
    root: str | os.PathLike[str] | None = None,
    exclude: Iterable[str | os.PathLike[str]] = (),
    include_dirs: bool = True,
    extended: bool = False,
    globstar: bool = False,
) -> ExpandOptions:
    if isinstance(exclude, (str, os.PathLike)):
        exclude = (exclude,)
    return ExpandOptions(
        extended=extended,
        globstar=globstar,
        root=os.getcwd() if root is None else os.fspath(root),
        exclude=tuple(os.fspath(e) for e in exclude),
        include_dirs=include_dirs,
    )


class GlobExpansion:
    def __init__(
        self,
        glob: str | os.PathLike[str],
        options: ExpandOptions,
        windows: bool | None = None,
    ) -> None:
        glob = os.fspath(glob)
        if not glob:
            raise GlobUsageError(glob, "glob is empty")
        self.options = options
        self.windows = windows
        self.glob_options = GlobOptions(
            extended=options.extended, globstar=options.globstar
        )
        root = options.root
        if not is_absolute(root, windows):
            root = join_globs([os.getcwd(), root], windows=windows)
        self.root = normalize(root, windows)
        self.exclude: tuple[GlobMatcher, ...] = tuple(
            compile_glob(self.resolve_exclude(e), self.glob_options, windows=windows)
            for e in options.exclude
        )

        split = split_path(self.resolve_from_root(glob), windows)
        self.has_trailing_sep = split.has_trailing_sep
        # Components contributed by the root are literal even if they look magic.
        literal = 0
        if not is_absolute(glob, windows):
            parents, _ = split_parents(
                normalize_glob(glob, self.glob_options, windows), windows
            )
            literal = len(split_path(self.root, windows).segments) - parents
        fixed_root = split.win_root + "\\" if split.win_root is not None else "/"
        segments = list(split.segments)
        while segments and (
            literal > 0 or not is_glob(segments[0], self.glob_options, windows)
        ):
            fixed_root = join_globs(
                [fixed_root, segments.pop(0)], self.glob_options, windows
            )
            literal -= 1
        self.fixed_root = fixed_root
        self.segments = tuple(segments)

    def resolve_from_root(self, path: str) -> str:
        if is_absolute(path, self.windows):
            return normalize(path, self.windows)
        return join_globs([self.root, path], self.glob_options, self.windows)

    def resolve_exclude(self, path: str) -> str:
        """Resolve an exclude glob against the root, which is matched literally."""
        if is_absolute(path, self.windows):
            return strip_trailing_sep(
                normalize_glob(path, self.glob_options, self.windows), self.windows
            )
        parents, rest = split_parents(
            normalize_glob(path, self.glob_options, self.windows), self.windows
        )
        base = join_globs([self.root] + [".."] * parents, windows=self.windows)
        if not rest:
            return escape_path(base, self.windows)
        return join_globs(
            [base, rest], self.glob_options, self.windows, escape_base=True
        )

    def should_include(self, path: str) -> bool:
        return not matches_any(path, self.exclude)

    def seed_excluded(self) -> bool:
        """Whether the fixed root or any directory above it is excluded."""
        if not self.exclude:
            return False
        path = strip_trailing_sep(self.fixed_root, self.windows)
        while True:
            if not self.should_include(path):
                return True
            parent = parent_path(path, self.windows)
            if parent == path:
                return False
            path = parent

    def plan(self, entry: WalkEntry, segment: str) -> AdvanceStep:
        """Decide how *entry* advances through *segment*."""
        if not entry.is_directory:
            return None
        if segment == "..":
            parent = join_globs([entry.path, ".."], self.glob_options, self.windows)
            return ParentStep(parent) if self.should_include(parent) else None
        if segment == "**":
            return WalkStep(entry, walk_options(include_files=False, skip=self.exclude))
        matcher = compile_glob(
            join_globs(
                [entry.path, segment], self.glob_options, self.windows, escape_base=True
            ),
            self.glob_options,
            windows=self.windows,
        )
        return WalkStep(
            entry, walk_options(max_depth=1, match=[matcher], skip=self.exclude)
        )

    @staticmethod
    def merge(found: Iterable[WalkEntry]) -> list[WalkEntry]:
        # Several current matches (or ".." and "**") can reach the same node.
        by_path: dict[str, WalkEntry] = {}
        for entry in found:
            by_path[entry.path] = entry
        return sorted(by_path.values(), key=lambda e: e.path)

    def finalize(self, matches: list[WalkEntry]) -> list[WalkEntry]:
        if self.has_trailing_sep:
            # A trailing separator asks for directories, whatever include_dirs says.
            return [e for e in matches if e.is_directory]
        if not self.options.include_dirs:
            return [e for e in matches if not e.is_directory]
        return matches

    def __repr__(self) -> str:
        return (
            f"GlobExpansion(fixed_root={self.fixed_root!r}, "
            f"segments={self.segments!r})"
        )


def _run_step(step: AdvanceStep) -> Iterator[WalkEntry]:
    if step is None:
        return
    if isinstance(step, ParentStep):
        try:
            entry = stat_entry(step.path)
        except FileNotFoundError:
            return
        yield entry
        return
    yield from walk_with(step.root, step.options)


def _expand(expansion: GlobExpansion) -> Iterator[WalkEntry]:
    if expansion.seed_excluded():
        logger.debug("Fixed root %r is excluded", expansion.fixed_root)
        return
    try:
        seed = stat_entry(expansion.fixed_root)
    except FileNotFoundError:
        logger.debug("Fixed root %r does not exist", expansion.fixed_root)
        return
    logger.debug(
        "Expanding %d segment(s) from fixed root %r",
        len(expansion.segments),
        expansion.fixed_root,
    )
    matches = [seed]
    for segment in expansion.segments:
        matches = expansion.merge(
            found
            for current in matches
            for found in _run_step(expansion.plan(current, segment))
        )
        logger.debug("Segment %r matched %d entries", segment, len(matches))
    yield from expansion.finalize(matches)


def expand_glob_sync(
    glob: str | os.PathLike[str],
    *,
    root: str | os.PathLike[str] | None = None,
    exclude: Iterable[str | os.PathLike[str]] = (),
    include_dirs: bool = True,
    extended: bool = False,
    globstar: bool = False,
) -> Iterator[WalkEntry]:
    """Expand *glob* from *root* and yield each match as a :class:`WalkEntry`.

    Matches are yielded in ascending path order. A glob ending in a separator
    only matches directories; ``include_dirs=False`` drops directories from
    the result. Paths matching any *exclude* glob, and everything below an
    excluded directory, are never produced.

    Nothing touches the filesystem until the returned iterator is advanced.
    A missing path yields nothing; any other :class:`OSError` propagates.
    """
    options = resolve_options(
        root=root,
        exclude=exclude,
        include_dirs=include_dirs,
        extended=extended,
        globstar=globstar,
    )
    return _expand(GlobExpansion(glob, options))
