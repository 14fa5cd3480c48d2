from __future__ import annotations

import os
import stat as stat_mod
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from ._path import normalize
from ._pattern import GlobMatcher, matches_any


@dataclass(frozen=True)
class WalkEntry:
    path: str
    name: str
    is_file: bool
    is_directory: bool
    is_symlink: bool

    def __fspath__(self) -> str:
        return self.path


def _entry_from_stat(path: str, st: os.stat_result | None, is_symlink: bool) -> WalkEntry:
    mode = st.st_mode if st is not None else 0
    return WalkEntry(
        path=path,
        name=os.path.basename(path.rstrip("\\/")) or path,
        is_file=stat_mod.S_ISREG(mode),
        is_directory=stat_mod.S_ISDIR(mode),
        is_symlink=is_symlink,
    )


def stat_entry(path: str) -> WalkEntry:
    """Build a :class:`WalkEntry` for *path*, following symbolic links.

    Raises :class:`FileNotFoundError` if *path* does not exist.
    """
    npath = normalize(os.fspath(path))
    st = os.stat(npath)
    return _entry_from_stat(npath, st, os.path.islink(npath))


def _entry_from_dirent(dirent: os.DirEntry[str]) -> WalkEntry | None:
    is_symlink = dirent.is_symlink()
    try:
        st: os.stat_result | None = dirent.stat(follow_symlinks=True)
    except FileNotFoundError:
        if not is_symlink:
            return None  # removed since the listing was read
        st = None  # dangling link
    return _entry_from_stat(dirent.path, st, is_symlink)


def list_dir(path: str) -> list[WalkEntry]:
    """Return the entries of one directory; the handle is closed before returning."""
    with os.scandir(path) as it:
        entries = [_entry_from_dirent(d) for d in it]
    return [e for e in entries if e is not None]


@dataclass(frozen=True)
class WalkOptions:
    max_depth: int | None = None
    include_files: bool = True
    include_dirs: bool = True
    follow_symlinks: bool = False
    exts: tuple[str, ...] | None = None
    match: tuple[GlobMatcher, ...] | None = None
    skip: tuple[GlobMatcher, ...] | None = None

    def include(self, entry: WalkEntry, check_exts: bool) -> bool:
        if check_exts and self.exts and not entry.path.endswith(self.exts):
            return False
        if self.match and not matches_any(entry.path, self.match):
            return False
        if self.skip and matches_any(entry.path, self.skip):
            return False
        return True

    def skipped(self, path: str) -> bool:
        return bool(self.skip) and matches_any(path, self.skip)  # type: ignore[arg-type]

    def descend_into(self, entry: WalkEntry) -> bool:
        return entry.is_directory and (self.follow_symlinks or not entry.is_symlink)


def dir_key(path: str) -> tuple[int, int]:
    st = os.stat(path)
    return st.st_dev, st.st_ino


def walk_options(
    *,
    max_depth: int | None = None,
    include_files: bool = True,
    include_dirs: bool = True,
    follow_symlinks: bool = False,
    exts: Iterable[str] | None = None,
    match: Iterable[GlobMatcher] | None = None,
    skip: Iterable[GlobMatcher] | None = None,
) -> WalkOptions:
    return WalkOptions(
        max_depth=max_depth,
        include_files=include_files,
        include_dirs=include_dirs,
        follow_symlinks=follow_symlinks,
        exts=tuple(exts) if exts is not None else None,
        match=tuple(match) if match is not None else None,
        skip=tuple(skip) if skip is not None else None,
    )


def walk(
    root: str,
    *,
    max_depth: int | None = None,
    include_files: bool = True,
    include_dirs: bool = True,
    follow_symlinks: bool = False,
    exts: Iterable[str] | None = None,
    match: Iterable[GlobMatcher] | None = None,
    skip: Iterable[GlobMatcher] | None = None,
) -> Iterator[WalkEntry]:
    """Recursively walk the tree under *root* (top-down).

    Entries are produced in directory-listing order, which is unspecified.
    *root* itself is yielded first when it passes the filters. Directories
    matched by *skip* are neither yielded nor descended into. Symbolic links
    are yielded but only followed when *follow_symlinks* is set, and a
    followed link never re-enters a directory already visited by this walk.
    """
    opts = walk_options(
        max_depth=max_depth,
        include_files=include_files,
        include_dirs=include_dirs,
        follow_symlinks=follow_symlinks,
        exts=exts,
        match=match,
        skip=skip,
    )
    return walk_with(stat_entry(root), opts)


def walk_with(root: WalkEntry, opts: WalkOptions) -> Iterator[WalkEntry]:
    if opts.include_dirs and opts.include(root, check_exts=False):
        yield root
    if (opts.max_depth is not None and opts.max_depth < 1) or opts.skipped(root.path):
        return
    visited: set[tuple[int, int]] = set()
    if opts.follow_symlinks:
        visited.add(dir_key(root.path))
    yield from _walk_dir(root.path, opts, 1, visited)


def _walk_dir(
    dir_path: str, opts: WalkOptions, depth: int, visited: set[tuple[int, int]]
) -> Iterator[WalkEntry]:
    children = list_dir(dir_path)
    for child in children:
        if not child.is_directory:
            if opts.include_files and opts.include(child, check_exts=True):
                yield child
            continue
        if opts.include_dirs and opts.include(child, check_exts=False):
            yield child
        if not opts.descend_into(child) or opts.skipped(child.path):
            continue
        if opts.max_depth is not None and depth >= opts.max_depth:
            continue
        if opts.follow_symlinks:
            key = dir_key(child.path)
            if key in visited:
                continue
            visited.add(key)
        yield from _walk_dir(child.path, opts, depth + 1, visited)
