from __future__ import annotations

import ntpath
import os
import posixpath
import re

from wcmatch import glob as wcglob

from ._exceptions import GlobUsageError
from ._typing import GlobOptions, SplitPath

IS_WINDOWS = os.name == "nt"

POSIX_SEP_PATTERN = re.compile(r"/+")
WINDOWS_SEP_PATTERN = re.compile(r"[\\/]+")

_PARENT_PLACEHOLDER = "\0"


def _windows(windows: bool | None) -> bool:
    return IS_WINDOWS if windows is None else windows


def _pathmod(windows: bool | None):  # type: ignore[no-untyped-def]
    return ntpath if _windows(windows) else posixpath


def sep_pattern(windows: bool | None = None) -> re.Pattern[str]:
    return WINDOWS_SEP_PATTERN if _windows(windows) else POSIX_SEP_PATTERN


def is_absolute(path: str, windows: bool | None = None) -> bool:
    return _pathmod(windows).isabs(path)


def normalize(path: str, windows: bool | None = None) -> str:
    """Lexically normalize *path*, keeping a trailing separator."""
    mod = _pathmod(windows)
    normalized = mod.normpath(path)
    if sep_pattern(windows).search(path[-1:]) and not normalized.endswith(mod.sep):
        normalized += mod.sep
    return normalized


def normalize_glob(
    glob: str, options: GlobOptions = GlobOptions(), windows: bool | None = None
) -> str:
    """Normalize *glob* like a path, but keep ``..`` that follows a ``**``.

    With globstar enabled ``a/**/..`` is not the same pattern as ``a``, so the
    parent reference is protected from lexical collapsing.
    """
    if not options.globstar:
        return normalize(glob, windows)
    sep = sep_pattern(windows).pattern
    bad_parent = re.compile(rf"((?:^|{sep})\*\*{sep})\.\.(?={sep}|$)")
    protected = bad_parent.sub(lambda m: m.group(1) + _PARENT_PLACEHOLDER, glob)
    return normalize(protected, windows).replace(_PARENT_PLACEHOLDER, "..")


def join_globs(
    parts: list[str],
    options: GlobOptions = GlobOptions(),
    windows: bool | None = None,
    escape_base: bool = False,
) -> str:
    """Join glob path components.

    With *escape_base* every component but the last is treated as a literal
    filesystem path and escaped, and the result is left unnormalized so the
    escapes survive.
    """
    parts = [p for p in parts if p]
    if not parts:
        return "."
    if escape_base:
        win = _windows(windows)
        seps = "\\/" if win else "/"
        base = [wcglob.escape(p.rstrip(seps), unix=not win) for p in parts[:-1]]
        return "/".join(base + [parts[-1]])
    return normalize_glob(_pathmod(windows).join(*parts), options, windows)


def glob_flags(options: GlobOptions, windows: bool | None = None) -> int:
    flags = wcglob.DOTGLOB
    if options.globstar:
        flags |= wcglob.GLOBSTAR
    if options.extended:
        flags |= wcglob.EXTGLOB | wcglob.BRACE
    flags |= wcglob.FORCEWIN if _windows(windows) else wcglob.FORCEUNIX
    return flags


def is_glob(
    segment: str, options: GlobOptions = GlobOptions(), windows: bool | None = None
) -> bool:
    return wcglob.is_magic(segment, flags=glob_flags(options, windows))


def split_path(path: str, windows: bool | None = None) -> SplitPath:
    """Split an absolute, normalized path into its segments.

    Windows drives (``C:``) and UNC shares (``\\\\host\\share``) are detached
    into ``win_root``.
    """
    if not path:
        raise GlobUsageError(path, "path is empty")
    win = _windows(windows)
    if not is_absolute(path, win):
        raise GlobUsageError(path, "path must be absolute")
    sep = sep_pattern(win)
    win_root = None
    rest = path
    if win:
        win_root, rest = ntpath.splitdrive(path)
        if not win_root:
            raise GlobUsageError(path, "absolute Windows path has no drive")
    segments = tuple(s for s in sep.split(rest) if s)
    has_trailing_sep = bool(sep.search(path[-1:])) and bool(segments)
    return SplitPath(
        segments=segments,
        is_absolute=True,
        has_trailing_sep=has_trailing_sep,
        win_root=win_root,
    )


def strip_trailing_sep(path: str, windows: bool | None = None) -> str:
    stripped = path.rstrip("\\/" if _windows(windows) else "/")
    if not stripped or stripped.endswith(":"):
        return path
    return stripped


def escape_path(path: str, windows: bool | None = None) -> str:
    """Escape a literal filesystem path for use inside a glob."""
    return wcglob.escape(strip_trailing_sep(path, windows), unix=not _windows(windows))


def split_parents(rel: str, windows: bool | None = None) -> tuple[int, str]:
    """Count the leading ``..`` components of a normalized relative glob.

    Returns the count and the remainder joined with ``/``.
    """
    parts = [p for p in sep_pattern(windows).split(rel) if p and p != "."]
    count = 0
    while count < len(parts) and parts[count] == "..":
        count += 1
    return count, "/".join(parts[count:])


def parent_path(path: str, windows: bool | None = None) -> str:
    return _pathmod(windows).dirname(path)
