"""asyncio flavour of the walker and of glob expansion.

Every blocking filesystem call is delegated to :func:`asyncio.to_thread`, so
the event loop is never blocked. Directory listings are read completely
inside the worker thread; no directory handle is held across an ``await``.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Iterable

from ._expand import AdvanceStep, GlobExpansion, ParentStep, resolve_options
from ._pattern import GlobMatcher
from ._walk import (
    WalkEntry,
    WalkOptions,
    dir_key,
    list_dir,
    stat_entry,
    walk_options,
)

logger = logging.getLogger(__name__)


async def stat_entry_async(path: str) -> WalkEntry:
    return await asyncio.to_thread(stat_entry, path)


async def list_dir_async(path: str) -> list[WalkEntry]:
    return await asyncio.to_thread(list_dir, path)


async def walk_async(
    root: str,
    *,
    max_depth: int | None = None,
    include_files: bool = True,
    include_dirs: bool = True,
    follow_symlinks: bool = False,
    exts: Iterable[str] | None = None,
    match: Iterable[GlobMatcher] | None = None,
    skip: Iterable[GlobMatcher] | None = None,
) -> AsyncIterator[WalkEntry]:
    """Async counterpart of :func:`expandglob.walk`, with the same options."""
    opts = walk_options(
        max_depth=max_depth,
        include_files=include_files,
        include_dirs=include_dirs,
        follow_symlinks=follow_symlinks,
        exts=exts,
        match=match,
        skip=skip,
    )
    async for entry in walk_with_async(await stat_entry_async(root), opts):
        yield entry


async def walk_with_async(root: WalkEntry, opts: WalkOptions) -> AsyncIterator[WalkEntry]:
    if opts.include_dirs and opts.include(root, check_exts=False):
        yield root
    if (opts.max_depth is not None and opts.max_depth < 1) or opts.skipped(root.path):
        return
    visited: set[tuple[int, int]] = set()
    if opts.follow_symlinks:
        visited.add(await asyncio.to_thread(dir_key, root.path))
    async for entry in _walk_dir_async(root.path, opts, 1, visited):
        yield entry


async def _walk_dir_async(
    dir_path: str, opts: WalkOptions, depth: int, visited: set[tuple[int, int]]
) -> AsyncIterator[WalkEntry]:
    for child in await list_dir_async(dir_path):
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
            key = await asyncio.to_thread(dir_key, child.path)
            if key in visited:
                continue
            visited.add(key)
        async for entry in _walk_dir_async(child.path, opts, depth + 1, visited):
            yield entry


async def _run_step_async(step: AdvanceStep) -> list[WalkEntry]:
    if step is None:
        return []
    if isinstance(step, ParentStep):
        try:
            return [await stat_entry_async(step.path)]
        except FileNotFoundError:
            return []
    return [entry async for entry in walk_with_async(step.root, step.options)]


async def _expand_async(expansion: GlobExpansion) -> AsyncIterator[WalkEntry]:
    if expansion.seed_excluded():
        logger.debug("Fixed root %r is excluded", expansion.fixed_root)
        return
    try:
        seed = await stat_entry_async(expansion.fixed_root)
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
        # Entries of one segment advance concurrently; the next segment only
        # starts from the merged, sorted working set.
        batches = await asyncio.gather(
            *(_run_step_async(expansion.plan(m, segment)) for m in matches)
        )
        matches = expansion.merge(entry for batch in batches for entry in batch)
        logger.debug("Segment %r matched %d entries", segment, len(matches))
    for entry in expansion.finalize(matches):
        yield entry


def expand_glob(
    glob: str | os.PathLike[str],
    *,
    root: str | os.PathLike[str] | None = None,
    exclude: Iterable[str | os.PathLike[str]] = (),
    include_dirs: bool = True,
    extended: bool = False,
    globstar: bool = False,
) -> AsyncIterator[WalkEntry]:
    """Async counterpart of :func:`expandglob.expand_glob_sync`.

    Use with ``async for``; matching semantics and ordering are identical.
    """
    options = resolve_options(
        root=root,
        exclude=exclude,
        include_dirs=include_dirs,
        extended=extended,
        globstar=globstar,
    )
    return _expand_async(GlobExpansion(glob, options))
