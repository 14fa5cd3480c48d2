from typing import TYPE_CHECKING

from ._exceptions import GlobUsageError
from ._expand import expand_glob_sync
from ._path import split_path
from ._pattern import GlobMatcher, compile_glob
from ._typing import ExpandOptions, GlobOptions, SplitPath
from ._walk import WalkEntry, stat_entry, walk

if TYPE_CHECKING:
    from ._async import expand_glob, stat_entry_async, walk_async

_ASYNC_NAMES = ("expand_glob", "stat_entry_async", "walk_async")


def __getattr__(name: str):  # type: ignore[no-untyped-def]
    if name in _ASYNC_NAMES:
        from . import _async

        for async_name in _ASYNC_NAMES:
            globals()[async_name] = getattr(_async, async_name)
        return globals()[name]
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "expand_glob",
    "expand_glob_sync",
    "walk",
    "walk_async",
    "stat_entry",
    "stat_entry_async",
    "compile_glob",
    "split_path",
    "WalkEntry",
    "GlobMatcher",
    "GlobOptions",
    "ExpandOptions",
    "SplitPath",
    "GlobUsageError",
]
__version__ = "0.1.0"
