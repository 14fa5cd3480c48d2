"""pytest fixture plugin.

Usage::

    # conftest.py
    pytest_plugins = ["expandglob._pytest_plugin"]

This makes the ``glob_tree`` fixture automatically available::

    def test_something(glob_tree):
        root = glob_tree(["a/b.ts", "a/x/"])
        assert [e.name for e in expand_glob_sync("a/*.ts", root=root)] == ["b.ts"]
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from pathlib import Path

import pytest


def build_tree(root: Path, paths: Iterable[str]) -> Path:
    """Create files and directories under *root*.

    Paths ending in ``/`` become directories; everything else becomes an
    empty file, with parent directories created as needed.
    """
    for rel in paths:
        target = root / rel
        if rel.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(b"")
    return root


@pytest.fixture
def glob_tree(tmp_path: Path) -> Callable[[Iterable[str]], str]:
    """Factory building a directory tree under ``tmp_path``.

    Returns the tree root as a ``str``. Each test gets its own directory
    (function scope).
    """

    def factory(paths: Iterable[str]) -> str:
        return os.fspath(build_tree(tmp_path, paths))

    return factory
