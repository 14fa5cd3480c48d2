import pytest

from expandglob._pytest_plugin import build_tree, glob_tree  # noqa: F401


@pytest.fixture
def src_tree(tmp_path):
    """The reference tree: a/b.ts, a/c.txt, a/x/y.ts."""
    build_tree(tmp_path, ["a/b.ts", "a/c.txt", "a/x/y.ts"])
    return str(tmp_path)
