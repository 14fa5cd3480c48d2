"""GlobExpansion decisions that do not depend on filesystem contents."""

import os

import pytest

from expandglob._expand import GlobExpansion, ParentStep, WalkStep, resolve_options
from expandglob._walk import WalkEntry

posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX path layout")


def _expansion(glob, root="/r", **kwargs):
    return GlobExpansion(glob, resolve_options(root=root, **kwargs))


def _dir(path):
    return WalkEntry(path=path, name=os.path.basename(path), is_file=False, is_directory=True, is_symlink=False)


def _file(path):
    return WalkEntry(path=path, name=os.path.basename(path), is_file=True, is_directory=False, is_symlink=False)


@posix_only
def test_fixed_root_consumes_literal_prefix():
    exp = _expansion("src/lib/*.ts")
    assert exp.fixed_root == "/r/src/lib"
    assert exp.segments == ("*.ts",)


@posix_only
def test_fixed_root_stops_at_first_glob_segment():
    exp = _expansion("src/*/lib/*.ts")
    assert exp.fixed_root == "/r/src"
    assert exp.segments == ("*", "lib", "*.ts")


@posix_only
def test_fully_literal_glob_has_no_segments():
    exp = _expansion("src/main.ts")
    assert exp.fixed_root == "/r/src/main.ts"
    assert exp.segments == ()


@posix_only
def test_root_components_are_literal():
    exp = _expansion("*.ts", root="/data/[v1]")
    assert exp.fixed_root == "/data/[v1]"
    assert exp.segments == ("*.ts",)


@posix_only
def test_absolute_glob_starts_at_filesystem_root():
    exp = _expansion("/[v1]/*.ts", root="/r")
    assert exp.fixed_root == "/"
    assert exp.segments == ("[v1]", "*.ts")


@posix_only
def test_leading_parent_references_are_resolved_lexically():
    exp = _expansion("../other/*.ts", root="/r/sub")
    assert exp.fixed_root == "/r/other"
    assert exp.segments == ("*.ts",)


@posix_only
def test_trailing_separator_recorded():
    assert _expansion("src/").has_trailing_sep is True
    assert _expansion("src").has_trailing_sep is False


@posix_only
def test_plan_file_advances_nowhere():
    exp = _expansion("*/*")
    assert exp.plan(_file("/r/a.ts"), "*") is None


@posix_only
def test_plan_parent_reference():
    exp = _expansion("**/..", globstar=True)
    step = exp.plan(_dir("/r/a/b"), "..")
    assert step == ParentStep("/r/a")


@posix_only
def test_plan_parent_reference_excluded():
    exp = _expansion("**/..", globstar=True, exclude=["a"])
    assert exp.plan(_dir("/r/a/b"), "..") is None


@posix_only
def test_plan_globstar_walks_directories_only():
    exp = _expansion("**/*.ts", exclude=["node_modules"])
    step = exp.plan(_dir("/r"), "**")
    assert isinstance(step, WalkStep)
    assert step.options.include_files is False
    assert step.options.max_depth is None
    assert step.options.skip == exp.exclude


@posix_only
def test_plan_segment_walks_one_level_with_name_filter():
    exp = _expansion("*/*.ts")
    step = exp.plan(_dir("/r/src"), "*.ts")
    assert isinstance(step, WalkStep)
    assert step.options.max_depth == 1
    (matcher,) = step.options.match
    assert matcher.match("/r/src/main.ts")
    assert not matcher.match("/r/src/deep/main.ts")


@posix_only
def test_plan_segment_escapes_matched_directory():
    exp = _expansion("*/*.ts")
    step = exp.plan(_dir("/r/[x]"), "*.ts")
    (matcher,) = step.options.match
    assert matcher.match("/r/[x]/a.ts")


def test_merge_deduplicates_and_sorts():
    b = _file("/r/b")
    a = _file("/r/a")
    merged = GlobExpansion.merge([b, a, b, _file("/r/a")])
    assert [e.path for e in merged] == ["/r/a", "/r/b"]


@posix_only
def test_finalize_filters():
    entries = [_dir("/r/d"), _file("/r/f")]
    assert _expansion("*").finalize(entries) == entries
    assert _expansion("*", include_dirs=False).finalize(entries) == [entries[1]]
    assert _expansion("*/").finalize(entries) == [entries[0]]
    assert _expansion("*/", include_dirs=False).finalize(entries) == [entries[0]]


@posix_only
def test_exclude_resolved_against_literal_root():
    exp = _expansion("*", root="/data/[v1]", exclude=["build", "/abs/*.o", "../shared/"])
    patterns = [m.pattern for m in exp.exclude]
    assert patterns == ["/data/\\[v1\\]/build", "/abs/*.o", "/data/shared"]
    assert exp.should_include("/data/[v1]/src")
    assert not exp.should_include("/data/[v1]/build")
    assert not exp.should_include("/abs/x.o")


def test_resolve_options_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    opts = resolve_options()
    assert opts.root == os.getcwd()
    assert opts.exclude == ()
    assert opts.include_dirs is True
    assert opts.extended is False and opts.globstar is False


def test_options_are_immutable():
    opts = resolve_options(root="/r")
    with pytest.raises(AttributeError):
        opts.root = "/elsewhere"  # type: ignore[misc]


@posix_only
def test_seed_excluded_for_fixed_root_and_its_ancestors():
    assert _expansion("a/x/y.ts", exclude=["a/x"]).seed_excluded()
    assert _expansion("a/x/y.ts", exclude=["a"]).seed_excluded()
    assert _expansion("a/x", exclude=["a/x/"]).seed_excluded()
    assert not _expansion("a/x/*.ts", exclude=["a/x/y.ts"]).seed_excluded()
    assert not _expansion("a/x/y.ts").seed_excluded()


def _win_expansion(glob, root="C:\\proj", **kwargs):
    return GlobExpansion(glob, resolve_options(root=root, **kwargs), windows=True)


def test_windows_fixed_root_keeps_drive():
    exp = _win_expansion("src\\*.ts")
    assert exp.fixed_root == "C:\\proj\\src"
    assert exp.segments == ("*.ts",)


def test_windows_glob_at_drive_root():
    exp = _win_expansion("D:/*/lib")
    assert exp.fixed_root == "D:\\"
    assert exp.segments == ("*", "lib")


def test_windows_unc_fixed_root():
    exp = _win_expansion("*.txt", root="\\\\server\\share\\docs")
    assert exp.fixed_root == "\\\\server\\share\\docs"
    assert exp.segments == ("*.txt",)


def test_windows_root_components_are_literal():
    exp = _win_expansion("*.ts", root="C:\\data\\[v1]")
    assert exp.fixed_root == "C:\\data\\[v1]"
    assert exp.segments == ("*.ts",)


def test_windows_parent_reference_and_excludes():
    exp = _win_expansion("**\\..", globstar=True, exclude=["build", "..\\other"])
    assert exp.plan(_dir("C:\\proj\\a\\b"), "..") == ParentStep("C:\\proj\\a")
    assert not exp.should_include("C:\\proj\\build")
    assert not exp.should_include("C:\\other")
    assert exp.should_include("C:\\proj\\src")
    assert exp.plan(_dir("C:\\proj\\build\\x"), "..") is None


def test_windows_segment_matcher_escapes_drive_path():
    exp = _win_expansion("*\\*.ts")
    step = exp.plan(_dir("C:\\proj\\[x]"), "*.ts")
    (matcher,) = step.options.match
    assert matcher.match("C:\\proj\\[x]\\main.ts")
    assert not matcher.match("C:\\proj\\[x]\\deep\\main.ts")
    assert not matcher.match("C:\\proj\\x\\main.ts")


def test_windows_seed_excluded():
    assert _win_expansion("src\\main.ts", exclude=["src"]).seed_excluded()
    assert not _win_expansion("src\\main.ts", exclude=["lib"]).seed_excluded()
