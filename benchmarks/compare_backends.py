from __future__ import annotations

import argparse
import asyncio
from datetime import datetime
import glob as stdlib_glob
import json
import os
from pathlib import Path
import statistics
import tempfile
import time
import tracemalloc
from dataclasses import dataclass
from typing import Callable

from wcmatch import glob as wcglob

from expandglob import expand_glob, expand_glob_sync


@dataclass
class CaseResult:
    backend: str
    case: str
    matches: int
    seconds_mean: float
    seconds_min: float
    seconds_max: float
    peak_kib_mean: float


def _run_with_memory(fn: Callable[[], int]) -> tuple[float, float, int]:
    tracemalloc.start()
    start = time.perf_counter()
    count = fn()
    elapsed = time.perf_counter() - start
    _, peak = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    return elapsed, peak / 1024.0, count


def build_source_tree(root: str, width: int, depth: int, files_per_dir: int) -> int:
    """Create a balanced tree of ``.ts``/``.txt`` files and return the file count."""
    created = 0
    level = [root]
    for d in range(depth):
        next_level = []
        for parent in level:
            for i in range(width):
                path = os.path.join(parent, f"d{d}_{i}")
                os.mkdir(path)
                next_level.append(path)
        level = next_level
        for parent in level:
            for j in range(files_per_dir):
                ext = "ts" if j % 2 == 0 else "txt"
                with open(os.path.join(parent, f"f{j:03d}.{ext}"), "wb"):
                    pass
                created += 1
    os.makedirs(os.path.join(root, "node_modules", "pkg"))
    for j in range(files_per_dir):
        with open(os.path.join(root, "node_modules", "pkg", f"m{j:03d}.ts"), "wb"):
            pass
        created += 1
    return created


# ---------------------------------------------------------------------------
#  Backends
# ---------------------------------------------------------------------------


def bench_expand_sync(root: str, pattern: str, exclude: list[str]) -> int:
    return sum(1 for _ in expand_glob_sync(pattern, root=root, exclude=exclude, globstar=True))


def bench_expand_async(root: str, pattern: str, exclude: list[str]) -> int:
    async def _collect() -> int:
        return len([e async for e in expand_glob(pattern, root=root, exclude=exclude, globstar=True)])

    return asyncio.run(_collect())


def bench_stdlib_glob(root: str, pattern: str, exclude: list[str]) -> int:
    found = stdlib_glob.glob(pattern, root_dir=root, recursive=True)
    if exclude:
        prefixes = tuple(e.rstrip("/") for e in exclude)
        found = [f for f in found if not f.replace(os.sep, "/").startswith(prefixes)]
    return len(found)


def bench_wcmatch_glob(root: str, pattern: str, exclude: list[str]) -> int:
    flags = wcglob.GLOBSTAR | wcglob.DOTGLOB
    if exclude:
        flags |= wcglob.NEGATE
        patterns = [pattern] + [f"!{e.rstrip('/')}/**" for e in exclude]
    else:
        patterns = [pattern]
    return len(wcglob.glob(patterns, root_dir=root, flags=flags))


BACKENDS: list[tuple[str, Callable[[str, str, list[str]], int]]] = [
    ("expandglob(sync)", bench_expand_sync),
    ("expandglob(async)", bench_expand_async),
    ("glob.glob", bench_stdlib_glob),
    ("wcmatch.glob", bench_wcmatch_glob),
]

CASES: list[tuple[str, str, list[str]]] = [
    ("top_level_star", "*", []),
    ("one_level_ts", "*/*.ts", []),
    ("recursive_ts", "**/*.ts", []),
    ("recursive_ts_exclude", "**/*.ts", ["node_modules"]),
    ("recursive_all", "**/*", []),
]


def _fmt_ms(seconds: float) -> str:
    return f"{seconds * 1000.0:.2f}"


def _fmt_kib(peak_kib: float) -> str:
    return f"{peak_kib:.1f}"


def run_case(
    backend: str,
    case: str,
    fn: Callable[[], int],
    repeat: int,
    warmup: int,
) -> CaseResult:
    for _ in range(warmup):
        fn()

    elapsed_list: list[float] = []
    peak_list: list[float] = []
    count = 0
    for _ in range(repeat):
        elapsed, peak_kib, count = _run_with_memory(fn)
        elapsed_list.append(elapsed)
        peak_list.append(peak_kib)

    return CaseResult(
        backend=backend,
        case=case,
        matches=count,
        seconds_mean=statistics.mean(elapsed_list),
        seconds_min=min(elapsed_list),
        seconds_max=max(elapsed_list),
        peak_kib_mean=statistics.mean(peak_list),
    )


def print_table(results: list[CaseResult]) -> None:
    print("| Case | Backend | matches | mean(ms) | min(ms) | max(ms) | peak KiB (mean) |")
    print("|---|---:|---:|---:|---:|---:|---:|")
    for r in results:
        print(
            f"| {r.case} | {r.backend} | {r.matches} | {_fmt_ms(r.seconds_mean)} |"
            f" {_fmt_ms(r.seconds_min)} | {_fmt_ms(r.seconds_max)} | {_fmt_kib(r.peak_kib_mean)} |"
        )


def _results_to_dict(results: list[CaseResult]) -> list[dict[str, float | int | str]]:
    return [
        {
            "backend": r.backend,
            "case": r.case,
            "matches": r.matches,
            "seconds_mean": r.seconds_mean,
            "seconds_min": r.seconds_min,
            "seconds_max": r.seconds_max,
            "peak_kib_mean": r.peak_kib_mean,
        }
        for r in results
    ]


def _results_markdown(results: list[CaseResult], args: argparse.Namespace) -> str:
    lines = [
        "# Benchmark Results",
        "",
        f"- generated_at: `{datetime.now().isoformat(timespec='seconds')}`",
        f"- repeat: `{args.repeat}`",
        f"- warmup: `{args.warmup}`",
        f"- width: `{args.width}`",
        f"- depth: `{args.depth}`",
        f"- files_per_dir: `{args.files_per_dir}`",
        "",
        "| Case | Backend | matches | mean(ms) | min(ms) | max(ms) | peak KiB (mean) |",
        "|---|---:|---:|---:|---:|---:|---:|",
    ]
    for r in results:
        lines.append(
            f"| {r.case} | {r.backend} | {r.matches} | {_fmt_ms(r.seconds_mean)}"
            f" | {_fmt_ms(r.seconds_min)} | {_fmt_ms(r.seconds_max)} | {_fmt_kib(r.peak_kib_mean)} |"
        )
    lines.append("")
    return "\n".join(lines)


def _resolve_output_path(raw: str, ext: str) -> Path:
    if raw != "auto":
        return Path(raw)
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_dir = Path("benchmarks") / "results"
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir / f"benchmark_{ts}.{ext}"


def _check_counts(results: list[CaseResult]) -> None:
    # glob.glob and wcmatch never return the root for "**", so only the
    # expandglob modes are held to each other.
    by_case: dict[str, set[int]] = {}
    for r in results:
        if r.backend.startswith("expandglob"):
            by_case.setdefault(r.case, set()).add(r.matches)
    for case, counts in by_case.items():
        if len(counts) != 1:
            raise RuntimeError(f"expandglob sync/async disagree on {case}: {sorted(counts)}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Benchmark expandglob vs glob.glob vs wcmatch.glob"
    )
    parser.add_argument("--repeat", type=int, default=5)
    parser.add_argument("--warmup", type=int, default=1)
    parser.add_argument("--width", type=int, default=4)
    parser.add_argument("--depth", type=int, default=4)
    parser.add_argument("--files-per-dir", type=int, default=10)
    parser.add_argument("--json", action="store_true")
    parser.add_argument(
        "--save-md", default="", help="Save markdown report path (or 'auto')"
    )
    parser.add_argument(
        "--save-json", default="", help="Save json report path (or 'auto')"
    )
    args = parser.parse_args()

    results: list[CaseResult] = []
    with tempfile.TemporaryDirectory() as td:
        created = build_source_tree(td, args.width, args.depth, args.files_per_dir)
        if not args.json:
            print(f"Tree: {created} files under {td}\n")
        for case, pattern, exclude in CASES:
            for backend, fn in BACKENDS:
                results.append(
                    run_case(
                        backend,
                        case,
                        lambda fn=fn, pattern=pattern, exclude=exclude: fn(td, pattern, exclude),
                        args.repeat,
                        args.warmup,
                    )
                )
    _check_counts(results)

    if args.json:
        print(json.dumps(_results_to_dict(results), indent=2))
        return

    print_table(results)

    if args.save_md:
        md_path = _resolve_output_path(args.save_md, "md")
        md_path.parent.mkdir(parents=True, exist_ok=True)
        md_path.write_text(_results_markdown(results, args), encoding="utf-8")
        print(f"\nSaved markdown report: {md_path}")

    if args.save_json:
        json_path = _resolve_output_path(args.save_json, "json")
        json_path.parent.mkdir(parents=True, exist_ok=True)
        json_path.write_text(json.dumps(_results_to_dict(results), indent=2), encoding="utf-8")
        print(f"Saved JSON report: {json_path}")


if __name__ == "__main__":
    main()
