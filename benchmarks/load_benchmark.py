#!/usr/bin/env python3
"""
Loader and reset benchmark.

Generates a synthetic long-form table, then times schema inference, a full
load (dense or sparse depending on ``--fill``) and repeated arena resets.
"""

from __future__ import annotations

import argparse
import io
import math
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional

import numpy as np

from ravel import LoadConfig, SimulationState, guess_from_stream, load_tensor_from_csv


@dataclass
class BenchmarkResult:
    stage: str
    min_s: float
    mean_s: float
    iterations: int
    rows_per_s: Optional[float]


def build_source(*, regions: int, periods: int, fill: float, seed: int) -> str:
    rng = np.random.default_rng(seed)
    lines = ["region,period,value"]
    for r in range(regions):
        for p in range(periods):
            value = f"{rng.normal():.6g}" if rng.random() < fill else ""
            lines.append(f"r{r},p{p},{value}")
    return "\n".join(lines) + "\n"


def bench(fn: Callable[[], Any], *, iterations: int, warmup: int) -> List[float]:
    timings = []
    for step in range(iterations + warmup):
        start = time.perf_counter()
        fn()
        elapsed = time.perf_counter() - start
        if step >= warmup:
            timings.append(elapsed)
    return timings


def _summarize(stage: str, timings: List[float], rows: Optional[int]) -> BenchmarkResult:
    min_s = min(timings)
    mean_s = sum(timings) / len(timings)
    rows_per_s = rows / min_s if rows and min_s > 0 else None
    return BenchmarkResult(stage, min_s, mean_s, len(timings), rows_per_s)


def format_results(results: Iterable[BenchmarkResult]) -> str:
    header = f"{'stage':<10} {'min (ms)':>12} {'mean (ms)':>12} {'iters':>8} {'rows/s':>14}"
    rows = [header]
    for result in results:
        rows_per_s = result.rows_per_s or math.nan
        rows.append(
            f"{result.stage:<10} {result.min_s * 1e3:12.3f} {result.mean_s * 1e3:12.3f} "
            f"{result.iterations:8d} {rows_per_s:14.1f}"
        )
    return "\n".join(rows)


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark Ravel loading and resets.")
    parser.add_argument("--regions", type=int, default=200, help="Labels on the first axis (default: 200).")
    parser.add_argument("--periods", type=int, default=100, help="Labels on the second axis (default: 100).")
    parser.add_argument(
        "--fill", type=float, default=0.8, help="Fraction of populated cells (default: 0.8)."
    )
    parser.add_argument("--seed", type=int, default=2024, help="Random seed (default: 2024).")
    parser.add_argument(
        "--iterations", type=int, default=10, help="Timed iterations per stage (default: 10)."
    )
    parser.add_argument("--warmup", type=int, default=2, help="Warmup iterations to discard (default: 2).")
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    if not 0.0 <= args.fill <= 1.0:
        print("--fill must lie in [0, 1]", file=sys.stderr)
        return 1
    source = build_source(regions=args.regions, periods=args.periods, fill=args.fill, seed=args.seed)
    rows = args.regions * args.periods
    spec = guess_from_stream(source)

    results = [
        _summarize(
            "infer",
            bench(lambda: guess_from_stream(source), iterations=args.iterations, warmup=args.warmup),
            None,
        ),
        _summarize(
            "load",
            bench(lambda: load_tensor_from_csv(source, spec), iterations=args.iterations, warmup=args.warmup),
            rows,
        ),
    ]

    state = SimulationState(LoadConfig(seed=args.seed))
    state.add_variable("table")
    state.load_variable("table", io.StringIO(source), spec)
    for i in range(50):
        state.add_variable(f"gen{i}", init=f"{i}*rand({args.periods})")
    results.append(
        _summarize("reset", bench(state.reset, iterations=args.iterations, warmup=args.warmup), None)
    )

    tensor = state.lookup(None, "table").tensor_init
    print(f"# {tensor!r}")
    print(format_results(results))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
