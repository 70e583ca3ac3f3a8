#!/usr/bin/env python3
from __future__ import annotations
import argparse, csv, logging, sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from pathsearch.domains.burrow import Burrow, unfold
from pathsearch.domains.cavern import RiskMap
from pathsearch.domains.parsing import InputFormatError, read_text
from pathsearch.search.best_first import SearchResult, search, zero_heuristic

HEADER = [
    "domain", "input", "variant", "algorithm", "tie_break",
    "g", "path_len", "expanded", "generated", "duplicates", "peak_open",
    "time_sec", "termination",
]

ALGORITHMS = {"dijkstra": "Dijkstra", "astar": "A*"}


def choose_domain(args) -> Tuple[object, Callable, Callable, Callable, str]:
    """
    Returns (start, is_goal, neighbors_fn, hfun, variant) for --domain.
    hfun is the domain's admissible heuristic; Dijkstra runs ignore it.
    """
    text = read_text(args.input)
    if args.domain == "cavern":
        dom = RiskMap.parse(text, tiles=args.tiles)
        return dom.start, dom.is_goal, dom.neighbors, dom.heuristic(), f"tiles={args.tiles}"
    if args.unfold:
        text = unfold(text)
    dom = Burrow.parse(text)
    return dom.start, dom.is_goal, dom.neighbors, dom.heuristic, f"depth={dom.depth}"


def run_all(args) -> Tuple[str, List[Tuple[str, SearchResult]]]:
    start, is_goal, neighbors_fn, hfun, variant = choose_domain(args)
    algos = ["dijkstra", "astar"] if args.algo == "both" else [args.algo]
    results: List[Tuple[str, SearchResult]] = []
    for algo in algos:
        h = hfun if algo == "astar" else zero_heuristic
        r = search(start, is_goal, neighbors_fn, h,
                   tie_break=args.tie_break, max_expansions=args.max_expansions)
        results.append((algo, r))
    return variant, results


def write_rows(out: Path, args, variant: str, results: List[Tuple[str, SearchResult]]) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    new_file = not out.exists() or out.stat().st_size == 0
    with out.open("a", newline="") as f:
        w = csv.DictWriter(f, fieldnames=HEADER)
        if new_file:
            w.writeheader()
        for algo, r in results:
            row = {
                "domain": args.domain, "input": Path(args.input).name, "variant": variant,
                "algorithm": ALGORITHMS[algo], "tie_break": args.tie_break,
            }
            row.update(r.as_row())
            w.writerow(row)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Dijkstra / A* runner for the cavern and burrow puzzles")
    ap.add_argument("domain", choices=["cavern", "burrow"])
    ap.add_argument("input", type=Path, help="Puzzle input text file")
    ap.add_argument("--algo", choices=["dijkstra", "astar", "both"], default="both")
    ap.add_argument("--tiles", type=int, default=1, help="Cavern: repeat the map N x N times")
    ap.add_argument("--unfold", action="store_true", help="Burrow: insert the two hidden rows")
    ap.add_argument("--tie_break", choices=["fifo", "lifo", "h", "g"], default="fifo")
    ap.add_argument("--max_expansions", type=int, default=None, help="Stop after this many accepted states")
    ap.add_argument("--out", type=Path, default=None, help="Append instrumentation rows to this CSV")
    ap.add_argument("--verbose", "-v", action="store_true")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    if args.tiles < 1:
        ap.error("--tiles must be >= 1")

    try:
        variant, results = run_all(args)
    except (OSError, InputFormatError) as e:
        print(f"Cannot load {args.input}: {e}", file=sys.stderr)
        return 2

    status = 0
    for algo, r in results:
        s = r.stats
        if r.found:
            print(f"{ALGORITHMS[algo]:<9} cost={r.cost} expanded={s.expanded} "
                  f"generated={s.generated} time={s.time_sec:.3f}s")
        else:
            print(f"{ALGORITHMS[algo]:<9} no path ({r.termination}) expanded={s.expanded}")
            status = 1

    if args.out is not None:
        write_rows(args.out, args, variant, results)
        print(f"Wrote {args.out} ({len(results)} rows)")
    return status


if __name__ == "__main__":
    sys.exit(main())
