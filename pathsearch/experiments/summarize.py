#!/usr/bin/env python3
from __future__ import annotations
import argparse
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd

KEYS = ["domain", "input", "variant"]
METRICS = ["g", "expanded", "generated", "duplicates", "peak_open", "time_sec"]


def _load_ok(p: Path) -> Optional[pd.DataFrame]:
    try:
        df = pd.read_csv(p)
    except (OSError, pd.errors.EmptyDataError):
        return None
    need = set(KEYS) | {"algorithm", "expanded"}
    if not need.issubset(df.columns):
        return None
    if "termination" in df.columns:
        df = df[df["termination"].fillna("ok") == "ok"]
    for c in METRICS:
        if c not in df.columns:
            df[c] = np.nan
    return df


def load(files: List[Path]) -> pd.DataFrame:
    frames = [d for d in (_load_ok(Path(p)) for p in files) if d is not None and not d.empty]
    if not frames:
        return pd.DataFrame(columns=KEYS + ["algorithm"] + METRICS)
    return pd.concat(frames, ignore_index=True)


def group_means(df: pd.DataFrame) -> pd.DataFrame:
    """Mean of each metric per (domain, input, variant, algorithm), plus run count."""
    g = df.groupby(KEYS + ["algorithm"], sort=True)
    out = g[METRICS].mean()
    out["n"] = g.size()
    return out.reset_index()


def astar_ratio(means: pd.DataFrame) -> pd.DataFrame:
    """
    Per instance: A* expansions / Dijkstra expansions and whether both found the same cost.
    Instances missing either algorithm are dropped.
    """
    wide = means.pivot_table(index=KEYS, columns="algorithm", values=["expanded", "g"])
    if ("expanded", "A*") not in wide.columns or ("expanded", "Dijkstra") not in wide.columns:
        return pd.DataFrame(columns=KEYS + ["ratio_expanded", "same_cost"])
    out = pd.DataFrame({
        "ratio_expanded": wide[("expanded", "A*")] / wide[("expanded", "Dijkstra")],
        "same_cost": np.isclose(wide[("g", "A*")], wide[("g", "Dijkstra")]),
    }).dropna(subset=["ratio_expanded"])
    return out.reset_index()


def write_summary_md(path: Path, means: pd.DataFrame, ratios: pd.DataFrame) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write("# Search Summary\n\n")
        f.write("This file was auto-generated from runner CSVs.\n\n")
        for (domain, inp, variant), sub in means.groupby(KEYS, sort=True):
            f.write(f"## {domain} / {inp} ({variant})\n\n")
            f.write("| algo | cost | expanded | generated | duplicates | peak open | time (s) | n |\n")
            f.write("|:---|---:|---:|---:|---:|---:|---:|---:|\n")
            for _, r in sub.iterrows():
                f.write(f"| {r['algorithm']} | {r['g']:.0f} | {r['expanded']:.1f} | {r['generated']:.1f} "
                        f"| {r['duplicates']:.1f} | {r['peak_open']:.1f} | {r['time_sec']:.6f} | {r['n']} |\n")
            f.write("\n")
        if not ratios.empty:
            f.write("## A* vs Dijkstra\n\n")
            f.write("| domain | input | variant | expanded ratio A*/Dijkstra | same cost |\n")
            f.write("|:---|:---|:---|---:|:---:|\n")
            for _, r in ratios.iterrows():
                f.write(f"| {r['domain']} | {r['input']} | {r['variant']} "
                        f"| {r['ratio_expanded']:.3f} | {'yes' if r['same_cost'] else 'NO'} |\n")
            f.write("\n")
    print(f"Wrote {path}")


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Summarize runner CSVs into a markdown table.")
    ap.add_argument("files", nargs="+", type=Path, help="CSV files from runner.py")
    ap.add_argument("--out", type=Path, default=Path("results/summary.md"))
    args = ap.parse_args(argv)

    df = load(args.files)
    if df.empty:
        print("No rows to summarize. Are your CSVs empty?")
        return 0
    means = group_means(df)
    ratios = astar_ratio(means)
    write_summary_md(args.out, means, ratios)

    print("\n== A*/Dijkstra expansions ==")
    for _, r in ratios.iterrows():
        flag = "" if r["same_cost"] else "  (cost mismatch!)"
        print(f"{r['domain']} {r['input']} [{r['variant']}]: {r['ratio_expanded']:.3f}{flag}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
