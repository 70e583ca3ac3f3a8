#!/usr/bin/env python3
from __future__ import annotations
import argparse, os
from pathlib import Path
from typing import List, Optional

import numpy as np
import matplotlib
# Default to a non-interactive backend; we'll only show() if --show
if "MPLBACKEND" not in os.environ:
    matplotlib.use("Agg")
import matplotlib.pyplot as plt

from pathsearch.experiments.summarize import KEYS, group_means, load

ALGO_COLORS = {"Dijkstra": "#0072B2", "A*": "#E69F00"}


def plot_metric(ax, means, metric: str):
    """Grouped bars: one group per instance, one bar per algorithm."""
    instances = list(means[KEYS].drop_duplicates().itertuples(index=False, name=None))
    labels = ["\n".join(str(x) for x in key) for key in instances]
    algos = sorted(means["algorithm"].unique())
    xs = np.arange(len(labels))
    width = 0.8 / max(len(algos), 1)
    for k, algo in enumerate(algos):
        sub = means[means["algorithm"] == algo].set_index(KEYS)
        ys = [sub[metric].get(key, np.nan) for key in instances]
        ax.bar(xs + k * width - 0.4 + width / 2, ys, width, label=algo, color=ALGO_COLORS.get(algo))
    ax.set_xticks(xs)
    ax.set_xticklabels(labels, fontsize=8)
    ax.set_ylabel(metric)
    ax.set_title(f"{metric} by instance")
    ax.grid(True, axis="y")
    ax.legend()


def save_fig(fig, outdir: Path, name: str) -> Path:
    outdir.mkdir(parents=True, exist_ok=True)
    path = outdir / f"{name}.png"
    fig.savefig(path, dpi=200, bbox_inches="tight")
    print(f"Saved: {path}")
    return path


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Plot runner CSVs and save PNGs.")
    ap.add_argument("csv", nargs="+", type=Path, help="One or more CSV result files")
    ap.add_argument("--save", type=Path, default=Path("results/plots"), help="Directory to save plots")
    ap.add_argument("--show", action="store_true", help="Also open interactive windows (if GUI available)")
    args = ap.parse_args(argv)

    df = load(args.csv)
    if df.empty:
        print("No rows to plot. Are your CSVs empty?")
        return 0
    means = group_means(df)
    base = "combo" if len(args.csv) > 1 else args.csv[0].stem

    fig, axes = plt.subplots(1, 3, figsize=(15, 5))
    for ax, metric in zip(axes, ["expanded", "generated", "time_sec"]):
        plot_metric(ax, means, metric)
    plt.tight_layout()
    save_fig(fig, args.save, f"{base}_combined")

    if args.show:
        plt.show()
    plt.close(fig)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
