#!/usr/bin/env python3
import subprocess, sys
from pathlib import Path

def run(desc, cmd):
    print(f"\n=== {desc} ===\n{cmd}")
    r = subprocess.run(cmd, shell=True)
    if r.returncode != 0:
        sys.exit(r.returncode)

def main():
    Path("results").mkdir(exist_ok=True)
    run("Cavern", "python -m pathsearch.experiments.runner cavern data/cavern_example.txt --out results/runs.csv")
    run("Cavern x5", "python -m pathsearch.experiments.runner cavern data/cavern_example.txt --tiles 5 --out results/runs.csv")
    run("Burrow", "python -m pathsearch.experiments.runner burrow data/burrow_example.txt --out results/runs.csv")
    run("Burrow unfolded", "python -m pathsearch.experiments.runner burrow data/burrow_example.txt --unfold --out results/runs.csv")
    run("Summary", "python -m pathsearch.experiments.summarize results/runs.csv --out results/summary.md")
    run("Plots", "python -m pathsearch.experiments.plot results/runs.csv --save results/plots")

if __name__ == "__main__":
    main()
