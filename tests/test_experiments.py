"""Tests for the runner, summary, plotting and visualisation tools."""

import csv
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from pathsearch.domains.burrow import Burrow
from pathsearch.domains.cavern import RiskMap
from pathsearch.experiments import plot, runner, summarize
from pathsearch.experiments.visualize_path import (
    FrameCollector, FrameEncoder, burrow_path_text, render_cavern, scale_frame,
)
from pathsearch.search.best_first import search

DATA = Path(__file__).parent.parent / "data"
CAVERN = DATA / "cavern_example.txt"
BURROW = DATA / "burrow_example.txt"


def read_rows(path):
    with open(path, newline="") as f:
        return list(csv.DictReader(f))


class TestRunner:
    def test_cavern_both_algorithms(self, tmp_path, capsys):
        out = tmp_path / "runs.csv"
        assert runner.main(["cavern", str(CAVERN), "--out", str(out)]) == 0
        rows = read_rows(out)
        assert [r["algorithm"] for r in rows] == ["Dijkstra", "A*"]
        assert all(r["g"] == "40" and r["termination"] == "ok" for r in rows)
        assert rows[0]["variant"] == "tiles=1"
        assert "cost=40" in capsys.readouterr().out

    def test_appends_without_repeating_header(self, tmp_path):
        out = tmp_path / "runs.csv"
        runner.main(["cavern", str(CAVERN), "--algo", "astar", "--out", str(out)])
        runner.main(["cavern", str(CAVERN), "--tiles", "5", "--algo", "astar", "--out", str(out)])
        rows = read_rows(out)
        assert [r["g"] for r in rows] == ["40", "315"]

    def test_burrow(self, tmp_path):
        out = tmp_path / "runs.csv"
        assert runner.main(["burrow", str(BURROW), "--algo", "astar", "--out", str(out)]) == 0
        (row,) = read_rows(out)
        assert row["g"] == "12521"
        assert row["variant"] == "depth=2"

    def test_expansion_limit_reports_failure(self, tmp_path, capsys):
        out = tmp_path / "runs.csv"
        status = runner.main(["cavern", str(CAVERN), "--algo", "dijkstra",
                              "--max_expansions", "3", "--out", str(out)])
        assert status == 1
        (row,) = read_rows(out)
        assert row["termination"] == "limit"
        assert row["g"] == ""
        assert "no path (limit)" in capsys.readouterr().out

    def test_missing_input(self, tmp_path):
        assert runner.main(["cavern", str(tmp_path / "nope.txt")]) == 2

    def test_malformed_input(self, tmp_path):
        bad = tmp_path / "bad.txt"
        bad.write_text("12\n3x\n")
        assert runner.main(["cavern", str(bad)]) == 2

    def test_bad_tiles(self):
        with pytest.raises(SystemExit):
            runner.main(["cavern", str(CAVERN), "--tiles", "0"])


@pytest.fixture
def runs_csv(tmp_path):
    out = tmp_path / "runs.csv"
    runner.main(["cavern", str(CAVERN), "--out", str(out)])
    runner.main(["cavern", str(CAVERN), "--tiles", "5", "--out", str(out)])
    return out


class TestSummary:
    def test_group_means(self, runs_csv):
        means = summarize.group_means(summarize.load([runs_csv]))
        assert len(means) == 4
        assert set(means["algorithm"]) == {"Dijkstra", "A*"}
        assert (means["n"] == 1).all()

    def test_astar_ratio(self, runs_csv):
        ratios = summarize.astar_ratio(summarize.group_means(summarize.load([runs_csv])))
        assert len(ratios) == 2
        assert ratios["same_cost"].all()
        assert (ratios["ratio_expanded"] <= 1.0).all()

    def test_ratio_needs_both_algorithms(self, tmp_path):
        out = tmp_path / "runs.csv"
        runner.main(["cavern", str(CAVERN), "--algo", "astar", "--out", str(out)])
        ratios = summarize.astar_ratio(summarize.group_means(summarize.load([out])))
        assert ratios.empty

    def test_load_skips_unusable_files(self, tmp_path, runs_csv):
        empty = tmp_path / "empty.csv"
        empty.write_text("")
        other = tmp_path / "other.csv"
        pd.DataFrame({"x": [1]}).to_csv(other, index=False)
        df = summarize.load([empty, other, runs_csv])
        assert len(df) == 4

    def test_main_writes_markdown(self, runs_csv, tmp_path):
        md = tmp_path / "summary.md"
        assert summarize.main([str(runs_csv), "--out", str(md)]) == 0
        text = md.read_text()
        assert "## cavern / cavern_example.txt (tiles=5)" in text
        assert "A* vs Dijkstra" in text
        assert "| yes |" in text


def test_plot_main(runs_csv, tmp_path):
    outdir = tmp_path / "plots"
    assert plot.main([str(runs_csv), "--save", str(outdir)]) == 0
    assert (outdir / "runs_combined.png").exists()


class TestVisualize:
    def test_collector_tracks_search(self):
        risk_map = RiskMap.parse(CAVERN.read_text())
        collector = FrameCollector(risk_map, every=10)
        r = search(risk_map.start, risk_map.is_goal, risk_map.neighbors, on_step=collector)
        assert collector.solved.sum() == r.stats.expanded
        assert collector.considered.sum() == r.stats.generated
        collector.trace(risk_map.goal)
        assert collector.on_path.sum() == len(r.path)
        assert len(collector.frames) == collector.emitted
        frame = collector.frames[-1]
        assert frame.shape == (10, 10, 3)
        assert frame.dtype == np.uint8
        # start cell sits on the path
        assert frame[0, 0, 0] == 255

    def test_scale_frame(self):
        frame = np.zeros((2, 3, 3), dtype=np.uint8)
        assert scale_frame(frame, 4).shape == (8, 12, 3)
        assert scale_frame(frame, 1) is frame

    def test_png_frames(self, tmp_path):
        risk_map = RiskMap.parse(CAVERN.read_text())
        outdir = tmp_path / "frames"
        result, n = render_cavern(risk_map, outdir, every=5, scale=2)
        assert result.cost == 40
        assert n == len(list(outdir.glob("step_*.png")))
        assert n > 2

    def test_gif(self, tmp_path):
        risk_map = RiskMap.parse(CAVERN.read_text())
        gif = tmp_path / "search.gif"
        result, n = render_cavern(risk_map, gif, use_heuristic=True, every=20, every_trace=5)
        assert result.cost == 40
        assert n > 0
        assert gif.stat().st_size > 0

    def test_encoder_blocks_then_drains(self, tmp_path):
        outdir = tmp_path / "frames"
        frame = np.zeros((3, 3, 3), dtype=np.uint8)
        with FrameEncoder(outdir, scale=1, maxsize=1) as encoder:
            for _ in range(6):
                encoder.put(frame)
        assert encoder.written == 6

    def test_gif_failure_is_reported(self, tmp_path):
        gif = tmp_path / "search.gif"
        gif.mkdir()
        encoder = FrameEncoder(gif, scale=1).start()
        encoder.put(np.zeros((3, 3, 3), dtype=np.uint8))
        with pytest.raises(RuntimeError):
            encoder.close()
        assert not encoder._thread.is_alive()

    def test_burrow_path_text(self):
        text = burrow_path_text(Burrow.parse(BURROW.read_text()))
        assert text.startswith("energy so far: 0\n#############")
        assert "energy so far: 12521\n" in text
        assert text.rstrip().endswith("###A#B#C#D###\n  #A#B#C#D#\n  #########")
