"""Tests for the cavern (risk grid) domain."""

import logging
from pathlib import Path

import numpy as np
import pytest

from pathsearch.domains.cavern import RiskMap, lowest_total_risk, wrapped_risk
from pathsearch.domains.parsing import InputFormatError, parse_digit_grid
from pathsearch.heuristics.manhattan import manhattan, manhattan_to
from pathsearch.search.best_first import zero_heuristic

EXAMPLE = (Path(__file__).parent.parent / "data" / "cavern_example.txt").read_text()


@pytest.fixture
def risk_map():
    return RiskMap.parse(EXAMPLE)


@pytest.fixture
def tiled_map():
    return RiskMap.parse(EXAMPLE, tiles=5)


class TestParsing:
    def test_digit_grid(self):
        grid = parse_digit_grid("\n123\n456\n\n")
        assert grid.dtype == np.uint8
        assert grid.tolist() == [[1, 2, 3], [4, 5, 6]]

    def test_ragged_rows(self):
        with pytest.raises(InputFormatError):
            parse_digit_grid("123\n45")

    def test_non_digits(self):
        with pytest.raises(InputFormatError):
            parse_digit_grid("12a\n456")

    def test_empty(self):
        with pytest.raises(InputFormatError):
            parse_digit_grid("  \n")


class TestRiskMap:
    def test_shape_and_corners(self, risk_map, tiled_map):
        assert risk_map.shape == (10, 10)
        assert risk_map.goal == (9, 9)
        assert tiled_map.shape == (50, 50)
        assert tiled_map.goal == (49, 49)

    def test_out_of_bounds(self, risk_map):
        assert risk_map.risk((-1, 0)) is None
        assert risk_map.risk((0, 10)) is None
        assert risk_map.risk((9, 9)) == 1

    def test_corner_neighbors(self, risk_map):
        assert sorted(risk_map.neighbors((0, 0))) == [((0, 1), 1), ((1, 0), 1)]
        assert len(risk_map.neighbors((5, 5))) == 4

    def test_wrapped_risk(self):
        assert wrapped_risk(8, 1, 0) == 9
        assert wrapped_risk(9, 1, 0) == 1
        assert wrapped_risk(9, 0, 1) == 1
        assert wrapped_risk(1, 4, 4) == 9
        assert wrapped_risk(5, 2, 3) == 1

    def test_tiled_first_row(self, tiled_map):
        row = "".join(str(tiled_map.risk((0, c))) for c in range(50))
        assert row == "11637517422274862853338597396444961841755517295286"

    def test_materialize_matches_risk(self, tiled_map):
        full = tiled_map.materialize()
        assert full.shape == (50, 50)
        for r in range(0, 50, 7):
            for c in range(50):
                assert full[r, c] == tiled_map.risk((r, c))

    def test_heuristic_uses_cheapest_cell(self):
        m = RiskMap(np.array([[3, 4], [5, 6]], dtype=np.uint8))
        h = m.heuristic()
        assert h((0, 0)) == 6
        assert h(m.goal) == 0

    def test_zero_risk_cells_disable_heuristic(self, caplog):
        m = RiskMap(np.array([[1, 0], [5, 6]], dtype=np.uint8))
        with caplog.at_level(logging.WARNING, logger="pathsearch.domains.cavern"):
            h = m.heuristic()
        assert h is zero_heuristic
        assert "risk 0" in caplog.text

    def test_min_risk_of_tiled_map(self, tiled_map):
        assert tiled_map.min_risk() == int(tiled_map.materialize().min())
        m = RiskMap(np.array([[8, 9]], dtype=np.uint8), tiles=3)
        assert m.min_risk() == int(m.materialize().min()) == 1

    def test_zero_risk_kept_in_base_tile_only(self):
        m = RiskMap(np.array([[0]], dtype=np.uint8), tiles=2)
        assert m.risk((0, 0)) == 0
        assert m.risk((0, 1)) == 1
        assert m.risk((1, 1)) == 2
        assert m.min_risk() == 0

    def test_bad_arguments(self):
        with pytest.raises(ValueError):
            RiskMap(np.array([[1]], dtype=np.uint8), tiles=0)
        with pytest.raises(ValueError):
            RiskMap(np.array([1, 2], dtype=np.uint8))


class TestLowestRisk:
    def test_tiny_grid(self):
        assert lowest_total_risk("19\n11") == 2
        assert lowest_total_risk("5") == 0

    @pytest.mark.parametrize("use_heuristic", [False, True])
    def test_example(self, risk_map, use_heuristic):
        r = risk_map.solve(use_heuristic=use_heuristic)
        assert r.cost == 40
        assert r.path[0] == (0, 0)
        assert r.path[-1] == (9, 9)
        assert sum(risk_map.risk(c) for c in r.path[1:]) == 40

    @pytest.mark.parametrize("use_heuristic", [False, True])
    def test_tiled_example(self, tiled_map, use_heuristic):
        r = tiled_map.solve(use_heuristic=use_heuristic)
        assert r.cost == 315
        assert sum(tiled_map.risk(c) for c in r.path[1:]) == 315

    def test_tiled_astar_stays_lazy(self, tiled_map, monkeypatch):
        def fail(self):
            raise AssertionError("tiled grid was materialized")
        monkeypatch.setattr(RiskMap, "materialize", fail)
        assert tiled_map.solve(use_heuristic=True).cost == 315

    def test_astar_expands_no_more_than_dijkstra(self, tiled_map):
        d = tiled_map.solve(use_heuristic=False)
        a = tiled_map.solve(use_heuristic=True)
        assert a.cost == d.cost
        assert a.stats.expanded <= d.stats.expanded

    def test_visited_once(self, risk_map):
        seen = []
        r = risk_map.solve(on_step=lambda n, accepted: accepted and seen.append(n.state))
        assert len(seen) == len(set(seen)) == r.stats.expanded

    def test_convenience(self):
        assert lowest_total_risk(EXAMPLE) == 40
        assert lowest_total_risk(EXAMPLE, tiles=5, use_heuristic=True) == 315


class TestManhattan:
    def test_distance(self):
        assert manhattan((0, 0), (3, 4)) == 7
        assert manhattan((5, 1), (2, 3)) == 5

    def test_weighted(self):
        h = manhattan_to((4, 4), step_cost=2)
        assert h((0, 0)) == 16
        assert h((4, 4)) == 0

    def test_negative_step_cost(self):
        with pytest.raises(ValueError):
            manhattan_to((0, 0), -1)
