from __future__ import annotations
from typing import Callable, List, Optional, Tuple
import logging

import numpy as np

from pathsearch.domains.parsing import parse_digit_grid
from pathsearch.heuristics.manhattan import manhattan_to
from pathsearch.search.best_first import SearchResult, search, zero_heuristic

logger = logging.getLogger(__name__)

Coord = Tuple[int, int]  # (row, col)


def wrapped_risk(base_value: int, tile_row: int, tile_col: int) -> int:
    """
    Risk of a cell copied into tile (tile_row, tile_col); values wrap 9 -> 1.
    Only meant for shifted tiles: the base tile keeps its values, so a 0-risk
    cell stays 0 there, while wrapped_risk(0, 0, 0) would give 9.
    """
    return (base_value + tile_row + tile_col - 1) % 9 + 1


class RiskMap:
    """
    Risk-valued lattice. Entering a cell costs that cell's risk.
    With tiles > 1 the base grid is repeated tiles x tiles times, each tile
    shifted by wrapped_risk; the repeated grid is computed on demand.
    """
    def __init__(self, grid: np.ndarray, tiles: int = 1):
        if grid.ndim != 2 or grid.size == 0:
            raise ValueError("grid must be a non-empty 2D array")
        if tiles < 1:
            raise ValueError("tiles must be >= 1")
        self.grid = grid
        self.tiles = tiles
        self.base_rows, self.base_cols = grid.shape
        self.rows = self.base_rows * tiles
        self.cols = self.base_cols * tiles
        self.start: Coord = (0, 0)
        self.goal: Coord = (self.rows - 1, self.cols - 1)

    @classmethod
    def parse(cls, text: str, tiles: int = 1) -> "RiskMap":
        grid = parse_digit_grid(text)
        logger.debug("parsed %dx%d risk grid (tiles=%d)", grid.shape[0], grid.shape[1], tiles)
        return cls(grid, tiles)

    @property
    def shape(self) -> Coord:
        return (self.rows, self.cols)

    # ---------- transitions ----------
    def risk(self, coord: Coord) -> Optional[int]:
        r, c = coord
        if not (0 <= r < self.rows and 0 <= c < self.cols):
            return None
        tr, br = divmod(r, self.base_rows)
        tc, bc = divmod(c, self.base_cols)
        base = int(self.grid[br, bc])
        if tr == 0 and tc == 0:
            return base
        return wrapped_risk(base, tr, tc)

    def neighbors(self, coord: Coord) -> List[Tuple[Coord, int]]:
        r, c = coord
        out: List[Tuple[Coord, int]] = []
        for nxt in ((r - 1, c), (r + 1, c), (r, c - 1), (r, c + 1)):
            value = self.risk(nxt)
            if value is not None:
                out.append((nxt, value))
        return out

    def is_goal(self, coord: Coord) -> bool:
        return coord == self.goal

    # ---------- heuristics ----------
    def min_risk(self) -> int:
        base = int(self.grid.min())
        if self.tiles == 1:
            return base
        # tile (tr, tc) only depends on the shift tr + tc
        shifted = min(wrapped_risk(int(v), k, 0)
                      for v in np.unique(self.grid) for k in range(1, 2 * self.tiles - 1))
        return min(base, shifted)

    def heuristic(self) -> Callable[[Coord], int]:
        """Manhattan distance to the goal scaled by the cheapest cell on the map."""
        step = self.min_risk()
        if step < 1:
            logger.warning(
                "risk map contains cells with risk %d; Manhattan heuristic scaled to %d", step, step
            )
        if step == 0:
            return zero_heuristic
        return manhattan_to(self.goal, step)

    def materialize(self) -> np.ndarray:
        """Full logical grid as an array (tiles included)."""
        if self.tiles == 1:
            return self.grid.copy()
        tr = np.repeat(np.arange(self.tiles), self.base_rows)[:, None]
        tc = np.repeat(np.arange(self.tiles), self.base_cols)[None, :]
        base = np.tile(self.grid.astype(np.int64), (self.tiles, self.tiles))
        shifted = (base + tr + tc - 1) % 9 + 1
        out = np.where((tr == 0) & (tc == 0), base, shifted)
        return out.astype(np.uint8)

    def solve(self, use_heuristic: bool = False, **kwargs) -> SearchResult:
        h = self.heuristic() if use_heuristic else zero_heuristic
        return search(self.start, self.is_goal, self.neighbors, h, **kwargs)


def lowest_total_risk(text: str, tiles: int = 1, use_heuristic: bool = False) -> Optional[int]:
    result = RiskMap.parse(text, tiles).solve(use_heuristic=use_heuristic)
    return result.cost if result.found else None
