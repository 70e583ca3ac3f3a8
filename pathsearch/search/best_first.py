from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Hashable, Iterable, List, Optional, Tuple, TypeVar, Union
import heapq
import itertools
import logging
from time import perf_counter

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=Hashable)

Cost = Union[int, float]
NeighborsFn = Callable[[S], Iterable[Tuple[S, Cost]]]
HeuristicFn = Callable[[S], Cost]
GoalFn = Callable[[S], bool]
StepFn = Callable[["SearchNode", bool], None]

TIE_BREAKS = ("fifo", "lifo", "h", "g")


def zero_heuristic(state) -> int:
    return 0


@dataclass(frozen=True)
class SearchNode(Generic[S]):
    state: S
    cost: Cost
    heuristic: Cost = 0
    predecessor: Optional[S] = None

    @property
    def priority(self) -> Cost:
        return self.cost + self.heuristic


class Frontier(Generic[S]):
    """
    Min-heap of SearchNodes keyed on cost + heuristic.
    Heap entries are (priority, tie, counter, node), so nodes are never compared.
    """
    def __init__(self, tie_break: str = "fifo"):
        if tie_break not in TIE_BREAKS:
            raise ValueError(f"unknown tie_break {tie_break!r}, expected one of {TIE_BREAKS}")
        self.tie_break = tie_break
        self._heap: List[Tuple[Cost, Cost, int, SearchNode[S]]] = []
        self._counter = itertools.count()

    def _tie(self, node: SearchNode[S], ctr: int) -> Tuple[Cost, int]:
        if self.tie_break == "h":    return (node.heuristic, ctr)
        if self.tie_break == "g":    return (-node.cost, ctr)
        if self.tie_break == "lifo": return (0, -ctr)
        return (0, ctr)

    def push(self, node: SearchNode[S]) -> None:
        tie, ctr = self._tie(node, next(self._counter))
        heapq.heappush(self._heap, (node.priority, tie, ctr, node))

    def pop_min(self) -> SearchNode[S]:
        return heapq.heappop(self._heap)[3]

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)


class VisitedSet(Generic[S]):
    """Closed set: states that were popped and accepted once."""
    def __init__(self):
        self._states = set()

    def contains(self, state: S) -> bool:
        return state in self._states

    def insert(self, state: S) -> bool:
        if state in self._states:
            return False
        self._states.add(state)
        return True

    __contains__ = contains

    def __len__(self) -> int:
        return len(self._states)


@dataclass
class SearchStats:
    expanded: int = 0
    generated: int = 0
    duplicates: int = 0
    peak_open: int = 1
    time_sec: float = 0.0


@dataclass(frozen=True)
class Found(Generic[S]):
    cost: Cost
    path: List[S]
    stats: SearchStats = field(default_factory=SearchStats, compare=False)
    found = True

    def as_row(self) -> Dict[str, object]:
        return _row(self.stats, g=self.cost, termination="ok", path_len=len(self.path))


@dataclass(frozen=True)
class NotFound:
    stats: SearchStats = field(default_factory=SearchStats, compare=False)
    termination: str = "exhausted"
    found = False

    def as_row(self) -> Dict[str, object]:
        return _row(self.stats, g=None, termination=self.termination, path_len=None)


SearchResult = Union[Found, NotFound]


def _row(stats: SearchStats, g, termination: str, path_len) -> Dict[str, object]:
    return {
        "g": g,
        "path_len": path_len,
        "expanded": stats.expanded,
        "generated": stats.generated,
        "duplicates": stats.duplicates,
        "peak_open": stats.peak_open,
        "time_sec": round(stats.time_sec, 6),
        "termination": termination,
    }


def reconstruct_path(came_from: Dict[S, Optional[S]], goal: S) -> List[S]:
    path: List[S] = [goal]
    prev = came_from[goal]
    while prev is not None:
        path.append(prev)
        prev = came_from[prev]
    path.reverse()
    return path


def search(
    start: S,
    is_goal: GoalFn,
    neighbors: NeighborsFn,
    heuristic: HeuristicFn = zero_heuristic,
    on_step: Optional[StepFn] = None,
    tie_break: str = "fifo",
    max_expansions: Optional[int] = None,
) -> SearchResult:
    """
    Best-first search from `start` until a state satisfying `is_goal` is accepted.

    neighbors: callable(state) -> iterable of (next_state, edge_cost), edge_cost >= 0.
    heuristic: lower bound on the remaining cost; the zero default gives Dijkstra,
        an admissible estimate gives A*. Admissibility is not checked, and negative
        edge costs are undefined behaviour.
    on_step: called with (node, True) for every accepted node and (node, False)
        for every generated candidate.
    max_expansions: optional cap on accepted states; hitting it yields
        NotFound(termination="limit").
    """
    t0 = perf_counter()
    stats = SearchStats()

    frontier: Frontier[S] = Frontier(tie_break)
    frontier.push(SearchNode(start, 0, heuristic(start), None))
    visited: VisitedSet[S] = VisitedSet()
    came_from: Dict[S, Optional[S]] = {}

    while not frontier.is_empty():
        stats.peak_open = max(stats.peak_open, len(frontier))
        node = frontier.pop_min()
        if not visited.insert(node.state):
            stats.duplicates += 1
            continue

        # written on acceptance so the path matches the node's cost
        came_from[node.state] = node.predecessor
        stats.expanded += 1
        if on_step is not None:
            on_step(node, True)

        if is_goal(node.state):
            stats.time_sec = perf_counter() - t0
            logger.debug("goal reached: cost=%s %s", node.cost, stats)
            return Found(node.cost, reconstruct_path(came_from, node.state), stats)

        if max_expansions is not None and stats.expanded >= max_expansions:
            stats.time_sec = perf_counter() - t0
            logger.debug("expansion limit %d reached: %s", max_expansions, stats)
            return NotFound(stats, termination="limit")

        for s2, c in neighbors(node.state):
            child = SearchNode(s2, node.cost + c, heuristic(s2), node.state)
            stats.generated += 1
            if on_step is not None:
                on_step(child, False)
            frontier.push(child)

    stats.time_sec = perf_counter() - t0
    logger.debug("frontier exhausted: %s", stats)
    return NotFound(stats)


def dijkstra(start: S, is_goal: GoalFn, neighbors: NeighborsFn, **kwargs) -> SearchResult:
    return search(start, is_goal, neighbors, zero_heuristic, **kwargs)


def a_star(start: S, is_goal: GoalFn, neighbors: NeighborsFn, heuristic: HeuristicFn, **kwargs) -> SearchResult:
    return search(start, is_goal, neighbors, heuristic, **kwargs)
