from typing import Callable, Tuple

Coord = Tuple[int, int]


def manhattan(a: Coord, b: Coord) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def manhattan_to(goal: Coord, step_cost: int = 1) -> Callable[[Coord], int]:
    """
    Heuristic: Manhattan distance to `goal` times the cheapest possible step.
    Admissible only while no single step costs less than `step_cost`.
    """
    if step_cost < 0:
        raise ValueError("step_cost must be non-negative")

    def h(coord: Coord) -> int:
        return step_cost * manhattan(coord, goal)

    return h
