from __future__ import annotations
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging

from pathsearch.domains.parsing import InputFormatError
from pathsearch.search.best_first import SearchResult, search, zero_heuristic

logger = logging.getLogger(__name__)

Cell = Optional[str]  # piece letter or None

PIECE_TYPES = "ABCD"
PIECE_COST = {"A": 1, "B": 10, "C": 100, "D": 1000}
HOME_ROOM = {p: i for i, p in enumerate(PIECE_TYPES)}
ROOM_DOORS = (2, 4, 6, 8)  # hallway column above each room
HALLWAY_LEN = 11
ROOM_COLUMNS = (3, 5, 7, 9)  # text columns of the rooms in the diagram

# extra rows of the unfolded diagram, inserted after the first room row
UNFOLD_ROWS = ("  #D#C#B#A#", "  #D#B#A#C#")


@dataclass(frozen=True)
class BurrowState:
    """
    Full configuration: hallway cells left to right, rooms[r][0] is the slot
    next to the hallway, rooms[r][-1] the deepest one.
    """
    hallway: Tuple[Cell, ...]
    rooms: Tuple[Tuple[Cell, ...], ...]

    @property
    def depth(self) -> int:
        return len(self.rooms[0])

    def render(self) -> str:
        hall = "".join(p or "." for p in self.hallway)
        lines = ["#" * (HALLWAY_LEN + 2), f"#{hall}#"]
        for i in range(self.depth):
            cells = "#".join(room[i] or "." for room in self.rooms)
            lines.append(f"###{cells}###" if i == 0 else f"  #{cells}#")
        lines.append("  #########")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.render()


def unfold(text: str) -> str:
    """Insert the two hidden rows between the first and second room rows."""
    lines = text.strip("\n").splitlines()
    if len(lines) < 4:
        raise InputFormatError("burrow diagram needs at least 4 lines to unfold")
    return "\n".join(lines[:3] + list(UNFOLD_ROWS) + lines[3:])


class Burrow:
    """
    Four rooms under an 11-cell hallway. Pieces leave a room into the hallway
    and from the hallway may only enter their own room, once that room holds no
    foreign piece. Cells right above a room cannot be stopped on.
    """
    def __init__(self, start: BurrowState):
        self.start = start
        self.depth = start.depth
        self.goal_rooms = tuple((p,) * self.depth for p in PIECE_TYPES)

    @classmethod
    def parse(cls, text: str) -> "Burrow":
        lines = [ln.rstrip() for ln in text.strip("\n").splitlines()]
        if len(lines) < 4:
            raise InputFormatError("burrow diagram is too short")

        hall_line = lines[1].ljust(HALLWAY_LEN + 2)
        hallway = tuple(_cell(ch) for ch in hall_line[1:HALLWAY_LEN + 1])
        if any(hallway[d] is not None for d in ROOM_DOORS):
            raise InputFormatError("a piece is standing right above a room")

        room_rows: List[Tuple[Cell, ...]] = []
        for ln in lines[2:]:
            if set(ln.strip()) <= {"#"}:
                break
            padded = ln.ljust(ROOM_COLUMNS[-1] + 1)
            room_rows.append(tuple(_cell(padded[c]) for c in ROOM_COLUMNS))
        if not room_rows:
            raise InputFormatError("no room rows found")

        rooms = tuple(tuple(row[r] for row in room_rows) for r in range(len(ROOM_COLUMNS)))
        for r, room in enumerate(rooms):
            if any(above is not None and below is None for above, below in zip(room, room[1:])):
                raise InputFormatError(f"room {r} has an empty slot under a piece")
        state = BurrowState(hallway, rooms)

        counts = Counter(p for p in hallway + sum(rooms, ()) if p is not None)
        for p in PIECE_TYPES:
            if counts[p] != state.depth:
                raise InputFormatError(f"expected {state.depth} pieces of type {p}, found {counts[p]}")

        logger.debug("parsed burrow with room depth %d", state.depth)
        return cls(state)

    # ---------- transitions ----------
    def neighbors(self, s: BurrowState) -> List[Tuple[BurrowState, int]]:
        out: List[Tuple[BurrowState, int]] = []
        hall = s.hallway

        # hallway -> own room
        for h, piece in enumerate(hall):
            if piece is None:
                continue
            r = HOME_ROOM[piece]
            room = s.rooms[r]
            if any(p is not None and p != piece for p in room):
                continue
            slot = _deepest_free(room)
            if slot < 0:
                continue
            door = ROOM_DOORS[r]
            step = 1 if door > h else -1
            if any(hall[i] is not None for i in range(h + step, door + step, step)):
                continue
            steps = abs(door - h) + slot + 1
            new_hall = hall[:h] + (None,) + hall[h + 1:]
            new_room = room[:slot] + (piece,) + room[slot + 1:]
            out.append((BurrowState(new_hall, _replace(s.rooms, r, new_room)), steps * PIECE_COST[piece]))

        # room -> hallway
        for r, room in enumerate(s.rooms):
            if all(p is None or HOME_ROOM[p] == r for p in room):
                continue
            top = next(i for i, p in enumerate(room) if p is not None)
            piece = room[top]
            door = ROOM_DOORS[r]
            new_room = room[:top] + (None,) + room[top + 1:]
            rooms = _replace(s.rooms, r, new_room)
            for direction in (-1, 1):
                h = door + direction
                while 0 <= h < HALLWAY_LEN and hall[h] is None:
                    if h not in ROOM_DOORS:
                        steps = top + 1 + abs(h - door)
                        new_hall = hall[:h] + (piece,) + hall[h + 1:]
                        out.append((BurrowState(new_hall, rooms), steps * PIECE_COST[piece]))
                    h += direction
        return out

    def is_goal(self, s: BurrowState) -> bool:
        return s.rooms == self.goal_rooms

    # ---------- heuristics ----------
    def heuristic(self, s: BurrowState) -> int:
        """
        Sum of per-piece minimum travel: misplaced pieces walk to their room's
        first slot; a settled piece with a foreign one beneath it must step out
        and back in (at least slot + 4 steps).
        """
        total = 0
        for h, piece in enumerate(s.hallway):
            if piece is not None:
                total += (abs(h - ROOM_DOORS[HOME_ROOM[piece]]) + 1) * PIECE_COST[piece]
        for r, room in enumerate(s.rooms):
            door = ROOM_DOORS[r]
            for i, piece in enumerate(room):
                if piece is None:
                    continue
                home = HOME_ROOM[piece]
                if home != r:
                    total += (i + 2 + abs(door - ROOM_DOORS[home])) * PIECE_COST[piece]
                elif any(p is not None and HOME_ROOM[p] != r for p in room[i + 1:]):
                    total += (i + 4) * PIECE_COST[piece]
        return total

    def solve(self, use_heuristic: bool = True, **kwargs) -> SearchResult:
        h = self.heuristic if use_heuristic else zero_heuristic
        return search(self.start, self.is_goal, self.neighbors, h, **kwargs)


def least_energy(text: str, unfold_rows: bool = False, use_heuristic: bool = True) -> Optional[int]:
    if unfold_rows:
        text = unfold(text)
    result = Burrow.parse(text).solve(use_heuristic=use_heuristic)
    return result.cost if result.found else None


def _cell(ch: str) -> Cell:
    if ch in PIECE_TYPES:
        return ch
    if ch in ". ":
        return None
    raise InputFormatError(f"unexpected character {ch!r} in burrow diagram")


def _deepest_free(room: Tuple[Cell, ...]) -> int:
    """Deepest empty slot reachable from the hallway, -1 when the room is full."""
    slot = -1
    for i, p in enumerate(room):
        if p is not None:
            break
        slot = i
    return slot


def _replace(rooms: Tuple[Tuple[Cell, ...], ...], r: int, room: Tuple[Cell, ...]):
    return rooms[:r] + (room,) + rooms[r + 1:]
