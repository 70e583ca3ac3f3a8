#!/usr/bin/env python3
"""
Render search progress.

Cavern: a FrameCollector listens to the search's step callback, snapshots the
map every few accepted cells and hands frames to a FrameEncoder thread through
a bounded queue, which writes PNG frames or a GIF.
Burrow: the solution path is printed as diagrams.
"""
from __future__ import annotations
import argparse, logging, os, queue, sys, threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import matplotlib
if "MPLBACKEND" not in os.environ:
    matplotlib.use("Agg")
import matplotlib.image as mpimg
from matplotlib.animation import PillowWriter
from matplotlib.figure import Figure
from matplotlib.backends.backend_agg import FigureCanvasAgg

from pathsearch.domains.burrow import Burrow, unfold
from pathsearch.domains.cavern import RiskMap
from pathsearch.domains.parsing import InputFormatError, read_text
from pathsearch.search.best_first import SearchNode, search, zero_heuristic

logger = logging.getLogger(__name__)

Coord = Tuple[int, int]
QUEUE_SIZE = 4
_STOP = object()


class FrameCollector:
    """
    Step callback for cavern searches. Accepted cells are marked solved,
    generated candidates bump a per-cell counter; every `every` accepted
    cells a frame is emitted to `sink` (or kept in `frames` without one).
    """
    def __init__(self, risk_map: RiskMap, every: int = 15,
                 sink: Optional[Callable[[np.ndarray], None]] = None):
        self.start = risk_map.start
        self.risks = risk_map.materialize().astype(np.int16)
        shape = self.risks.shape
        self.considered = np.zeros(shape, dtype=np.int32)
        self.solved = np.zeros(shape, dtype=bool)
        self.on_path = np.zeros(shape, dtype=bool)
        self.on_path[risk_map.start] = True
        self.on_path[risk_map.goal] = True
        self.came_from: Dict[Coord, Optional[Coord]] = {}
        self.every = max(1, every)
        self.sink = sink
        self.frames: List[np.ndarray] = []
        self.emitted = 0
        self._skipped = 0
        self.emit()

    def __call__(self, node: SearchNode, accepted: bool) -> None:
        if accepted:
            self.solved[node.state] = True
            self.came_from[node.state] = node.predecessor
            self._skipped += 1
            if self._skipped >= self.every:
                self._skipped = 0
                self.emit()
        else:
            self.considered[node.state] += 1

    def trace(self, goal: Coord, every: int = 1) -> None:
        """Walk predecessors back from `goal`, lighting up the path."""
        self.emit()
        skipped = 0
        coord: Optional[Coord] = goal
        while coord is not None:
            self.on_path[coord] = True
            coord = self.came_from.get(coord)
            skipped += 1
            if skipped >= every:
                skipped = 0
                self.emit()
        self.emit()

    def image(self) -> np.ndarray:
        gray = np.clip(200 - self.risks * 12, 0, 255)
        r, g, b = gray.copy(), gray.copy(), gray.copy()

        considered = (self.considered > 0) & ~self.solved & ~self.on_path
        r[considered] -= 80; g[considered] += 55; b[considered] -= 80

        solved = self.solved & ~self.on_path
        r[solved] -= 60; g[solved] -= 60; b[solved] += 55

        path = self.on_path
        r[path] = 255; g[path] = (g[path] - 60) // 2; b[path] = (b[path] - 60) // 2

        return np.clip(np.stack([r, g, b], axis=-1), 0, 255).astype(np.uint8)

    def emit(self) -> None:
        frame = self.image()
        self.emitted += 1
        if self.sink is not None:
            self.sink(frame)
        else:
            self.frames.append(frame)


def scale_frame(frame: np.ndarray, scale: int) -> np.ndarray:
    if scale == 1:
        return frame
    return np.repeat(np.repeat(frame, scale, axis=0), scale, axis=1)


class FrameEncoder:
    """
    Consumer side: a worker thread drains a bounded queue and writes frames,
    either as numbered PNGs into a directory or into one GIF file.
    put() blocks while the queue is full.
    """
    def __init__(self, out: Path, scale: int = 3, fps: int = 60, maxsize: int = QUEUE_SIZE):
        self.out = Path(out)
        self.scale = scale
        self.fps = fps
        self.written = 0
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)
        self._thread = threading.Thread(target=self._run, name="frame-encoder", daemon=True)
        self._error: Optional[BaseException] = None
        self._stopped = False

    @property
    def gif(self) -> bool:
        return self.out.suffix.lower() == ".gif"

    def start(self) -> "FrameEncoder":
        if self.gif:
            self.out.parent.mkdir(parents=True, exist_ok=True)
        else:
            self.out.mkdir(parents=True, exist_ok=True)
        self._thread.start()
        return self

    def put(self, frame: np.ndarray) -> None:
        if self._error is not None:
            raise RuntimeError("frame encoder failed") from self._error
        self._queue.put(frame)

    __call__ = put

    def close(self) -> int:
        self._queue.put(_STOP)
        self._thread.join()
        if self._error is not None:
            raise RuntimeError("frame encoder failed") from self._error
        return self.written

    def __enter__(self) -> "FrameEncoder":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _frames(self):
        while True:
            item = self._queue.get()
            if item is _STOP:
                self._stopped = True
                return
            yield scale_frame(item, self.scale)

    def _run(self) -> None:
        try:
            if self.gif:
                self._write_gif()
            else:
                for frame in self._frames():
                    mpimg.imsave(self.out / f"step_{self.written:05d}.png", frame)
                    self.written += 1
        except Exception as e:
            logger.exception("frame encoding failed")
            self._error = e
            # keep draining so the producer never blocks forever
            if not self._stopped:
                for _ in self._frames():
                    pass

    def _write_gif(self) -> None:
        fig = None
        writer = PillowWriter(fps=self.fps)
        try:
            for frame in self._frames():
                if fig is None:
                    h, w = frame.shape[:2]
                    fig = Figure(figsize=(w / 100, h / 100), dpi=100)
                    FigureCanvasAgg(fig)
                    ax = fig.add_axes([0, 0, 1, 1])
                    ax.set_axis_off()
                    im = ax.imshow(frame, interpolation="nearest")
                    writer.setup(fig, str(self.out), dpi=100)
                else:
                    im.set_data(frame)
                writer.grab_frame()
                self.written += 1
        finally:
            if fig is not None:
                writer.finish()


def render_cavern(risk_map: RiskMap, out: Path, use_heuristic: bool = False,
                  every: int = 15, every_trace: int = 1, scale: int = 3, fps: int = 60):
    """Run one search on `risk_map` and stream its frames to `out`. Returns (result, frames written)."""
    h = risk_map.heuristic() if use_heuristic else zero_heuristic
    with FrameEncoder(out, scale=scale, fps=fps) as encoder:
        collector = FrameCollector(risk_map, every=every, sink=encoder)
        result = search(risk_map.start, risk_map.is_goal, risk_map.neighbors, h, on_step=collector)
        if result.found:
            collector.trace(risk_map.goal, every=every_trace)
    return result, encoder.written


def burrow_path_text(burrow: Burrow, use_heuristic: bool = True) -> Optional[str]:
    """Solution path as consecutive diagrams annotated with the running cost."""
    result = burrow.solve(use_heuristic=use_heuristic)
    if not result.found:
        return None
    blocks = []
    total = 0
    prev = None
    for s in result.path:
        if prev is not None:
            total += dict(burrow.neighbors(prev))[s]
        blocks.append(f"energy so far: {total}\n{s.render()}")
        prev = s
    return "\n\n".join(blocks)


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Solve one instance and render the search / solution path.")
    p.add_argument("domain", choices=["cavern", "burrow"])
    p.add_argument("input", type=Path)
    p.add_argument("--algo", choices=["dijkstra", "astar"], default="dijkstra")
    p.add_argument("--tiles", type=int, default=1)
    p.add_argument("--unfold", action="store_true")
    p.add_argument("--every", type=int, default=15, help="Cavern: accepted cells per frame")
    p.add_argument("--every_trace", type=int, default=1, help="Cavern: path cells per frame while tracing")
    p.add_argument("--scale", type=int, default=3, help="Cavern: pixels per cell")
    p.add_argument("--fps", type=int, default=60)
    p.add_argument("--out", type=Path, default=Path("report/figs/search"),
                   help="Cavern: directory for PNG frames, or a .gif file; burrow: optional text file")
    p.add_argument("--verbose", "-v", action="store_true")
    args = p.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")

    try:
        text = read_text(args.input)
        if args.domain == "cavern":
            risk_map = RiskMap.parse(text, tiles=args.tiles)
        else:
            burrow = Burrow.parse(unfold(text) if args.unfold else text)
    except (OSError, InputFormatError) as e:
        print(f"Cannot load {args.input}: {e}", file=sys.stderr)
        return 2

    if args.domain == "cavern":
        result, n = render_cavern(risk_map, args.out, use_heuristic=args.algo == "astar",
                                  every=args.every, every_trace=args.every_trace,
                                  scale=args.scale, fps=args.fps)
        if not result.found:
            print("No path found.")
            return 1
        print(f"cost={result.cost}; saved {n} frames to {args.out}")
        return 0

    dump = burrow_path_text(burrow, use_heuristic=args.algo == "astar")
    if dump is None:
        print("No path found.")
        return 1
    if args.out.suffix == ".txt":
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_text(dump + "\n", encoding="utf-8")
        print(f"Saved path to {args.out}")
    else:
        print(dump)
    return 0


if __name__ == "__main__":
    sys.exit(main())
