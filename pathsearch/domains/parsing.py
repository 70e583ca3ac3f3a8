from __future__ import annotations
from pathlib import Path
from typing import List, Union

import numpy as np


class InputFormatError(ValueError):
    """Raised when puzzle input text does not match the expected layout."""


def read_text(path: Union[str, Path]) -> str:
    return Path(path).read_text(encoding="utf-8")


def parse_digit_grid(text: str) -> np.ndarray:
    """
    Parse rows of single digits into a 2D uint8 array.
    Blank lines around the block are ignored; all rows must be the same width.
    """
    rows: List[str] = [ln.strip() for ln in text.strip().splitlines() if ln.strip()]
    if not rows:
        raise InputFormatError("empty grid")
    width = len(rows[0])
    for i, row in enumerate(rows):
        if len(row) != width:
            raise InputFormatError(f"row {i} has width {len(row)}, expected {width}")
        if not row.isdigit():
            raise InputFormatError(f"row {i} contains non-digit characters: {row!r}")
    return np.array([[int(ch) for ch in row] for row in rows], dtype=np.uint8)
