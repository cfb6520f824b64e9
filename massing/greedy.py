import logging
from dataclasses import dataclass, asdict
from typing import List

import numpy as np

from .errors import InvalidParameterError
from .utils import timed, MERGE_THRESHOLD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Span:
    """A maximal run of equal-height cells within one grid row."""
    row: int
    start_column: int
    width: int
    height: float

    @property
    def end_column(self) -> int:
        """Exclusive end column of the run."""
        return self.start_column + self.width

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'Span':
        return cls(int(data['row']), int(data['start_column']), int(data['width']), float(data['height']))


def _mesh_row(y, row, threshold):
    spans = []
    current_height = 0.0
    run_start = 0
    # trailing sentinel of height 0 flushes the last run
    for x, h in enumerate(list(row) + [0.0]):
        if h != current_height:
            if current_height > threshold:
                spans.append(Span(y, run_start, x - run_start, current_height))
            run_start = x
            current_height = h
    return spans


@timed
def mesh_rows(grid, threshold: float = MERGE_THRESHOLD) -> List[Span]:
    """
    Greedily merges equal-height cells of each row into spans.

    Rows are never merged with each other. The result is ordered by row,
    then by start column, so identical grids always give identical lists.
    """
    grid = np.asarray(grid, dtype=np.float64)
    if grid.ndim != 2:
        raise InvalidParameterError(f"height grid must be 2-D, got shape {grid.shape}")

    spans = []
    for y in range(grid.shape[0]):
        spans.extend(_mesh_row(y, grid[y].tolist(), threshold))

    logger.info(f"Merged {int(np.count_nonzero(grid > threshold))} cells into {len(spans)} spans")
    return spans


def recompute(grid, params) -> List[Span]:
    """Re-runs the mesher for the current parameters; call whenever inputs change."""
    return mesh_rows(grid, threshold=params.merge_threshold)
