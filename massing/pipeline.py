import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Callable, List, Optional

import numpy as np

from .errors import MassingError
from .greedy import Span, recompute
from .sampler import IngestParams, sample_image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestResult:
    """Immutable output of one ingest: the height grid and its spans."""
    generation: int
    params: IngestParams
    grid: np.ndarray
    spans: List[Span]

    @property
    def resolution(self) -> int:
        return self.grid.shape[0]


def ingest(data, params: IngestParams, generation: int = 0) -> IngestResult:
    """Samples an image and meshes it in one synchronous call."""
    params.validate()
    grid = sample_image(data, params)
    spans = recompute(grid, params)
    return IngestResult(generation, params, grid, spans)


class IngestController:
    """
    Runs ingests off the event loop and keeps the latest good result.

    Each ingest is tagged with a generation number. A newer ingest supersedes
    any in flight: when an older one finishes, successfully or not, its result
    is dropped and None is returned. A failed ingest leaves ``current`` as it
    was and propagates the error.
    """

    def __init__(self, *, executor=None, on_result: Optional[Callable[[IngestResult], None]] = None):
        self.executor = executor
        self.on_result = on_result or (lambda _: None)
        self.current: Optional[IngestResult] = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def cancel(self):
        """Marks any in-flight ingest as stale."""
        self._generation += 1

    def is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _begin(self, params):
        params.validate()
        self._generation += 1
        return self._generation

    async def ingest(self, data, params: IngestParams) -> Optional[IngestResult]:
        return await self._run(self._begin(params), data, params)

    def submit(self, data, params: IngestParams) -> asyncio.Task:
        """Schedules an ingest on the running loop; the task can be cancelled."""
        params.validate()
        generation = self._generation + 1
        coro = self._run(generation, data, params)
        try:
            task = asyncio.create_task(coro)
        except RuntimeError:
            coro.close()
            raise
        self._generation = generation
        return task

    async def _run(self, generation, data, params):
        logger.info(f"Ingest {generation} started ({params.resolution}x{params.resolution})")

        loop = asyncio.get_running_loop()
        try:
            grid = await loop.run_in_executor(self.executor, sample_image, data, params)
        except MassingError as e:
            if self.is_stale(generation):
                logger.info(f"Ingest {generation} failed after being superseded: {e}")
                return None
            logger.error(f"Ingest {generation} failed: {e}")
            raise

        if self.is_stale(generation):
            logger.info(f"Discarding stale ingest {generation} (current is {self._generation})")
            return None

        result = IngestResult(generation, params, grid, recompute(grid, params))
        self.current = result
        self.on_result(result)
        logger.info(f"Ingest {generation} produced {len(result.spans)} spans")
        return result

    def recompute(self, params: IngestParams) -> Optional[IngestResult]:
        """
        Re-meshes the current grid with a new merge threshold, no re-sampling.

        Only ``params.merge_threshold`` is used; the sampling settings stay
        those of the grid being re-meshed.
        """
        if self.current is None:
            return None
        params = replace(self.current.params, merge_threshold=params.merge_threshold).validate()
        result = IngestResult(self.current.generation, params, self.current.grid, recompute(self.current.grid, params))
        self.current = result
        self.on_result(result)
        return result
