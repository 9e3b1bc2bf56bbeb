"""
Poisson-disc point sampling.

Bridson's algorithm with Martin Roberts' improvement: candidates are placed
on the circle of radius ``radius + epsilon`` around a random active parent,
spaced evenly from a random starting angle, instead of being drawn from the
whole annulus. The result is a blue-noise point set in which no two points are
closer than ``radius``, which gives evenly sized Voronoi cells.
"""

import math
from typing import Iterator, List, NamedTuple, Optional

import numpy as np
import structlog

from ..config import settings
from ..utils.random import get_prng
from .alea_prng import AleaPRNG
from .ordered_list import OrderedList
from .predicates import Point, dist2

logger = structlog.get_logger()


class SampleEvent(NamedTuple):
    """A point entering the sample, or an active point being retired."""
    kind: str  # "add" or "remove"
    point: Point
    parent: Optional[Point] = None


class PoissonDiscSampler:
    """
    Incremental Poisson-disc sampler over the rectangle [0, width) x [0, height).

    ``generate()`` yields one SampleEvent per step so the sampling can be
    driven (and visualised) point by point; ``sample()`` runs it to the end.
    """

    def __init__(self, width: float, height: float, radius: float,
                 seed: Optional[str] = None,
                 max_attempts: Optional[int] = None,
                 epsilon: Optional[float] = None):
        """
        Args:
            width: Sampling area width
            height: Sampling area height
            radius: Minimum distance between two samples
            seed: Alea seed; the shared generator is used when omitted
            max_attempts: Candidates tried around a parent before retiring it
            epsilon: Offset added to the candidate distance
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Sampling area must be positive, got {width}x{height}")
        if radius <= 0:
            raise ValueError(f"Radius must be positive, got {radius}")

        self.width = width
        self.height = height
        self.radius = radius
        self.max_attempts = max_attempts or settings.sampler_max_attempts
        self.epsilon = settings.sampler_epsilon if epsilon is None else epsilon

        self.radius2 = radius * radius
        # at most one sample fits in a cell of this size
        self.cell_size = radius * math.sqrt(0.5)
        self.grid_width = math.ceil(width / self.cell_size)
        self.grid_height = math.ceil(height / self.cell_size)
        self.grid: List[Optional[Point]] = [None] * (self.grid_width * self.grid_height)

        # accepted samples that may still parent new ones
        self.queue = OrderedList()
        self.points: List[Point] = []

        self._prng = AleaPRNG(seed) if seed else get_prng()
        self.done = False

    def _cell_of(self, x: float, y: float):
        i = min(int(x / self.cell_size), self.grid_width - 1)
        j = min(int(y / self.cell_size), self.grid_height - 1)
        return i, j

    def _far(self, x: float, y: float) -> bool:
        """True if no existing sample lies within ``radius`` of (x, y)."""
        i, j = self._cell_of(x, y)

        for jj in range(max(j - 2, 0), min(j + 3, self.grid_height)):
            row = jj * self.grid_width
            for ii in range(max(i - 2, 0), min(i + 3, self.grid_width)):
                s = self.grid[row + ii]
                if s is not None and dist2(s.x, s.y, x, y) < self.radius2:
                    return False
        return True

    def _add_to_sample(self, x: float, y: float) -> Point:
        i, j = self._cell_of(x, y)
        s = Point(x, y)
        self.grid[self.grid_width * j + i] = s
        self.queue.push_back(s)
        self.points.append(s)
        return s

    def generate(self) -> Iterator[SampleEvent]:
        """Sample until no active point can parent another."""
        prng = self._prng

        if not self.points:
            yield SampleEvent("add", self._add_to_sample(self.width / 2, self.height / 2))

        while self.queue:
            # random active parent
            index = prng.randint(1, len(self.queue))
            parent = self.queue.get(index)
            seed = prng.random()

            for attempt in range(self.max_attempts):
                a = 2 * math.pi * (seed + attempt / self.max_attempts)
                r = self.radius + self.epsilon
                x = parent.x + r * math.cos(a)
                y = parent.y + r * math.sin(a)

                if 0 <= x < self.width and 0 <= y < self.height and self._far(x, y):
                    yield SampleEvent("add", self._add_to_sample(x, y), parent)
                    break
            else:
                self.queue.swap_remove(index)
                yield SampleEvent("remove", parent)

        self.done = True
        logger.info("Poisson-disc sampling complete",
                    points=len(self.points), radius=self.radius)

    def sample(self) -> np.ndarray:
        """Run the sampler to completion and return an (n, 2) point array."""
        for _ in self.generate():
            pass
        return np.array(self.points, dtype=np.float64).reshape(-1, 2)
