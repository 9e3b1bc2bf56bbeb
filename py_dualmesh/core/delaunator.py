"""
Incremental Delaunay triangulation of 2D points.

Port of the sweep-hull algorithm popularised by Mapbox's Delaunator:
points are inserted in order of distance from a seed triangle, the convex
hull is advanced with the help of an angular hash, and every new triangle is
legalized with an explicit flip stack instead of recursion.

The build is written as a generator (``Delaunator.steps``) that yields one
BuildEvent per inserted triangle and per edge flip, so a caller can animate
or inspect the construction. ``Delaunator.build`` simply drives it to the end.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Generator, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import structlog

from ..config import settings
from .errors import DegenerateInputError, TriangulationStateError
from .ordered_list import OrderedList
from .orient2d import orient2d
from .predicates import circumcenter, circumradius, dist2, in_circle, pseudo_angle

logger = structlog.get_logger()

EPSILON = 2 ** -52
INSERTION_SORT_THRESHOLD = 20


class TriangulatorState(str, Enum):
    """Lifecycle of a Delaunator instance. BUILT and DEGENERATE are terminal."""

    EMPTY = "empty"
    SEED_SELECTED = "seed_selected"
    BUILDING = "building"
    BUILT = "built"
    DEGENERATE = "degenerate"


class BuildEvent(NamedTuple):
    """One discrete mutation of the triangulation."""
    kind: str  # "triangle" or "flip"
    edge: int  # first edge of the new triangle, or the flipped edge


@dataclass
class Triangulation:
    """
    Finished triangulation arrays.

    ``triangles[e]`` is the point where half-edge ``e`` starts and
    ``half_edges[e]`` is the opposite half-edge in the neighbouring triangle,
    or -1 on the hull. Both are empty for degenerate input, in which case
    ``hull`` holds the deduplicated points sorted along the line.
    """
    triangles: np.ndarray
    half_edges: np.ndarray
    hull: np.ndarray

    @property
    def num_edges(self) -> int:
        return len(self.triangles)

    @property
    def num_triangles(self) -> int:
        return len(self.triangles) // 3

    @property
    def is_degenerate(self) -> bool:
        return len(self.triangles) == 0

    @staticmethod
    def edges_of_triangle(t: int) -> Tuple[int, int, int]:
        return 3 * t, 3 * t + 1, 3 * t + 2

    @staticmethod
    def triangle_of_edge(e: int) -> int:
        return e // 3

    def points_of_triangle(self, t: int) -> Tuple[int, int, int]:
        """Point ids of triangle ``t`` in winding order."""
        i, j, k = self.edges_of_triangle(t)
        return int(self.triangles[i]), int(self.triangles[j]), int(self.triangles[k])


def _as_coordinates(points) -> np.ndarray:
    coords = np.asarray(points, dtype=np.float64)
    if coords.size == 0:
        return coords.reshape(0, 2)
    if coords.ndim != 2 or coords.shape[1] != 2:
        raise ValueError(f"Expected an (n, 2) array of points, got shape {coords.shape}")
    if not np.all(np.isfinite(coords)):
        raise ValueError("Point coordinates must be finite")
    return coords


class Delaunator:
    """
    Delaunay triangulator for one fixed point set.

    Construct once per point set and call ``build()`` (or iterate ``steps()``)
    exactly once. Abandoning ``steps()`` part way leaves the instance in the
    BUILDING state; it cannot be resumed from scratch and should be dropped.
    """

    def __init__(self, points, exact_predicates: Optional[bool] = None):
        """
        Allocate working arrays for ``points``.

        Args:
            points: Sequence of (x, y) pairs or an (n, 2) array
            exact_predicates: Resolve near-collinear orientation tests with
                exact arithmetic instead of raising. Defaults to
                ``settings.exact_predicates``.
        """
        self.points = _as_coordinates(points)
        if len(self.points) > settings.max_points:
            raise ValueError(
                f"{len(self.points)} points exceeds the configured limit of {settings.max_points}"
            )
        self.exact_predicates = (settings.exact_predicates
                                 if exact_predicates is None else exact_predicates)
        # flat x0, y0, x1, y1, ... as python floats for the inner loops
        self._coords: List[float] = self.points.ravel().tolist()

        n = len(self.points)
        self.n_points = n
        max_triangles = max(2 * n - 5, 0)

        # storage for the triangulation graph
        self._triangles = [0] * (max_triangles * 3)
        self._half_edges = [0] * (max_triangles * 3)
        self._triangles_len = 0

        # advancing convex hull, keyed by point id
        self._hull_prev = [0] * n
        self._hull_next = [0] * n
        self._hull_tri = [0] * n
        self._hash_size = math.ceil(math.sqrt(n))
        self._hull_hash = [-1] * self._hash_size
        self._hull_start = 0

        # point ordering
        self._ids = list(range(n))
        self._dists = [0.0] * n

        self._edge_stack = OrderedList()
        self._cx = 0.0
        self._cy = 0.0

        self.state = TriangulatorState.EMPTY
        self.triangulation: Optional[Triangulation] = None

    @classmethod
    def from_points(cls, points: Sequence, exact_predicates: Optional[bool] = None) -> "Delaunator":
        """
        Create a triangulator from points exposing ``x``/``y`` attributes or
        from plain (x, y) pairs.
        """
        pairs = [(p.x, p.y) if hasattr(p, "x") else (p[0], p[1]) for p in points]
        return cls(pairs, exact_predicates=exact_predicates)

    def build(self) -> Triangulation:
        """Run the whole triangulation and return its arrays."""
        for _ in self.steps():
            pass
        return self.triangulation

    def steps(self) -> Iterator[BuildEvent]:
        """
        Triangulate incrementally, yielding after every triangle and flip.

        Raises:
            TriangulationStateError: If this instance already started building
        """
        if self.state is not TriangulatorState.EMPTY:
            raise TriangulationStateError(
                f"Triangulator is {self.state.value}; create a new one to rebuild"
            )
        return self._run()

    def _run(self) -> Generator[BuildEvent, None, None]:
        coords = self._coords
        n = self.n_points
        exact = self.exact_predicates
        hull_prev = self._hull_prev
        hull_next = self._hull_next
        hull_tri = self._hull_tri

        logger.info("Starting triangulation", points=n, exact_predicates=exact)

        i0, i1, i2, min_radius = self._select_seed()
        self.state = TriangulatorState.SEED_SELECTED

        if min_radius == math.inf:
            self._finish_degenerate()
            return

        i0x, i0y = coords[2 * i0], coords[2 * i0 + 1]
        i1x, i1y = coords[2 * i1], coords[2 * i1 + 1]
        i2x, i2y = coords[2 * i2], coords[2 * i2 + 1]

        # counter-clockwise seed
        if orient2d(i0x, i0y, i1x, i1y, i2x, i2y, exact) < 0:
            i1, i2 = i2, i1
            i1x, i1y, i2x, i2y = i2x, i2y, i1x, i1y

        self._cx, self._cy = circumcenter(i0x, i0y, i1x, i1y, i2x, i2y)

        dists = self._dists
        for i in range(n):
            dists[i] = dist2(coords[2 * i], coords[2 * i + 1], self._cx, self._cy)

        # points closest to the seed circumcenter are inserted first
        quicksort(self._ids, dists, 0, n - 1)

        self.state = TriangulatorState.BUILDING

        self._hull_start = i0
        hull_size = 3

        hull_next[i0] = hull_prev[i2] = i1
        hull_next[i1] = hull_prev[i0] = i2
        hull_next[i2] = hull_prev[i1] = i0

        hull_tri[i0] = 0
        hull_tri[i1] = 1
        hull_tri[i2] = 2

        hull_hash = self._hull_hash
        hull_hash[self._hash_key(i0x, i0y)] = i0
        hull_hash[self._hash_key(i1x, i1y)] = i1
        hull_hash[self._hash_key(i2x, i2y)] = i2

        t = self._add_triangle(i0, i1, i2, -1, -1, -1)
        yield BuildEvent("triangle", t)

        xp = yp = 0.0
        for k, i in enumerate(self._ids):
            x = coords[2 * i]
            y = coords[2 * i + 1]

            # skip near-duplicate points
            if k > 0 and abs(x - xp) <= EPSILON and abs(y - yp) <= EPSILON:
                continue
            xp = x
            yp = y

            # skip seed triangle points
            if i == i0 or i == i1 or i == i2:
                continue

            # find a visible edge on the convex hull using the edge hash
            start = 0
            key = self._hash_key(x, y)
            for j in range(self._hash_size):
                start = hull_hash[(key + j) % self._hash_size]
                if start != -1 and start != hull_next[start]:
                    break

            start = hull_prev[start]
            e = start
            q = hull_next[e]
            while orient2d(x, y, coords[2 * e], coords[2 * e + 1],
                           coords[2 * q], coords[2 * q + 1], exact) >= 0:
                e = q
                if e == start:
                    e = -1
                    break
                q = hull_next[e]

            if e == -1:
                # likely a near-duplicate point
                continue

            # first triangle from the point
            t = self._add_triangle(e, i, hull_next[e], -1, -1, hull_tri[e])
            yield BuildEvent("triangle", t)

            hull_tri[i] = yield from self._legalize(t + 2)
            hull_tri[e] = t
            hull_size += 1

            # walk forward through the hull, adding more triangles and flipping
            nxt = hull_next[e]
            q = hull_next[nxt]
            while orient2d(x, y, coords[2 * nxt], coords[2 * nxt + 1],
                           coords[2 * q], coords[2 * q + 1], exact) < 0:
                t = self._add_triangle(nxt, i, q, hull_tri[i], -1, hull_tri[nxt])
                yield BuildEvent("triangle", t)
                hull_tri[i] = yield from self._legalize(t + 2)
                hull_next[nxt] = nxt  # mark as removed
                hull_size -= 1
                nxt = q
                q = hull_next[nxt]

            # walk backward from the other side
            if e == start:
                q = hull_prev[e]
                while orient2d(x, y, coords[2 * q], coords[2 * q + 1],
                               coords[2 * e], coords[2 * e + 1], exact) < 0:
                    t = self._add_triangle(q, i, e, -1, hull_tri[e], hull_tri[q])
                    yield BuildEvent("triangle", t)
                    yield from self._legalize(t + 2)
                    hull_tri[q] = t
                    hull_next[e] = e  # mark as removed
                    hull_size -= 1
                    e = q
                    q = hull_prev[e]

            # relink the hull around the new point
            self._hull_start = hull_prev[i] = e
            hull_next[e] = hull_prev[nxt] = i
            hull_next[i] = nxt

            hull_hash[self._hash_key(x, y)] = i
            hull_hash[self._hash_key(coords[2 * e], coords[2 * e + 1])] = e

        hull = []
        e = self._hull_start
        for _ in range(hull_size):
            hull.append(e)
            e = hull_next[e]

        self.triangulation = Triangulation(
            triangles=np.array(self._triangles[:self._triangles_len], dtype=np.uint32),
            half_edges=np.array(self._half_edges[:self._triangles_len], dtype=np.int32),
            hull=np.array(hull, dtype=np.int32),
        )
        self.state = TriangulatorState.BUILT

        logger.info("Triangulation complete",
                    triangles=self.triangulation.num_triangles,
                    hull=len(hull))

    def _select_seed(self) -> Tuple[Optional[int], Optional[int], Optional[int], float]:
        """
        Pick the seed triangle.

        Returns:
            (i0, i1, i2, squared circumradius); the radius is infinite when no
            seed triangle exists
        """
        coords = self._coords
        n = self.n_points
        if n == 0:
            return None, None, None, math.inf

        xs = coords[0::2]
        ys = coords[1::2]
        cx = (min(xs) + max(xs)) / 2
        cy = (min(ys) + max(ys)) / 2

        # seed point close to the center
        i0 = None
        min_dist = math.inf
        for i in range(n):
            d = dist2(cx, cy, coords[2 * i], coords[2 * i + 1])
            if d < min_dist:
                i0 = i
                min_dist = d
        i0x, i0y = coords[2 * i0], coords[2 * i0 + 1]

        # closest distinct point to the seed
        i1 = None
        min_dist = math.inf
        for i in range(n):
            if i == i0:
                continue
            d = dist2(i0x, i0y, coords[2 * i], coords[2 * i + 1])
            if 0 < d < min_dist:
                i1 = i
                min_dist = d
        if i1 is None:
            return i0, None, None, math.inf
        i1x, i1y = coords[2 * i1], coords[2 * i1 + 1]

        # third point forming the smallest circumcircle with the first two
        i2 = None
        min_radius = math.inf
        for i in range(n):
            if i == i0 or i == i1:
                continue
            r = circumradius(i0x, i0y, i1x, i1y, coords[2 * i], coords[2 * i + 1])
            if r < min_radius:
                i2 = i
                min_radius = r

        return i0, i1, i2, min_radius

    def _finish_degenerate(self) -> None:
        """Order collinear (or too few) points along the line as a hull-only result."""
        coords = self._coords
        n = self.n_points
        dists = self._dists

        for i in range(n):
            dx = coords[2 * i] - coords[0]
            dists[i] = dx if dx else coords[2 * i + 1] - coords[1]

        quicksort(self._ids, dists, 0, n - 1)

        hull = []
        d0 = -math.inf
        for i in self._ids:
            if dists[i] > d0:
                hull.append(i)
                d0 = dists[i]

        self.triangulation = Triangulation(
            triangles=np.zeros(0, dtype=np.uint32),
            half_edges=np.zeros(0, dtype=np.int32),
            hull=np.array(hull, dtype=np.int32),
        )
        self.state = TriangulatorState.DEGENERATE
        logger.warning("Degenerate input, returning hull only", points=n, hull=len(hull))

    def _hash_key(self, x: float, y: float) -> int:
        angle = pseudo_angle(x - self._cx, y - self._cy)
        return math.floor(angle * self._hash_size) % self._hash_size

    def _add_triangle(self, i0: int, i1: int, i2: int, a: int, b: int, c: int) -> int:
        t = self._triangles_len

        self._triangles[t] = i0
        self._triangles[t + 1] = i1
        self._triangles[t + 2] = i2

        self._link(t, a)
        self._link(t + 1, b)
        self._link(t + 2, c)

        self._triangles_len += 3
        return t

    def _link(self, a: int, b: int) -> None:
        self._half_edges[a] = b
        if b != -1:
            self._half_edges[b] = a

    def _legalize(self, a: int) -> Generator[BuildEvent, None, int]:
        r"""
        Restore the Delaunay condition around edge ``a``.

        If the pair of triangles sharing ``a`` is illegal (p1 inside the
        circumcircle of p0, pr, pl) the shared edge is flipped and the new
        outer edge is pushed for checking:

                  pl                    pl
                 /||\                  /  \
              al/ || \bl            al/    \a
               /  ||  \              /      \
              /  a||b  \    flip    /___ar___\
            p0\   ||   /p1   =>   p0\---bl---/p1
               \  ||  /              \      /
              ar\ || /br             b\    /br
                 \||/                  \  /
                  pr                    pr

        Returns:
            The edge to record as the hull triangle of the inserted point
        """
        triangles = self._triangles
        half_edges = self._half_edges
        coords = self._coords
        stack = self._edge_stack
        ar = 0

        while True:
            b = half_edges[a]

            a0 = a - a % 3
            ar = a0 + (a + 2) % 3

            if b == -1:
                # convex hull edge
                if not stack:
                    break
                a = stack.pop_back()
                continue

            b0 = b - b % 3
            al = a0 + (a + 1) % 3
            bl = b0 + (b + 2) % 3

            p0 = triangles[ar]
            pr = triangles[a]
            pl = triangles[al]
            p1 = triangles[bl]

            illegal = in_circle(
                coords[2 * p0], coords[2 * p0 + 1],
                coords[2 * pr], coords[2 * pr + 1],
                coords[2 * pl], coords[2 * pl + 1],
                coords[2 * p1], coords[2 * p1 + 1],
            )

            if illegal:
                triangles[a] = p1
                triangles[b] = p0

                hbl = half_edges[bl]

                # edge swapped on the other side of the hull (rare)
                if hbl == -1:
                    e = self._hull_start
                    while True:
                        if self._hull_tri[e] == bl:
                            self._hull_tri[e] = a
                            break
                        e = self._hull_prev[e]
                        if e == self._hull_start:
                            break

                self._link(a, hbl)
                self._link(b, half_edges[ar])
                self._link(ar, bl)

                br = b0 + (b + 1) % 3
                stack.push_back(br)
                yield BuildEvent("flip", a)
            else:
                if not stack:
                    break
                a = stack.pop_back()

        return ar


def quicksort(ids: List[int], dists: List[float], left: int, right: int) -> None:
    """
    Sort ``ids[left:right + 1]`` in place by ``dists[id]``.

    Median-of-three quicksort that hands partitions of at most
    INSERTION_SORT_THRESHOLD items to insertion sort. Recurses into the
    smaller partition only, so the stack depth stays logarithmic.
    """
    while right - left > INSERTION_SORT_THRESHOLD:
        median = (left + right) >> 1
        i = left + 1
        j = right
        _swap(ids, median, i)
        if dists[ids[left]] > dists[ids[right]]:
            _swap(ids, left, right)
        if dists[ids[i]] > dists[ids[right]]:
            _swap(ids, i, right)
        if dists[ids[left]] > dists[ids[i]]:
            _swap(ids, left, i)

        temp = ids[i]
        temp_dist = dists[temp]
        while True:
            i += 1
            while dists[ids[i]] < temp_dist:
                i += 1
            j -= 1
            while dists[ids[j]] > temp_dist:
                j -= 1
            if j < i:
                break
            _swap(ids, i, j)
        ids[left + 1] = ids[j]
        ids[j] = temp

        if right - i + 1 >= j - left:
            quicksort(ids, dists, left, j - 1)
            left = i
        else:
            quicksort(ids, dists, i, right)
            right = j - 1

    for i in range(left + 1, right + 1):
        temp = ids[i]
        temp_dist = dists[temp]
        j = i - 1
        while j >= left and dists[ids[j]] > temp_dist:
            ids[j + 1] = ids[j]
            j -= 1
        ids[j + 1] = temp


def _swap(arr: List[int], i: int, j: int) -> None:
    arr[i], arr[j] = arr[j], arr[i]


def triangulate(points, exact_predicates: Optional[bool] = None) -> Triangulation:
    """
    Triangulate ``points`` in one call.

    Raises:
        DegenerateInputError: If fewer than three distinct points are given or
            all points are collinear. The hull-only result is attached to the
            exception.
    """
    triangulation = Delaunator(points, exact_predicates=exact_predicates).build()
    if triangulation.is_degenerate:
        raise DegenerateInputError(
            f"Cannot triangulate {len(triangulation.hull)} distinct collinear or coincident points",
            triangulation=triangulation,
        )
    return triangulation
