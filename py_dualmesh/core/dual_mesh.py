"""
Dual mesh over a Delaunay triangulation and its Voronoi diagram.

The mesh relates three dense index spaces:

* cells ``c``: one per input point, the Voronoi regions (``0 <= c < num_cells``)
* triangles ``t``: the Delaunay triangles (``0 <= t < num_triangles``)
* sides ``e``: directed triangle sides (``0 <= e < num_edges``)

A single side index serves both diagrams because each triangle side crosses
exactly one Voronoi cell boundary. Side ``e`` runs from cell
``triangles[e]`` to cell ``triangles[next_side(e)]`` inside triangle ``e // 3``,
and the Voronoi segment dual to it joins the positions of triangle ``e // 3``
and of the triangle across it, ``half_edges[e] // 3``.

Triangle positions are centroids of their three cells. Boundary ("ghost")
triangles are not modelled: sides on the convex hull have no opposite and
every triangle uses the centroid, so Voronoi cells on the hull stay open.
"""

from typing import Iterator, List, NamedTuple, Optional, Tuple

import numpy as np
import structlog

from .delaunator import Triangulation, triangulate
from .errors import InvalidTopologyError, MissingAdjacencyError
from .poisson_disc import PoissonDiscSampler
from .predicates import Point

logger = structlog.get_logger()


class MeshConfig(NamedTuple):
    """Configuration for sampling and meshing a rectangular area."""
    width: float
    height: float
    radius: float
    exact_predicates: Optional[bool] = None


class EdgeSegment(NamedTuple):
    """One undirected edge, identified by its lower-numbered half-edge."""
    side: int
    start: Point
    end: Point


def next_side(e: int) -> int:
    """Next side of the same triangle (0 -> 1 -> 2 -> 0)."""
    return e - 2 if e % 3 == 2 else e + 1


def previous_side(e: int) -> int:
    """Previous side of the same triangle (0 -> 2 -> 1 -> 0)."""
    return e + 2 if e % 3 == 0 else e - 1


def triangle_of(e: int) -> int:
    return e // 3


class DualMesh:
    """
    Read-only half-edge mesh combining a triangulation with its dual.

    Construct from the original points and a finished Triangulation, then
    call ``load()`` once to derive triangle positions and the per-cell side
    index. Every navigation query is O(1) index arithmetic; walks around a
    cell are O(degree).
    """

    def __init__(self, points, triangulation: Triangulation):
        """
        Args:
            points: The (n, 2) points the triangulation was built from
            triangulation: Output of ``Delaunator.build()``

        Raises:
            InvalidTopologyError: If the arrays do not describe whole triangles
                over ``points``
        """
        cell_positions = np.array(points, dtype=np.float64)
        if cell_positions.size == 0:
            cell_positions = cell_positions.reshape(0, 2)
        if cell_positions.ndim != 2 or cell_positions.shape[1] != 2:
            raise ValueError(f"Expected an (n, 2) array of points, got shape {cell_positions.shape}")

        triangles = np.asarray(triangulation.triangles)
        half_edges = np.asarray(triangulation.half_edges)

        if len(triangles) != len(half_edges):
            raise InvalidTopologyError(
                f"triangles ({len(triangles)}) and half_edges ({len(half_edges)}) differ in length"
            )
        if len(triangles) % 3 != 0:
            raise InvalidTopologyError(
                f"Invalid number of edges, {len(triangles)} is not divisible by 3"
            )
        if len(triangles) and int(triangles.max()) >= len(cell_positions):
            raise InvalidTopologyError("Triangles reference a point outside the point set")

        self.num_cells = len(cell_positions)
        self.num_edges = len(triangles)
        self.num_triangles = self.num_edges // 3
        self.hull = np.asarray(triangulation.hull)

        self._cell_positions = cell_positions
        self._cell_positions.flags.writeable = False
        self._triangles: List[int] = triangles.astype(np.int64).tolist()
        self._half_edges: List[int] = half_edges.astype(np.int64).tolist()

        self._triangle_positions: Optional[np.ndarray] = None
        self._side_of_cell: Optional[List[Optional[int]]] = None

    @property
    def triangles(self) -> np.ndarray:
        return np.array(self._triangles, dtype=np.int64)

    @property
    def half_edges(self) -> np.ndarray:
        return np.array(self._half_edges, dtype=np.int64)

    @property
    def is_loaded(self) -> bool:
        return self._side_of_cell is not None

    def load(self) -> "DualMesh":
        """
        Build triangle positions and the side-of-cell index.

        For each cell one outgoing side is recorded. When the cell lies on the
        convex hull the chosen side is the one that follows the incoming hull
        side, so walks around the cell sweep its whole fan of triangles.

        Returns:
            self, for chaining
        """
        triangles = self._triangles
        half_edges = self._half_edges

        side_of_cell: List[Optional[int]] = [None] * self.num_cells
        for e in range(self.num_edges):
            outgoing = next_side(e)
            cell = triangles[outgoing]
            if side_of_cell[cell] is None or half_edges[e] == -1:
                side_of_cell[cell] = outgoing

        corners = self._cell_positions[np.array(triangles, dtype=np.int64).reshape(-1, 3)]
        triangle_positions = corners.mean(axis=1)
        triangle_positions.flags.writeable = False

        self._side_of_cell = side_of_cell
        self._triangle_positions = triangle_positions

        logger.info("Dual mesh loaded",
                    cells=self.num_cells,
                    triangles=self.num_triangles,
                    edges=self.num_edges,
                    isolated_cells=side_of_cell.count(None))
        return self

    def _require_loaded(self) -> None:
        if self._side_of_cell is None:
            raise ValueError("Dual mesh is not loaded. Call DualMesh.load() first!")

    # Positions

    def cell_position(self, cell: int) -> Point:
        x, y = self._cell_positions[cell]
        return Point(float(x), float(y))

    def triangle_position(self, triangle: int) -> Point:
        self._require_loaded()
        x, y = self._triangle_positions[triangle]
        return Point(float(x), float(y))

    @property
    def cell_positions(self) -> np.ndarray:
        return self._cell_positions

    @property
    def triangle_positions(self) -> np.ndarray:
        self._require_loaded()
        return self._triangle_positions

    # Side navigation

    @staticmethod
    def next_side(e: int) -> int:
        return next_side(e)

    @staticmethod
    def previous_side(e: int) -> int:
        return previous_side(e)

    @staticmethod
    def triangle_of(e: int) -> int:
        return triangle_of(e)

    def opposite(self, e: int) -> int:
        """Side on the other side of ``e``, or -1 on the convex hull."""
        return self._half_edges[e]

    def cell_at_start(self, e: int) -> int:
        return self._triangles[e]

    def cell_at_end(self, e: int) -> int:
        return self._triangles[next_side(e)]

    def inner_triangle(self, e: int) -> int:
        """Triangle that owns side ``e``."""
        return triangle_of(e)

    def outer_triangle(self, e: int) -> int:
        """Triangle across side ``e``, or -1 on the convex hull."""
        opposite = self._half_edges[e]
        return -1 if opposite == -1 else triangle_of(opposite)

    def is_boundary_side(self, e: int) -> bool:
        return self._half_edges[e] == -1

    def side_of_cell(self, cell: int) -> Optional[int]:
        """
        One outgoing side of ``cell``, or None if the cell is in no triangle
        (for example a skipped duplicate point).
        """
        self._require_loaded()
        return self._side_of_cell[cell]

    def is_boundary_cell(self, cell: int) -> bool:
        """Whether ``cell`` lies on the convex hull of the triangulation."""
        start = self.side_of_cell(cell)
        return start is not None and self._half_edges[previous_side(start)] == -1

    # Triangle adjacency

    @staticmethod
    def sides_of_triangle(t: int) -> Tuple[int, int, int]:
        return 3 * t, 3 * t + 1, 3 * t + 2

    def cells_of_triangle(self, t: int) -> Tuple[int, int, int]:
        a, b, c = self.sides_of_triangle(t)
        return self._triangles[a], self._triangles[b], self._triangles[c]

    def triangles_adjacent_to_triangle(self, t: int) -> Tuple[int, int, int]:
        """Neighbouring triangles across each side of ``t``; -1 across the hull."""
        a, b, c = self.sides_of_triangle(t)
        return self.outer_triangle(a), self.outer_triangle(b), self.outer_triangle(c)

    # Cell adjacency

    def sides_around_cell(self, cell: int) -> List[int]:
        """
        Outgoing sides of ``cell`` in rotational order.

        The walk alternates opposite and next from ``side_of_cell(cell)``
        and stops when it returns to the start or crosses the hull, so it
        visits each side at most once.
        """
        start = self.side_of_cell(cell)
        if start is None:
            return []

        half_edges = self._half_edges
        sides = []
        e = start
        while True:
            sides.append(e)
            incoming = half_edges[e]
            if incoming == -1:
                break
            e = next_side(incoming)
            if e == start:
                break
        return sides

    def cells_around_cell(self, cell: int) -> List[int]:
        """
        Neighbouring cells of ``cell``.

        Entry ``i`` is the far end of ``sides_around_cell(cell)[i]``. For a
        hull cell the neighbour reached only through the incoming hull side
        is appended last.
        """
        sides = self.sides_around_cell(cell)
        cells = [self.cell_at_end(e) for e in sides]
        if sides:
            incoming = previous_side(sides[0])
            if self._half_edges[incoming] == -1:
                cells.append(self._triangles[incoming])
        return cells

    def triangles_around_cell(self, cell: int) -> List[int]:
        return [triangle_of(e) for e in self.sides_around_cell(cell)]

    def side_positions_around_cell(self, cell: int) -> List[Point]:
        """Corners of the Voronoi polygon of ``cell``, open on the hull."""
        return [self.triangle_position(t) for t in self.triangles_around_cell(cell)]

    def points_of_cell_side(self, e: int) -> Tuple[Point, Point]:
        """
        Endpoints of the Voronoi segment dual to side ``e``.

        Raises:
            MissingAdjacencyError: If ``e`` is on the convex hull
        """
        opposite = self._half_edges[e]
        if opposite == -1:
            raise MissingAdjacencyError(f"Side {e} is on the convex hull and has no outer triangle")
        return self.triangle_position(triangle_of(e)), self.triangle_position(triangle_of(opposite))

    # Unique edges

    def iter_cell_edges(self) -> Iterator[EdgeSegment]:
        """
        Voronoi segments, one per interior triangle edge.

        Hull sides are skipped: their dual segment would need a ghost triangle
        position, which this mesh does not model.
        """
        half_edges = self._half_edges
        for e in range(self.num_edges):
            if e < half_edges[e]:
                p1, p2 = self.points_of_cell_side(e)
                yield EdgeSegment(e, p1, p2)

    def iter_triangle_edges(self, include_boundary: bool = False) -> Iterator[EdgeSegment]:
        """
        Delaunay edges, each undirected edge once.

        Args:
            include_boundary: Also yield convex hull edges, which have no
                opposite half-edge
        """
        half_edges = self._half_edges
        triangles = self._triangles
        for e in range(self.num_edges):
            opposite = half_edges[e]
            if e < opposite or (include_boundary and opposite == -1):
                yield EdgeSegment(e,
                                  self.cell_position(triangles[e]),
                                  self.cell_position(triangles[next_side(e)]))


def build_dual_mesh(points, exact_predicates: Optional[bool] = None) -> DualMesh:
    """
    Triangulate ``points`` and load the dual mesh over them.

    Raises:
        DegenerateInputError: If the points cannot be triangulated
    """
    triangulation = triangulate(points, exact_predicates=exact_predicates)
    return DualMesh(points, triangulation).load()


def generate_dual_mesh(config: MeshConfig, seed: Optional[str] = None) -> DualMesh:
    """
    Sample a Poisson-disc point set over the configured area and mesh it.

    Args:
        config: Area size and sampling radius
        seed: Sampler seed for reproducibility

    Returns:
        Loaded dual mesh over the sampled points
    """
    logger.info("Generating dual mesh",
                width=config.width, height=config.height,
                radius=config.radius, seed=seed)

    sampler = PoissonDiscSampler(config.width, config.height, config.radius, seed=seed)
    points = sampler.sample()

    logger.info("Points sampled", points=len(points))

    return build_dual_mesh(points, exact_predicates=config.exact_predicates)
