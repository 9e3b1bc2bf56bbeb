"""Tests for the incremental Delaunay triangulator."""

import numpy as np
import pytest
from scipy.spatial import Delaunay

from py_dualmesh.core.delaunator import (
    BuildEvent, Delaunator, Triangulation, TriangulatorState, quicksort, triangulate
)
from py_dualmesh.core.errors import (
    AmbiguousOrientationError, DegenerateInputError, TriangulationStateError
)
from py_dualmesh.core.orient2d import orient2d
from py_dualmesh.core.predicates import Point, in_circle


def next_side(e):
    return e - 2 if e % 3 == 2 else e + 1


def previous_side(e):
    return e + 2 if e % 3 == 0 else e - 1


class TestSmallInputs:
    """Hand-checked triangulations."""

    def test_three_points(self, triangle_points):
        result = Delaunator(triangle_points).build()

        assert result.num_triangles == 1
        assert result.num_edges == 3
        assert list(result.half_edges) == [-1, -1, -1]
        assert sorted(result.triangles.tolist()) == [0, 1, 2]
        assert sorted(result.hull.tolist()) == [0, 1, 2]

    def test_square(self, square_points):
        result = Delaunator(square_points).build()

        assert result.num_triangles == 2
        assert result.num_edges == 6
        assert np.sum(result.half_edges == -1) == 4
        assert np.sum(result.half_edges != -1) == 2  # one shared edge, two half-edges
        assert len(result.hull) == 4

    def test_square_layout(self, square_points):
        result = Delaunator(square_points).build()

        assert result.triangles.tolist() == [0, 2, 1, 0, 3, 2]
        assert result.half_edges.tolist() == [5, -1, -1, -1, -1, 0]
        assert result.hull.tolist() == [0, 3, 2, 1]

    def test_convex_quadrilateral(self):
        points = [(0, 0), (4, 0), (5, 3), (0, 2)]
        result = Delaunator(points).build()

        assert result.num_triangles == 2
        assert np.sum(result.half_edges == -1) == 4

    def test_exact_duplicate_is_ignored(self):
        points = [(0, 0), (0, 0), (1, 0), (0, 1)]
        result = Delaunator(points).build()

        assert result.num_triangles == 1
        used = set(result.triangles.tolist())
        assert len(used) == 3
        assert used.isdisjoint({1})  # later duplicate is dropped

    def test_point_objects(self):
        result = Delaunator.from_points([Point(0, 0), Point(2, 0), Point(1, 2)]).build()
        assert result.num_triangles == 1

    def test_points_of_triangle(self, triangle_points):
        result = Delaunator(triangle_points).build()
        assert sorted(result.points_of_triangle(0)) == [0, 1, 2]
        assert Triangulation.edges_of_triangle(2) == (6, 7, 8)
        assert Triangulation.triangle_of_edge(7) == 2


class TestDegenerateInputs:
    """Inputs without a seed triangle produce a hull-only result."""

    def test_collinear_points(self):
        points = [(2, 2), (0, 0), (4, 4), (1, 1), (3, 3)]
        delaunator = Delaunator(points)
        result = delaunator.build()

        assert delaunator.state is TriangulatorState.DEGENERATE
        assert result.is_degenerate
        assert result.num_triangles == 0
        assert len(result.triangles) == 0
        assert len(result.half_edges) == 0
        # hull follows the points along the line
        assert result.hull.tolist() == [1, 3, 0, 4, 2]

    def test_vertical_line_sorts_by_y(self):
        result = Delaunator([(0, 0), (0, 2), (0, 1)]).build()
        assert result.hull.tolist() == [0, 2, 1]

    def test_collinear_duplicates_collapse(self):
        result = Delaunator([(0, 0), (1, 0), (1, 0), (2, 0)]).build()
        assert result.hull.tolist() == [0, 1, 3]

    @pytest.mark.parametrize("points", [
        [],
        [(1.0, 1.0)],
        [(0.0, 0.0), (1.0, 1.0)],
        [(3.0, 3.0)] * 4,
    ])
    def test_too_few_distinct_points(self, points):
        result = Delaunator(points).build()
        assert result.is_degenerate
        assert len(result.hull) == len(set(points))

    def test_triangulate_raises_with_hull(self):
        with pytest.raises(DegenerateInputError) as exc_info:
            triangulate([(0, 0), (1, 0), (2, 0)])
        assert exc_info.value.triangulation.hull.tolist() == [0, 1, 2]

    def test_triangulate_returns_result(self, triangle_points):
        assert triangulate(triangle_points).num_triangles == 1

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            Delaunator([(0, 0, 0), (1, 1, 1)])

    def test_non_finite(self):
        with pytest.raises(ValueError):
            Delaunator([(0, 0), (1, float("nan")), (2, 3)])


class TestNearDegenerate:
    """Orientation ambiguity surfaces unless exact predicates are enabled."""

    NEAR_COLLINEAR = [(0.0, 0.0), (1.0, 1.0), (2.0, 2.0 + 2 ** -50)]
    GRID = [(float(x), float(y)) for x in range(4) for y in range(4)]

    def test_sliver_seed_raises_without_exact_predicates(self):
        with pytest.raises(AmbiguousOrientationError):
            Delaunator(self.NEAR_COLLINEAR, exact_predicates=False).build()

    def test_sliver_seed_with_exact_predicates(self):
        result = Delaunator(self.NEAR_COLLINEAR, exact_predicates=True).build()
        assert result.num_triangles == 1

    def test_grid_with_exact_predicates(self):
        result = Delaunator(self.GRID, exact_predicates=True).build()
        # 16 points, 12 on the hull: 2n - 2 - h triangles
        assert result.num_triangles == 2 * 16 - 2 - 12
        assert len(result.hull) == 12


class TestProperties:
    """Invariants that must hold for any triangulation."""

    @pytest.fixture
    def result(self, random_points):
        return Delaunator(random_points, exact_predicates=True).build()

    def test_edge_count(self, result):
        assert result.num_edges % 3 == 0
        assert len(result.triangles) == len(result.half_edges) == 3 * result.num_triangles

    def test_half_edge_symmetry(self, result):
        for e, opposite in enumerate(result.half_edges):
            if opposite != -1:
                assert result.half_edges[opposite] == e

    def test_shared_edges_are_reversed(self, result):
        triangles = result.triangles
        for e, opposite in enumerate(result.half_edges):
            if opposite != -1:
                assert triangles[e] == triangles[next_side(opposite)]
                assert triangles[next_side(e)] == triangles[opposite]

    def test_orientation(self, result, random_points):
        for t in range(result.num_triangles):
            a, b, c = result.points_of_triangle(t)
            assert orient2d(*random_points[a], *random_points[b], *random_points[c], exact=True) > 0

    def test_delaunay_condition(self, result, random_points):
        triangles = result.triangles
        for e, opposite in enumerate(result.half_edges):
            if opposite == -1:
                continue
            t = e - e % 3
            a, b, c = (random_points[triangles[t + k]] for k in range(3))
            far = random_points[triangles[previous_side(opposite)]]
            assert not in_circle(*a, *b, *c, *far)

    def test_boundary_is_hull(self, result):
        triangles = result.triangles
        hull = result.hull.tolist()
        hull_edges = {(hull[k], hull[(k + 1) % len(hull)]) for k in range(len(hull))}
        boundary = {
            (int(triangles[e]), int(triangles[next_side(e)]))
            for e in range(result.num_edges) if result.half_edges[e] == -1
        }
        assert boundary == hull_edges

    def test_euler_counts(self, result, random_points):
        n = len(random_points)
        h = len(result.hull)
        assert result.num_triangles == 2 * n - 2 - h

    def test_matches_qhull(self, result, random_points):
        ours = {frozenset(result.points_of_triangle(t)) for t in range(result.num_triangles)}
        reference = {frozenset(simplex.tolist()) for simplex in Delaunay(random_points).simplices}
        assert ours == reference


class TestIncrementalBuild:
    """The generator form of the build."""

    def test_events(self, random_points):
        delaunator = Delaunator(random_points, exact_predicates=True)
        events = list(delaunator.steps())
        result = delaunator.triangulation

        assert all(isinstance(event, BuildEvent) for event in events)
        added = [event for event in events if event.kind == "triangle"]
        flips = [event for event in events if event.kind == "flip"]
        assert len(added) == result.num_triangles
        assert len(flips) > 0
        assert [event.edge for event in added] == list(range(0, result.num_edges, 3))

    def test_state_machine(self, square_points):
        delaunator = Delaunator(square_points)
        assert delaunator.state is TriangulatorState.EMPTY

        steps = delaunator.steps()
        first = next(steps)
        assert first == BuildEvent("triangle", 0)
        assert delaunator.state is TriangulatorState.BUILDING
        assert delaunator.triangulation is None

        for _ in steps:
            pass
        assert delaunator.state is TriangulatorState.BUILT
        assert delaunator.triangulation.num_triangles == 2

    def test_built_is_terminal(self, triangle_points):
        delaunator = Delaunator(triangle_points)
        delaunator.build()
        with pytest.raises(TriangulationStateError):
            delaunator.build()

    def test_degenerate_is_terminal(self):
        delaunator = Delaunator([(0, 0), (1, 1)])
        delaunator.build()
        with pytest.raises(TriangulationStateError):
            delaunator.steps()

    def test_abandoned_build_cannot_restart(self, random_points):
        delaunator = Delaunator(random_points, exact_predicates=True)
        steps = delaunator.steps()
        next(steps)
        with pytest.raises(TriangulationStateError):
            delaunator.build()


class TestQuicksort:
    """In-place id sort used to order insertion."""

    @pytest.mark.parametrize("n", [0, 1, 5, 21, 500])
    def test_sorted_by_distance(self, n):
        rng = np.random.default_rng(n)
        dists = rng.uniform(0, 100, size=n).tolist()
        ids = list(range(n))
        quicksort(ids, dists, 0, n - 1)

        assert sorted(ids) == list(range(n))
        ordered = [dists[i] for i in ids]
        assert ordered == sorted(dists)

    def test_many_ties(self):
        dists = [float(i % 3) for i in range(200)]
        ids = list(range(200))
        quicksort(ids, dists, 0, 199)
        assert [dists[i] for i in ids] == sorted(dists)
