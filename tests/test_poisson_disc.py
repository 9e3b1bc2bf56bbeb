"""Tests for Poisson-disc sampling."""

import numpy as np
import pytest
from scipy.spatial.distance import pdist

from py_dualmesh.core.poisson_disc import PoissonDiscSampler, SampleEvent
from py_dualmesh.core.predicates import Point
from py_dualmesh.utils.random import set_random_seed


class TestPoissonDiscSampler:
    """Blue-noise sampling over a rectangle."""

    def test_minimum_distance(self):
        points = PoissonDiscSampler(200, 100, 8, seed="spacing").sample()

        assert points.shape[1] == 2
        assert len(points) > 50
        assert pdist(points).min() >= 8

    def test_points_in_bounds(self):
        points = PoissonDiscSampler(120, 80, 6, seed="bounds").sample()

        assert np.all(points[:, 0] >= 0)
        assert np.all(points[:, 0] < 120)
        assert np.all(points[:, 1] >= 0)
        assert np.all(points[:, 1] < 80)

    def test_same_seed_same_points(self):
        a = PoissonDiscSampler(100, 100, 7, seed="repeat").sample()
        b = PoissonDiscSampler(100, 100, 7, seed="repeat").sample()
        np.testing.assert_array_equal(a, b)

    def test_different_seed_different_points(self):
        a = PoissonDiscSampler(100, 100, 7, seed="one").sample()
        b = PoissonDiscSampler(100, 100, 7, seed="two").sample()
        assert a.shape != b.shape or not np.array_equal(a, b)

    def test_shared_generator(self):
        set_random_seed("shared")
        a = PoissonDiscSampler(60, 60, 5).sample()
        set_random_seed("shared")
        b = PoissonDiscSampler(60, 60, 5).sample()
        np.testing.assert_array_equal(a, b)

    def test_first_event_is_centre(self):
        events = PoissonDiscSampler(40, 20, 4, seed="centre").generate()
        first = next(events)

        assert first == SampleEvent("add", Point(20.0, 10.0), None)

    def test_every_point_is_retired(self):
        sampler = PoissonDiscSampler(50, 50, 5, seed="events")
        events = list(sampler.generate())

        added = [event for event in events if event.kind == "add"]
        removed = [event for event in events if event.kind == "remove"]
        assert len(added) == len(removed) == len(sampler.points)
        assert all(event.parent is not None for event in added[1:])
        assert sampler.done
        assert not sampler.queue

    def test_children_sit_on_parent_ring(self):
        sampler = PoissonDiscSampler(50, 50, 5, seed="ring", epsilon=0.0)
        for event in sampler.generate():
            if event.kind == "add" and event.parent is not None:
                d = np.hypot(event.point.x - event.parent.x, event.point.y - event.parent.y)
                assert d == pytest.approx(5.0)

    def test_radius_larger_than_area(self):
        points = PoissonDiscSampler(3, 3, 10, seed="tiny").sample()
        np.testing.assert_array_equal(points, [[1.5, 1.5]])

    @pytest.mark.parametrize("width,height,radius", [
        (0, 10, 1),
        (10, -1, 1),
        (10, 10, 0),
    ])
    def test_invalid_arguments(self, width, height, radius):
        with pytest.raises(ValueError):
            PoissonDiscSampler(width, height, radius)
