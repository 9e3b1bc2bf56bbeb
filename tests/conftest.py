"""Shared fixtures for triangulation and mesh tests."""

import numpy as np
import pytest

from py_dualmesh.core import Delaunator, DualMesh


@pytest.fixture
def triangle_points():
    return [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0)]


@pytest.fixture
def square_points():
    return [(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)]


@pytest.fixture
def random_points():
    """1000 points in general position."""
    rng = np.random.default_rng(12345)
    return rng.uniform(0, 1000, size=(1000, 2))


@pytest.fixture
def random_mesh(random_points):
    triangulation = Delaunator(random_points, exact_predicates=True).build()
    return DualMesh(random_points, triangulation).load()
