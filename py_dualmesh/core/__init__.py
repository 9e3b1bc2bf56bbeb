"""
Core triangulation and mesh functionality.
"""

from .errors import (
    DualMeshError, InvalidTopologyError, DegenerateInputError, AmbiguousOrientationError,
    MissingAdjacencyError, TriangulationStateError, InterchangeFormatError,
)
from .orient2d import orient2d
from .predicates import Point
from .ordered_list import OrderedList
from .delaunator import Delaunator, Triangulation, TriangulatorState, BuildEvent, triangulate
from .dual_mesh import DualMesh, MeshConfig, EdgeSegment, build_dual_mesh, generate_dual_mesh
from .poisson_disc import PoissonDiscSampler, SampleEvent
from .alea_prng import AleaPRNG

__all__ = ['DualMeshError', 'InvalidTopologyError', 'DegenerateInputError',
           'AmbiguousOrientationError', 'MissingAdjacencyError', 'TriangulationStateError',
           'InterchangeFormatError', 'orient2d', 'Point', 'OrderedList',
           'Delaunator', 'Triangulation', 'TriangulatorState', 'BuildEvent', 'triangulate',
           'DualMesh', 'MeshConfig', 'EdgeSegment', 'build_dual_mesh', 'generate_dual_mesh',
           'PoissonDiscSampler', 'SampleEvent', 'AleaPRNG']
