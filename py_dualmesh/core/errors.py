"""Exception hierarchy for triangulation and dual-mesh construction."""


class DualMeshError(Exception):
    """Base class for every error raised by py_dualmesh."""


class InvalidTopologyError(DualMeshError, ValueError):
    """Triangle/half-edge arrays do not describe whole triangles."""


class DegenerateInputError(DualMeshError, ValueError):
    """Fewer than three distinct points, or all points collinear.

    The hull-only triangulation is kept on ``triangulation`` so callers can
    still inspect the sorted hull.
    """

    def __init__(self, message, triangulation=None):
        super().__init__(message)
        self.triangulation = triangulation


class AmbiguousOrientationError(DualMeshError, ArithmeticError):
    """The orientation of a near-collinear triple could not be decided."""


class MissingAdjacencyError(DualMeshError, LookupError):
    """A side has no neighbouring triangle across it."""


class TriangulationStateError(DualMeshError, RuntimeError):
    """A triangulator was asked to build again after reaching a terminal state."""


class InterchangeFormatError(DualMeshError, ValueError):
    """A serialized mesh payload is malformed."""
