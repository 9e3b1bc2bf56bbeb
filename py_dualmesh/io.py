"""
Interchange formats for a triangulated point set.

``{points, triangles, half_edges}`` fully determines a dual mesh, so that is
all that is stored (plus the hull, which is cheap and useful for degenerate
inputs). Two layouts carry the same keys:

* JSON text: ``{"format": "py-dualmesh", "version": 1, "points": [[x, y], ...],
  "triangles": [...], "half_edges": [...], "hull": [...]}``
* NumPy ``.npz``: one array per key, plus ``format`` and ``version`` scalars
"""

import json
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import numpy as np
import structlog

from .core.delaunator import Triangulation
from .core.errors import InterchangeFormatError

logger = structlog.get_logger()

FORMAT_NAME = "py-dualmesh"
FORMAT_VERSION = 1

PathLike = Union[str, Path]


def to_dict(points, triangulation: Triangulation) -> Dict[str, Any]:
    """JSON-ready representation of a triangulated point set."""
    return {
        "format": FORMAT_NAME,
        "version": FORMAT_VERSION,
        "points": np.asarray(points, dtype=np.float64).reshape(-1, 2).tolist(),
        "triangles": np.asarray(triangulation.triangles).tolist(),
        "half_edges": np.asarray(triangulation.half_edges).tolist(),
        "hull": np.asarray(triangulation.hull).tolist(),
    }


def from_dict(data: Dict[str, Any]) -> Tuple[np.ndarray, Triangulation]:
    """
    Rebuild points and triangulation from ``to_dict`` output.

    Raises:
        InterchangeFormatError: On a foreign format, unknown version, missing
            keys or inconsistent array lengths
    """
    if data.get("format") != FORMAT_NAME:
        raise InterchangeFormatError(f"Not a {FORMAT_NAME} payload: format={data.get('format')!r}")
    if data.get("version") != FORMAT_VERSION:
        raise InterchangeFormatError(f"Unsupported version: {data.get('version')!r}")

    missing = [key for key in ("points", "triangles", "half_edges", "hull") if key not in data]
    if missing:
        raise InterchangeFormatError(f"Missing keys: {', '.join(missing)}")

    points = np.asarray(data["points"], dtype=np.float64).reshape(-1, 2)
    triangulation = Triangulation(
        triangles=np.asarray(data["triangles"], dtype=np.uint32),
        half_edges=np.asarray(data["half_edges"], dtype=np.int32),
        hull=np.asarray(data["hull"], dtype=np.int32),
    )
    _validate(points, triangulation)
    return points, triangulation


def _validate(points: np.ndarray, triangulation: Triangulation) -> None:
    n_edges = len(triangulation.triangles)
    if len(triangulation.half_edges) != n_edges:
        raise InterchangeFormatError("triangles and half_edges differ in length")
    if n_edges % 3 != 0:
        raise InterchangeFormatError(f"Edge count {n_edges} is not divisible by 3")
    if n_edges and int(triangulation.triangles.max()) >= len(points):
        raise InterchangeFormatError("triangles reference a missing point")
    if n_edges and (triangulation.half_edges.min() < -1 or triangulation.half_edges.max() >= n_edges):
        raise InterchangeFormatError("half_edges reference a missing edge")


def save_json(path: PathLike, points, triangulation: Triangulation) -> None:
    path = Path(path)
    with path.open("w", encoding="utf-8") as f:
        json.dump(to_dict(points, triangulation), f)
    logger.info("Mesh saved", path=str(path), format="json",
                triangles=triangulation.num_triangles)


def load_json(path: PathLike) -> Tuple[np.ndarray, Triangulation]:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InterchangeFormatError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise InterchangeFormatError(f"Expected a JSON object in {path}")
    return from_dict(data)


def save_npz(path: PathLike, points, triangulation: Triangulation) -> None:
    path = Path(path)
    np.savez(
        path,
        format=np.array(FORMAT_NAME),
        version=np.array(FORMAT_VERSION),
        points=np.asarray(points, dtype=np.float64).reshape(-1, 2),
        triangles=np.asarray(triangulation.triangles, dtype=np.uint32),
        half_edges=np.asarray(triangulation.half_edges, dtype=np.int32),
        hull=np.asarray(triangulation.hull, dtype=np.int32),
    )
    logger.info("Mesh saved", path=str(path), format="npz",
                triangles=triangulation.num_triangles)


def load_npz(path: PathLike) -> Tuple[np.ndarray, Triangulation]:
    with np.load(path, allow_pickle=False) as archive:
        data = {key: archive[key] for key in archive.files}
    if "format" in data:
        data["format"] = str(data["format"])
    if "version" in data:
        data["version"] = int(data["version"])
    return from_dict(data)
