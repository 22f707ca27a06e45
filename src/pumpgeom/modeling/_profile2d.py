from __future__ import annotations

import numpy as np

from pumpgeom.errors import DegenerateProfile, InvalidBevelSpec


def _dedupe_loop(points: np.ndarray, tolerance: float = 1e-9) -> np.ndarray:
    """Drop consecutive duplicates and the closing duplicate of a ring."""

    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    if pts.shape[0] == 0:
        return pts
    kept = [pts[0]]
    for point in pts[1:]:
        if np.linalg.norm(point - kept[-1]) > tolerance:
            kept.append(point)
    while len(kept) > 1 and np.linalg.norm(kept[-1] - kept[0]) <= tolerance:
        kept.pop()
    return np.asarray(kept, dtype=float)


def _signed_area(points: np.ndarray) -> float:
    if points.shape[0] < 3:
        return 0.0
    x = points[:, 0]
    y = points[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def _ensure_winding(points: np.ndarray, clockwise: bool) -> np.ndarray:
    if points.shape[0] < 3:
        return points
    area = _signed_area(points)
    is_cw = area < 0
    if is_cw != clockwise:
        return points[::-1].copy()
    return points


def _triangulate_loop(loop: np.ndarray) -> np.ndarray:
    try:
        import mapbox_earcut as earcut
    except ImportError as exc:  # pragma: no cover - runtime dependency
        raise ImportError("mapbox_earcut is required for profile triangulation.") from exc

    vertices = np.ascontiguousarray(loop, dtype=np.float64)
    ring_end_indices = np.asarray([vertices.shape[0]], dtype=np.uint32)
    indices = earcut.triangulate_float64(vertices, ring_end_indices)
    faces = np.asarray(indices, dtype=np.int64).reshape(-1, 3)
    if faces.shape[0] == 0:
        raise DegenerateProfile("Profile could not be triangulated; it encloses no area.")
    return faces


def _inset_loop(loop: np.ndarray, distance: float) -> np.ndarray:
    """Offset a counter-clockwise ring inward by ``distance`` using mitred corners.

    Raises InvalidBevelSpec when the offset folds an edge back or crosses itself.
    """

    if distance == 0:
        return loop.copy()
    edges = np.roll(loop, -1, axis=0) - loop
    lengths = np.linalg.norm(edges, axis=1)
    if np.any(lengths == 0):
        raise DegenerateProfile("Profile contains zero-length edges.")
    inward = np.column_stack([-edges[:, 1], edges[:, 0]]) / lengths[:, np.newaxis]
    previous = np.roll(inward, 1, axis=0)
    bisector = previous + inward
    bisector_len = np.linalg.norm(bisector, axis=1)
    if np.any(bisector_len < 1e-9):
        raise InvalidBevelSpec("Profile has a fully folded corner; it cannot be bevelled.")
    bisector = bisector / bisector_len[:, np.newaxis]
    cos_half = np.einsum("ij,ij->i", bisector, inward)
    if np.any(cos_half < 1e-6):
        raise InvalidBevelSpec("Profile corner is too sharp to bevel.")
    inset = loop + bisector * (distance / cos_half)[:, np.newaxis]

    inset_edges = np.roll(inset, -1, axis=0) - inset
    if np.any(np.einsum("ij,ij->i", edges, inset_edges) <= 0):
        raise InvalidBevelSpec(
            f"bevel size {distance} exceeds the local thickness of the profile."
        )
    if _signed_area(inset) <= 0:
        raise InvalidBevelSpec(f"bevel size {distance} collapses the profile.")
    if _crossing_count(inset) > _crossing_count(loop):
        raise InvalidBevelSpec(f"bevel size {distance} makes the profile intersect itself.")
    return inset


def _crossing_count(loop: np.ndarray) -> int:
    """Number of proper crossings between non-adjacent edges of a closed ring."""

    count = loop.shape[0]
    if count < 4:
        return 0
    start = loop
    delta = np.roll(loop, -1, axis=0) - loop
    end = start + delta

    def side(points: np.ndarray) -> np.ndarray:
        # [i, j]: which side of edge i the point j lies on
        rel = points[np.newaxis, :, :] - start[:, np.newaxis, :]
        return delta[:, np.newaxis, 0] * rel[..., 1] - delta[:, np.newaxis, 1] * rel[..., 0]

    s_start = side(start)
    s_end = side(end)
    straddles = s_start * s_end < 0
    hits = straddles & straddles.T
    i, j = np.triu_indices(count, k=2)
    adjacent = (i == 0) & (j == count - 1)
    return int(np.count_nonzero(hits[i, j] & ~adjacent))
