from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from pumpgeom.errors import (
    DegenerateProfile,
    InvalidBevelSpec,
    InvalidParameter,
    require_segments,
)
from pumpgeom.mesh import Mesh

from ._profile2d import _ensure_winding, _inset_loop, _signed_area, _triangulate_loop
from .profiles import Profile


@dataclass(frozen=True)
class ExtrusionSpec:
    """Linear sweep settings.

    The straight wall spans ``z = 0 .. depth`` in ``steps`` slices. With bevel
    enabled, ``bevel_segments`` rings at each end step the outline inward by up
    to ``bevel_size`` while moving ``bevel_thickness`` past the wall.
    """

    depth: float
    bevel_enabled: bool = False
    bevel_thickness: float = 0.0
    bevel_size: float = 0.0
    bevel_segments: int = 3
    steps: int = 1


def _cap_faces(
    vertices: np.ndarray,
    faces: np.ndarray,
    expected_normal: np.ndarray,
) -> np.ndarray:
    if faces.size == 0:
        return faces
    tri = faces.copy()
    v1 = vertices[tri[:, 1]] - vertices[tri[:, 0]]
    v2 = vertices[tri[:, 2]] - vertices[tri[:, 0]]
    normals = np.cross(v1, v2)
    dots = np.einsum("ij,j->i", normals, expected_normal)
    flip = dots < 0
    if np.any(flip):
        tri[flip] = tri[flip][:, [0, 2, 1]]
    return tri


def _validate_spec(spec: ExtrusionSpec, profile: Profile, max_segments: int | None) -> None:
    if not spec.depth > 0:
        raise InvalidParameter(f"depth must be positive (got {spec.depth}).")
    require_segments(spec.steps, 1, "steps", max_segments)
    if not spec.bevel_enabled:
        return
    require_segments(spec.bevel_segments, 1, "bevel_segments", max_segments)
    if not (spec.bevel_thickness >= 0 and spec.bevel_size >= 0):
        raise InvalidBevelSpec("bevel_thickness and bevel_size must be >= 0.")
    if spec.bevel_thickness == 0 and spec.bevel_size == 0:
        raise InvalidBevelSpec("bevel is enabled but both bevel_thickness and bevel_size are zero.")
    limit = 0.5 * profile.min_span
    if spec.bevel_size > limit:
        raise InvalidBevelSpec(
            f"bevel_size {spec.bevel_size} exceeds half the profile's minimum span ({limit:.6g})."
        )


def _ring_layout(spec: ExtrusionSpec) -> list[tuple[float, float]]:
    """(z, inset) per ring, ordered from the back cap to the front cap."""

    walls = [(spec.depth * i / spec.steps, 0.0) for i in range(spec.steps + 1)]
    if not spec.bevel_enabled:
        return walls
    n = spec.bevel_segments
    fractions = [k / n for k in range(n, 0, -1)]
    back = [(-f * spec.bevel_thickness, f * spec.bevel_size) for f in fractions]
    front = [(spec.depth + f * spec.bevel_thickness, f * spec.bevel_size) for f in reversed(fractions)]
    return back + walls + front


def extrude(profile: Profile, spec: ExtrusionSpec, max_segments: int | None = None) -> Mesh:
    """Sweep ``profile`` along +Z into a closed, outward-wound solid."""

    loop = profile.loop()
    if loop.shape[0] < 3:
        raise DegenerateProfile(f"Profile needs at least 3 distinct points (got {loop.shape[0]}).")
    if abs(_signed_area(loop)) <= 1e-12:
        raise DegenerateProfile("Profile encloses no area.")
    _validate_spec(spec, profile, max_segments)

    loop = _ensure_winding(loop, clockwise=False)
    count = loop.shape[0]

    insets: dict[float, np.ndarray] = {0.0: loop}
    rings = []
    for z, inset in _ring_layout(spec):
        if inset not in insets:
            insets[inset] = _inset_loop(loop, inset)
        outline = insets[inset]
        rings.append(np.column_stack([outline, np.full(count, z)]))

    back_cap = rings[0]
    front_cap = rings[-1]
    cap_tris = _triangulate_loop(back_cap[:, :2])
    plane_normal = np.array([0.0, 0.0, 1.0])
    side = np.vstack(rings)
    vertices = np.vstack([back_cap, front_cap, side])

    faces = [
        _cap_faces(back_cap, cap_tris, expected_normal=-plane_normal),
        _cap_faces(front_cap, cap_tris, expected_normal=plane_normal) + count,
    ]

    side_offset = 2 * count
    idx = np.arange(count)
    nxt = (idx + 1) % count
    for ring in range(len(rings) - 1):
        b0 = side_offset + ring * count + idx
        b1 = side_offset + ring * count + nxt
        t0 = b0 + count
        t1 = b1 + count
        faces.append(np.column_stack([b0, b1, t1]))
        faces.append(np.column_stack([b0, t1, t0]))

    mesh = Mesh(vertices, np.vstack(faces))
    mesh.metadata["profile_points"] = count
    return mesh


__all__ = ["ExtrusionSpec", "extrude"]
