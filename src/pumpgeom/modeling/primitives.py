from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from pumpgeom.errors import InvalidParameter, require_positive, require_segments
from pumpgeom.mesh import Mesh, remove_unused_vertices

# Every primitive is built origin-centred with its principal axis on +Z.


def cylinder(
    radius_top: float,
    radius_bottom: float,
    height: float,
    radial_segments: int = 32,
    max_segments: int | None = None,
) -> Mesh:
    """Circular frustum along Z; ``radius_top`` sits at ``z = +height / 2``.

    A zero radius collapses that end to an apex and drops its cap.
    """

    radial_segments = require_segments(radial_segments, 3, "radial_segments", max_segments)
    height = require_positive(height, "height")
    if not (radius_top >= 0 and radius_bottom >= 0):
        raise InvalidParameter("cylinder radii must be >= 0.")
    if radius_top == 0 and radius_bottom == 0:
        raise InvalidParameter("At least one cylinder radius must be > 0.")

    angles = np.linspace(0.0, 2.0 * np.pi, radial_segments, endpoint=False)
    z_bottom = -height / 2.0
    z_top = height / 2.0

    def ring(radius: float, z: float) -> np.ndarray:
        if radius == 0:
            return np.array([[0.0, 0.0, z]])
        return np.column_stack(
            [radius * np.cos(angles), radius * np.sin(angles), np.full_like(angles, z)]
        )

    bottom = ring(radius_bottom, z_bottom)
    top = ring(radius_top, z_top)
    vertices = [bottom, top]
    faces = []

    idx = np.arange(radial_segments)
    nxt = (idx + 1) % radial_segments
    top_offset = len(bottom)
    b0 = idx if len(bottom) > 1 else np.zeros_like(idx)
    b1 = nxt if len(bottom) > 1 else None
    t0 = top_offset + (idx if len(top) > 1 else np.zeros_like(idx))
    t1 = top_offset + nxt if len(top) > 1 else None
    if b1 is not None and t1 is not None:
        faces.append(np.column_stack([b0, b1, t1]))
        faces.append(np.column_stack([b0, t1, t0]))
    elif b1 is not None:
        faces.append(np.column_stack([b0, b1, t0]))
    else:
        faces.append(np.column_stack([b0, t1, t0]))

    # caps get their own vertices so their normals stay flat
    offset = len(bottom) + len(top)
    for radius, z, sign in ((radius_bottom, z_bottom, -1.0), (radius_top, z_top, 1.0)):
        if radius == 0:
            continue
        vertices.append(np.vstack([[0.0, 0.0, z], ring(radius, z)]))
        center = offset
        rim0 = offset + 1 + idx
        rim1 = offset + 1 + nxt
        if sign > 0:
            faces.append(np.column_stack([np.full_like(idx, center), rim0, rim1]))
        else:
            faces.append(np.column_stack([np.full_like(idx, center), rim1, rim0]))
        offset += radial_segments + 1

    return Mesh(np.vstack(vertices), np.vstack(faces))


def box(width: float, height: float, depth: float) -> Mesh:
    """Rectangular solid: ``width`` on X, ``height`` on Y, ``depth`` on Z."""

    half = np.array(
        [
            require_positive(width, "width"),
            require_positive(height, "height"),
            require_positive(depth, "depth"),
        ]
    ) / 2.0
    axes = np.eye(3)
    vertices = []
    faces = []
    for axis in range(3):
        u_axis = axes[(axis + 1) % 3]
        v_axis = axes[(axis + 2) % 3]
        for sign in (1.0, -1.0):
            normal = axes[axis] * sign
            u = u_axis * half[(axis + 1) % 3]
            v = v_axis * half[(axis + 2) % 3] * sign
            center = normal * half[axis]
            base = len(vertices)
            vertices.extend([center - u - v, center + u - v, center + u + v, center - u + v])
            faces.extend([[base, base + 1, base + 2], [base, base + 2, base + 3]])
    return Mesh(np.asarray(vertices), np.asarray(faces))


def _grid_faces(n_u: int, n_v: int, wrap_u: bool, wrap_v: bool) -> np.ndarray:
    """Quad grid over an ``n_u x n_v`` lattice as triangles ``[a, b, d], [b, c, d]``.

    ``a=(i, j)``, ``b=(i+1, j)``, ``c=(i+1, j+1)``, ``d=(i, j+1)``; the surface
    normal follows ``dP/du x dP/dv``.
    """

    cells_u = n_u if wrap_u else n_u - 1
    cells_v = n_v if wrap_v else n_v - 1
    i, j = np.meshgrid(np.arange(cells_u), np.arange(cells_v), indexing="ij")
    i = i.ravel()
    j = j.ravel()
    i1 = (i + 1) % n_u
    j1 = (j + 1) % n_v
    a = i * n_v + j
    b = i1 * n_v + j
    c = i1 * n_v + j1
    d = i * n_v + j1
    return np.vstack([np.column_stack([a, b, d]), np.column_stack([b, c, d])])


def _drop_degenerate(vertices: np.ndarray, faces: np.ndarray, epsilon: float) -> tuple[np.ndarray, np.ndarray]:
    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    areas = np.linalg.norm(np.cross(v1 - v0, v2 - v0), axis=1)
    return remove_unused_vertices(vertices, faces[areas > epsilon])


def partial_torus(
    major_radius: float,
    minor_radius: float,
    radial_segments: int = 16,
    tubular_segments: int = 64,
    arc_fraction: float = 1.0,
    max_segments: int | None = None,
) -> Mesh:
    """Torus in the XY plane swept from +X through ``arc_fraction * 2pi``.

    A partial sweep leaves both tube ends open.
    """

    major_radius = require_positive(major_radius, "major_radius")
    minor_radius = require_positive(minor_radius, "minor_radius")
    if minor_radius >= major_radius:
        raise InvalidParameter("minor_radius must be smaller than major_radius.")
    if not 0 < arc_fraction <= 1:
        raise InvalidParameter("arc_fraction must be in (0, 1].")
    full = bool(np.isclose(arc_fraction, 1.0))
    radial_segments = require_segments(radial_segments, 3, "radial_segments", max_segments)
    tubular_segments = require_segments(tubular_segments, 3 if full else 1, "tubular_segments", max_segments)

    arc = arc_fraction * 2.0 * np.pi
    if full:
        u = np.linspace(0.0, arc, tubular_segments, endpoint=False)
    else:
        u = np.linspace(0.0, arc, tubular_segments + 1)
    v = np.linspace(0.0, 2.0 * np.pi, radial_segments, endpoint=False)
    uu, vv = np.meshgrid(u, v, indexing="ij")
    ring = major_radius + minor_radius * np.cos(vv)
    vertices = np.column_stack(
        [
            (ring * np.cos(uu)).ravel(),
            (ring * np.sin(uu)).ravel(),
            (minor_radius * np.sin(vv)).ravel(),
        ]
    )
    faces = _grid_faces(len(u), len(v), wrap_u=full, wrap_v=True)
    mesh = Mesh(vertices, faces)
    mesh.metadata["open_ends"] = not full
    return mesh


def partial_sphere_dome(
    radius: float,
    width_segments: int = 32,
    height_segments: int = 16,
    phi_range: Tuple[float, float] = (0.0, 2.0 * np.pi),
    theta_range: Tuple[float, float] = (0.0, np.pi / 2.0),
    max_segments: int | None = None,
) -> Mesh:
    """Spherical patch about +Z.

    ``phi_range`` is ``(start, length)`` of the azimuth around Z and
    ``theta_range`` is ``(start, length)`` of the polar angle from +Z. The
    default is the upper hemisphere.
    """

    radius = require_positive(radius, "radius")
    width_segments = require_segments(width_segments, 3, "width_segments", max_segments)
    height_segments = require_segments(height_segments, 2, "height_segments", max_segments)
    phi_start, phi_length = _angle_range(phi_range, 2.0 * np.pi, "phi_range")
    theta_start, theta_length = _angle_range(theta_range, np.pi, "theta_range")
    if theta_start + theta_length > np.pi + 1e-12:
        raise InvalidParameter("theta_range must stay within [0, pi].")

    full = bool(np.isclose(phi_length, 2.0 * np.pi))
    if full:
        phi = phi_start + np.linspace(0.0, phi_length, width_segments, endpoint=False)
    else:
        phi = phi_start + np.linspace(0.0, phi_length, width_segments + 1)
    theta = theta_start + np.linspace(0.0, theta_length, height_segments + 1)
    pp, tt = np.meshgrid(phi, theta, indexing="ij")
    vertices = radius * np.column_stack(
        [
            (np.sin(tt) * np.cos(pp)).ravel(),
            (np.sin(tt) * np.sin(pp)).ravel(),
            np.cos(tt).ravel(),
        ]
    )
    # dP/dphi x dP/dtheta points inward, so swap the winding.
    faces = _grid_faces(len(phi), len(theta), wrap_u=full, wrap_v=False)[:, [0, 2, 1]]
    vertices, faces = _drop_degenerate(vertices, faces, epsilon=1e-12 * radius * radius)
    return Mesh(vertices, faces)


def _angle_range(value: Sequence[float], limit: float, label: str) -> Tuple[float, float]:
    try:
        start, length = (float(v) for v in value)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter(f"{label} must be a (start, length) pair.") from exc
    if not 0 < length <= limit + 1e-12:
        raise InvalidParameter(f"{label} length must be in (0, {limit:.6g}].")
    if label == "theta_range" and start < 0:
        raise InvalidParameter("theta_range must stay within [0, pi].")
    return start, length


__all__ = ["cylinder", "box", "partial_torus", "partial_sphere_dome"]
