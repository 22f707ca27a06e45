from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from pumpgeom.errors import InvalidParameter, require_non_negative
from pumpgeom.mesh import Mesh


def _normalize_axis(axis: Sequence[float]) -> np.ndarray:
    vec = np.asarray(axis, dtype=float).reshape(3)
    norm = np.linalg.norm(vec)
    if norm == 0:
        raise InvalidParameter("Rotation axis must be non-zero.")
    return vec / norm


def _axis_rotation_matrix(axis: Sequence[float], angle: float) -> np.ndarray:
    x, y, z = _normalize_axis(axis)
    c = np.cos(angle)
    s = np.sin(angle)
    C = 1.0 - c
    return np.array(
        [
            [x * x * C + c, x * y * C - z * s, x * z * C + y * s],
            [y * x * C + z * s, y * y * C + c, y * z * C - x * s],
            [z * x * C - y * s, z * y * C + x * s, z * z * C + c],
        ],
        dtype=float,
    )


@dataclass(frozen=True, eq=False)
class Transform:
    """Affine map ``p -> linear @ p + translation``. Angles are in radians."""

    linear: np.ndarray
    translation: np.ndarray

    def __post_init__(self) -> None:
        linear = np.asarray(self.linear, dtype=float).reshape(3, 3).copy()
        translation = np.asarray(self.translation, dtype=float).reshape(3).copy()
        if not (np.all(np.isfinite(linear)) and np.all(np.isfinite(translation))):
            raise InvalidParameter("Transform entries must be finite.")
        linear.setflags(write=False)
        translation.setflags(write=False)
        object.__setattr__(self, "linear", linear)
        object.__setattr__(self, "translation", translation)

    @classmethod
    def identity(cls) -> "Transform":
        return cls(np.eye(3), np.zeros(3))

    @classmethod
    def from_translation(cls, offset: Sequence[float]) -> "Transform":
        return cls(np.eye(3), offset)

    @classmethod
    def from_axis_angle(cls, axis: Sequence[float], angle: float) -> "Transform":
        return cls(_axis_rotation_matrix(axis, angle), np.zeros(3))

    @classmethod
    def from_euler(cls, angles: Sequence[float], order: str = "xyz") -> "Transform":
        """Rotate about each named axis in turn (extrinsic)."""

        order = order.lower()
        if sorted(order) != ["x", "y", "z"]:
            raise InvalidParameter("order must be a permutation of 'xyz'.")
        values = dict(zip("xyz", np.asarray(angles, dtype=float).reshape(3)))
        unit = {"x": (1.0, 0.0, 0.0), "y": (0.0, 1.0, 0.0), "z": (0.0, 0.0, 1.0)}
        mat = np.eye(3)
        for axis in order:
            mat = _axis_rotation_matrix(unit[axis], values[axis]) @ mat
        return cls(mat, np.zeros(3))

    @classmethod
    def from_scale(cls, factors: float | Sequence[float]) -> "Transform":
        values = np.broadcast_to(np.asarray(factors, dtype=float), (3,))
        if np.any(values == 0):
            raise InvalidParameter("Scale factors must be non-zero.")
        return cls(np.diag(values), np.zeros(3))

    @property
    def matrix(self) -> np.ndarray:
        mat = np.eye(4)
        mat[:3, :3] = self.linear
        mat[:3, 3] = self.translation
        return mat

    @property
    def is_rigid(self) -> bool:
        return bool(
            np.allclose(self.linear.T @ self.linear, np.eye(3), atol=1e-9)
            and np.linalg.det(self.linear) > 0
        )

    def then(self, other: "Transform") -> "Transform":
        """Apply ``self`` first, then ``other``."""

        return other @ self

    def __matmul__(self, other: "Transform") -> "Transform":
        return Transform(self.linear @ other.linear, self.linear @ other.translation + self.translation)

    def apply_points(self, points: np.ndarray) -> np.ndarray:
        return np.asarray(points, dtype=float) @ self.linear.T + self.translation


def apply_transform(mesh: Mesh, transform: Transform) -> Mesh:
    """Return a transformed copy; normals go through the inverse-transpose."""

    linear = transform.linear
    det = np.linalg.det(linear)
    if abs(det) < 1e-15:
        raise InvalidParameter("Transform is singular.")
    normals = mesh.normals @ np.linalg.inv(linear)
    faces = mesh.faces if det > 0 else mesh.faces[:, [0, 2, 1]]
    return Mesh(
        vertices=transform.apply_points(mesh.vertices),
        faces=faces,
        normals=normals,
        metadata=dict(mesh.metadata),
    )


def apply_rigid(
    mesh: Mesh,
    rotation: Transform | np.ndarray,
    translation: Sequence[float] = (0.0, 0.0, 0.0),
) -> Mesh:
    """Rotate then translate; the input mesh is left unchanged.

    A ``Transform`` rotation is applied whole, its own translation included,
    before ``translation`` is added.
    """

    if isinstance(rotation, Transform):
        placement = Transform.from_translation(translation) @ rotation
    else:
        placement = Transform(np.asarray(rotation, dtype=float), translation)
    if not placement.is_rigid:
        raise InvalidParameter("apply_rigid requires a proper rotation matrix.")
    return apply_transform(mesh, placement)


def translate(mesh: Mesh, offset: Sequence[float]) -> Mesh:
    """Return a translated copy of the mesh."""
    return apply_transform(mesh, Transform.from_translation(offset))


def rotate(
    mesh: Mesh,
    axis: Sequence[float],
    angle: float,
    origin: Sequence[float] = (0.0, 0.0, 0.0),
) -> Mesh:
    """Return a copy rotated by ``angle`` radians about an axis through ``origin``."""
    center = np.asarray(origin, dtype=float).reshape(3)
    turn = Transform.from_axis_angle(axis, angle)
    pivot = Transform.from_translation(center) @ turn @ Transform.from_translation(-center)
    return apply_transform(mesh, pivot)


def scale(mesh: Mesh, factors: float | Sequence[float]) -> Mesh:
    """Return a copy scaled about the origin."""
    return apply_transform(mesh, Transform.from_scale(factors))


def apply_sweep_twist(
    mesh: Mesh,
    hub_radius: float,
    outer_radius: float,
    max_sweep_angle: float,
) -> Mesh:
    """Backward sweep for a blade whose span runs along +X.

    Each vertex's ``(x, z)`` pair is rotated about Y by
    ``u * max_sweep_angle``, where ``u`` is its planar radius normalized to
    ``[hub_radius, outer_radius]`` and clamped to ``[0, 1]``. The angle depends
    only on the undeformed position, so the result does not depend on vertex
    order. Normals are recomputed because the map is not rigid.
    """

    require_non_negative(hub_radius, "hub_radius")
    if not outer_radius > hub_radius:
        raise InvalidParameter("outer_radius must be greater than hub_radius.")
    if not np.isfinite(max_sweep_angle):
        raise InvalidParameter("max_sweep_angle must be finite.")

    x = mesh.vertices[:, 0]
    y = mesh.vertices[:, 1]
    z = mesh.vertices[:, 2]
    radial = np.clip((np.hypot(x, y) - hub_radius) / (outer_radius - hub_radius), 0.0, 1.0)
    angle = radial * max_sweep_angle
    cos_a = np.cos(angle)
    sin_a = np.sin(angle)
    swept = np.column_stack([z * sin_a + x * cos_a, y, z * cos_a - x * sin_a])
    return mesh.with_vertices(swept)


__all__ = [
    "Transform",
    "apply_transform",
    "apply_rigid",
    "apply_sweep_twist",
    "translate",
    "rotate",
    "scale",
]
