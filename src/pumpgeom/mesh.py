from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np


@dataclass
class MeshAnalysis:
    n_vertices: int
    n_faces: int
    degenerate_faces: int
    boundary_edges: int
    nonmanifold_edges: int
    invalid_vertices: int

    @property
    def is_manifold(self) -> bool:
        return self.nonmanifold_edges == 0

    @property
    def is_watertight(self) -> bool:
        return self.boundary_edges == 0 and self.is_manifold

    @property
    def has_degenerate_faces(self) -> bool:
        return self.degenerate_faces > 0

    @property
    def has_invalid_vertices(self) -> bool:
        return self.invalid_vertices > 0

    def issues(self) -> list[str]:
        issues: list[str] = []
        if self.has_invalid_vertices:
            issues.append(f"{self.invalid_vertices} invalid vertices (NaN/inf)")
        if self.has_degenerate_faces:
            issues.append(f"{self.degenerate_faces} degenerate faces")
        if self.boundary_edges > 0:
            issues.append(f"{self.boundary_edges} boundary edges (not watertight)")
        if self.nonmanifold_edges > 0:
            issues.append(f"{self.nonmanifold_edges} non-manifold edges")
        return issues


@dataclass
class Mesh:
    """Triangle mesh with per-vertex unit normals.

    Normals are derived from the faces when not supplied. Operations that move
    vertices return a new ``Mesh``; the arrays of an existing mesh are never
    shared with the result.
    """

    vertices: np.ndarray
    faces: np.ndarray
    normals: np.ndarray | None = None
    metadata: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.vertices = np.asarray(self.vertices, dtype=float).reshape(-1, 3).copy()
        self.faces = np.asarray(self.faces, dtype=int).reshape(-1, 3).copy()
        if self.faces.size and (self.faces.min() < 0 or self.faces.max() >= self.n_vertices):
            raise ValueError("Face indices must reference existing vertices.")
        if self.normals is None:
            self.normals = compute_vertex_normals(self.vertices, self.faces)
        else:
            self.normals = _unit_rows(np.asarray(self.normals, dtype=float).reshape(-1, 3))
            if self.normals.shape != self.vertices.shape:
                raise ValueError("normals must match the vertex array shape.")

    def copy(self) -> "Mesh":
        return Mesh(
            vertices=self.vertices.copy(),
            faces=self.faces.copy(),
            normals=self.normals.copy(),
            metadata=dict(self.metadata),
        )

    def with_vertices(self, vertices: np.ndarray) -> "Mesh":
        """Return a mesh sharing this topology with new positions and fresh normals."""

        return Mesh(vertices=vertices, faces=self.faces, metadata=dict(self.metadata))

    @property
    def n_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def n_faces(self) -> int:
        return int(self.faces.shape[0])

    @property
    def bounds(self) -> tuple[float, float, float, float, float, float]:
        if self.n_vertices == 0:
            return (0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
        mins = self.vertices.min(axis=0)
        maxs = self.vertices.max(axis=0)
        return (float(mins[0]), float(maxs[0]), float(mins[1]), float(maxs[1]), float(mins[2]), float(maxs[2]))


def _unit_rows(vectors: np.ndarray) -> np.ndarray:
    lengths = np.linalg.norm(vectors, axis=1)
    out = np.zeros_like(vectors)
    ok = lengths > 1e-300
    out[ok] = vectors[ok] / lengths[ok, np.newaxis]
    # vertices without any non-degenerate face
    out[~ok] = (0.0, 0.0, 1.0)
    return out


def face_normals(vertices: np.ndarray, faces: np.ndarray, normalize: bool = True) -> np.ndarray:
    if faces.size == 0:
        return np.zeros((0, 3), dtype=float)
    v0 = vertices[faces[:, 0]]
    v1 = vertices[faces[:, 1]]
    v2 = vertices[faces[:, 2]]
    normals = np.cross(v1 - v0, v2 - v0)
    if not normalize:
        return normals
    lengths = np.linalg.norm(normals, axis=1)
    return np.divide(
        normals,
        lengths[:, np.newaxis],
        out=np.zeros_like(normals),
        where=lengths[:, np.newaxis] > 0,
    )


def compute_vertex_normals(vertices: np.ndarray, faces: np.ndarray) -> np.ndarray:
    """Area-weighted average of the incident face normals, normalized."""

    vertices = np.asarray(vertices, dtype=float).reshape(-1, 3)
    faces = np.asarray(faces, dtype=int).reshape(-1, 3)
    accum = np.zeros_like(vertices)
    if faces.size:
        weighted = face_normals(vertices, faces, normalize=False)
        for corner in range(3):
            np.add.at(accum, faces[:, corner], weighted)
    return _unit_rows(accum)


def remove_unused_vertices(vertices: np.ndarray, faces: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    vertices = np.asarray(vertices, dtype=float).reshape(-1, 3)
    faces = np.asarray(faces, dtype=int).reshape(-1, 3)
    used = np.zeros(len(vertices), dtype=bool)
    used[faces.ravel()] = True
    remap = np.cumsum(used) - 1
    return vertices[used], remap[faces]


def combine_meshes(meshes: Iterable[Mesh]) -> Mesh:
    meshes_list = list(meshes)
    if not meshes_list:
        raise ValueError("combine_meshes requires at least one mesh.")

    vertices = []
    normals = []
    faces = []
    offset = 0
    for mesh in meshes_list:
        vertices.append(mesh.vertices)
        normals.append(mesh.normals)
        faces.append(mesh.faces + offset)
        offset += mesh.n_vertices

    return Mesh(vertices=np.vstack(vertices), faces=np.vstack(faces), normals=np.vstack(normals))


def signed_volume(mesh: Mesh) -> float:
    """Divergence-theorem volume; positive when the winding faces outward."""

    if mesh.n_faces == 0:
        return 0.0
    v0 = mesh.vertices[mesh.faces[:, 0]]
    v1 = mesh.vertices[mesh.faces[:, 1]]
    v2 = mesh.vertices[mesh.faces[:, 2]]
    return float(np.einsum("ij,ij->i", v0, np.cross(v1, v2)).sum() / 6.0)


def analyze_mesh(mesh: Mesh, area_epsilon: float = 1e-12) -> MeshAnalysis:
    verts = mesh.vertices
    faces = mesh.faces
    invalid_vertices = int(np.count_nonzero(~np.isfinite(verts).all(axis=1)))

    degenerate_faces = 0
    if faces.size > 0:
        areas = np.linalg.norm(face_normals(verts, faces, normalize=False), axis=1) * 0.5
        degenerate_faces = int(np.count_nonzero(areas <= area_epsilon))

    edge_counts: dict[tuple[int, int], int] = {}
    for tri in faces:
        edges = [(tri[0], tri[1]), (tri[1], tri[2]), (tri[2], tri[0])]
        for a, b in edges:
            key = (a, b) if a < b else (b, a)
            edge_counts[key] = edge_counts.get(key, 0) + 1

    boundary_edges = sum(1 for count in edge_counts.values() if count == 1)
    nonmanifold_edges = sum(1 for count in edge_counts.values() if count > 2)

    return MeshAnalysis(
        n_vertices=mesh.n_vertices,
        n_faces=mesh.n_faces,
        degenerate_faces=degenerate_faces,
        boundary_edges=boundary_edges,
        nonmanifold_edges=nonmanifold_edges,
        invalid_vertices=invalid_vertices,
    )


def mesh_to_pyvista(mesh: Mesh):
    import pyvista as pv

    if mesh.n_faces == 0:
        return pv.PolyData(mesh.vertices, deep=True)
    faces = np.hstack([np.full((mesh.n_faces, 1), 3, dtype=np.int64), mesh.faces.astype(np.int64)]).ravel()
    poly = pv.PolyData(mesh.vertices, faces, deep=True)
    poly.point_data["Normals"] = mesh.normals.copy()
    return poly
