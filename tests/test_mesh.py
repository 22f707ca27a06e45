from __future__ import annotations

import numpy as np
import pytest

from pumpgeom.mesh import (
    Mesh,
    analyze_mesh,
    combine_meshes,
    compute_vertex_normals,
    face_normals,
    remove_unused_vertices,
    signed_volume,
)
from pumpgeom.modeling import box

TETRA_VERTICES = np.array(
    [
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    ]
)
TETRA_FACES = np.array([[0, 2, 1], [0, 1, 3], [0, 3, 2], [1, 2, 3]])


def test_tetrahedron_volume_and_watertight():
    mesh = Mesh(TETRA_VERTICES, TETRA_FACES)
    assert signed_volume(mesh) == pytest.approx(1.0 / 6.0)
    report = analyze_mesh(mesh)
    assert report.is_watertight
    assert report.issues() == []


def test_reversed_winding_gives_negative_volume():
    mesh = Mesh(TETRA_VERTICES, TETRA_FACES[:, [0, 2, 1]])
    assert signed_volume(mesh) == pytest.approx(-1.0 / 6.0)


def test_mesh_rejects_out_of_range_faces():
    with pytest.raises(ValueError):
        Mesh(TETRA_VERTICES, [[0, 1, 4]])


def test_mesh_copies_inputs():
    vertices = TETRA_VERTICES.copy()
    mesh = Mesh(vertices, TETRA_FACES)
    vertices[0] = (9.0, 9.0, 9.0)
    assert np.allclose(mesh.vertices[0], 0.0)
    clone = mesh.copy()
    clone.vertices[1] = (9.0, 9.0, 9.0)
    assert np.allclose(mesh.vertices[1], (1.0, 0.0, 0.0))


def test_supplied_normals_are_normalized():
    mesh = Mesh(TETRA_VERTICES, TETRA_FACES, normals=np.full((4, 3), 2.0))
    assert np.allclose(np.linalg.norm(mesh.normals, axis=1), 1.0)


def test_isolated_vertex_gets_default_normal():
    vertices = np.vstack([TETRA_VERTICES, [[5.0, 5.0, 5.0]]])
    normals = compute_vertex_normals(vertices, TETRA_FACES)
    assert np.allclose(normals[-1], (0.0, 0.0, 1.0))


def test_face_normals_of_degenerate_face_are_zero():
    vertices = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    normals = face_normals(vertices, np.array([[0, 1, 2]]))
    assert np.allclose(normals, 0.0)


def test_with_vertices_keeps_topology():
    mesh = Mesh(TETRA_VERTICES, TETRA_FACES, metadata={"tag": 1})
    moved = mesh.with_vertices(TETRA_VERTICES * 2.0)
    assert np.array_equal(moved.faces, mesh.faces)
    assert moved.metadata == {"tag": 1}
    assert signed_volume(moved) == pytest.approx(8.0 / 6.0)


def test_remove_unused_vertices_remaps_faces():
    vertices = np.vstack([[[7.0, 7.0, 7.0]], TETRA_VERTICES])
    kept, faces = remove_unused_vertices(vertices, TETRA_FACES + 1)
    assert kept.shape == (4, 3)
    assert np.array_equal(faces, TETRA_FACES)


def test_combine_meshes_offsets_faces():
    a = box(1.0, 1.0, 1.0)
    b = box(2.0, 2.0, 2.0)
    combined = combine_meshes([a, b])
    assert combined.n_vertices == 48
    assert combined.faces.max() == 47
    assert signed_volume(combined) == pytest.approx(9.0)


def test_combine_requires_meshes():
    with pytest.raises(ValueError):
        combine_meshes([])


def test_analysis_reports_open_surface():
    mesh = Mesh(TETRA_VERTICES, TETRA_FACES[:3])
    report = analyze_mesh(mesh)
    assert report.boundary_edges == 3
    assert not report.is_watertight
    assert any("boundary edges" in issue for issue in report.issues())


def test_analysis_counts_degenerate_faces():
    vertices = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    report = analyze_mesh(Mesh(vertices, [[0, 1, 2]]))
    assert report.degenerate_faces == 1
    assert report.has_degenerate_faces
