from __future__ import annotations

import numpy as np

from pumpgeom.mesh import Mesh


def indices_valid(mesh: Mesh) -> bool:
    return bool(mesh.faces.size == 0 or (mesh.faces.min() >= 0 and mesh.faces.max() < mesh.n_vertices))


def normals_unit(mesh: Mesh) -> bool:
    return bool(np.allclose(np.linalg.norm(mesh.normals, axis=1), 1.0))
