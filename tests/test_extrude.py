from __future__ import annotations

import numpy as np
import pytest

from pumpgeom.errors import DegenerateProfile, InvalidBevelSpec, InvalidParameter, UnsupportedSegmentCount
from pumpgeom.mesh import signed_volume
from pumpgeom.modeling import ExtrusionSpec, Profile, build_airfoil_profile, build_volute_profile, extrude
from tests.helpers import indices_valid, normals_unit

SQUARE = Profile.from_points([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 1.0)])


def test_extrude_square_volume():
    mesh = extrude(SQUARE, ExtrusionSpec(depth=2.0))
    assert indices_valid(mesh)
    assert normals_unit(mesh)
    assert signed_volume(mesh) == pytest.approx(2.0)
    assert np.allclose(mesh.bounds, (0.0, 1.0, 0.0, 1.0, 0.0, 2.0))


def test_extrude_vertex_count_without_bevel():
    mesh = extrude(SQUARE, ExtrusionSpec(depth=1.0, steps=3))
    # two caps plus four side rings
    assert mesh.n_vertices == 2 * 4 + 4 * 4
    assert mesh.metadata["profile_points"] == 4


def test_bevel_adds_two_rings_per_segment():
    plain = extrude(SQUARE, ExtrusionSpec(depth=1.0))
    bevelled = extrude(
        SQUARE,
        ExtrusionSpec(depth=1.0, bevel_enabled=True, bevel_thickness=0.1, bevel_size=0.05, bevel_segments=3),
    )
    assert bevelled.n_vertices - plain.n_vertices == 2 * 3 * 4
    assert bevelled.bounds[4] == pytest.approx(-0.1)
    assert bevelled.bounds[5] == pytest.approx(1.1)
    assert signed_volume(bevelled) > signed_volume(plain)


def test_bevel_caps_are_inset():
    mesh = extrude(
        SQUARE,
        ExtrusionSpec(depth=1.0, bevel_enabled=True, bevel_thickness=0.1, bevel_size=0.05, bevel_segments=2),
    )
    back_cap = mesh.vertices[:4]
    assert np.allclose(back_cap[:, 2], -0.1)
    assert back_cap[:, 0].min() == pytest.approx(0.05)
    assert back_cap[:, 0].max() == pytest.approx(0.95)
    assert np.allclose(mesh.normals[:4], (0.0, 0.0, -1.0))
    assert np.allclose(mesh.normals[4:8], (0.0, 0.0, 1.0))


def test_clockwise_profile_still_faces_outward():
    clockwise = Profile.from_points([(0.0, 0.0), (0.0, 1.0), (1.0, 1.0), (1.0, 0.0)])
    mesh = extrude(clockwise, ExtrusionSpec(depth=1.0))
    assert signed_volume(mesh) == pytest.approx(1.0)


def test_extrude_airfoil_blade_section():
    profile = build_airfoil_profile(0.3, 1.5, 0.06, 20)
    spec = ExtrusionSpec(
        depth=0.08, bevel_enabled=True, bevel_thickness=0.002, bevel_size=0.002, bevel_segments=2, steps=12
    )
    mesh = extrude(profile, spec)
    points = len(profile.loop())
    assert mesh.n_vertices == 2 * points + 13 * points + 2 * 2 * points
    assert indices_valid(mesh)
    assert signed_volume(mesh) > 0


def test_extrude_volute_with_bevel():
    profile = build_volute_profile(103.0, 64, 0.75, 0.1)
    mesh = extrude(
        profile,
        ExtrusionSpec(depth=112.0, bevel_enabled=True, bevel_thickness=5.0, bevel_size=3.0, bevel_segments=2),
    )
    assert mesh.n_faces > 0
    assert indices_valid(mesh)
    assert normals_unit(mesh)


def test_degenerate_profile_rejected():
    with pytest.raises(DegenerateProfile):
        extrude(Profile.from_points([(0.0, 0.0), (1.0, 0.0)]), ExtrusionSpec(depth=1.0))


def test_collinear_profile_rejected():
    line = Profile.from_points([(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)])
    with pytest.raises(DegenerateProfile):
        extrude(line, ExtrusionSpec(depth=1.0))


def test_repeated_points_do_not_count_as_distinct():
    profile = Profile.from_points([(0.0, 0.0), (1.0, 0.0), (1.0, 0.0), (0.0, 0.0)])
    with pytest.raises(DegenerateProfile):
        extrude(profile, ExtrusionSpec(depth=1.0))


@pytest.mark.parametrize("depth", [0.0, -1.0])
def test_invalid_depth(depth):
    with pytest.raises(InvalidParameter):
        extrude(SQUARE, ExtrusionSpec(depth=depth))


def test_bevel_larger_than_half_span_rejected():
    slab = Profile.from_points([(0.0, 0.0), (1.0, 0.0), (1.0, 0.1), (0.0, 0.1)])
    with pytest.raises(InvalidBevelSpec):
        extrude(slab, ExtrusionSpec(depth=1.0, bevel_enabled=True, bevel_thickness=0.01, bevel_size=0.06))


def test_bevel_thicker_than_local_arm_rejected():
    l_shape = Profile.from_points([(0, 0), (2, 0), (2, 0.2), (0.2, 0.2), (0.2, 2), (0, 2)])
    spec = ExtrusionSpec(depth=1.0, bevel_enabled=True, bevel_thickness=0.05, bevel_size=0.15)
    with pytest.raises(InvalidBevelSpec):
        extrude(l_shape, spec)


def test_negative_bevel_rejected():
    with pytest.raises(InvalidBevelSpec):
        extrude(SQUARE, ExtrusionSpec(depth=1.0, bevel_enabled=True, bevel_thickness=-0.1, bevel_size=0.05))


def test_empty_bevel_rejected():
    with pytest.raises(InvalidBevelSpec):
        extrude(SQUARE, ExtrusionSpec(depth=1.0, bevel_enabled=True))


def test_disabled_bevel_ignores_bevel_values():
    mesh = extrude(SQUARE, ExtrusionSpec(depth=1.0, bevel_enabled=False, bevel_size=10.0))
    assert mesh.n_vertices == 16


def test_bevel_segment_count_validated():
    spec = ExtrusionSpec(depth=1.0, bevel_enabled=True, bevel_thickness=0.1, bevel_size=0.05, bevel_segments=0)
    with pytest.raises(UnsupportedSegmentCount):
        extrude(SQUARE, spec)
