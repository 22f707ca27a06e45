"""Compose casing and diffuser part assemblies from profiles and primitives.

Both composers are pure: every call validates its parameter struct, builds
fresh meshes and returns a new :class:`PartAssembly`. Nothing is cached or
mutated here; callers that want memoization wrap the composers (see
``pumpgeom.cache.AssemblyCache``).

Frames: primitives come out along +Z, the casing is Y-up with the volute axis
on Y, and the diffuser lies in the XY plane with its axis on Z.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Mapping, Sequence, Tuple

import numpy as np

from pumpgeom._config import DEFAULT_LIMITS, GenerationLimits
from pumpgeom.errors import (
    InvalidBevelSpec,
    InvalidParameter,
    require_non_negative,
    require_positive,
    require_segments,
)
from pumpgeom.mesh import Mesh, combine_meshes

from ._profile2d import _ensure_winding, _inset_loop
from .extrude import ExtrusionSpec, extrude
from .primitives import box, cylinder, partial_sphere_dome, partial_torus
from .profiles import Profile, build_airfoil_profile, build_volute_profile
from .transform import Transform, apply_rigid, apply_sweep_twist, apply_transform, translate

X_AXIS = (1.0, 0.0, 0.0)
Y_AXIS = (0.0, 1.0, 0.0)
Z_AXIS = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class Material:
    """Display hints handed to the renderer alongside each mesh group."""

    color: str
    metalness: float = 0.5
    roughness: float = 0.5
    opacity: float = 1.0
    env_map_intensity: float = 1.0
    double_sided: bool = False

    @property
    def transparent(self) -> bool:
        return self.opacity < 1.0

    @property
    def rgb(self) -> Tuple[float, float, float]:
        value = self.color.lstrip("#")
        r, g, b = (int(value[i : i + 2], 16) / 255.0 for i in (0, 2, 4))
        return (r, g, b)


BODY_MATERIAL = Material("#4a7c9e", metalness=0.6, roughness=0.4, env_map_intensity=1.2)
FLANGE_MATERIAL = Material("#5a8cb0", metalness=0.7, roughness=0.3, env_map_intensity=1.2)
FEET_MATERIAL = Material("#3a6c8e", metalness=0.5, roughness=0.5, env_map_intensity=1.0)
CUTAWAY_MATERIAL = Material("#7ab8d8", metalness=0.3, roughness=0.6, opacity=0.4, double_sided=True)
HOLE_MATERIAL = Material("#1f2a33", metalness=0.2, roughness=0.8)
HUB_MATERIAL = Material("#b8c5d6", metalness=0.8, roughness=0.2, env_map_intensity=1.5)
DOME_MATERIAL = Material("#a8b5c6", metalness=0.85, roughness=0.15, env_map_intensity=1.5)
BLADE_MATERIAL = Material("#c8d5e6", metalness=0.75, roughness=0.25, env_map_intensity=1.5, double_sided=True)


@dataclass(frozen=True)
class PartGroup:
    """A labelled run of meshes sharing one material.

    The mesh arrays are made read-only so that assemblies handed out by a cache
    cannot be edited in place; transform a mesh to get a writable copy.
    """

    label: str
    meshes: Tuple[Mesh, ...]
    material: Material

    def __post_init__(self) -> None:
        meshes = tuple(self.meshes)
        for mesh in meshes:
            for array in (mesh.vertices, mesh.faces, mesh.normals):
                array.setflags(write=False)
        object.__setattr__(self, "meshes", meshes)

    def __len__(self) -> int:
        return len(self.meshes)

    def __iter__(self) -> Iterator[Mesh]:
        return iter(self.meshes)


@dataclass(frozen=True)
class PartAssembly:
    """Labelled mesh groups for one part. ``scale`` is already baked into the vertices."""

    name: str
    groups: Mapping[str, PartGroup]
    scale: float = 1.0

    def __getitem__(self, label: str) -> PartGroup:
        return self.groups[label]

    def __contains__(self, label: object) -> bool:
        return label in self.groups

    def __iter__(self) -> Iterator[PartGroup]:
        return iter(self.groups.values())

    @property
    def labels(self) -> List[str]:
        return list(self.groups)

    def meshes(self) -> List[Mesh]:
        return [mesh for group in self for mesh in group]

    def to_mesh(self) -> Mesh:
        return combine_meshes(self.meshes())

    def scaled(self, factor: float) -> "PartAssembly":
        factor = require_positive(factor, "scale")
        resize = Transform.from_scale(factor)
        groups = {
            label: PartGroup(label, tuple(apply_transform(m, resize) for m in group), group.material)
            for label, group in self.groups.items()
        }
        return PartAssembly(self.name, groups, self.scale * factor)


def _assemble(name: str, groups: Sequence[PartGroup], scale: float = 1.0) -> PartAssembly:
    """Key ``groups`` by label in order, baking ``scale`` into the vertices."""

    if scale != 1.0:
        resize = Transform.from_scale(scale)
        groups = [
            PartGroup(group.label, tuple(apply_transform(m, resize) for m in group), group.material)
            for group in groups
        ]
    return PartAssembly(name, {group.label: group for group in groups}, scale)


# ---------------------------------------------------------------------------
# Pump casing


@dataclass(frozen=True)
class CasingParams:
    """Geometric constants of the volute pump casing, in millimetres."""

    # volute body
    base_radius: float = 103.0
    throat_width: float = 36.0
    volute_height: float = 112.0
    spiral_segments: int = 64
    sweep_fraction: float = 0.75
    cutoff_fraction: float = 0.1
    expansion_factor: float = 0.4
    body_bevel_thickness: float = 5.0
    body_bevel_size: float = 3.0
    body_bevel_segments: int = 2

    # suction side (DN 32)
    suction_bolt_circle: float = 125.0
    suction_bore_radius: float = 40.0
    suction_extension: float = 140.0
    suction_bolt_count: int = 4
    suction_bolt_diameter: float = 19.0
    suction_bolt_length: float = 20.0

    # discharge side (DN 50)
    discharge_bolt_circle: float = 140.0
    discharge_bore_radius: float = 37.5
    discharge_nozzle_length: float = 80.0
    discharge_angle_fraction: float = 0.65
    discharge_radius_ratio: float = 1.3
    discharge_height: float = 75.0

    flange_thickness: float = 15.0
    flange_segments: int = 32
    nozzle_segments: int = 24
    hole_segments: int = 12

    # mounting feet
    foot_length: float = 60.0
    foot_height: float = 20.0
    foot_width: float = 40.0
    foot_spacing: float = 165.0
    foot_elevation: float = -10.0
    foot_hole_diameter: float = 18.0
    foot_hole_segments: int = 16
    # how far a foot hole marker stands proud of the foot, split evenly top and bottom
    foot_hole_overhang: float = 5.0

    # internal flow passage
    cutaway_radius_ratio: float = 0.8
    cutaway_radial_segments: int = 16
    cutaway_tubular_segments: int = 64
    cutaway_arc_fraction: float = 0.75

    include_bolt_holes: bool = False
    scale: float = 0.01


def _validate_casing(params: CasingParams, limits: GenerationLimits) -> None:
    for name in (
        "base_radius",
        "throat_width",
        "volute_height",
        "suction_bolt_circle",
        "suction_bore_radius",
        "suction_extension",
        "suction_bolt_diameter",
        "suction_bolt_length",
        "discharge_bolt_circle",
        "discharge_bore_radius",
        "discharge_nozzle_length",
        "discharge_radius_ratio",
        "flange_thickness",
        "foot_length",
        "foot_height",
        "foot_width",
        "foot_spacing",
        "foot_hole_diameter",
        "cutaway_radius_ratio",
        "scale",
    ):
        require_positive(getattr(params, name), name)
    for name, minimum in (
        ("spiral_segments", 2),
        ("flange_segments", 3),
        ("nozzle_segments", 3),
        ("hole_segments", 3),
        ("cutaway_radial_segments", 3),
        ("cutaway_tubular_segments", 1),
        ("foot_hole_segments", 3),
    ):
        require_segments(getattr(params, name), minimum, name, limits.max_segments)
    require_non_negative(params.foot_hole_overhang, "foot_hole_overhang")
    require_segments(params.suction_bolt_count, 1, "suction_bolt_count", limits.max_segments)
    if params.throat_width / 2.0 >= params.base_radius * params.cutaway_radius_ratio:
        raise InvalidParameter("throat_width is too large for the cutaway passage radius.")
    if params.foot_hole_diameter >= min(params.foot_length, params.foot_width):
        raise InvalidParameter("foot_hole_diameter must fit inside the mounting foot.")


def compose_casing(
    params: CasingParams = CasingParams(),
    limits: GenerationLimits = DEFAULT_LIMITS,
) -> PartAssembly:
    """Build the volute casing: body, flanges with nozzles, feet and cutaway."""

    _validate_casing(params, limits)
    p = params
    half_height = p.volute_height / 2.0
    # +Z to +Y for the vertical foot holes
    z_to_y = Transform.from_axis_angle(X_AXIS, -np.pi / 2.0)
    # volute profile plane XY to XZ; the extrusion runs from y = 0 down to -volute_height
    profile_to_xz = Transform.from_axis_angle(X_AXIS, np.pi / 2.0)
    z_to_x = Transform.from_axis_angle(Y_AXIS, np.pi / 2.0)
    along_z = Transform.identity()

    volute = build_volute_profile(
        p.base_radius,
        p.spiral_segments,
        p.sweep_fraction,
        p.cutoff_fraction,
        p.expansion_factor,
        max_segments=limits.max_segments,
    )
    shell = extrude(
        volute,
        ExtrusionSpec(
            depth=p.volute_height,
            bevel_enabled=True,
            bevel_thickness=p.body_bevel_thickness,
            bevel_size=p.body_bevel_size,
            bevel_segments=p.body_bevel_segments,
        ),
        max_segments=limits.max_segments,
    )
    body = PartGroup("mainBody", (apply_rigid(shell, profile_to_xz, (0.0, half_height, 0.0)),), BODY_MATERIAL)

    suction_radius = p.suction_bolt_circle / 2.0
    suction_flange = cylinder(suction_radius, suction_radius, p.flange_thickness, p.flange_segments)
    suction_nozzle = cylinder(p.suction_bore_radius, p.suction_bore_radius, p.suction_extension, p.nozzle_segments)
    suction = PartGroup(
        "suctionFlange",
        (
            apply_rigid(suction_flange, along_z, (-p.suction_extension, half_height, 0.0)),
            apply_rigid(suction_nozzle, along_z, (-p.suction_extension / 2.0, half_height, 0.0)),
        ),
        FLANGE_MATERIAL,
    )

    discharge_angle = p.discharge_angle_fraction * 2.0 * np.pi
    discharge_x = np.cos(discharge_angle) * p.base_radius * p.discharge_radius_ratio
    discharge_z = np.sin(discharge_angle) * p.base_radius * p.discharge_radius_ratio
    discharge_radius = p.discharge_bolt_circle / 2.0
    discharge_flange = cylinder(discharge_radius, discharge_radius, p.flange_thickness, p.flange_segments)
    discharge_nozzle = cylinder(
        p.discharge_bore_radius, p.discharge_bore_radius, p.discharge_nozzle_length, p.nozzle_segments
    )
    discharge = PartGroup(
        "dischargeFlange",
        (
            apply_rigid(discharge_flange, z_to_x, (discharge_x, p.discharge_height, discharge_z)),
            apply_rigid(
                discharge_nozzle,
                z_to_x,
                (discharge_x - p.discharge_nozzle_length / 2.0, p.discharge_height, discharge_z),
            ),
        ),
        FLANGE_MATERIAL,
    )

    foot_y = p.foot_height / 2.0 + p.foot_elevation
    foot_xs = (-p.foot_spacing / 2.0, p.foot_spacing / 2.0)
    foot = box(p.foot_length, p.foot_height, p.foot_width)
    feet = PartGroup(
        "mountingFeet",
        tuple(apply_rigid(foot, along_z, (foot_x, foot_y, 0.0)) for foot_x in foot_xs),
        FEET_MATERIAL,
    )

    passage = partial_torus(
        p.base_radius * p.cutaway_radius_ratio,
        p.throat_width / 2.0,
        p.cutaway_radial_segments,
        p.cutaway_tubular_segments,
        p.cutaway_arc_fraction,
    )
    cutaway = PartGroup(
        "voluteCutaway", (apply_rigid(passage, profile_to_xz, (0.0, half_height, 0.0)),), CUTAWAY_MATERIAL
    )
    groups = (body, suction, discharge, feet, cutaway)

    # Hole markers are overlays only; they are never subtracted from the flanges or feet.
    if p.include_bolt_holes:
        bolt_radius = p.suction_bolt_diameter / 2.0
        bolt = cylinder(bolt_radius, bolt_radius, p.suction_bolt_length, p.hole_segments)
        angles = [i / p.suction_bolt_count * 2.0 * np.pi for i in range(p.suction_bolt_count)]
        bolts = tuple(
            apply_rigid(
                bolt,
                along_z,
                (-p.suction_extension + np.cos(a) * suction_radius, half_height, np.sin(a) * suction_radius),
            )
            for a in angles
        )
        hole_radius = p.foot_hole_diameter / 2.0
        hole = cylinder(hole_radius, hole_radius, p.foot_height + p.foot_hole_overhang, p.foot_hole_segments)
        foot_holes = tuple(apply_rigid(hole, z_to_y, (foot_x, foot_y, 0.0)) for foot_x in foot_xs)
        groups += (PartGroup("boltHoles", bolts + foot_holes, HOLE_MATERIAL),)

    return _assemble("casing", groups, scale=p.scale)


# ---------------------------------------------------------------------------
# Diffuser


@dataclass(frozen=True)
class DiffuserParams:
    """Diffuser blade ring; lengths are scene units.

    The blade bevel has to fit inside the airfoil section: ``bevel_size`` may be
    at most half of ``min(outer_radius - hub_radius, blade_width)``. The mitred
    hub and tip corners also move inward by ``bevel_size / sin(a)``, where ``a``
    is the half-angle of the end corner, and that must stay below the first
    edge run ``(outer_radius - hub_radius) / profile_points``. With the default
    section and bevel the span has to be about 0.04 or more.
    """

    blade_count: int = 24
    hub_radius: float = 0.3
    outer_radius: float = 1.5
    thickness: float = 0.08

    blade_width: float = 0.12
    profile_points: int = 20
    sweep_angle: float = 0.3
    extrusion_steps: int = 12
    bevel_thickness: float = 0.002
    bevel_size: float = 0.002
    bevel_segments: int = 2
    hub_segments: int = 32
    dome_width_segments: int = 32
    dome_height_segments: int = 16
    dome_radius_ratio: float = 0.95
    dome_offset_ratio: float = 0.3


def _blade_section(params: DiffuserParams, limits: GenerationLimits) -> Profile:
    return build_airfoil_profile(
        params.hub_radius,
        params.outer_radius,
        params.blade_width / 2.0,
        params.profile_points,
        max_segments=limits.max_segments,
    )


def _validate_blade_bevel(params: DiffuserParams, limits: GenerationLimits) -> None:
    require_non_negative(params.bevel_thickness, "bevel_thickness")
    require_non_negative(params.bevel_size, "bevel_size")
    require_segments(params.bevel_segments, 1, "bevel_segments", limits.max_segments)
    if params.bevel_thickness == 0 and params.bevel_size == 0:
        raise InvalidParameter("bevel_thickness and bevel_size cannot both be zero.")
    section = _blade_section(params, limits)
    limit = 0.5 * section.min_span
    if params.bevel_size > limit:
        raise InvalidParameter(
            f"bevel_size {params.bevel_size} exceeds half the blade section's minimum span ({limit:.6g})."
        )
    # a single full-depth inset catches folded hub or tip corners
    try:
        _inset_loop(_ensure_winding(section.loop(), clockwise=False), params.bevel_size)
    except InvalidBevelSpec as exc:
        span = params.outer_radius - params.hub_radius
        raise InvalidParameter(
            f"bevel_size {params.bevel_size} does not fit a blade span of {span:.6g}: {exc}"
        ) from exc


def _validate_diffuser(params: DiffuserParams, limits: GenerationLimits) -> None:
    count = params.blade_count
    if isinstance(count, bool) or int(count) != count or count < 1:
        raise InvalidParameter(f"blade_count must be an integer >= 1 (got {count}).")
    if count > limits.max_blades:
        raise InvalidParameter(f"blade_count must be <= {limits.max_blades} (got {count}).")
    require_positive(params.hub_radius, "hub_radius")
    if not params.outer_radius > params.hub_radius:
        raise InvalidParameter("outer_radius must be greater than hub_radius.")
    require_positive(params.thickness, "thickness")
    require_positive(params.blade_width, "blade_width")
    require_positive(params.dome_radius_ratio, "dome_radius_ratio")
    if not params.dome_offset_ratio >= 0:
        raise InvalidParameter("dome_offset_ratio must be >= 0.")
    if not np.isfinite(params.sweep_angle):
        raise InvalidParameter("sweep_angle must be finite.")
    require_segments(params.profile_points, 2, "profile_points", limits.max_segments)
    require_segments(params.extrusion_steps, 1, "extrusion_steps", limits.max_segments)
    require_segments(params.hub_segments, 3, "hub_segments", limits.max_segments)
    require_segments(params.dome_width_segments, 3, "dome_width_segments", limits.max_segments)
    require_segments(params.dome_height_segments, 2, "dome_height_segments", limits.max_segments)
    _validate_blade_bevel(params, limits)


def build_blade(params: DiffuserParams, limits: GenerationLimits = DEFAULT_LIMITS) -> Mesh:
    """One swept blade in its local frame, spanning +X from the hub to the tip."""

    slab = extrude(
        _blade_section(params, limits),
        ExtrusionSpec(
            depth=params.thickness,
            bevel_enabled=True,
            bevel_thickness=params.bevel_thickness,
            bevel_size=params.bevel_size,
            bevel_segments=params.bevel_segments,
            steps=params.extrusion_steps,
        ),
        max_segments=limits.max_segments,
    )
    # centre the slab on the hub mid-plane so the sweep pivots about z = 0
    slab = translate(slab, (0.0, 0.0, -params.thickness / 2.0))
    return apply_sweep_twist(slab, params.hub_radius, params.outer_radius, params.sweep_angle)


def compose_diffuser(
    params: DiffuserParams = DiffuserParams(),
    limits: GenerationLimits = DEFAULT_LIMITS,
) -> PartAssembly:
    """Build the diffuser: hub cylinder, rear dome and ``blade_count`` swept blades.

    Every parameter, the blade bevel included, is checked before any mesh is built.
    """

    _validate_diffuser(params, limits)

    hub = cylinder(params.hub_radius, params.hub_radius, params.thickness, params.hub_segments)

    cap = partial_sphere_dome(
        params.hub_radius * params.dome_radius_ratio,
        params.dome_width_segments,
        params.dome_height_segments,
    )
    dome_z = -params.thickness / 2.0 - params.hub_radius * params.dome_offset_ratio
    dome = apply_rigid(cap, Transform.from_axis_angle(X_AXIS, np.pi), (0.0, 0.0, dome_z))

    blade = build_blade(params, limits)
    step = 2.0 * np.pi / params.blade_count
    blades = tuple(
        apply_rigid(blade, Transform.from_axis_angle(Z_AXIS, i * step)) for i in range(int(params.blade_count))
    )

    return _assemble(
        "diffuser",
        (
            PartGroup("hub", (hub,), HUB_MATERIAL),
            PartGroup("dome", (dome,), DOME_MATERIAL),
            PartGroup("blades", blades, BLADE_MATERIAL),
        ),
    )


__all__ = [
    "Material",
    "PartGroup",
    "PartAssembly",
    "CasingParams",
    "DiffuserParams",
    "build_blade",
    "compose_casing",
    "compose_diffuser",
]
