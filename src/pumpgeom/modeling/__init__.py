"""Modeling utilities: profiles, extrusion, primitives, transforms and assemblies."""

from __future__ import annotations

from .profiles import Profile, build_airfoil_profile, build_volute_profile
from .extrude import ExtrusionSpec, extrude
from .primitives import box, cylinder, partial_sphere_dome, partial_torus
from .transform import (
    Transform,
    apply_rigid,
    apply_sweep_twist,
    apply_transform,
    rotate,
    scale,
    translate,
)
from .assembly import (
    CasingParams,
    DiffuserParams,
    Material,
    PartAssembly,
    PartGroup,
    build_blade,
    compose_casing,
    compose_diffuser,
)

__all__ = [
    "Profile",
    "build_volute_profile",
    "build_airfoil_profile",
    "ExtrusionSpec",
    "extrude",
    "cylinder",
    "box",
    "partial_torus",
    "partial_sphere_dome",
    "Transform",
    "apply_transform",
    "apply_rigid",
    "apply_sweep_twist",
    "translate",
    "rotate",
    "scale",
    "Material",
    "PartGroup",
    "PartAssembly",
    "CasingParams",
    "DiffuserParams",
    "build_blade",
    "compose_casing",
    "compose_diffuser",
]
