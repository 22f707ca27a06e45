"""pumpgeom – procedural meshes for a volute pump casing and a diffuser blade ring."""

from __future__ import annotations

from .errors import (
    DegenerateProfile,
    GeometryError,
    InvalidBevelSpec,
    InvalidParameter,
    UnsupportedSegmentCount,
)

__all__ = [
    "__version__",
    "GeometryError",
    "InvalidParameter",
    "DegenerateProfile",
    "InvalidBevelSpec",
    "UnsupportedSegmentCount",
]

__version__ = "0.1.0"
