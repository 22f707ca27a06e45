"""Closed 2D profiles for the volute casing and diffuser blades."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from pumpgeom.errors import InvalidParameter, require_non_negative, require_positive, require_segments

from ._profile2d import _dedupe_loop, _signed_area

DEFAULT_EXPANSION_FACTOR = 0.4


@dataclass(frozen=True, eq=False)
class Profile:
    """Closed planar polyline; the last point repeats the first."""

    points: np.ndarray

    def __post_init__(self) -> None:
        try:
            pts = np.asarray(self.points, dtype=float).reshape(-1, 2)
        except ValueError as exc:
            raise InvalidParameter("Profile points must be Nx2 coordinates.") from exc
        if not np.all(np.isfinite(pts)):
            raise InvalidParameter("Profile points must be finite.")
        if pts.shape[0] and not np.allclose(pts[0], pts[-1]):
            pts = np.vstack([pts, pts[:1]])
        pts.setflags(write=False)
        object.__setattr__(self, "points", pts)

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> "Profile":
        return cls(np.asarray(list(points), dtype=float))

    @property
    def n_points(self) -> int:
        return int(self.points.shape[0])

    @property
    def is_closed(self) -> bool:
        return self.n_points > 0 and bool(np.allclose(self.points[0], self.points[-1]))

    def loop(self, tolerance: float = 1e-9) -> np.ndarray:
        """Distinct ring points, without zero-length segments or the closing repeat."""

        return _dedupe_loop(self.points, tolerance)

    @property
    def signed_area(self) -> float:
        return _signed_area(self.loop())

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        if self.n_points == 0:
            return (0.0, 0.0, 0.0, 0.0)
        mins = self.points.min(axis=0)
        maxs = self.points.max(axis=0)
        return (float(mins[0]), float(maxs[0]), float(mins[1]), float(maxs[1]))

    @property
    def min_span(self) -> float:
        xmin, xmax, ymin, ymax = self.bounds
        return min(xmax - xmin, ymax - ymin)


def build_volute_profile(
    base_radius: float,
    segments: int,
    sweep_angle_fraction: float,
    cutoff_angle_fraction: float,
    expansion_factor: float = DEFAULT_EXPANSION_FACTOR,
    max_segments: int | None = None,
) -> Profile:
    """Spiral casing outline.

    The spiral widens linearly from ``base_radius`` at the tongue to
    ``base_radius * (1 + expansion_factor)`` at the throat, then returns via the
    cutoff point on the base circle and the origin, forming a wedge.
    """

    base_radius = require_positive(base_radius, "base_radius")
    segments = require_segments(segments, 2, "segments", max_segments)
    if not 0 < sweep_angle_fraction <= 1:
        raise InvalidParameter("sweep_angle_fraction must be in (0, 1].")
    if not 0 <= cutoff_angle_fraction < 1:
        raise InvalidParameter("cutoff_angle_fraction must be in [0, 1).")
    if not expansion_factor >= 0:
        raise InvalidParameter("expansion_factor must be >= 0.")

    t = np.arange(segments + 1, dtype=float) / segments
    angles = t * sweep_angle_fraction * 2.0 * np.pi
    radii = base_radius * (1.0 + t * expansion_factor)
    spiral = np.column_stack([np.cos(angles) * radii, np.sin(angles) * radii])

    cutoff = cutoff_angle_fraction * 2.0 * np.pi
    tail = np.array(
        [
            (np.cos(cutoff) * base_radius, np.sin(cutoff) * base_radius),
            (0.0, 0.0),
        ]
    )
    return Profile(np.vstack([spiral, tail]))


def build_airfoil_profile(
    inner_radius: float,
    outer_radius: float,
    half_width: float,
    num_points: int,
    max_segments: int | None = None,
) -> Profile:
    """Symmetric lens section spanning ``inner_radius``..``outer_radius`` along X.

    Thickness follows ``sin(t * pi) * half_width`` and is exactly zero at the hub
    and tip.
    """

    inner_radius = require_non_negative(inner_radius, "inner_radius")
    if not outer_radius > inner_radius:
        raise InvalidParameter("outer_radius must be greater than inner_radius.")
    half_width = require_positive(half_width, "half_width")
    num_points = require_segments(num_points, 2, "num_points", max_segments)

    t = np.arange(num_points + 1, dtype=float) / num_points
    x = inner_radius + t * (outer_radius - inner_radius)
    thickness = np.sin(t * np.pi) * half_width
    thickness[[0, -1]] = 0.0

    upper = np.column_stack([x, thickness])
    lower = np.column_stack([x, -thickness])[::-1]
    return Profile(np.vstack([upper, lower]))


__all__ = ["Profile", "build_volute_profile", "build_airfoil_profile", "DEFAULT_EXPANSION_FACTOR"]
