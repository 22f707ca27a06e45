from __future__ import annotations


class GeometryError(ValueError):
    """Base class for failures raised while constructing geometry."""


class InvalidParameter(GeometryError):
    """A numeric input lies outside its documented domain."""


class DegenerateProfile(GeometryError):
    """A profile has fewer than three distinct points."""


class InvalidBevelSpec(GeometryError):
    """Bevel parameters would fold the profile onto itself."""


class UnsupportedSegmentCount(GeometryError):
    """A segment or ring count is too small (or above the configured maximum)."""


def require_positive(value: float, label: str) -> float:
    value = float(value)
    if not value > 0:
        raise InvalidParameter(f"{label} must be positive (got {value}).")
    return value


def require_non_negative(value: float, label: str) -> float:
    value = float(value)
    if not value >= 0:
        raise InvalidParameter(f"{label} must be >= 0 (got {value}).")
    return value


def require_segments(value: int, minimum: int, label: str, maximum: int | None = None) -> int:
    if int(value) != value:
        raise UnsupportedSegmentCount(f"{label} must be an integer (got {value}).")
    value = int(value)
    if value < minimum:
        raise UnsupportedSegmentCount(f"{label} must be >= {minimum} (got {value}).")
    if maximum is not None and value > maximum:
        raise UnsupportedSegmentCount(f"{label} must be <= {maximum} (got {value}).")
    return value


__all__ = [
    "GeometryError",
    "InvalidParameter",
    "DegenerateProfile",
    "InvalidBevelSpec",
    "UnsupportedSegmentCount",
    "require_positive",
    "require_non_negative",
    "require_segments",
]
