"""Twenty blade diffuser with a slightly stronger sweep.

Run with:
  python docs/examples/diffuser/diffuser_example.py
"""

from __future__ import annotations

from pumpgeom.modeling import DiffuserParams, compose_diffuser


def build():
    return compose_diffuser(DiffuserParams(blade_count=20, sweep_angle=0.4))


if __name__ == "__main__":
    from pumpgeom.preview import AssemblyPreviewer

    AssemblyPreviewer().show(build(), view="isometric", show_edges=True)
