"""Volute casing with the bolt-hole markers switched on.

Run with:
  python docs/examples/casing/casing_example.py
"""

from __future__ import annotations

from pumpgeom.modeling import CasingParams, compose_casing


def build():
    return compose_casing(CasingParams(include_bolt_holes=True))


if __name__ == "__main__":
    from pumpgeom.preview import AssemblyPreviewer

    AssemblyPreviewer().show(build(), view="side")
