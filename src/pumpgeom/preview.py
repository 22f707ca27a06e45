from __future__ import annotations

import math
from pathlib import Path
from typing import Callable, List, Literal, Tuple

from rich.console import Console
from rich.panel import Panel

from pumpgeom.errors import GeometryError
from pumpgeom.mesh import mesh_to_pyvista
from pumpgeom.modeling.assembly import Material, PartAssembly

CameraView = Literal["top", "side", "isometric"]

# Camera directions for a part roughly 3 scene units across.
CAMERA_PRESETS = {
    "top": (0.0, 4.0, 0.0),
    "side": (4.0, 0.0, 0.0),
    "isometric": (3.0, 2.5, 3.0),
}
_PRESET_EXTENT = 3.0


class PreviewBackendError(RuntimeError):
    """Raised when a preview backend cannot run."""


def camera_position(
    view: CameraView,
    bounds: Tuple[float, float, float, float, float, float],
) -> list[tuple[float, float, float]]:
    """Return ``[position, focal_point, view_up]`` for a preset scaled to ``bounds``."""

    if view not in CAMERA_PRESETS:
        raise ValueError(f"Unknown camera view '{view}'. Use one of: {', '.join(CAMERA_PRESETS)}.")
    center = (
        (bounds[0] + bounds[1]) / 2.0,
        (bounds[2] + bounds[3]) / 2.0,
        (bounds[4] + bounds[5]) / 2.0,
    )
    diag = math.sqrt(
        (bounds[1] - bounds[0]) ** 2 + (bounds[3] - bounds[2]) ** 2 + (bounds[5] - bounds[4]) ** 2
    )
    factor = max(diag, 1e-6) / _PRESET_EXTENT
    offset = CAMERA_PRESETS[view]
    position = tuple(c + o * factor for c, o in zip(center, offset))
    view_up = (0.0, 0.0, -1.0) if view == "top" else (0.0, 1.0, 0.0)
    return [position, center, view_up]


class AssemblyPreviewer:
    """Render part assemblies with PyVista using each group's material."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._pv = None
        self._actor_names: List[str] = []

    def _ensure_backend(self):
        if self._pv is None:
            try:
                import pyvista as pv
            except ImportError as exc:  # pragma: no cover - runtime dep
                raise PreviewBackendError(
                    "PyVista is required for previewing. Install pumpgeom with `pip install -e .`."
                ) from exc
            pv.set_plot_theme("document")
            self._pv = pv
        return self._pv

    def collect_datasets(self, assembly: PartAssembly) -> List[tuple[str, object, Material]]:
        """Return ``(label, PolyData, material)`` for every mesh in the assembly."""

        self._ensure_backend()
        datasets = []
        for group in assembly:
            for mesh in group:
                datasets.append((group.label, mesh_to_pyvista(mesh), group.material))
        if not datasets:
            raise PreviewBackendError(f"Assembly '{assembly.name}' has no meshes to show.")
        return datasets

    def show(
        self,
        assembly: PartAssembly,
        view: CameraView = "isometric",
        screenshot_path: Path | None = None,
        show_edges: bool = False,
        rebuild: Callable[[int], PartAssembly] | None = None,
        slider_range: Tuple[int, int] = (20, 30),
        slider_title: str = "Blade count",
    ) -> None:
        """Open a window for ``assembly``.

        With ``rebuild``, a slider over ``slider_range`` replaces the displayed
        assembly with ``rebuild(value)`` whenever it moves.
        """

        pv = self._ensure_backend()
        plotter = pv.Plotter(window_size=(1280, 800), off_screen=screenshot_path is not None)
        plotter.set_background("#090c10", top="#1b2333")
        plotter.add_axes(interactive=True)
        self._apply_assembly(plotter, assembly, show_edges)
        plotter.camera_position = camera_position(view, assembly.to_mesh().bounds)

        if rebuild is not None and screenshot_path is None:
            current = {"value": None}

            def on_slide(value: float) -> None:
                count = int(round(value))
                if count == current["value"]:
                    return
                current["value"] = count
                try:
                    self._apply_assembly(plotter, rebuild(count), show_edges)
                except GeometryError as exc:
                    self.console.print(Panel.fit(str(exc), title="Rebuild failed", style="red"))

            low, high = slider_range
            initial = len(assembly["blades"]) if "blades" in assembly else low
            plotter.add_slider_widget(
                on_slide,
                rng=(low, high),
                value=min(max(initial, low), high),
                title=slider_title,
                fmt="%.0f",
            )

        title = f"pumpgeom – {assembly.name}"
        if screenshot_path is not None:
            screenshot_path.parent.mkdir(parents=True, exist_ok=True)
            plotter.show(title=title, auto_close=True, screenshot=str(screenshot_path))
            self.console.print(f"[green]Saved screenshot to {screenshot_path}[/green]")
            return
        try:
            plotter.show(title=title)
        finally:
            plotter.close()

    def _apply_assembly(self, plotter, assembly: PartAssembly, show_edges: bool) -> None:
        for name in list(self._actor_names):
            plotter.remove_actor(name, render=False)
        self._actor_names = []
        for index, (label, poly, material) in enumerate(self.collect_datasets(assembly)):
            name = f"{label}-{index}"
            plotter.add_mesh(
                poly,
                name=name,
                color=material.rgb,
                opacity=material.opacity,
                pbr=True,
                metallic=material.metalness,
                roughness=material.roughness,
                culling=False if material.double_sided else "back",
                show_edges=show_edges,
                smooth_shading=True,
            )
            self._actor_names.append(name)
