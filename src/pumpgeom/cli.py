from __future__ import annotations

import pathlib
from dataclasses import replace
from enum import Enum

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pumpgeom._config import GenerationLimits, get_generation_limits, get_unit_settings
from pumpgeom.cache import AssemblyCache
from pumpgeom.errors import GeometryError
from pumpgeom.mesh import analyze_mesh
from pumpgeom.modeling.assembly import (
    CasingParams,
    DiffuserParams,
    PartAssembly,
    compose_casing,
    compose_diffuser,
)
from pumpgeom.preview import AssemblyPreviewer, PreviewBackendError

console = Console()
app = typer.Typer(help="Generate and inspect pump casing and diffuser meshes.")


class Part(str, Enum):
    casing = "casing"
    diffuser = "diffuser"


class View(str, Enum):
    top = "top"
    side = "side"
    isometric = "isometric"


def _build(
    part: Part,
    limits: GenerationLimits,
    blades: int,
    hub_radius: float,
    outer_radius: float,
    thickness: float,
    include_bolt_holes: bool,
) -> PartAssembly:
    try:
        if part is Part.casing:
            return compose_casing(CasingParams(include_bolt_holes=include_bolt_holes), limits)
        params = DiffuserParams(
            blade_count=blades,
            hub_radius=hub_radius,
            outer_radius=outer_radius,
            thickness=thickness,
        )
        return compose_diffuser(params, limits)
    except GeometryError as exc:
        console.print(Panel.fit(str(exc), title=f"{type(exc).__name__}: {part.value} failed to generate", style="red"))
        raise typer.Exit(code=1) from exc


def _summary_table(assembly: PartAssembly) -> Table:
    table = Table(title=f"{assembly.name} (scale {assembly.scale:g})")
    table.add_column("Group", style="cyan")
    table.add_column("Meshes", justify="right")
    table.add_column("Vertices", justify="right")
    table.add_column("Faces", justify="right")
    table.add_column("Boundary edges", justify="right")
    table.add_column("Degenerate faces", justify="right")
    table.add_column("Material")
    for group in assembly:
        reports = [analyze_mesh(mesh) for mesh in group]
        table.add_row(
            group.label,
            str(len(group)),
            str(sum(r.n_vertices for r in reports)),
            str(sum(r.n_faces for r in reports)),
            str(sum(r.boundary_edges for r in reports)),
            str(sum(r.degenerate_faces for r in reports)),
            f"[{group.material.color}]{group.material.color}[/]",
        )
    return table


@app.command()
def summary(
    part: Part = typer.Argument(..., help="Which part to generate."),
    blades: int = typer.Option(24, "--blades", help="Diffuser blade count."),
    hub_radius: float = typer.Option(0.3, help="Diffuser hub radius."),
    outer_radius: float = typer.Option(1.5, help="Diffuser blade tip radius."),
    thickness: float = typer.Option(0.08, help="Diffuser axial thickness."),
    include_bolt_holes: bool = typer.Option(
        False, "--include-bolt-holes/--no-bolt-holes", help="Add decorative bolt-hole markers to the casing."
    ),
) -> None:
    """
    Generate a part and print per-group mesh statistics.
    """

    limits = get_generation_limits()
    assembly = _build(part, limits, blades, hub_radius, outer_radius, thickness, include_bolt_holes)
    units = get_unit_settings()
    console.print(_summary_table(assembly))
    console.print(f"[magenta]Units: {units.name} ({units.label}).[/magenta]")
    issues = [
        f"{group.label}: {issue}"
        for group in assembly
        for mesh in group
        for issue in analyze_mesh(mesh).issues()
        if "boundary edges" not in issue
    ]
    for issue in issues:
        console.print(f"[yellow]{issue}[/yellow]")


@app.command()
def preview(
    part: Part = typer.Argument(..., help="Which part to show."),
    view: View = typer.Option(View.isometric, help="Initial camera preset."),
    blades: int = typer.Option(24, "--blades", help="Diffuser blade count."),
    hub_radius: float = typer.Option(0.3, help="Diffuser hub radius."),
    outer_radius: float = typer.Option(1.5, help="Diffuser blade tip radius."),
    thickness: float = typer.Option(0.08, help="Diffuser axial thickness."),
    include_bolt_holes: bool = typer.Option(
        False, "--include-bolt-holes/--no-bolt-holes", help="Add decorative bolt-hole markers to the casing."
    ),
    screenshot: pathlib.Path | None = typer.Option(
        None, "--screenshot", help="Render off-screen and save a screenshot instead of opening a window."
    ),
    show_edges: bool = typer.Option(False, "--show-edges/--hide-edges", help="Toggle triangle edge rendering."),
) -> None:
    """
    Open an interactive PyVista window for a part. The diffuser gets a blade-count slider.
    """

    limits = get_generation_limits()
    assembly = _build(part, limits, blades, hub_radius, outer_radius, thickness, include_bolt_holes)

    rebuild = None
    if part is Part.diffuser:
        base = DiffuserParams(
            blade_count=blades,
            hub_radius=hub_radius,
            outer_radius=outer_radius,
            thickness=thickness,
        )
        cached = AssemblyCache(compose_diffuser)

        def rebuild(count: int) -> PartAssembly:
            return cached(replace(base, blade_count=count), limits)

    console.rule("pumpgeom preview")
    console.print(f"Showing [green]{assembly.name}[/green] with groups {', '.join(assembly.labels)}")
    previewer = AssemblyPreviewer(console=console)
    try:
        previewer.show(
            assembly,
            view=view.value,
            screenshot_path=screenshot,
            show_edges=show_edges,
            rebuild=rebuild,
        )
    except PreviewBackendError as exc:
        raise typer.BadParameter(str(exc)) from exc


def main() -> None:
    app()


if __name__ == "__main__":
    main()
