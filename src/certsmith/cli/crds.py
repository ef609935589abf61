"""CRD commands: render the Certificate CRD to files or check the models."""

from pathlib import Path

import typer
from typing_extensions import Annotated

from certsmith.crd.generator import DEFAULT_OUTPUT_DIR, CRDManager


def generate(
    output: Annotated[
        Path, typer.Option("-o", "--output", help="Directory to write CRD files to")
    ] = DEFAULT_OUTPUT_DIR,
    force: Annotated[
        bool, typer.Option("--force", help="Rewrite even if the models are unchanged")
    ] = False,
    validate: Annotated[
        bool, typer.Option("--validate", help="Check the written files afterwards")
    ] = False,
):
    """Write CRD YAML files for the registered models."""
    manager = CRDManager(output_dir=output)

    try:
        written = manager.write_files(force=force)
    except ValueError as e:
        typer.echo(f"Failed to generate CRDs: {e}", err=True)
        raise typer.Exit(1)

    if not written:
        typer.echo("No CRDs generated (models unchanged)")
        return
    typer.echo(f"CRDs generated successfully in {output}")

    if validate:
        if not manager.validate_files():
            typer.echo("CRD validation failed", err=True)
            raise typer.Exit(1)
        typer.echo("CRD validation passed")


def check_models():
    """Render every registered model in memory and list the CRDs."""
    manager = CRDManager()
    try:
        crds = manager.render_all()
    except ValueError as e:
        typer.echo(f"Model validation failed: {e}", err=True)
        raise typer.Exit(1)

    for key in manager.registry.keys():
        typer.echo(f"  - {key}")
    typer.echo(f"Rendered {len(crds)} CRDs")
