"""Entry point: python -m appgen DESIGN_JSON

Loads the API design and generates the application package.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click

from .codegen import generate
from .config import GeneratorConfig
from .errors import AppgenError
from .loader import load_design


@click.command()
@click.argument("design_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-o", "--output", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Directory the application package is generated in.")
@click.option("--package", default=None, help="Name of the generated package.")
@click.option("-v", "--verbose", is_flag=True, help="Log each generated file.")
def main(design_path: Path, output: Optional[Path], package: Optional[str], verbose: bool) -> None:
    """Generate the application code of the API design in DESIGN_PATH."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        config = GeneratorConfig.from_env(output_dir=output, target_package=package)
        api = load_design(design_path)
        files = generate(api, config)
    except (AppgenError, OSError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Generated {config.app_output_dir} ({len(files)} files)")
    for f in files:
        click.echo(f"  {f}")


if __name__ == "__main__":
    main()
