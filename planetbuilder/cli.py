"""Click CLI commands for PlanetBuilder."""

import logging

import click

from . import constants
from .erosion import ErosionParams
from .errors import ConfigurationError
from .export import export_mesh, height_colors
from .globe import build_rect_mesh
from .icosphere import build_icosphere
from .session import Session

logger = logging.getLogger(__name__)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
def cli(verbose: bool):
    """PlanetBuilder CLI for globe meshes and hydraulic erosion runs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
    )


@cli.command()
@click.option('--subdivisions', '-s', default=constants.DEFAULT_SUBDIVISIONS,
              show_default=True, help='Edge halvings per base face')
@click.option('--output', '-o', default=str(constants.OUTPUT_DIR / 'icosphere.glb'), help='Output mesh path')
def icosphere(subdivisions: int, output: str):
    """Export a subdivided icosahedron (flat shaded, triangle soup)."""
    try:
        mesh = build_icosphere(subdivisions)
        export_mesh(mesh, output)
    except (ConfigurationError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Wrote {mesh.triangle_count} triangles to {output}")


@cli.command()
@click.option('--h-verts', default=constants.DEFAULT_H_VERTS, show_default=True,
              help='Vertices per latitude ring')
@click.option('--v-verts', default=constants.DEFAULT_V_VERTS, show_default=True,
              help='Latitude rings')
@click.option('--output', '-o', default=str(constants.OUTPUT_DIR / 'globe.glb'), help='Output mesh path')
def globe(h_verts: int, v_verts: int, output: str):
    """Export a unit latitude/longitude globe."""
    try:
        mesh = build_rect_mesh(h_verts, v_verts)
        export_mesh(mesh, output)
    except (ConfigurationError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"Wrote {mesh.triangle_count} triangles to {output}")


@cli.command()
@click.option('--width', default=constants.DEFAULT_GRID_WIDTH, show_default=True,
              help='Grid columns')
@click.option('--height', default=constants.DEFAULT_GRID_HEIGHT, show_default=True,
              help='Grid rows')
@click.option('--ticks', '-t', default=100, show_default=True, help='Erosion ticks to run')
@click.option('--seed', default=constants.DEFAULT_SEED, show_default=True,
              help='Bedrock RNG seed')
@click.option('--precipitation', type=float, default=None,
              help='Water added per cell per tick (default from environment)')
@click.option('--output', '-o', default=str(constants.OUTPUT_DIR / 'planet.glb'), help='Output mesh path')
@click.option('--snapshot', type=click.Path(dir_okay=False), default=None,
              help='Also save the final grid as .npz')
def simulate(width: int, height: int, ticks: int, seed: int, precipitation,
             output: str, snapshot):
    """Seed a planet, erode it and export the globe mesh."""
    try:
        overrides = {}
        if precipitation is not None:
            overrides['precipitation_rate'] = precipitation
        params = ErosionParams.from_env(**overrides)

        session = Session(width=width, height=height, params=params, seed=seed)
        session.start()
        report_every = max(1, ticks // 10)
        for i in range(ticks):
            session.tick()
            if (i + 1) % report_every == 0:
                click.echo(f"[{100 * (i + 1) / ticks:3.0f}%] tick {i + 1}/{ticks} "
                           f"mass={session.field.mass():.4f}")

        mesh = session.mesh()
        export_mesh(mesh, output, colors=height_colors(mesh))
        if snapshot:
            session.save(snapshot)
    except (ConfigurationError, ValueError) as e:
        logger.error(f"Simulation failed: {e}")
        raise click.ClickException(str(e))
    click.echo(f"Wrote {mesh.triangle_count} triangles to {output}")


if __name__ == '__main__':
    cli()
