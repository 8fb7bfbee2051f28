"""Command line interface."""

import logging
from typing import Optional

import click

from . import __version__
from .config import LAYOUT_QUADRANT, LAYOUT_STRATEGIES, VisualOptions
from .extract import ExtractionError, extract, write_snapshot
from .models import CityData
from .panels import building_details, format_stats, legend, project_stats
from .parser import DEFAULT_DATA_FILE, LoadError, load_with_fallback
from .session import CitySession


def _prompt_for_file(error: LoadError) -> Optional[str]:
    """Report a failed load and ask once for another file."""
    click.echo(f"Error: {error}", err=True)
    path = click.prompt(
        "Please select a data.json file to visualize (empty to abort)",
        default="",
        show_default=False,
    )
    return path or None


def _load(data: str) -> CityData:
    try:
        return load_with_fallback(data, _prompt_for_file)
    except LoadError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(__version__, prog_name="codecity")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Visualize a code base as an isometric city."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("extract")
@click.argument("source_dir", type=click.Path(file_okay=False))
@click.argument("output", type=click.Path(dir_okay=False))
@click.option("--no-git", is_flag=True, help="Skip git metadata collection")
def extract_command(source_dir: str, output: str, no_git: bool) -> None:
    """Scan SOURCE_DIR and write a snapshot to OUTPUT."""
    click.echo(f"Analyzing source code in: {source_dir}")
    try:
        result = extract(source_dir, collect_git=not no_git)
    except ExtractionError as e:
        raise click.ClickException(str(e)) from e

    try:
        path = write_snapshot(result, output)
    except OSError as e:
        raise click.ClickException(f"Cannot write to output file: {e}") from e

    click.echo(
        f"Analyzed {result.file_count} files in {len(result.packages)} packages"
    )
    click.echo(f"Data written to: {path}")


@main.command("render")
@click.argument("data", default=DEFAULT_DATA_FILE)
@click.option("--output", "-o", default="city.png", help="Output PNG path")
@click.option(
    "--layout",
    "layout_strategy",
    type=click.Choice(LAYOUT_STRATEGIES),
    default=LAYOUT_QUADRANT,
    help="Package layout strategy",
)
@click.option("--width", default=1600, type=click.IntRange(min=1), help="Image width")
@click.option("--height", default=1000, type=click.IntRange(min=1), help="Image height")
@click.option("--no-frequency", is_flag=True, help="Do not color by commit count")
@click.option("--no-age", is_flag=True, help="Do not fade old files")
@click.option("--no-glow", is_flag=True, help="Do not highlight recent changes")
@click.option("--color-blind", is_flag=True, help="Use a color-blind friendly palette")
@click.option("--select", "select_name", default=None, help="Highlight a class by name")
@click.option("--trace", "trace_file", default=None, help="Write a render trace here")
def render_command(
    data: str,
    output: str,
    layout_strategy: str,
    width: int,
    height: int,
    no_frequency: bool,
    no_age: bool,
    no_glow: bool,
    color_blind: bool,
    select_name: Optional[str],
    trace_file: Optional[str],
) -> None:
    """Render DATA (path or URL, default ./data.json) as a PNG."""
    city = _load(data)
    options = VisualOptions(
        show_frequency=not no_frequency,
        show_age=not no_age,
        show_recent_glow=not no_glow,
        color_blind=color_blind,
        layout_strategy=layout_strategy,
    )
    session = CitySession(
        options=options, width=width, height=height, debug=trace_file is not None
    )
    session.load(city)

    if select_name:
        building = session.find_building(select_name)
        if building is None:
            raise click.ClickException(f"No class named {select_name!r}")
        session.select(building)
        click.echo(building_details(building, session.mapper))

    try:
        path = session.render_png(output)
    except OSError as e:
        raise click.ClickException(f"Cannot write to output file: {e}") from e

    if trace_file:
        session.trace.dump_to_file(trace_file)
        click.echo(f"Trace written to: {trace_file}")
    click.echo(f"Rendered {len(session.buildings)} buildings to: {path}")


@main.command("stats")
@click.argument("data", default=DEFAULT_DATA_FILE)
def stats_command(data: str) -> None:
    """Print project statistics for DATA."""
    city = _load(data)
    click.echo(format_stats(project_stats(city)))
    if city.has_git_data:
        click.echo("")
        click.echo(legend(VisualOptions()))


@main.command("view")
@click.argument("data", required=False)
@click.option(
    "--layout",
    "layout_strategy",
    type=click.Choice(LAYOUT_STRATEGIES),
    default=LAYOUT_QUADRANT,
    help="Initial layout strategy",
)
def view_command(data: Optional[str], layout_strategy: str) -> None:
    """Open DATA (default ./data.json) in an interactive window."""
    from .viewer import launch

    launch(data or DEFAULT_DATA_FILE, VisualOptions(layout_strategy=layout_strategy))


if __name__ == "__main__":
    main()
