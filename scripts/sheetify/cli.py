"""
Command-line interface for sheetify.
Provides commands to build spritesheets, preview layouts and inspect configuration.
"""

import sys
import os
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, MofNCompleteColumn

from . import __version__
from .config import SheetConfig, LAYOUT_POLICIES, ENV_PREFIX
from .errors import EmptyInputError, SheetifyError
from .pipeline import SheetPipeline, PipelineError, PipelineState
from .processing.atlas import AtlasLayoutPlanner, LayoutPolicy

# Initialize typer app and rich console
app = typer.Typer(
    name="sheetify",
    help="Pack a directory of numbered, fixed-size tiles into one deduplicated spritesheet",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]sheetify build ./out[/cyan]                              Pack ./out/*.png into spritesheet.png
  [cyan]sheetify build ./out -o atlas.png -l square[/cyan]       Square grid, exact size
  [cyan]sheetify plan 300 --sprite-size 32[/cyan]                Show the grid for 300 tiles
  [cyan]SHEETIFY_CONCURRENCY_LIMIT=4 sheetify build[/cyan]       Limit concurrent decodes

[bold]Environment Variables:[/bold]
  Use [cyan]sheetify config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()


@app.command()
def build(
    input_dir: Optional[Path] = typer.Argument(None, help="Directory containing the tile images"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output spritesheet path"),
    sprite_size: Optional[int] = typer.Option(None, "--sprite-size", "-s", help="Tile edge length in pixels"),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", "-j", help="Maximum concurrent decodes"),
    layout: Optional[str] = typer.Option(None, "--layout", "-l", help="Layout policy: pow2 or square"),
    max_columns: Optional[int] = typer.Option(None, "--max-columns", help="Column count for the pow2 layout"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Compose the atlas but do not write it"),
    show_summary: bool = typer.Option(True, "--summary/--no-summary", help="Show build summary")
):
    """Build a spritesheet from a directory of tiles."""
    config = _load_config(config_file)

    if input_dir is not None:
        config.input_dir = str(input_dir)
    if output is not None:
        config.output_path = str(output)
    if sprite_size is not None:
        config.sprite_size = sprite_size
    if concurrency is not None:
        config.concurrency_limit = concurrency
    if layout is not None:
        config.layout = layout
    if max_columns is not None:
        config.max_columns = max_columns

    errors = config.validate()
    if errors:
        console.print("[red]Configuration validation errors:[/red]")
        for error in errors:
            console.print(f"  • {error}")
        raise typer.Exit(1)

    console.print(f"[bold blue]Building spritesheet from {config.input_dir}...[/bold blue]")

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            console=console
        ) as progress:
            task = progress.add_task("Decoding tiles...", total=None)

            def on_listed(count):
                progress.update(task, total=count)

            def on_decoded(result):
                progress.update(task, advance=1)

            pipeline = SheetPipeline(config, on_decoded=on_decoded, on_listed=on_listed)
            state = pipeline.run(dry_run=dry_run)
            progress.update(task, description="✓ Tiles decoded")

    except PipelineError as e:
        if isinstance(e.cause, EmptyInputError):
            console.print(f"[yellow]Nothing to pack:[/yellow] {e}")
        else:
            console.print(f"[red]Pipeline error:[/red] {e}")
            if e.step:
                console.print(f"[red]Failed at step:[/red] {e.step.value}")
        raise typer.Exit(1)

    if dry_run:
        geometry = state.geometry
        console.print(
            f"[yellow]DRY RUN:[/yellow] Would write {geometry.atlas_width}x{geometry.atlas_height} "
            f"spritesheet to {config.output_path}"
        )
    else:
        console.print(f"[green]✓[/green] Spritesheet saved: {state.output_path}")

    if show_summary:
        _display_build_summary(state)


@app.command()
def plan(
    count: int = typer.Argument(..., help="Number of unique tiles"),
    sprite_size: int = typer.Option(32, "--sprite-size", "-s", help="Tile edge length in pixels"),
    layout: str = typer.Option("pow2", "--layout", "-l", help="Layout policy: pow2 or square"),
    max_columns: int = typer.Option(16, "--max-columns", help="Column count for the pow2 layout"),
    max_texture_size: int = typer.Option(0, "--max-texture-size", help="Largest allowed dimension, 0 for no limit")
):
    """Show the atlas grid for a number of tiles."""
    if layout not in LAYOUT_POLICIES:
        console.print(f"[red]Invalid layout: {layout}[/red]")
        console.print(f"Valid layouts: {', '.join(LAYOUT_POLICIES)}")
        raise typer.Exit(1)

    try:
        planner = AtlasLayoutPlanner(LayoutPolicy(layout), max_columns, max_texture_size)
        geometry = planner.plan(count, sprite_size)
    except (SheetifyError, ValueError) as e:
        console.print(f"[red]Cannot plan atlas:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Atlas Layout")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Policy", geometry.policy.value)
    table.add_row("Columns", str(geometry.columns))
    table.add_row("Rows", str(geometry.rows))
    table.add_row("Size", f"{geometry.atlas_width}×{geometry.atlas_height}")
    table.add_row("Free cells", str(geometry.capacity - count))

    console.print(table)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage configuration."""
    if env_vars:
        _display_env_vars()
        return

    if not (show or validate_config):
        console.print("Use --show to display configuration, --validate to check it, "
                      "or --env-vars to see environment variables.")
        return

    config = _load_config(config_file)

    if show:
        _display_config(config)

    if validate_config:
        errors = config.validate()
        if errors:
            console.print("[red]Configuration validation errors:[/red]")
            for error in errors:
                console.print(f"  • {error}")
            raise typer.Exit(1)
        console.print("[green]✓ Configuration is valid[/green]")


@app.command()
def version():
    """Show version information."""
    console.print("[bold]sheetify[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])

    from importlib import metadata

    table = Table(show_header=False)
    table.add_column("Status", width=3)
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")

    for package in ("Pillow", "numpy", "typer", "rich"):
        try:
            table.add_row("[green]✓[/green]", package, metadata.version(package))
        except metadata.PackageNotFoundError:
            table.add_row("[red]✗[/red]", package, "Not installed")

    console.print("\n[bold]Dependencies:[/bold]")
    console.print(table)


def _load_config(config_file: Optional[Path]) -> SheetConfig:
    """Load configuration from file or defaults, then apply environment overrides."""
    config = None

    try:
        if config_file:
            if not config_file.exists():
                console.print(f"[red]Configuration file not found:[/red] {config_file}")
                raise typer.Exit(1)
            config = SheetConfig.from_file(config_file)
            console.print(f"[dim]Using configuration: {config_file}[/dim]")
        else:
            for config_path in (Path("sheetify.toml"), Path("sheetify.json")):
                if config_path.exists():
                    console.print(f"[dim]Using configuration: {config_path}[/dim]")
                    config = SheetConfig.from_file(config_path)
                    break

        if config is None:
            config = SheetConfig.default()
        else:
            config = SheetConfig._apply_env_overrides(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)

    env_vars_used = [key for key in os.environ if key.startswith(ENV_PREFIX)]
    if env_vars_used:
        console.print(f"[dim]Environment overrides applied: {len(env_vars_used)} variables[/dim]")

    return config


def _display_build_summary(state: PipelineState) -> None:
    """Display build summary."""
    table = Table(title="Build Summary", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Images found", str(state.tiles_found))
    table.add_row("Decoded", str(state.tiles_decoded))
    table.add_row("Decode failures", str(state.decode_failures))
    table.add_row("Size mismatches", str(state.size_mismatches))
    table.add_row("Duplicates skipped", str(state.duplicates))
    table.add_row("Unique tiles", str(state.unique_tiles))

    if state.geometry:
        geometry = state.geometry
        table.add_row("Grid", f"{geometry.columns}×{geometry.rows} ({geometry.policy.value})")
        table.add_row("Atlas size", f"{geometry.atlas_width}×{geometry.atlas_height}")

    console.print(table)

    if state.step_results:
        step_table = Table()
        step_table.add_column("Step", style="cyan")
        step_table.add_column("Status", width=8)
        step_table.add_column("Duration", style="yellow")

        for step, result in state.step_results.items():
            status = "[green]✓[/green]" if result.success else "[red]✗[/red]"
            step_table.add_row(step.value, status, f"{result.duration:.2f}s")

        console.print(step_table)


def _display_config(config: SheetConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="sheetify Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Input Directory", config.input_dir)
    table.add_row("Extension", config.extension)
    table.add_row("Sprite Size", f"{config.sprite_size}×{config.sprite_size}")
    table.add_row("Concurrency Limit", str(config.concurrency_limit))
    table.add_row("Layout", config.layout)
    table.add_row("Max Columns", str(config.max_columns))
    table.add_row("Max Texture Size", str(config.max_texture_size or "unlimited"))
    table.add_row("Output Path", config.output_path)
    table.add_row("Compression Level", str(config.compression_level))
    table.add_row("Log Level", config.log_level)

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="sheetify Environment Variables")
    table.add_column("Environment Variable", style="cyan", no_wrap=True)
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    env_vars = [
        ("INPUT_DIR", "Directory containing tile images", "./out"),
        ("EXTENSION", "Tile file extension", ".png"),
        ("SPRITE_SIZE", "Tile edge length in pixels", "32"),
        ("CONCURRENCY_LIMIT", "Maximum concurrent decodes", "8"),
        ("LAYOUT", "Layout policy (pow2/square)", "pow2"),
        ("MAX_COLUMNS", "Column count for the pow2 layout", "16"),
        ("MAX_TEXTURE_SIZE", "Largest atlas dimension, 0 for no limit", "8192"),
        ("OUTPUT_PATH", "Output spritesheet path", "spritesheet.png"),
        ("COMPRESSION_LEVEL", "PNG compression level (0-9)", "6"),
        ("LOG_LEVEL", "Logging level", "INFO"),
    ]

    for suffix, description, example in env_vars:
        table.add_row(ENV_PREFIX + suffix, description, example)

    console.print(table)
    console.print("\n[dim]Set these environment variables to override configuration file settings.[/dim]")


if __name__ == "__main__":
    app()
