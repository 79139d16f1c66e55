#!/usr/bin/env python3
"""axisfold Command Line Interface."""

import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console

from axisfold.core.errors import AxisfoldError

app = typer.Typer(
    name="axisfold",
    help="axisfold - Parallel axis reductions (mean, sum, min, max) for HDF5 and netCDF-4 data",
    add_completion=False,
)


def display_banner():
    """Display axisfold banner"""
    banner = """
 ┌─┬─┬─┐
 │ │ │ │ ──▶ ┌─┐
 └─┴─┴─┘     └─┘  axisfold"""
    logger.info(banner)


def configure_logging(verbose: bool = False) -> None:
    """Send log messages to stderr, with debug messages only when verbose."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO", format="{message}")


def _check_input(file: str) -> Path:
    path = Path(file)
    if not path.exists():
        typer.echo(f"❌ Input file not found: {file}")
        raise typer.Exit(1) from None
    return path


@app.command()
def version():
    """Show axisfold version."""
    configure_logging()
    display_banner()
    import axisfold

    typer.echo(f"axisfold version: {getattr(axisfold, '__version__', 'unknown')}")


@app.command()
def reduce(
    file: str = typer.Argument(..., help="Path to an HDF5 or netCDF-4 file"),
    mean: str | None = typer.Option(
        None, "--mean", help="Compute the mean, formatted as <var>:<dim>"
    ),
    sum_: str | None = typer.Option(
        None, "--sum", help="Compute the sum, formatted as <var>:<dim>"
    ),
    min_: str | None = typer.Option(
        None, "--min", help="Compute the minimum, formatted as <var>:<dim>"
    ),
    max_: str | None = typer.Option(
        None, "--max", help="Compute the maximum, formatted as <var>:<dim>"
    ),
    threads: int | None = typer.Option(
        None,
        "--threads",
        "-t",
        help="Number of worker threads (default: number of CPU cores)",
    ),
    output: str | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Save the result to this file. If not set, prints to terminal.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Reduce a variable over one of its dimensions."""
    from axisfold.core.request import ReductionRequest
    from axisfold.core.statistics import reduce_over_dimension
    from axisfold.data.hdf import HDF5Source, write_result
    from axisfold.data.metadata import print_result
    from axisfold.parallel.pool import ParallelConfig

    configure_logging(verbose)

    try:
        request = ReductionRequest.from_options(
            {"mean": mean, "sum": sum_, "min": min_, "max": max_},
            num_threads=threads,
            output=output,
        )
        config = ParallelConfig(request.num_threads)
    except (ValueError, AxisfoldError) as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1) from e

    path = _check_input(file)

    def on_chunk_complete(index: int, n_chunks: int) -> None:
        logger.debug(f"   • chunk {index + 1}/{n_chunks} done")

    try:
        with HDF5Source(path) as source:
            result = reduce_over_dimension(
                source,
                request.variable,
                request.dimension,
                request.kind,
                config=config,
                on_chunk_complete=on_chunk_complete if verbose else None,
            )

            if request.output is not None:
                write_result(
                    result,
                    request.output,
                    attrs=source.get_metadata(request.variable).attrs,
                    coordinates=source.coordinates(result.dims),
                )
                typer.echo(f"✅ Result saved to {request.output}")
            else:
                print_result(result, Console())
    except AxisfoldError as e:
        typer.echo(f"❌ Failed computing {request.kind.label}: {e}")
        raise typer.Exit(1) from e
    except (OSError, TypeError) as e:
        typer.echo(f"❌ Failed processing '{file}': {e}")
        raise typer.Exit(1) from e


@app.command("list-vars")
def list_vars(
    file: str = typer.Argument(..., help="Path to an HDF5 or netCDF-4 file"),
):
    """List all variables and dimensions in a file."""
    from axisfold.data.hdf import HDF5Source
    from axisfold.data.metadata import list_variables_and_dimensions

    path = _check_input(file)
    try:
        with HDF5Source(path) as source:
            list_variables_and_dimensions(source, Console())
    except OSError as e:
        typer.echo(f"❌ Failed reading '{file}': {e}")
        raise typer.Exit(1) from e


@app.command()
def describe(
    file: str = typer.Argument(..., help="Path to an HDF5 or netCDF-4 file"),
    variable: str = typer.Argument(..., help="Variable to describe"),
):
    """Describe a variable (type, shape, dimensions and attributes)."""
    from axisfold.data.hdf import HDF5Source
    from axisfold.data.metadata import describe_variable

    path = _check_input(file)
    try:
        with HDF5Source(path) as source:
            describe_variable(source, variable, Console())
    except (AxisfoldError, OSError) as e:
        typer.echo(f"❌ Failed describing variable '{variable}': {e}")
        raise typer.Exit(1) from e


@app.command()
def summary(
    file: str = typer.Argument(..., help="Path to an HDF5 or netCDF-4 file"),
    variable: str = typer.Argument(..., help="Variable to summarize"),
    threads: int | None = typer.Option(
        None, "--threads", "-t", help="Number of worker threads"
    ),
):
    """Compute minimum, maximum and mean of a whole variable."""
    from axisfold.core.statistics import summarize_variable
    from axisfold.data.hdf import HDF5Source
    from axisfold.data.metadata import print_summary
    from axisfold.parallel.pool import ParallelConfig

    path = _check_input(file)
    try:
        config = ParallelConfig(threads)
        with HDF5Source(path) as source:
            result = summarize_variable(source, variable, config)
        print_summary(result, Console())
    except (AxisfoldError, OSError, TypeError) as e:
        typer.echo(f"❌ Failed computing summary for variable '{variable}': {e}")
        raise typer.Exit(1) from e


@app.command()
def metadata(
    file: str = typer.Argument(..., help="Path to an HDF5 or netCDF-4 file"),
):
    """Show global attributes, dimensions and variables of a file."""
    from axisfold.data.hdf import HDF5Source
    from axisfold.data.metadata import print_metadata

    path = _check_input(file)
    try:
        with HDF5Source(path) as source:
            print_metadata(source, Console())
    except OSError as e:
        typer.echo(f"❌ Failed reading '{file}': {e}")
        raise typer.Exit(1) from e


@app.command("slice")
def slice_(
    file: str = typer.Argument(..., help="Path to an HDF5 or netCDF-4 file"),
    target: str = typer.Argument(
        ...,
        help="Slice formatted as <var>:<start>:<end>[,<dim>:<start>:<end>...]; "
        "the first range applies to the variable's first dimension",
    ),
    threads: int | None = typer.Option(
        None, "--threads", "-t", help="Number of worker threads"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Extract a slice of a variable and show its statistics and values."""
    from axisfold.core.request import SliceRequest
    from axisfold.core.statistics import summarize_array
    from axisfold.data.hdf import HDF5Source
    from axisfold.data.metadata import print_slice
    from axisfold.parallel.pool import ParallelConfig

    configure_logging(verbose)

    try:
        request = SliceRequest.parse(target)
        config = ParallelConfig(threads)
    except (ValueError, AxisfoldError) as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1) from e

    path = _check_input(file)
    try:
        with HDF5Source(path) as source:
            metadata = source.get_metadata(request.variable)
            selection = request.selection(metadata.dims, metadata.shape)
            array = source.read_slice(request.variable, selection)
        print_slice(
            array, selection, metadata.shape, summarize_array(array, config), Console()
        )
    except AxisfoldError as e:
        typer.echo(f"❌ Failed slicing '{request.variable}': {e}")
        raise typer.Exit(1) from e
    except (OSError, TypeError) as e:
        typer.echo(f"❌ Failed processing '{file}': {e}")
        raise typer.Exit(1) from e


@app.command()
def threads():
    """Show parallel processing information."""
    from axisfold.parallel.pool import get_parallel_info

    info = get_parallel_info()
    typer.echo("📊 Parallel Processing Information:")
    typer.echo(f"   Current threads: {info.current_threads}")
    typer.echo(f"   Available CPU cores: {info.available_cores}")
    typer.echo(f"   Maximum threads: {info.max_threads}")


if __name__ == "__main__":
    app()
