"""
Human-readable rendering of variables, summaries and results.
"""

import numpy as np
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from axisfold.core.array import LabeledArray
from axisfold.core.statistics import VariableSummary
from axisfold.data.hdf import HDF5Source
from axisfold.parallel.result import ReductionResult


def _get_console(console: Console | None) -> Console:
    return console if console is not None else Console()


def list_variables_and_dimensions(
    source: HDF5Source, console: Console | None = None
) -> None:
    """Print dimensions and variables of an open source as two tables."""
    console = _get_console(console)

    dim_table = Table(title="📏 Dimensions")
    dim_table.add_column("Name", style="cyan")
    dim_table.add_column("Length", justify="right")
    for name, size in source.list_dimensions().items():
        dim_table.add_row(name, f"{size:,}")

    var_table = Table(title="📦 Variables")
    var_table.add_column("Name", style="cyan")
    var_table.add_column("Dimensions")
    var_table.add_column("Shape", justify="right")
    var_table.add_column("Type")
    for name in source.list_variables():
        metadata = source.get_metadata(name)
        var_table.add_row(
            name,
            ", ".join(metadata.dims),
            " × ".join(str(n) for n in metadata.shape) or "scalar",
            metadata.dtype,
        )

    console.print(dim_table)
    console.print(var_table)


def print_metadata(source: HDF5Source, console: Console | None = None) -> None:
    """Print global attributes, then the dimension and variable tables."""
    console = _get_console(console)
    attrs = source.attrs
    if attrs:
        table = Table(title="🌐 Global Attributes")
        table.add_column("Name", style="cyan")
        table.add_column("Value")
        for key, value in attrs.items():
            table.add_row(key, str(value))
        console.print(table)
    else:
        console.print("🌐 No global attributes")
    list_variables_and_dimensions(source, console)


def describe_variable(
    source: HDF5Source, variable: str, console: Console | None = None
) -> None:
    """Print type, shape, dimensions and attributes of one variable."""
    console = _get_console(console)
    metadata = source.get_metadata(variable)

    lines = [
        f"[bold]Type:[/bold] {metadata.dtype}",
        f"[bold]Shape:[/bold] {metadata.shape}",
        f"[bold]Elements:[/bold] {metadata.size:,}",
        "[bold]Dimensions:[/bold] "
        + ", ".join(f"{d} ({n})" for d, n in zip(metadata.dims, metadata.shape)),
    ]
    if metadata.is_coordinate:
        lines.append("[bold]Coordinate variable[/bold]")
    console.print(Panel("\n".join(lines), title=f"🔍 {variable}", border_style="cyan"))

    if metadata.attrs:
        table = Table(title="Attributes")
        table.add_column("Name", style="cyan")
        table.add_column("Value")
        for key, value in metadata.attrs.items():
            table.add_row(key, str(value))
        console.print(table)


def print_summary(summary: VariableSummary, console: Console | None = None) -> None:
    """Print whole-variable statistics."""
    console = _get_console(console)
    lines = [
        f"[bold]Shape:[/bold] {summary.shape}",
        f"[bold]Valid values:[/bold] {summary.valid_count:,} of {summary.size:,}",
        f"[bold]Minimum:[/bold] {summary.minimum:.6g}",
        f"[bold]Maximum:[/bold] {summary.maximum:.6g}",
        f"[bold]Mean:[/bold] {summary.mean:.6g}",
    ]
    if summary.missing_count:
        lines.append(f"[yellow]⚠️ {summary.missing_count:,} NaN values[/yellow]")
    console.print(
        Panel("\n".join(lines), title=f"📊 {summary.name}", border_style="green")
    )


def print_result(result: ReductionResult, console: Console | None = None) -> None:
    """Print a reduction result and its contribution diagnostics."""
    console = _get_console(console)
    header = [
        f"[bold]Variable:[/bold] {result.variable_name}",
        f"[bold]Dimensions:[/bold] {', '.join(result.dims) or 'scalar'}",
        f"[bold]Shape:[/bold] {result.shape}",
        f"[bold]Values folded:[/bold] {result.total_count:,}",
    ]
    if result.empty_cells:
        header.append(
            f"[yellow]⚠️ {result.empty_cells:,} cells had no valid values[/yellow]"
        )
    console.print(Panel("\n".join(header), border_style="bright_green"))
    with np.printoptions(threshold=200, edgeitems=3):
        console.print(str(result.data), markup=False)


# Slices with more values than this print only the first SLICE_PREVIEW values
SLICE_PRINT_LIMIT = 20
SLICE_PREVIEW = 10


def print_slice(
    array: LabeledArray,
    selection: tuple[slice, ...],
    full_shape: tuple[int, ...],
    summary: VariableSummary,
    console: Console | None = None,
) -> None:
    """
    Print a slice: its ranges, statistics and values.

    Args:
        array: The sliced data
        selection: Slices used to read it, one per dimension
        full_shape: Shape of the whole variable
        summary: Statistics of the sliced data
        console: Console to print to
    """
    console = _get_console(console)

    table = Table(title=f"✂️ Slice of {array.name}")
    table.add_column("Dimension", style="cyan")
    table.add_column("Range", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Size", justify="right")
    for dim, s, size in zip(array.dims, selection, full_shape):
        table.add_row(dim, f"{s.start}:{s.stop}", str(s.stop - s.start), str(size))
    console.print(table)

    lines = [
        f"[bold]Original shape:[/bold] {full_shape}",
        f"[bold]Sliced shape:[/bold] {array.shape}",
        f"[bold]Valid values:[/bold] {summary.valid_count:,} of {summary.size:,}",
        f"[bold]Minimum:[/bold] {summary.minimum:.6g}",
        f"[bold]Maximum:[/bold] {summary.maximum:.6g}",
        f"[bold]Mean:[/bold] {summary.mean:.6g}",
    ]
    console.print(Panel("\n".join(lines), title="📊 Statistics", border_style="green"))

    values = array.data.ravel()
    if values.size <= SLICE_PRINT_LIMIT:
        shown = values
    else:
        shown = values[:SLICE_PREVIEW]
    console.print(", ".join(f"{v:.6g}" for v in shown), markup=False)
    if values.size > SLICE_PRINT_LIMIT:
        console.print(f"... ({values.size - SLICE_PREVIEW:,} more values)", markup=False)
