"""
Axis resolution: map a dimension name or index onto a concrete axis.
"""

from collections.abc import Mapping, Sequence

from axisfold.core.errors import AxisOutOfRange, EmptyReductionAxis, UnknownDimension


def resolve_axis(
    shape: Sequence[int],
    axis: str | int,
    dims: Sequence[str] | Mapping[str, int] | None = None,
    variable: str | None = None,
) -> int:
    """
    Resolve ``axis`` to a validated axis index for an array of ``shape``.

    Args:
        shape: Shape of the array being reduced
        axis: Dimension name or 0-based axis index
        dims: Dimension names in axis order, or a name -> index mapping
        variable: Variable name used to enrich error messages

    Returns:
        Axis index in ``[0, len(shape))``

    Raises:
        UnknownDimension: If ``axis`` is a name not present in ``dims``
        AxisOutOfRange: If ``axis`` is an index outside the array's rank
        EmptyReductionAxis: If the resolved axis has zero length

    Examples:
        >>> resolve_axis((2, 3), "lon", dims=("lat", "lon"))
        1
        >>> resolve_axis((2, 3), 0)
        0
    """
    rank = len(shape)

    if isinstance(axis, str):
        if dims is None:
            mapping: Mapping[str, int] = {}
        elif isinstance(dims, Mapping):
            mapping = dims
        else:
            mapping = {name: i for i, name in enumerate(dims)}
        if axis not in mapping:
            known = ", ".join(mapping) or "none"
            raise UnknownDimension(
                f"Dimension not found (available: {known})",
                variable=variable,
                dimension=axis,
            )
        index = mapping[axis]
        label: str | int = axis
    else:
        # bool is an int subclass but never a meaningful axis
        if isinstance(axis, bool):
            raise AxisOutOfRange(
                f"Invalid axis {axis!r}", variable=variable, dimension=axis
            )
        index = int(axis)
        label = index

    if index < 0 or index >= rank:
        raise AxisOutOfRange(
            f"Axis {index} is out of bounds for array with {rank} dimensions",
            variable=variable,
            dimension=label,
        )

    if shape[index] == 0:
        raise EmptyReductionAxis(
            f"Cannot reduce over axis {index} of length 0",
            variable=variable,
            dimension=label,
        )

    return index
