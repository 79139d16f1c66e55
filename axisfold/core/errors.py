"""
Error taxonomy for axisfold.

Every error carries the offending variable and dimension (when known) so the
message that reaches the user names what was being reduced. Each class also
inherits the closest builtin exception, so callers that only catch
``KeyError`` or ``ValueError`` keep working.
"""

from typing import Any


class AxisfoldError(Exception):
    """Base class for all axisfold errors."""

    def __init__(
        self,
        message: str,
        variable: str | None = None,
        dimension: str | int | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.variable = variable
        self.dimension = dimension

    def with_context(
        self, variable: str | None = None, dimension: str | int | None = None
    ) -> "AxisfoldError":
        """
        Fill in variable/dimension names that are not set yet.

        Args:
            variable: Name of the variable being reduced
            dimension: Name or index of the dimension being reduced

        Returns:
            The same error instance, for ``raise err.with_context(...)``
        """
        if self.variable is None and variable is not None:
            self.variable = variable
        if self.dimension is None and dimension is not None:
            self.dimension = dimension
        return self

    def _context(self) -> list[str]:
        parts = []
        if self.variable is not None:
            parts.append(f"variable '{self.variable}'")
        if self.dimension is not None:
            parts.append(f"dimension '{self.dimension}'")
        return parts

    def __str__(self) -> str:
        context = self._context()
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message

    def __reduce__(self) -> tuple[Any, ...]:
        return (self.__class__, (self.message, self.variable, self.dimension))


class UnknownDimension(AxisfoldError, KeyError):
    """Requested dimension name is not in the array's dimension mapping."""


class AxisOutOfRange(AxisfoldError, IndexError):
    """Numeric axis index is outside ``[0, ndim)``."""


class EmptyReductionAxis(AxisfoldError, ValueError):
    """The axis selected for reduction has zero length."""


class ConfigurationError(AxisfoldError, ValueError):
    """Invalid parallel configuration (e.g. a thread count <= 0)."""


class InvalidSlice(AxisfoldError, ValueError):
    """A slice range is empty or falls outside its dimension."""


class VariableNotFound(AxisfoldError, KeyError):
    """Variable is not present in the data source."""


class WorkerFailure(AxisfoldError, RuntimeError):
    """A reduction kernel failed while folding a chunk."""

    def __init__(
        self,
        message: str,
        variable: str | None = None,
        dimension: str | int | None = None,
        chunk_index: int | None = None,
    ):
        super().__init__(message, variable=variable, dimension=dimension)
        self.chunk_index = chunk_index

    def _context(self) -> list[str]:
        parts = super()._context()
        if self.chunk_index is not None:
            parts.append(f"chunk {self.chunk_index}")
        return parts

    def __reduce__(self) -> tuple[Any, ...]:
        return (
            self.__class__,
            (self.message, self.variable, self.dimension, self.chunk_index),
        )
