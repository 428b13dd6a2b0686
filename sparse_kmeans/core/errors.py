"""
Exception types for the clustering engine.

Precondition violations are raised synchronously, before any partial work.
Degenerate-but-legal inputs (fewer elements than clusters, clusters that lose
all of their members) are never errors: they shrink the result instead.
"""


class InvalidArgumentError(ValueError):
    """Raised when a constructor, config or call argument violates a precondition."""
    pass


class DuplicateAssignmentError(InvalidArgumentError):
    """Raised when recluster input places one element in more than one place."""

    def __init__(self, element, where: str):
        self.element = element
        self.where = where
        super().__init__(
            f"An element must appear in exactly one cluster or in the unclustered set."
            f" Found element in {where}. Element={element!r}"
        )


class UnknownSymbolError(KeyError):
    """Raised by strict symbol table lookups for a name or id that was never added."""
    pass
