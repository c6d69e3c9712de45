# ABOUTME: Declares the failures raised while assembling a Sankey flow graph.
# ABOUTME: Both derive from ValueError so callers can treat them as bad input.


class InvalidInputError(ValueError):
    """Input table is empty, malformed, or references unknown groups."""


class UnresolvedWeightError(ValueError):
    """An edge's child count could not be found in any input table."""

    def __init__(self, edges):
        self.edges = list(edges)
        described = ", ".join(f"{source} -> {target}" for source, target in self.edges)
        super().__init__(f"No child count found for edge(s): {described}")
