"""Human-readable knowledge documents written alongside the graph."""

from arbor.knowledge.writer import SolutionRecord, slugify, write_solution_file

__all__ = [
    "SolutionRecord",
    "slugify",
    "write_solution_file",
]
