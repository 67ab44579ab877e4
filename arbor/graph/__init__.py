"""Graph model and the algorithms that walk it (paths, pruning, traversal)."""
