"""Context and lifecycle event dispatch."""
