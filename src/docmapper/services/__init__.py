"""Mapping, diffing, querying and persistence of entities."""
