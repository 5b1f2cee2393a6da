"""Persistent shapes: entities, schemas, relations and connection setup."""
