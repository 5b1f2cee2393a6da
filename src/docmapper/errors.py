"""
Exception types raised by docmapper.

Configuration errors (bad projections, unknown field types, unknown relations)
signal programmer error and are never retried. Store acknowledgment failures
and vetoed operations are not exceptions: those operations return False.
"""


class DocMapperError(Exception):
    """Base class for every docmapper error."""


class ConfigurationError(DocMapperError, ValueError):
    """A schema, projection or mapper was configured incorrectly."""


class InvalidProjectionError(ConfigurationError):
    def __init__(self, key, value):
        super().__init__(f"Invalid projection: '{key}' => '{value}'")
        self.key = key
        self.value = value


class SchemaError(ConfigurationError):
    def __init__(self, field_name, declared):
        super().__init__(
            f"Field '{field_name}' has an unrecognized type: {declared!r}"
        )
        self.field_name = field_name
        self.declared = declared


"""
Raised when an entity is asked for a relation it does not declare.

Inherits AttributeError so hasattr()/getattr(..., default) keep working.
"""
class NotARelationError(DocMapperError, AttributeError):
    def __init__(self, name: str):
        super().__init__(f'Called "{name}" is not a relation!')
        self.name = name


class UnboundEntityError(DocMapperError):
    """The entity needs a Context (store, registry, events) for this call."""
