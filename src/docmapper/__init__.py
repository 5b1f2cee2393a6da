"""
docmapper: an object-document mapper for MongoDB.

Entities are mapped to documents through a Schema, persisted with minimal
field-level updates and related to each other through embedded documents or
identity references.
"""
from docmapper.data.embedder import DocumentEmbedder
from docmapper.data.entity import Entity, Polymorphable
from docmapper.data.mongo_setup import MongoSettings
from docmapper.data.relations import embeds_many, embeds_one, references_many, references_one
from docmapper.data.schema import EmbeddedField, ReferenceField, Schema
from docmapper.errors import (
    ConfigurationError,
    DocMapperError,
    InvalidProjectionError,
    NotARelationError,
    SchemaError,
    UnboundEntityError,
)
from docmapper.infrastructure.context import Context
from docmapper.infrastructure.events import EventDispatcher, EventResult, Outcome
from docmapper.services.cursor import CacheableResultCursor, ResultCursor
from docmapper.services.persistence import PersistenceMapper
from docmapper.services.schema_mapper import SchemaMapper

__version__ = "0.1.0"

__all__ = [
    "CacheableResultCursor",
    "ConfigurationError",
    "Context",
    "DocMapperError",
    "DocumentEmbedder",
    "EmbeddedField",
    "Entity",
    "EventDispatcher",
    "EventResult",
    "InvalidProjectionError",
    "MongoSettings",
    "NotARelationError",
    "Outcome",
    "PersistenceMapper",
    "Polymorphable",
    "ReferenceField",
    "ResultCursor",
    "Schema",
    "SchemaError",
    "SchemaMapper",
    "UnboundEntityError",
    "embeds_many",
    "embeds_one",
    "references_many",
    "references_one",
]
