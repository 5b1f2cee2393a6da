"""
Conversion between entities and stored documents, driven by a Schema.

Declared scalar fields are cast through their mongoengine field: to_python()
normalizes the value, validate() checks it and to_mongo() produces what gets
stored. Loading runs to_python() only. Embedded fields recurse through the
schema of their embedded entity class and reference fields cast each identity
through their inner field.
"""
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, Optional, Type

import mongoengine
from mongoengine.base import BaseField

from docmapper.data.entity import Entity, Polymorphable
from docmapper.data.schema import EmbeddedField, ReferenceField
from docmapper.errors import SchemaError


class SchemaMapper:
    def __init__(self, entity_class: Type[Entity]):
        self.entity_class = entity_class
        self.schema = entity_class.schema

    """
    Map entity (an Entity or a plain mapping) into a storable document.

    Absent declared fields with a default receive it, and every value filled
    that way, a freshly minted identity included, is written back into the same
    entity. Raises mongoengine.ValidationError listing every invalid field.
    """
    def to_document(self, entity) -> Dict[str, Any]:
        attributes = entity.to_dict() if isinstance(entity, Entity) else dict(entity)
        document = {}
        errors = {}

        for name, declared in self.schema.fields.items():
            if attributes.get(name) is not None:
                continue

            default = self._default(name, declared)
            if default is not None:
                attributes[name] = default
                self._write_back(entity, name, default)
            elif getattr(declared, "required", False):
                errors[name] = mongoengine.ValidationError("Field is required", field_name=name)

        for name, value in attributes.items():
            declared = self.schema.fields.get(name)
            if declared is None:
                document[name] = self._plain(value)
                continue
            try:
                document[name] = self.cast(value, declared, name)
            except mongoengine.ValidationError as error:
                errors[name] = error

        if errors:
            raise mongoengine.ValidationError(
                f"ValidationError ({self.entity_class.__name__})", errors=errors
            )

        return document

    """
    Assemble an entity out of a stored document.

    Entity types implementing Polymorphable may be swapped for the concrete
    class their document resolves to. The entity comes back bound to context
    and with its original document in sync with what was loaded, plus any
    defaults filled for absent fields.
    """
    def from_document(self, document: Mapping, context=None, polymorph: bool = True) -> Entity:
        if polymorph and issubclass(self.entity_class, Polymorphable):
            concrete = self._concrete_type(document, context)
            if concrete is not self.entity_class:
                return SchemaMapper(concrete).from_document(document, context, polymorph=False)

        attributes = {}
        for name, value in document.items():
            declared = self.schema.fields.get(name)
            attributes[name] = value if declared is None else self.uncast(value, declared, name)

        # Load-time defaults count as stored, so an untouched entity diffs empty.
        snapshot = dict(document)
        for name, declared in self.schema.fields.items():
            if name not in attributes:
                default = self._default(name, declared)
                if default is not None:
                    attributes[name] = default
                    snapshot[name] = self.cast(default, declared, name)

        entity = self.entity_class(context=context)
        entity.fill(attributes)
        entity.sync_original(snapshot)

        return entity

    def cast(self, value, declared, name: str = None):
        if value is None:
            return None

        if isinstance(declared, EmbeddedField):
            mapper = SchemaMapper(declared.entity_class)
            if declared.many:
                return [mapper.to_document(item) if item is not None else None for item in value]
            return mapper.to_document(value)

        if isinstance(declared, ReferenceField):
            if declared.many:
                return [self.cast(item, declared.field, name) for item in value]
            return self.cast(value, declared.field, name)

        if isinstance(declared, BaseField):
            value = declared.to_python(value)
            declared.validate(value)
            return declared.to_mongo(value)

        raise SchemaError(name, declared)

    def uncast(self, value, declared, name: str = None):
        if value is None:
            return None

        if isinstance(declared, EmbeddedField):
            mapper = SchemaMapper(declared.entity_class)
            if declared.many:
                return [mapper.from_document(item) if item is not None else None for item in value]
            return mapper.from_document(value)

        if isinstance(declared, ReferenceField):
            if declared.many:
                return [declared.field.to_python(item) for item in value]
            return declared.field.to_python(value)

        if isinstance(declared, BaseField):
            return declared.to_python(value)

        raise SchemaError(name, declared)

    def _default(self, name: str, declared) -> Optional[Any]:
        if not isinstance(declared, (BaseField, EmbeddedField, ReferenceField)):
            raise SchemaError(name, declared)

        default = getattr(declared, "default", None)
        return default() if callable(default) else default

    def _plain(self, value):
        # Undeclared fields may still hold entities (e.g. embedded through a relation).
        if isinstance(value, Entity):
            return SchemaMapper(type(value)).to_document(value)
        if isinstance(value, list):
            return [self._plain(item) for item in value]
        if isinstance(value, dict):
            return {key: self._plain(item) for key, item in value.items()}
        return value

    def _write_back(self, entity, name: str, value) -> None:
        if isinstance(entity, (Entity, MutableMapping)):
            entity[name] = value

    def _concrete_type(self, document: Mapping, context) -> Type[Entity]:
        tag = self.entity_class.resolve_concrete_type(document)
        concrete = self.entity_class.concrete_types.get(tag, self.entity_class)

        if isinstance(concrete, str):
            if context is None:
                return self.entity_class
            concrete = context.resolve(concrete)

        return concrete
