"""
Relations between entities, stored inside a field of the parent entity.

    class User(Entity):
        schema = UserSchema

        siblings = references_many('User')                        # siblings_ids
        grandsons = references_many('User', 'grandsons_codes', key='code')
        parent = references_one('User')                           # parent_id
        addresses = embeds_many(Address)                          # embedded_addresses

Reading user.siblings resolves the relation; user.relation('siblings') gives
the Relation itself, to attach() and detach() models. "-One" relations store
a single document or identity, never a one-element list.
"""
import logging
from typing import Any, Optional, Union

from docmapper.data.embedder import DocumentEmbedder
from docmapper.data.entity import Entity
from docmapper.errors import UnboundEntityError

logger = logging.getLogger(__name__)

_UNRESOLVED = object()


class Relation:
    many = True

    def __init__(self, parent: Entity, field: str, target: Union[str, type],
                 key: str = "_id", embedder: DocumentEmbedder = None):
        self.parent = parent
        self.field = field
        self.target = target
        self.key = key
        self.embedder = embedder or DocumentEmbedder()

        self._resolved_from = None  # Field value the cache was resolved from.
        self._cache = _UNRESOLVED  # Sentinel: None is a valid resolved value.

    def attach(self, model) -> None:
        if not self.many:
            self._clear()  # "-One": replace, never append.

        self._store(model)

        if not self.many:
            stored = self.parent.get(self.field) or []
            self.parent[self.field] = stored[0] if stored else None  # Unwrap to a singleton value.

        self.invalidate()

    """
    Remove model from the relation.

    -Many relations need the model to remove and ignore a missing one.
    -One relations clear the field when called without a model, or only when
    the stored value has the same identity as model.
    """
    def detach(self, model=None) -> None:
        if self.many:
            if model is not None:
                self._remove(model)
        elif model is None or self._holds(model):
            self._clear()

        self.invalidate()

    def detach_all(self) -> None:
        self._clear()
        self.invalidate()

    def invalidate(self) -> None:
        self._cache = _UNRESOLVED
        self._resolved_from = None

    """
    The related value, resolved on first read and cached until this
    relation mutates the field (or the field is changed behind its back).
    """
    @property
    def results(self):
        current = self._snapshot()

        if self._cache is _UNRESOLVED or current != self._resolved_from:
            logger.debug("Resolving %s.%s", type(self.parent).__name__, self.field)
            self._cache = self._resolve(self.parent.get(self.field))
            self._resolved_from = current

        return self._cache

    def target_class(self) -> type:
        if not isinstance(self.target, str):
            return self.target
        if self.parent.context is None:
            raise UnboundEntityError(
                f"Cannot resolve '{self.target}' for an entity not bound to a Context"
            )
        return self.parent.context.resolve(self.target)

    def _snapshot(self):
        value = self.parent.get(self.field)
        return list(value) if isinstance(value, list) else value  # Copy: in-place list edits must still show up as a change.

    def _clear(self) -> None:
        self.parent[self.field] = [] if self.many else None

    def _holds(self, model) -> bool:
        stored = self.parent.get(self.field)
        if stored is None:
            return False
        identity = self.embedder.peek_identity(model, self.key)  # never mint one just to compare
        return identity is not None and self.embedder.peek_identity(stored, self.key) == identity

    def _store(self, model) -> None:
        raise NotImplementedError

    def _remove(self, model) -> None:
        raise NotImplementedError

    def _resolve(self, value):
        raise NotImplementedError


class EmbedsMany(Relation):
    def _store(self, model):
        self.embedder.embed(self.parent, self.field, model, self.key)

    def _remove(self, model):
        self.embedder.unembed(self.parent, self.field, model, self.key)

    def _resolve(self, value):
        from docmapper.services.schema_mapper import SchemaMapper

        mapper = None
        entities = []
        for item in self.embedder.prepare_field(self.parent, self.field):
            if isinstance(item, Entity):
                entities.append(item)
                continue
            mapper = mapper or SchemaMapper(self.target_class())
            entities.append(mapper.from_document(item, self.parent.context))
        return entities


class EmbedsOne(EmbedsMany):
    many = False

    def _resolve(self, value):
        entities = super()._resolve(value)
        return entities[0] if entities else None


class ReferencesMany(Relation):
    def _store(self, model):
        self.embedder.attach(self.parent, self.field, model, self.key)

    def _remove(self, model):
        self.embedder.detach(self.parent, self.field, model, self.key)

    def _resolve(self, value):
        identities = self.embedder.prepare_field(self.parent, self.field)
        return self._mapper().where({self.key: {"$in": identities}}, cacheable=True)

    def _mapper(self):
        if self.parent.context is None:
            raise UnboundEntityError(
                f"{type(self.parent).__name__}.{self.field} needs a Context to query references"
            )
        return self.parent.context.mapper(self.target_class())


class ReferencesOne(ReferencesMany):
    many = False

    def _resolve(self, value):
        if value is None:
            return None
        return self._mapper().first({self.key: value}, cacheable=True)


"""
Declaration of a relation on an entity class.

Reading it from an instance returns the resolved relation value; the
Relation object itself lives in the instance and is reached with
entity.relation(name).
"""
class RelationProperty:
    def __init__(self, relation_class, target, field: Optional[str] = None, key: str = "_id"):
        self.relation_class = relation_class
        self.target = target
        self.field = field
        self.key = key
        self.name = None

    def __set_name__(self, owner, name):
        self.name = name
        if self.field is None:
            self.field = self._default_field(name)

    def __get__(self, instance, owner=None) -> Any:
        if instance is None:
            return self
        return instance.relation(self.name).results

    def build(self, parent: Entity) -> Relation:
        return self.relation_class(parent, self.field, self.target, self.key)

    def _default_field(self, name: str) -> str:
        if issubclass(self.relation_class, EmbedsMany):
            return f"embedded_{name}"
        if self.relation_class.many:
            return f"{name}_ids"
        return f"{name}_id"


def embeds_many(target, field: str = None, key: str = "_id") -> RelationProperty:
    return RelationProperty(EmbedsMany, target, field, key)


def embeds_one(target, field: str = None, key: str = "_id") -> RelationProperty:
    return RelationProperty(EmbedsOne, target, field, key)


def references_many(target, field: str = None, key: str = "_id") -> RelationProperty:
    return RelationProperty(ReferencesMany, target, field, key)


def references_one(target, field: str = None, key: str = "_id") -> RelationProperty:
    return RelationProperty(ReferencesOne, target, field, key)
