"""
Entities: application objects backed by an attribute bag.

An Entity keeps every stored field in an ordered dict and exposes it through
attribute and item access. Alongside the bag it retains the original document,
the last representation known to be stored, which the persistence layer diffs
against on update.

Names the class already defines (get, fill, save, update, delete, context,
schema, declared relations, ...) cannot be assigned as attributes: reading them
would return the method or relation, not the stored value. Such fields are
still reachable through item access, entity["update"].
"""
import copy
from typing import Any, Dict, Optional

from docmapper.data.schema import Schema
from docmapper.errors import NotARelationError, UnboundEntityError

_INTERNALS = frozenset({"_attributes", "_original", "_relations", "_context"})


class Entity:
    schema = Schema

    def __init__(self, context=None, **attributes):
        object.__setattr__(self, "_attributes", {})  # Stored fields, in insertion order.
        object.__setattr__(self, "_original", {})  # Snapshot diffed against on update.
        object.__setattr__(self, "_relations", {})  # Relation instances by declared name.
        object.__setattr__(self, "_context", context)  # Context the entity persists through, if any.

        self.fill(attributes)

    # Attribute bag access. Missing fields read as None.
    def __getattr__(self, name):
        if name.startswith("__") or name in _INTERNALS:
            raise AttributeError(name)
        return self._attributes.get(name)

    def __setattr__(self, name, value):
        if name in _INTERNALS:
            object.__setattr__(self, name, value)
        elif hasattr(type(self), name):
            # Methods, properties and relations shadow the bag on read.
            raise AttributeError(
                f"'{name}' is reserved on {type(self).__name__}; use entity[{name!r}] = value"
            )
        else:
            self._attributes[name] = value

    def __delattr__(self, name):
        self._attributes.pop(name, None)  # Absent fields are $unset on the next update.

    def __getitem__(self, name):
        return self._attributes[name]

    def __setitem__(self, name, value):
        self._attributes[name] = value

    def __delitem__(self, name):
        del self._attributes[name]

    def __contains__(self, name):
        return name in self._attributes

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._attributes == other._attributes

    __hash__ = None  # Mutable: equality follows the bag.

    def __repr__(self):
        return f"<{type(self).__name__} {self._attributes!r}>"

    def get(self, name, default=None):
        return self._attributes.get(name, default)

    def fill(self, attributes: Dict[str, Any]) -> "Entity":
        for name, value in attributes.items():
            self._attributes[name] = value
        return self

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._attributes)

    """
    The last document known to be stored for this entity.

    Empty for entities never written nor loaded.
    """
    @property
    def original_document(self) -> Dict[str, Any]:
        return self._original

    def sync_original(self, document: Dict[str, Any]) -> None:
        object.__setattr__(self, "_original", copy.deepcopy(dict(document)))

    @property
    def context(self):
        return self._context

    def bind(self, context) -> "Entity":
        object.__setattr__(self, "_context", context)
        return self

    """
    Return the Relation instance declared as name on this entity's class.

    Each entity owns its relation instances: they are created on first access
    and reused afterwards, so cached reads never leak between entities.
    """
    def relation(self, name: str):
        from docmapper.data.relations import RelationProperty

        declared = getattr(type(self), name, None)
        if not isinstance(declared, RelationProperty):
            raise NotARelationError(name)

        if name not in self._relations:
            self._relations[name] = declared.build(self)

        return self._relations[name]

    # Active-record helpers, delegating to the bound context's mapper.
    def _mapper(self):
        if self._context is None:
            raise UnboundEntityError(
                f"{type(self).__name__} is not bound to a Context; call bind() first."
            )
        return self._context.mapper(type(self))

    def save(self, options: Optional[dict] = None) -> bool:
        return self._mapper().save(self, options)

    def insert(self, options: Optional[dict] = None) -> bool:
        return self._mapper().insert(self, options)

    def update(self, options: Optional[dict] = None) -> bool:
        return self._mapper().update(self, options)

    def delete(self, options: Optional[dict] = None) -> bool:
        return self._mapper().delete(self, options)


"""
Capability for entity types whose stored documents may belong to a more
specific class.

Documents loaded through a cursor are handed to resolve_concrete_type(); the
returned tag picks the concrete class from concrete_types. Unknown or None tags
keep the queried class. Example:

    class Content(Polymorphable, Entity):
        schema = ContentSchema
        concrete_types = {'video': 'VideoContent', 'article': 'ArticleContent'}

        @classmethod
        def resolve_concrete_type(cls, document):
            return document.get('type')

String values in concrete_types are resolved through the Context registry.
"""
class Polymorphable:
    concrete_types: Dict[str, Any] = {}

    @classmethod
    def resolve_concrete_type(cls, document: Dict[str, Any]) -> Optional[str]:
        raise NotImplementedError
