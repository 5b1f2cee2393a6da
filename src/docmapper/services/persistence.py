"""
Persistence of entities into their schema's collection.

PersistenceMapper is the write/read entry point for one entity class:
- insert/save/update/delete fire lifecycle events around a single store
  round-trip (two for an update that leaves null holes in arrays).
- update sends only the fields that changed since the entity's original
  document was last synced, and nothing at all when nothing changed.
- where/first/all return lazy cursors, optionally memoizing ones.

A "before" event vetoed by a handler returns False with no store I/O.
Unacknowledged writes also return False; they skip the snapshot sync and the
"after" event but never raise.
"""
import logging
from typing import Any, Dict, Optional, Type, Union

from pymongo import WriteConcern
from pymongo.collection import Collection

from docmapper.data.entity import Entity
from docmapper.errors import ConfigurationError
from docmapper.infrastructure.events import EventResult, event_name
from docmapper.services.cursor import CacheableResultCursor, ResultCursor
from docmapper.services.diff import calculate_changes, prune_nulls
from docmapper.services.query import prepare_projection, prepare_value_query
from docmapper.services.schema_mapper import SchemaMapper

logger = logging.getLogger(__name__)


class PersistenceMapper:
    def __init__(self, entity_class: Type[Entity], context):
        self.entity_class = entity_class
        self.schema = entity_class.schema
        self.context = context
        self.schema_mapper = SchemaMapper(entity_class)

    @property
    def identity(self) -> str:
        return self.schema.identity

    """
    Insert entity as a new document.

    fire_events=False skips 'inserting'/'inserted', which lets update()
    delegate here while firing its own events instead.
    """
    def insert(self, entity: Entity, options: Optional[dict] = None, fire_events: bool = True) -> bool:
        if fire_events and self.fire_event("inserting", entity, halt=True).aborted:
            return False

        document = self.parse_to_document(entity)
        collection, write_options = self.get_collection(options)

        result = collection.insert_one(document, **write_options)
        logger.debug("insert_one into %s: %r", collection.name, document.get(self.identity))

        if not self._acknowledged(result, "insert_one"):
            return False

        entity.sync_original(document)

        if fire_events:
            self.fire_event("inserted", entity)

        return True

    """Upsert entity, replacing the whole stored document with the same identity."""
    def save(self, entity: Entity, options: Optional[dict] = None) -> bool:
        if self.fire_event("saving", entity, halt=True).aborted:
            return False

        document = self.parse_to_document(entity)
        collection, write_options = self.get_collection(options)

        result = collection.replace_one(
            {self.identity: document[self.identity]}, document, upsert=True, **write_options
        )
        logger.debug("replace_one into %s: %r", collection.name, document[self.identity])

        if not self._acknowledged(result, "replace_one"):
            return False

        entity.sync_original(document)
        self.fire_event("saved", entity)

        return True

    """
    Persist only what changed in entity since its original document.

    Entities without an identity are inserted instead, still announced as
    'updating'/'updated'.
    """
    def update(self, entity: Entity, options: Optional[dict] = None) -> bool:
        if self.fire_event("updating", entity, halt=True).aborted:
            return False

        if entity.get(self.identity) is None:
            result = self.insert(entity, options, fire_events=False)
            if result:
                self.fire_event("updated", entity)
            return result

        document = self.parse_to_document(entity)
        diff = calculate_changes(document, entity.original_document)

        if not diff:
            logger.debug("Nothing to update for %s %r", self.entity_class.__name__, document[self.identity])
            return True

        collection, write_options = self.get_collection(options)
        query = {self.identity: document[self.identity]}

        result = collection.update_one(query, diff.update_document(), **write_options)
        logger.debug("update_one on %s: %r", collection.name, diff.update_document())

        if diff.pull:
            # Unset array positions leave null holes; pulling the nulls compacts them.
            collection.update_one(query, diff.pull_document(), **write_options)
            logger.debug("update_one on %s: %r", collection.name, diff.pull_document())

        if not self._acknowledged(result, "update_one"):
            return False

        entity.sync_original(prune_nulls(document))
        self.fire_event("updated", entity)

        return True

    def delete(self, entity: Entity, options: Optional[dict] = None) -> bool:
        if self.fire_event("deleting", entity, halt=True).aborted:
            return False

        collection, write_options = self.get_collection(options)

        result = collection.delete_one({self.identity: entity.get(self.identity)}, **write_options)
        logger.debug("delete_one from %s: %r", collection.name, entity.get(self.identity))

        if not self._acknowledged(result, "delete_one"):
            return False

        self.fire_event("deleted", entity)

        return True

    """
    Query the collection. filter may be a mapping or a bare identity;
    projection a mapping or a list of field names ('-name' excludes).
    """
    def where(self, filter: Any = None, projection: Any = None,
              cacheable: bool = False) -> Union[ResultCursor, CacheableResultCursor]:
        cursor_class = CacheableResultCursor if cacheable else ResultCursor

        return cursor_class(
            self.get_collection()[0],
            self.schema_mapper,
            filter=prepare_value_query(filter, self.identity),
            projection=prepare_projection(projection),
            context=self.context,
        )

    def all(self) -> ResultCursor:
        return self.where({})

    def first(self, filter: Any = None, projection: Any = None, cacheable: bool = False) -> Optional[Entity]:
        if cacheable:
            return self.where(filter, projection, True).first()

        document = self.get_collection()[0].find_one(
            prepare_value_query(filter, self.identity),
            projection=prepare_projection(projection) or None,
        )
        if document is None:
            return None

        return self.schema_mapper.from_document(document, self.context)

    """Map entity through the schema; a generated identity lands on entity too."""
    def parse_to_document(self, entity: Entity) -> Dict[str, Any]:
        if entity.context is None:
            entity.bind(self.context)

        document = self.schema_mapper.to_document(entity)
        if self.identity in document:
            entity[self.identity] = document[self.identity]
        return document

    """
    Return the schema's collection and the keyword options for a write.

    write_concern (an int, 'majority' or a WriteConcern) is applied to the
    collection; every other option is forwarded to the pymongo call.
    """
    def get_collection(self, options: Optional[dict] = None):
        if not self.schema.collection:
            raise ConfigurationError(f"{self.schema.__name__} declares no collection")

        merged = {**self.context.write_options, **(options or {})}
        write_concern = merged.pop("write_concern", None)

        collection: Collection = self.context.collection(self.schema.collection)
        if write_concern is not None:
            if not isinstance(write_concern, WriteConcern):
                write_concern = WriteConcern(w=write_concern)
            collection = collection.with_options(write_concern=write_concern)

        return collection, merged

    def fire_event(self, event: str, entity: Entity, halt: bool = False) -> EventResult:
        return self.context.events.fire(event_name(event, entity), entity, halt)

    def _acknowledged(self, result, operation: str) -> bool:
        if result.acknowledged:
            return True

        logger.warning("%s on %s was not acknowledged", operation, self.schema.collection)
        return False
