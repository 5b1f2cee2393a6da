"""
The explicit context every docmapper component works against.

A Context carries what the rest of the library needs to reach the store:
- database: the pymongo Database collections are taken from.
- registry: entity classes by name, used to resolve relation targets and
  polymorphic types declared as strings.
- events: the EventDispatcher lifecycle hooks are fired on.
- write_options: default options merged into every write (e.g. write_concern).

Nothing here is process-wide: two contexts never share mappers, handlers or
registered classes.
"""
from typing import Any, Dict, Optional, Type, Union

from pymongo.collection import Collection
from pymongo.database import Database

from docmapper.data import mongo_setup
from docmapper.data.entity import Entity
from docmapper.errors import ConfigurationError
from docmapper.infrastructure.events import EventDispatcher
from docmapper.services.persistence import PersistenceMapper


class Context:
    def __init__(self, database: Database, events: EventDispatcher = None,
                 write_options: Optional[Dict[str, Any]] = None):
        self.database = database
        self.events = events or EventDispatcher()
        self.write_options = dict(write_options or {})
        self.registry: Dict[str, Type[Entity]] = {}
        self._mappers = {}

    """
    Build a context over the database described by settings, registering
    the mongoengine connection on the way.
    """
    @classmethod
    def from_settings(cls, settings: mongo_setup.MongoSettings = None, events: EventDispatcher = None):
        settings = settings or mongo_setup.MongoSettings.from_env()
        mongo_setup.global_init(settings)

        return cls(
            mongo_setup.get_database(settings.alias),
            events=events,
            write_options={"write_concern": settings.write_concern},
        )

    def register(self, *entity_classes: Type[Entity]) -> None:
        for entity_class in entity_classes:
            self.registry[entity_class.__name__] = entity_class

    def resolve(self, target: Union[str, Type[Entity]]) -> Type[Entity]:
        if not isinstance(target, str):
            return target
        try:
            return self.registry[target]
        except KeyError:
            raise ConfigurationError(f"Entity class '{target}' is not registered") from None

    def mapper(self, target: Union[str, Type[Entity]]):
        entity_class = self.resolve(target)
        if entity_class not in self._mappers:
            self._mappers[entity_class] = PersistenceMapper(entity_class, self)
        return self._mappers[entity_class]

    def collection(self, name: str) -> Collection:
        return self.database[name]

    def bind(self, entity: Entity) -> Entity:
        return entity.bind(self)
