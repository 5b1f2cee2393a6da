"""
Lazy result sequences over a collection query.

No store traffic happens until a cursor is iterated or asked for all(),
first() or count(). A ResultCursor re-issues its query on every traversal;
a CacheableResultCursor runs it once and keeps the assembled entities.
"""
import logging
from typing import Any, Dict, Iterator, List, Optional

from pymongo.collection import Collection

from docmapper.data.entity import Entity
from docmapper.services.schema_mapper import SchemaMapper

logger = logging.getLogger(__name__)


class ResultCursor:
    def __init__(self, collection: Collection, schema_mapper: SchemaMapper,
                 filter: Optional[Dict[str, Any]] = None,
                 projection: Optional[Dict[str, bool]] = None,
                 context=None):
        self.collection = collection
        self.schema_mapper = schema_mapper
        self.filter = filter or {}
        self.projection = projection or None  # pymongo treats {} as "_id only"
        self.context = context

        self._sort = None
        self._skip = 0
        self._limit = 0

    @property
    def entity_class(self):
        return self.schema_mapper.entity_class

    def sort(self, *keys) -> "ResultCursor":
        """Order results by keys, each 'field' (ascending) or '-field' (descending)."""
        self._sort = [
            (key[1:], -1) if key.startswith("-") else (key, 1)
            for key in keys
        ]
        return self

    def skip(self, count: int) -> "ResultCursor":
        self._skip = count
        return self

    def limit(self, count: int) -> "ResultCursor":
        self._limit = count
        return self

    def count(self) -> int:
        return self.collection.count_documents(self.filter)

    def __iter__(self) -> Iterator[Entity]:
        for document in self._documents():
            yield self.assemble(document)

    def all(self) -> List[Entity]:
        return list(self)

    def first(self) -> Optional[Entity]:
        for document in self._documents(limit=1):
            return self.assemble(document)
        return None

    def assemble(self, document: Dict[str, Any]) -> Entity:
        return self.schema_mapper.from_document(document, self.context)

    def _documents(self, limit: int = None):
        logger.debug("Querying %s with %r", self.collection.name, self.filter)

        cursor = self.collection.find(self.filter, projection=self.projection)
        if self._sort:
            cursor = cursor.sort(self._sort)
        if self._skip:
            cursor = cursor.skip(self._skip)
        if limit or self._limit:
            cursor = cursor.limit(limit or self._limit)

        return cursor


"""
A ResultCursor that memoizes its assembled entities.

The query runs at most once: the first all(), first() or iteration drains it
fully and every later access reads the memo. Changing sort/skip/limit drops
the memo, since the query is no longer the same.
"""
class CacheableResultCursor(ResultCursor):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._items: Optional[List[Entity]] = None

    def sort(self, *keys) -> "CacheableResultCursor":
        self._items = None
        return super().sort(*keys)

    def skip(self, count: int) -> "CacheableResultCursor":
        self._items = None
        return super().skip(count)

    def limit(self, count: int) -> "CacheableResultCursor":
        self._items = None
        return super().limit(count)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._materialize())

    def __len__(self):
        return len(self._materialize())

    def count(self) -> int:
        return len(self._materialize())  # from the memo, never count_documents

    def all(self) -> List[Entity]:
        return list(self._materialize())

    def first(self) -> Optional[Entity]:
        items = self._materialize()
        return items[0] if items else None

    def _materialize(self) -> List[Entity]:
        if self._items is None:
            self._items = [self.assemble(document) for document in self._documents()]
        return self._items
