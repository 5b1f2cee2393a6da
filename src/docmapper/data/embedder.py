"""
Embedding and referencing of documents inside a field of a parent.

embed/unembed keep full sub-documents in the field, attach/detach keep bare
identities. Every operation leaves the field as a densely indexed list with no
duplicate identities.
"""
from collections.abc import Mapping, MutableMapping
from typing import Any, List

import bson

from docmapper.data.entity import Entity


class DocumentEmbedder:
    """Keeps embedded documents and identity references of a parent in order."""

    """
    Embed candidate into field of parent. A sub-document with the same
    identity is replaced in place, otherwise candidate is appended.
    """
    def embed(self, parent, field: str, candidate, key: str = "_id") -> bool:
        identity = self.get_identity(candidate, key)  # Mints and writes back an ObjectId when missing.

        documents = []
        replaced = False
        for document in self.prepare_field(parent, field):
            if self.peek_identity(document, key) == identity:
                if not replaced:
                    documents.append(candidate)  # keep the position of the first match
                    replaced = True
                continue
            documents.append(document)

        if not replaced:
            documents.append(candidate)  # New identity: append at the end.

        self._set_field(parent, field, documents)  # Always a fresh dense list.
        return True

    """Remove every sub-document of field sharing candidate's identity."""
    def unembed(self, parent, field: str, candidate, key: str = "_id") -> bool:
        identity = self.get_identity(candidate, key)

        documents = [
            document for document in self.prepare_field(parent, field)
            if self.peek_identity(document, key) != identity  # Drops every duplicate too.
        ]

        self._set_field(parent, field, documents)
        return True

    """
    Reference candidate's identity in field of parent. Attaching an
    identity that is already there is a no-op.
    """
    def attach(self, parent, field: str, candidate, key: str = "_id") -> bool:
        identity = self.get_identity(candidate, key)
        identities = self.prepare_field(parent, field)

        if identity not in identities:  # ObjectId compares by value, not by reference.
            identities.append(identity)

        self._set_field(parent, field, identities)
        return True

    def detach(self, parent, field: str, candidate, key: str = "_id") -> bool:
        identity = self.get_identity(candidate, key)

        identities = [
            value for value in self.prepare_field(parent, field)
            if value != identity  # Every occurrence goes, no holes left.
        ]

        self._set_field(parent, field, identities)
        return True

    """
    Return the identity stored under key in candidate.

    Entities and mappings without one get a fresh ObjectId, written back into
    the same object so the caller sees it. Anything else is already a bare
    identity and is returned as is.
    """
    def get_identity(self, candidate, key: str = "_id"):
        if isinstance(candidate, Entity):
            if not candidate.get(key):
                candidate[key] = bson.ObjectId()
            return candidate[key]

        if isinstance(candidate, Mapping):
            if not candidate.get(key):
                if not isinstance(candidate, MutableMapping):
                    raise TypeError(f"Cannot write an identity into {type(candidate).__name__}")
                candidate[key] = bson.ObjectId()
            return candidate[key]

        return candidate

    """Turn the current value of field into a list, whatever it holds."""
    def prepare_field(self, parent, field: str) -> List[Any]:
        value = self._get_field(parent, field)

        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return list(value)

        # A "-One" relation keeps a single document or identity.
        return [value]

    def peek_identity(self, document, key: str):
        if isinstance(document, (Entity, Mapping)):
            return document.get(key)
        return document

    def _get_field(self, parent, field: str):
        if isinstance(parent, Entity):
            return parent.get(field)
        if isinstance(parent, Mapping):
            return parent.get(field)
        return getattr(parent, field, None)

    def _set_field(self, parent, field: str, value) -> None:
        if isinstance(parent, (Entity, MutableMapping)):
            parent[field] = value
        else:
            setattr(parent, field, value)
