"""
Tests for DocumentEmbedder.

Tests cover:
- Embedding mappings and entities, with and without identities
- Replacing a same-identity sub-document in place
- Unembedding, attaching and detaching identities
"""
import bson
import pytest

from docmapper import DocumentEmbedder, Entity

ID = bson.ObjectId("507f191e810c19729de860ea")


@pytest.fixture
def embedder():
    return DocumentEmbedder()


class TestEmbed:
    def test_embed_mapping_without_id(self, embedder):
        """A mapping without _id gets one written back."""
        parent = Entity(foo=None)
        candidate = {"name": "John Doe"}

        embedder.embed(parent, "foo", candidate)

        assert len(parent.foo) == 1
        assert parent.foo[0]["name"] == "John Doe"
        assert isinstance(candidate["_id"], bson.ObjectId)

    def test_embed_entity_with_id(self, embedder):
        parent = Entity()
        candidate = Entity(_id=ID, name="John Doe")

        embedder.embed(parent, "foo", candidate)

        assert parent.foo == [candidate]
        assert candidate._id == ID

    def test_embed_replaces_in_place(self, embedder):
        """Embedding an existing identity keeps its position."""
        louis = {"_id": bson.ObjectId(), "name": "Louis"}
        bob = {"_id": ID, "name": "Bob"}
        mary = {"_id": bson.ObjectId(), "name": "Mary"}
        parent = Entity(foo=[louis, bob, mary])

        embedder.embed(parent, "foo", {"_id": ID, "name": "John Doe"})

        assert [doc["name"] for doc in parent.foo] == ["Louis", "John Doe", "Mary"]

    def test_embed_twice_keeps_one(self, embedder):
        parent = Entity()
        embedder.embed(parent, "foo", {"_id": ID, "name": "first"})
        embedder.embed(parent, "foo", {"_id": ID, "name": "second"})

        assert parent.foo == [{"_id": ID, "name": "second"}]

    def test_embed_into_plain_mapping(self, embedder):
        parent = {}
        embedder.embed(parent, "foo", {"_id": ID})

        assert parent == {"foo": [{"_id": ID}]}


class TestUnembed:
    def test_unembed_removes_and_reindexes(self, embedder):
        louis = {"_id": bson.ObjectId(), "name": "Louis"}
        parent = Entity(foo=[{"_id": ID, "name": "John Doe"}, louis, {"_id": ID, "name": "Dup"}])

        embedder.unembed(parent, "foo", Entity(_id=ID))

        assert parent.foo == [louis]


class TestAttach:
    def test_attach_mapping_with_id(self, embedder):
        parent = Entity(foo=None)
        embedder.attach(parent, "foo", {"_id": ID, "name": "John Doe"})

        assert parent.foo == [ID]

    def test_attach_entity_without_id(self, embedder):
        parent = Entity()
        candidate = Entity(name="John Doe")

        embedder.attach(parent, "foo", candidate)

        assert parent.foo == [candidate._id]
        assert isinstance(candidate._id, bson.ObjectId)

    def test_attach_is_idempotent(self, embedder):
        parent = Entity()
        embedder.attach(parent, "foo", ID)
        embedder.attach(parent, "foo", bson.ObjectId(str(ID)))

        assert parent.foo == [ID]

    def test_attach_custom_key(self, embedder):
        parent = Entity()
        embedder.attach(parent, "codes", Entity(code="010"), key="code")
        embedder.attach(parent, "codes", Entity(code="222"), key="code")

        assert parent.codes == ["010", "222"]

    def test_detach_removes_every_occurrence(self, embedder):
        other = bson.ObjectId()
        parent = Entity(foo=[ID, other, ID])

        embedder.detach(parent, "foo", {"_id": ID})

        assert parent.foo == [other]

    def test_siblings_scenario(self, embedder):
        """Attach B then C, detach B: only C remains."""
        parent = Entity()
        b, c = Entity(name="B"), Entity(name="C")

        embedder.attach(parent, "siblings", b)
        embedder.attach(parent, "siblings", c)
        embedder.detach(parent, "siblings", b)

        assert parent.siblings == [c._id]

    def test_single_value_field_is_read_as_sequence(self, embedder):
        parent = Entity(parent_id=ID)

        assert embedder.prepare_field(parent, "parent_id") == [ID]
