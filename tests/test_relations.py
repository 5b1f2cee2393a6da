"""
Tests for relations declared on entity classes.

Tests cover:
- Default stored field names
- references_many/references_one attach, detach and resolution
- Custom reference keys
- embeds_many/embeds_one
- Cached reads and their invalidation
- Unknown relations and unbound entities
"""
import bson
import pytest

from docmapper import Entity, NotARelationError, UnboundEntityError, embeds_many
from docmapper.data.relations import ReferencesMany
from models import Address, User


@pytest.fixture
def mapper(context):
    return context.mapper(User)


@pytest.fixture
def user(context):
    return User(context=context, name="A")


def test_default_field_names():
    assert User.siblings.field == "siblings_ids"
    assert User.parent.field == "parent_id"
    assert User.homes.field == "embedded_homes"
    assert User.office.field == "embedded_office"
    assert User.grandsons.field == "grandsons_codes"


def test_relation_instances_belong_to_their_entity(user, context):
    other = User(context=context)

    assert isinstance(user.relation("siblings"), ReferencesMany)
    assert user.relation("siblings") is user.relation("siblings")
    assert user.relation("siblings") is not other.relation("siblings")


def test_unknown_relation(user):
    with pytest.raises(NotARelationError) as error:
        user.relation("invalid")

    assert str(error.value) == 'Called "invalid" is not a relation!'


def test_plain_field_is_not_a_relation(user):
    with pytest.raises(NotARelationError):
        user.relation("name")


class TestReferencesMany:
    def test_siblings_scenario(self, user, mapper):
        b, c = User(name="B"), User(name="C")
        mapper.insert(b)
        mapper.insert(c)
        siblings = user.relation("siblings")

        siblings.attach(b)
        siblings.attach(c)
        siblings.detach(b)

        assert user.siblings_ids == [c._id]
        assert [sibling.name for sibling in user.siblings] == ["C"]

    def test_attach_mints_identity(self, user):
        b = User(name="B")

        user.relation("siblings").attach(b)

        assert isinstance(b._id, bson.ObjectId)
        assert user.siblings_ids == [b._id]

    def test_reads_are_cached(self, user, mapper, database):
        b = User(name="B")
        mapper.insert(b)
        user.relation("siblings").attach(b)

        first = user.siblings
        list(first)
        list(user.siblings)

        assert user.siblings is first
        assert database["users"].find_calls == 1

    def test_attach_invalidates_the_cache(self, user, mapper):
        b, c = User(name="B"), User(name="C")
        mapper.insert(b)
        mapper.insert(c)
        user.relation("siblings").attach(b)
        assert [sibling.name for sibling in user.siblings] == ["B"]

        user.relation("siblings").attach(c)

        assert [sibling.name for sibling in user.siblings] == ["B", "C"]

    def test_field_changes_invalidate_the_cache(self, user, mapper):
        b = User(name="B")
        mapper.insert(b)
        user.relation("siblings").attach(b)
        assert len(user.siblings) == 1

        user.siblings_ids = []

        assert len(user.siblings) == 0

    def test_detach_all(self, user):
        siblings = user.relation("siblings")
        siblings.attach(User())
        siblings.attach(User())

        siblings.detach_all()

        assert user.siblings_ids == []

    def test_custom_key(self, user, mapper):
        grandson = User(name="G", code="010")
        mapper.insert(grandson)
        mapper.insert(User(name="Other", code="999"))

        user.relation("grandsons").attach(grandson)

        assert user.grandsons_codes == ["010"]
        assert [found.name for found in user.grandsons] == ["G"]

    def test_saved_references_are_identities(self, user, mapper, database):
        b = User(name="B")
        user.relation("siblings").attach(b)

        mapper.insert(user)

        stored = database["users"].documents[0]
        assert stored["siblings_ids"] == [b._id]

    def test_unbound_entity(self):
        orphan = User(siblings_ids=[bson.ObjectId()])

        with pytest.raises(UnboundEntityError):
            orphan.siblings


class TestReferencesOne:
    def test_stores_a_single_identity(self, user, mapper):
        parent = User(name="P")
        mapper.insert(parent)

        user.relation("parent").attach(parent)

        assert user.parent_id == parent._id
        assert user.parent == parent

    def test_attach_replaces(self, user):
        first, second = User(), User()
        relation = user.relation("parent")

        relation.attach(first)
        relation.attach(second)

        assert user.parent_id == second._id

    def test_detach(self, user, mapper):
        parent = User(name="P")
        mapper.insert(parent)
        user.relation("parent").attach(parent)
        assert user.parent is not None

        user.relation("parent").detach()

        assert user.parent_id is None
        assert user.parent is None

    def test_detach_other_model_keeps_value(self, user):
        parent = User()
        user.relation("parent").attach(parent)

        stranger = User()
        user.relation("parent").detach(stranger)

        assert user.parent_id == parent._id
        assert "_id" not in stranger

    def test_unset_field_reads_none(self, user, mapper):
        parent = User(name="P")
        mapper.insert(parent)
        user.relation("parent").attach(parent)
        assert user.parent == parent

        del user.parent_id

        assert user.parent is None

    def test_custom_key_and_field(self, user, mapper):
        son = User(name="S", code="555")
        mapper.insert(son)

        user.relation("son").attach(son)

        assert user.arbitrary_field == "555"
        assert user.son.name == "S"


class TestEmbedsMany:
    def test_attach_and_read(self, user):
        home = Address(street="Blue street")

        user.relation("homes").attach(home)

        assert user.embedded_homes == [home]
        assert user.homes == [home]
        assert isinstance(home._id, bson.ObjectId)

    def test_attach_same_identity_replaces(self, user):
        home = Address(street="Blue street")
        user.relation("homes").attach(home)

        user.relation("homes").attach(Address(_id=home._id, street="Red street"))

        assert [address.street for address in user.homes] == ["Red street"]

    def test_detach(self, user):
        blue, red = Address(street="Blue street"), Address(street="Red street")
        homes = user.relation("homes")
        homes.attach(blue)
        homes.attach(red)

        homes.detach(blue)

        assert user.homes == [red]

    def test_loaded_documents_become_entities(self, user, mapper, database):
        user.relation("homes").attach(Address(street="Blue street", number=3))
        mapper.insert(user)

        loaded = mapper.first(user._id)

        assert isinstance(loaded.embedded_homes[0], dict)
        assert [type(home) for home in loaded.homes] == [Address]
        assert loaded.homes[0].number == 3

    def test_empty(self, user):
        assert user.homes == []


class TestEmbedsOne:
    def test_stores_a_single_document(self, user):
        office = Address(street="Main street")

        user.relation("office").attach(office)

        assert user.embedded_office is office
        assert user.office is office

    def test_attach_replaces(self, user):
        relation = user.relation("office")
        relation.attach(Address(street="Main street"))

        relation.attach(Address(street="Side street"))

        assert user.office.street == "Side street"

    def test_detach_all(self, user):
        user.relation("office").attach(Address(street="Main street"))

        user.relation("office").detach_all()

        assert user.embedded_office is None
        assert user.office is None


def test_relations_work_on_plain_entities():
    class Folder(Entity):
        notes = embeds_many(Entity)

    folder = Folder()
    folder.relation("notes").attach({"text": "hello"})

    assert folder.embedded_notes[0]["text"] == "hello"
    assert folder.notes[0].text == "hello"
