"""
Schema declarations.

A Schema tells docmapper which collection an entity type lives in, which field
holds its identity and how each known field is cast. Scalar fields are declared
with mongoengine field instances, the same ones a mongoengine Document would use:

    class UserSchema(Schema):
        collection = 'users'
        fields = {
            'name': mongoengine.StringField(required=True),
            'age': mongoengine.IntField(),
            'registered_date': mongoengine.DateTimeField(default=datetime.datetime.now),
            'addresses': EmbeddedField(Address, many=True),
            'siblings_ids': ReferenceField(many=True),
        }

Fields not declared here are passed through unchanged.
"""
from typing import Dict, Optional

import bson
import mongoengine
from mongoengine.base import BaseField


"""
A sub-document (or a list of sub-documents) mapped through the schema of
entity_class. many=True declares an embedded-many field.
"""
class EmbeddedField:
    def __init__(self, entity_class, many: bool = False):
        self.entity_class = entity_class  # Entity subclass whose schema maps each sub-document.
        self.many = many  # True: a list of sub-documents; False: a single one.

    def __repr__(self):
        return f"EmbeddedField({self.entity_class.__name__}, many={self.many})"


"""
An identity (or a list of identities) pointing at documents of another
collection. Each identity is cast through field, an ObjectIdField by default.
"""
class ReferenceField:
    def __init__(self, many: bool = False, field: BaseField = None):
        self.many = many  # True: a list of identities; False: a single one.
        self.field = field if field is not None else mongoengine.ObjectIdField()  # Casts each identity.

    def __repr__(self):
        return f"ReferenceField(many={self.many}, field={type(self.field).__name__})"


class Schema:
    collection: Optional[str] = None  # Collection name; None for embedded-only schemas.
    identity: str = "_id"  # Field used to match documents on update, save and delete.

    # New documents get an ObjectId minted while being cast.
    fields: Dict[str, object] = {
        "_id": mongoengine.ObjectIdField(default=bson.ObjectId),
    }

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        # Subclasses extend their parent's fields instead of replacing them.
        merged = {}
        for base in reversed(cls.__mro__[1:]):
            merged.update(base.__dict__.get("fields", {}))
        merged.update(cls.__dict__.get("fields", {}))
        cls.fields = merged

        for name, declared in merged.items():
            if isinstance(declared, BaseField) and declared.name is None:
                declared.name = name  # used in mongoengine validation messages


Schema.fields["_id"].name = "_id"
