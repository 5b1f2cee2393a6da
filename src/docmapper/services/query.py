"""
Normalization of query filters and projections before they reach pymongo.
"""
import re
from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, Union

import bson

from docmapper.errors import InvalidProjectionError

_OBJECT_ID = re.compile(r"^[0-9a-fA-F]{24}$")
_LOGICAL = ("$and", "$or", "$nor")
_ID_OPERATORS = ("$in", "$nin", "$all")


"""
Turn value into a filter mapping.

Anything that is not a mapping is taken as an identity: 7 becomes {'_id': 7}.
Identity values written as 24 hex characters become ObjectIds, whether given
directly, inside $in/$nin lists, under comparison operators or nested in
$and/$or/$nor clauses. Every other value passes through untouched.
"""
def prepare_value_query(value: Any, identity: str = "_id") -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        value = {identity: value}

    query = {}
    for key, condition in value.items():
        if key in _LOGICAL and isinstance(condition, list):
            query[key] = [prepare_value_query(clause, identity) for clause in condition]
        elif key == identity:
            query[key] = _prepare_identity(condition)
        else:
            query[key] = condition

    return query


def _prepare_identity(condition):
    if isinstance(condition, Mapping):
        prepared = {}
        for operator, operand in condition.items():
            if operator in _ID_OPERATORS and isinstance(operand, (list, tuple)):
                prepared[operator] = [to_object_id(item) for item in operand]
            else:
                prepared[operator] = to_object_id(operand)
        return prepared

    return to_object_id(condition)


def to_object_id(value):
    if isinstance(value, str) and _OBJECT_ID.match(value):
        return bson.ObjectId(value)
    return value


"""
Normalize a projection into {field: bool}.

Accepts a list of field names, where '-name' excludes the field, or a mapping
whose values are booleans or numbers (positive includes, zero or negative
excludes). Any other value raises InvalidProjectionError naming the pair.
"""
def prepare_projection(projection: Optional[Union[Mapping, Iterable[str]]]) -> Dict[str, bool]:
    if isinstance(projection, (str, bytes)):
        raise InvalidProjectionError(projection, projection)  # a bare name would be split into characters
    if not projection:
        return {}

    if not isinstance(projection, Mapping):
        prepared = {}
        for name in projection:
            if not isinstance(name, str):
                raise InvalidProjectionError(name, name)
            if name.startswith("-"):
                prepared[name[1:]] = False
            else:
                prepared[name] = True
        return prepared

    prepared = {}
    for key, value in projection.items():
        if isinstance(value, bool):
            prepared[key] = value
        elif isinstance(value, (int, float)):
            prepared[key] = value > 0
        else:
            raise InvalidProjectionError(key, value)

    return prepared
