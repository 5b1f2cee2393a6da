"""
Shared fixtures: a Context backed by the in-memory FakeDatabase, with the
test entity classes registered.
"""
import pytest

from docmapper import Context
from fakes import FakeDatabase
from models import Address, Content, User, VideoContent


@pytest.fixture
def database():
    return FakeDatabase()


@pytest.fixture
def context(database):
    context = Context(database)
    context.register(User, Address, Content, VideoContent)
    return context
