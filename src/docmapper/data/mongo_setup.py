"""
Connection bootstrap for docmapper.

Settings come from environment variables so nothing is hardcoded per deployment:

    DOCMAPPER_DB_ALIAS      mongoengine connection alias (default: core)
    DOCMAPPER_DB_NAME       database name (default: docmapper)
    DOCMAPPER_DB_HOST       MongoDB URI (default: mongodb://localhost:27017)
    DOCMAPPER_WRITE_CONCERN default acknowledgment level (default: 1)
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Union

import mongoengine
from mongoengine.connection import get_db
from pymongo.database import Database

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MongoSettings:
    """Connection settings for a docmapper Context.

    Attributes:
        alias: mongoengine connection alias the database is registered under
        name: database name
        host: MongoDB connection URI
        write_concern: default write acknowledgment level (int or 'majority')
    """

    alias: str = "core"
    name: str = "docmapper"
    host: str = "mongodb://localhost:27017"
    write_concern: Union[int, str] = 1

    @classmethod
    def from_env(cls) -> MongoSettings:
        """Load settings from environment variables."""
        write_concern = os.getenv("DOCMAPPER_WRITE_CONCERN", "1")
        return cls(
            alias=os.getenv("DOCMAPPER_DB_ALIAS", "core"),
            name=os.getenv("DOCMAPPER_DB_NAME", "docmapper"),
            host=os.getenv("DOCMAPPER_DB_HOST", "mongodb://localhost:27017"),
            write_concern=int(write_concern) if write_concern.isdigit() else write_concern,  # "0", "1" or "majority".
        )


"""
Register the connection described by settings with mongoengine.

Call this once during application startup; every Context built from the same
settings then shares the registered client.
"""
def global_init(settings: MongoSettings = None) -> None:
    settings = settings or MongoSettings.from_env()
    mongoengine.register_connection(alias=settings.alias, name=settings.name, host=settings.host)  # Lazy: no socket is opened until first use.
    logger.debug("Registered connection %r for database %r", settings.alias, settings.name)


"""Return the raw pymongo Database registered under alias."""
def get_database(alias: str = "core") -> Database:
    return get_db(alias)  # Raw pymongo Database behind the mongoengine alias.
