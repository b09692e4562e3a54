"""
MongoDB connection for the listings service.

One client is created per process and shared by every request. Route
handlers never touch the client directly: they receive the ``products``
collection through ``MongoStore.products``, which raises
``StoreNotReadyError`` until ``connect()`` has succeeded.
"""

import logging
from urllib.parse import urlsplit

from pymongo import AsyncMongoClient
from pymongo.server_api import ServerApi

from marketplace.config import settings

logger = logging.getLogger(__name__)

PRODUCTS_COLLECTION = "products"


class StoreError(Exception):
    pass


class StoreConnectionError(StoreError):
    """The store could not be reached at startup."""


class StoreNotReadyError(StoreError):
    """A request needed the store before it was connected (or after it closed)."""

    def __init__(self, message: str = "Database not connected."):
        super().__init__(message)


def resolve_db_name(uri: str | None, default: str | None = None) -> str:
    """
    Database name taken from the path of the connection string.

    ``mongodb+srv://user:pw@cluster.example.net/agromarketplace?retryWrites=true``
    resolves to ``agromarketplace``; a URI without a path falls back to
    ``default`` (``MONGO_DEFAULT_DB`` when not given).
    """
    fallback = default or settings.MONGO_DEFAULT_DB
    if not uri:
        return fallback
    path = urlsplit(uri).path
    return path[1:] or fallback


class MongoStore:
    def __init__(self, uri: str | None, client_factory=AsyncMongoClient, default_db: str | None = None):
        self.uri = uri
        self.default_db = default_db
        self._client_factory = client_factory
        self._client = None
        self._collection = None
        self.db_name: str | None = None

    @property
    def is_ready(self) -> bool:
        return self._collection is not None

    @property
    def products(self):
        if self._collection is None:
            raise StoreNotReadyError()
        return self._collection

    async def connect(self):
        if self._client is not None:
            return self._collection

        if not self.uri:
            logger.error("MongoDB connection error: MONGO_URI is not set")
            raise StoreConnectionError("MONGO_URI is not set")

        try:
            self._client = self._client_factory(
                self.uri,
                server_api=ServerApi("1", strict=True, deprecation_errors=True),
                tz_aware=True,
            )
            await self._client.admin.command("ping")
            logger.info("Pinged your deployment. You successfully connected to MongoDB!")

            self.db_name = resolve_db_name(self.uri, self.default_db)
            self._collection = self._client[self.db_name][PRODUCTS_COLLECTION]
        except Exception as e:
            logger.error("MongoDB connection error: %s", e)
            await self._discard_client()
            raise StoreConnectionError(str(e)) from e

        logger.info("Connected to database: %s, collection: %s", self.db_name, PRODUCTS_COLLECTION)
        return self._collection

    async def close(self):
        if self._client is None:
            return
        self._collection = None
        client, self._client = self._client, None
        await client.close()

    async def _discard_client(self):
        self._collection = None
        if self._client is None:
            return
        client, self._client = self._client, None
        try:
            await client.close()
        except Exception as e:
            logger.debug("Ignoring error while closing failed client: %s", e)
