from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from pymongo import ASCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import OperationFailure

from mongomq.core.config import settings

logger = logging.getLogger(__name__)

NO_MATCHING_OBJECT = "No matching object found"


@dataclass
class FindAndModifyResult:
    matched: bool
    document: Optional[Dict[str, Any]] = None
    error_message: str = ""

    @property
    def no_match(self) -> bool:
        return not self.matched and NO_MATCHING_OBJECT in self.error_message


class MongoStoreClient:
    """
    MongoDB client for queue collections and atomic claims.
    """

    def __init__(self, client: Optional[MongoClient] = None, database: Optional[str] = None):
        self.client: Optional[MongoClient] = client
        self.database_name = database or settings.MONGO_DATABASE

    def connect(self):
        """Initialize MongoDB connection."""
        try:
            if self.client is None:
                self.client = MongoClient(
                    settings.MONGO_URL,
                    w=settings.MONGO_WRITE_CONCERN_W,
                    socketTimeoutMS=settings.MONGO_SOCKET_TIMEOUT_MS,
                    serverSelectionTimeoutMS=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
                )
            # Test connection
            self.client.admin.command("ping")
            logger.info("MongoDB connection established")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    def disconnect(self):
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            logger.info("MongoDB connection closed")

    @property
    def db(self) -> Database:
        if self.client is None:
            self.connect()
        return self.client[self.database_name]

    def select_collection(self, name: str) -> Collection:
        return self.db[name]

    def create_collection(self, name: str) -> bool:
        """Create the collection backing a queue; an existing one is left as is."""
        if name in self.db.list_collection_names():
            return True
        self.db.create_collection(name)
        return True

    def drop_collection(self, name: str) -> bool:
        """Drop a collection and report the server's ok flag."""
        response = self.db.drop_collection(name)
        if isinstance(response, dict):
            return bool(response.get("ok", 1))
        return True

    def list_collection_names(self) -> List[str]:
        return list(self.db.list_collection_names())

    def insert(self, name: str, document: Dict[str, Any]) -> Any:
        """Insert a document and return its id once the write is acknowledged."""
        result = self.select_collection(name).insert_one(document)
        if not result.acknowledged:
            raise OperationFailure("write concern not satisfied")
        return result.inserted_id

    def remove(self, name: str, query: Dict[str, Any]) -> int:
        """Remove one matching document; returns the number removed."""
        result = self.select_collection(name).delete_one(query)
        if not result.acknowledged:
            raise OperationFailure("write concern not satisfied")
        return result.deleted_count

    def count(self, name: str, query: Optional[Dict[str, Any]] = None) -> int:
        return self.select_collection(name).count_documents(query or {})

    def ensure_index(self, name: str, field: str):
        """Create an ascending background index; failures are only logged."""
        try:
            self.select_collection(name).create_index([(field, ASCENDING)], background=True)
        except Exception as e:
            logger.debug(f"Could not ensure index on {name}.{field}: {e}")

    def find_and_modify(
        self,
        name: str,
        query: Dict[str, Any],
        update: Dict[str, Any],
        return_original: bool = False,
    ) -> FindAndModifyResult:
        """
        Atomically update one document matching query.

        A missing match and a server-side command failure both come back as
        unmatched results; only the former carries NO_MATCHING_OBJECT.
        Connection-level driver errors propagate.
        """
        try:
            document = self.select_collection(name).find_one_and_update(
                query,
                update,
                return_document=ReturnDocument.BEFORE if return_original else ReturnDocument.AFTER,
            )
        except OperationFailure as e:
            return FindAndModifyResult(matched=False, error_message=str(e))
        if document is None:
            return FindAndModifyResult(matched=False, error_message=NO_MATCHING_OBJECT)
        return FindAndModifyResult(matched=True, document=document)


# Global MongoDB client instance
mongo_client = MongoStoreClient()
