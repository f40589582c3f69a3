"""
Database helpers

Thin wrappers over the pymongo collections used by the API. Every stored
document gets created_at / updated_at timestamps. Handlers only reach the
stores through these functions, so swapping `db` (e.g. for mongomock in
tests) swaps the whole persistence layer.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, MongoClient, ReturnDocument

import config

logger = logging.getLogger(__name__)

client: Optional[MongoClient] = None
db = None

if config.DATABASE_URL:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]
else:
    logger.warning("DATABASE_URL is not set, database not available")


class DatabaseUnavailable(RuntimeError):
    pass


def _collection(collection_name: str):
    if db is None:
        raise DatabaseUnavailable("Database not available")
    return db[collection_name]


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a path id; None when it is not a valid ObjectId."""
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def serialize(doc: Optional[dict]) -> Optional[dict]:
    """Make a raw document JSON friendly (ObjectId -> str)."""
    if doc is None:
        return None
    out = dict(doc)
    if "_id" in out:
        out["_id"] = str(out["_id"])
    return out


def create_document(collection_name: str, data: Dict[str, Any]) -> str:
    now = datetime.now(timezone.utc)
    doc = dict(data)
    doc["created_at"] = now
    doc["updated_at"] = now
    result = _collection(collection_name).insert_one(doc)
    return str(result.inserted_id)


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    newest_first: bool = False,
) -> List[dict]:
    cursor = _collection(collection_name).find(filter_dict or {})
    if newest_first:
        cursor = cursor.sort("created_at", DESCENDING)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def find_document(collection_name: str, filter_dict: Dict[str, Any]) -> Optional[dict]:
    return _collection(collection_name).find_one(filter_dict)


def update_document(collection_name: str, doc_id: str, data: Dict[str, Any]) -> Optional[dict]:
    """Set fields on a document by id; returns the updated document or None."""
    oid = to_object_id(doc_id)
    if oid is None:
        return None
    changes = dict(data)
    changes["updated_at"] = datetime.now(timezone.utc)
    return _collection(collection_name).find_one_and_update(
        {"_id": oid},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )


def delete_document(collection_name: str, doc_id: str) -> bool:
    oid = to_object_id(doc_id)
    if oid is None:
        return False
    result = _collection(collection_name).delete_one({"_id": oid})
    return result.deleted_count > 0
