import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Type

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING
from pymongo.errors import ConnectionFailure, PyMongoError

from railcrowd.config import settings
from railcrowd.errors import RecordNotFound, StoreError, ValidationError
from railcrowd.schemas import EventIn, PlanIn, RecordIn, validate

logger = logging.getLogger(__name__)

SORT_NEWEST_FIRST = [("createdAt", DESCENDING), ("_id", DESCENDING)]


@dataclass(frozen=True)
class RecordKind:
    name: str
    collection: str
    schema: Type[RecordIn]


EVENT = RecordKind("Event", settings.MONGO_COLL_EVENTS, EventIn)
PLAN = RecordKind("Plan", settings.MONGO_COLL_PLANNING, PlanIn)


# ===== Utils =====
def now_utc() -> dt.datetime:
    """Current UTC time truncated to the millisecond BSON dates can hold."""
    now = dt.datetime.now(dt.timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_timestamp(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    value = value.astimezone(dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def serialize_record(doc: dict) -> dict:
    data = dict(doc)
    if "_id" in data:
        data["_id"] = str(data["_id"])
    ts = data.get("createdAt")
    if isinstance(ts, dt.datetime):
        data["createdAt"] = format_timestamp(ts)
    return data


class RecordStore:
    """Event and Plan documents on top of a `Database` connection."""

    def __init__(self, database):
        self.database = database

    def _collection(self, kind: RecordKind):
        return self.database.get_collection(kind.collection)

    def _failed(self, action: str, kind: RecordKind, exc: PyMongoError) -> StoreError:
        if isinstance(exc, ConnectionFailure):
            self.database.mark_disconnected()
        logger.error("Error %s %s: %s", action, kind.name.lower(), exc)
        return StoreError(str(exc))

    async def _succeeded(self):
        self.database.mark_connected()
        if not self.database.indexes_ready:
            await ensure_indexes(self.database)

    async def create(self, kind: RecordKind, fields: Any) -> Dict[str, Any]:
        if not isinstance(fields, dict):
            raise ValidationError(["Request body must be a JSON object"])
        doc, errors = validate(kind.schema, fields)
        if errors:
            raise ValidationError(errors)
        doc["createdAt"] = now_utc()
        try:
            result = await self._collection(kind).insert_one(doc)
        except PyMongoError as e:
            raise self._failed("creating", kind, e) from e
        await self._succeeded()
        doc["_id"] = result.inserted_id
        return serialize_record(doc)

    async def list_all(self, kind: RecordKind) -> List[Dict[str, Any]]:
        try:
            cursor = self._collection(kind).find({}).sort(SORT_NEWEST_FIRST)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._failed("fetching", kind, e) from e
        await self._succeeded()
        return [serialize_record(doc) for doc in docs]

    async def delete_by_id(self, kind: RecordKind, record_id: str) -> None:
        try:
            oid = ObjectId(record_id)
        except (InvalidId, TypeError):
            raise RecordNotFound(kind.name, record_id)
        try:
            result = await self._collection(kind).delete_one({"_id": oid})
        except PyMongoError as e:
            raise self._failed("deleting", kind, e) from e
        await self._succeeded()
        if result.deleted_count == 0:
            raise RecordNotFound(kind.name, record_id)


async def ensure_indexes(database) -> bool:
    """Create the createdAt indexes; retried after the next successful operation until all succeed."""
    ready = True
    for kind in (EVENT, PLAN):
        try:
            await database.get_collection(kind.collection).create_index([("createdAt", DESCENDING)])
        except (PyMongoError, StoreError) as e:
            ready = False
            logger.warning("⚠ Error creating indexes on %s: %s", kind.collection, e)
    database.indexes_ready = ready
    return ready
