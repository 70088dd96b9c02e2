import logging

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo.errors import PyMongoError
from pymongo.monitoring import TopologyListener

from railcrowd.config import settings
from railcrowd.errors import StoreError

logger = logging.getLogger(__name__)

DISCONNECTED = "disconnected"
CONNECTED = "connected"
CONNECTING = "connecting"
DISCONNECTING = "disconnecting"


class ConnectionStateListener(TopologyListener):
    """Keeps `Database.state` in step with driver topology events."""

    def __init__(self, database):
        self.database = database

    def opened(self, event):
        pass

    def description_changed(self, event):
        if self.database.client is None or self.database.state == DISCONNECTING:
            return
        if event.new_description.has_writable_server():
            self.database.mark_connected()
        elif self.database.state != CONNECTING:
            self.database.mark_disconnected()

    def closed(self, event):
        pass


class Database:
    client: AsyncIOMotorClient = None
    state: str = DISCONNECTED
    indexes_ready: bool = False

    async def connect(self):
        logger.info("🔌 Connecting to MongoDB...")
        self.state = CONNECTING
        self.client = AsyncIOMotorClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=settings.SERVER_SELECTION_TIMEOUT_MS,
            socketTimeoutMS=settings.SOCKET_TIMEOUT_MS,
            event_listeners=[ConnectionStateListener(self)],
        )
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            self.state = DISCONNECTED
            logger.error("❌ MongoDB Connection Error: %s", e)
            logger.warning("⚠️ Server will run with limited functionality")
            return
        self.state = CONNECTED
        logger.info("✅ MongoDB Connected Successfully")
        logger.info("📁 Database: %s", settings.database_name)

    def close(self):
        if self.client is not None:
            self.state = DISCONNECTING
            self.client.close()
            self.client = None
            logger.info("🔌 Disconnected from MongoDB")
        self.state = DISCONNECTED

    def mark_connected(self):
        self.state = CONNECTED

    def mark_disconnected(self):
        if self.state == CONNECTED:
            logger.warning("🔌 Lost connection to MongoDB")
        self.state = DISCONNECTED

    @property
    def is_connected(self) -> bool:
        return self.state == CONNECTED

    def get_db(self):
        if self.client is None:
            raise StoreError("MongoDB client is not initialised")
        return self.client[settings.database_name]

    def get_collection(self, name: str):
        return self.get_db()[name]

db = Database()

def get_database() -> Database:
    return db
