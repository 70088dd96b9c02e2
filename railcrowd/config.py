from typing import Optional
from urllib.parse import urlparse

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    APP_NAME: str = "Railway Management API"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "production"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    # MongoDB
    MONGODB_URI: str = "mongodb://localhost:27017/railway_db"
    MONGO_DB_NAME: Optional[str] = None  # falls back to the database in the URI path
    MONGO_COLL_EVENTS: str = "events"
    MONGO_COLL_PLANNING: str = "plannings"
    SERVER_SELECTION_TIMEOUT_MS: int = 5000
    SOCKET_TIMEOUT_MS: int = 45000

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() == "development"

    @property
    def database_name(self) -> str:
        if self.MONGO_DB_NAME:
            return self.MONGO_DB_NAME
        path = urlparse(self.MONGODB_URI).path.strip("/")
        return path or "railway_db"

settings = Settings()
