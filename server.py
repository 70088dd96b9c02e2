#!/usr/bin/env python3
# server.py — Railway crowd management API (MongoDB)
# Starts the FastAPI app from railcrowd.main with host/port from the environment.

import logging

import uvicorn

from railcrowd.config import settings

logger = logging.getLogger("railcrowd.server")


def main():
    # importing the app configures logging before the banner is printed
    import railcrowd.main  # noqa: F401

    logger.info("🚀 Server running on port %s", settings.PORT)
    logger.info("📡 Health check: http://localhost:%s/api/health", settings.PORT)
    logger.info("📊 API Documentation: http://localhost:%s/", settings.PORT)
    logger.info("🖥  Dashboard: http://localhost:%s/dashboard", settings.PORT)
    uvicorn.run(
        "railcrowd.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )


# ===== Main =====
if __name__ == "__main__":
    main()
