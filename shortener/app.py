import logging
import os
from logging.handlers import TimedRotatingFileHandler
from typing import List

import asyncpg
from fastapi import FastAPI
from redis.asyncio import Redis

from shortener.controller import router
from shortener.repository import URLRegistry

DATABASE_URL = os.getenv("DATABASE_URL")
REDIS_URL = os.getenv("REDIS_URL")
DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", 5))
DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", 20))
CREATE_SCHEMA = os.getenv("CREATE_SCHEMA", "true").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")

# Logging
handlers: List[logging.Handler] = [logging.StreamHandler()]
if LOG_FILE:
    handlers.append(
        TimedRotatingFileHandler(
            filename=LOG_FILE,
            when="W0",
            interval=1,
            backupCount=4,
            encoding="utf-8",
        )
    )

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(levelname)s - %(asctime)s - %(message)s",
    handlers=handlers,
)
logger = logging.getLogger(__name__)

# Set up app
app = FastAPI(title="URL Shortener")
app.include_router(router)


# App lifecycle
@app.on_event("startup")
async def startup_event():
    app.state.db_pool = await asyncpg.create_pool(
        DATABASE_URL, min_size=DB_POOL_MIN_SIZE, max_size=DB_POOL_MAX_SIZE
    )
    app.state.registry = URLRegistry(app.state.db_pool)
    if CREATE_SCHEMA:
        await app.state.registry.createSchema()

    app.state.redis = None
    if REDIS_URL:
        app.state.redis = Redis.from_url(
            REDIS_URL, encoding="utf-8", decode_responses=True
        )
    logger.info(
        "Application started, postgres database initialized, "
        f"redis cache {'enabled' if app.state.redis is not None else 'disabled'}"
    )


@app.on_event("shutdown")
async def shutdown_event():
    await app.state.db_pool.close()
    if app.state.redis is not None:
        await app.state.redis.aclose()
    logger.info("Application shut down, database and cache connections closed")
