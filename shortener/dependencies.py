from typing import AsyncGenerator, Optional

from redis.asyncio import Redis

from shortener.repository import URLRegistry


async def get_registry() -> AsyncGenerator[URLRegistry, None]:
    from shortener.app import app

    yield app.state.registry


async def get_redis() -> AsyncGenerator[Optional[Redis], None]:
    from shortener.app import app

    yield app.state.redis
