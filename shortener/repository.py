import logging
import os
import re
from typing import Optional, Union

from asyncpg import Connection, Pool

from shortener.exceptions import DuplicateMapping, StorageFailed
from shortener.helpers import validate_url
from shortener.models import URLMapping

logger = logging.getLogger(__name__)

DB_TABLE_NAME = os.getenv("DB_TABLE_NAME", "url_mappings")

DUPLICATE_KEY_PATTERN = re.compile(
    r'duplicate key value(?: violates unique constraint "(?P<constraint>[^"]+)")?'
)


def quoteIdentifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def constrainedField(constraint: Optional[str]) -> Optional[str]:
    """Map a postgres constraint name to the column it guards."""

    if not constraint:
        return None
    if constraint.endswith("_long_url_key"):
        return "long_url"
    if constraint.endswith("_pkey") or constraint.endswith("_short_code_key"):
        return "short_code"
    return None


def classifyStorageError(
    exc: BaseException, long_url: str, short_code: str
) -> Union[DuplicateMapping, StorageFailed]:
    """Turn a raw driver error from an insert into DuplicateMapping or StorageFailed.

    Unique violations are recognised by the "duplicate key value" text postgres
    puts in the message. When the driver exposes the violated constraint name
    as an attribute (asyncpg does), that is used to tell which column clashed.
    """

    match = DUPLICATE_KEY_PATTERN.search(str(exc))
    if match is None:
        return StorageFailed("URL mapping insert", str(exc))

    constraint = getattr(exc, "constraint_name", None) or match.group("constraint")
    return DuplicateMapping(long_url, short_code, constrainedField(constraint))


class URLRegistry:
    """Persists and resolves URL mappings.

    store is an asyncpg Pool or Connection, or anything else exposing the
    same ``execute`` and ``fetchrow`` coroutines.
    """

    def __init__(self, store: Union[Pool, Connection], table: str = DB_TABLE_NAME):
        self.store = store
        self.table = quoteIdentifier(table)

    async def createSchema(self) -> None:
        await self.store.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {self.table} (
                short_code VARCHAR(64) PRIMARY KEY,
                long_url TEXT NOT NULL UNIQUE,
                created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

    async def persist(self, long_url: str, short_code: str) -> URLMapping:
        validate_url(long_url)

        try:
            result = await self.store.fetchrow(
                f"""
                INSERT INTO {self.table} (short_code, long_url)
                VALUES ($1, $2)
                RETURNING short_code, long_url, created_at
                """,
                short_code,
                long_url,
            )
        except Exception as exc:
            error = classifyStorageError(exc, long_url, short_code)
            log = logger.warning if isinstance(error, DuplicateMapping) else logger.error
            log(
                f"Issue persisting URL. Original URL: [{long_url}]. "
                f"Short code: [{short_code}] because: {str(exc)}"
            )
            raise error from exc

        if result is None:
            logger.error(f"Insert returned no row for short code: {short_code}")
            raise StorageFailed(
                "URL mapping insert", f"No row returned for short code {short_code}"
            )

        return URLMapping(
            short_code=result["short_code"],
            long_url=result["long_url"],
            created_at=result["created_at"],
        )

    async def resolve(self, short_code: str) -> Optional[str]:
        try:
            result = await self.store.fetchrow(
                f"""
                SELECT long_url FROM {self.table} WHERE short_code = $1
                """,
                short_code,
            )
        except Exception as exc:
            logger.error(f"Error looking up short code {short_code}: {str(exc)}")
            raise StorageFailed("URL mapping lookup", str(exc)) from exc

        if result:
            return result["long_url"]
        return None
