from datetime import datetime, timezone

import pytest


class FakeStore:
    """In-memory stand-in for an asyncpg pool with both unique constraints."""

    def __init__(self, table: str = "url_mappings"):
        self.table = table
        self.rows = {}
        self.executed = []

    async def execute(self, query, *args):
        self.executed.append(query)
        return "OK"

    async def fetchrow(self, query, *args):
        if query.lstrip().upper().startswith("INSERT"):
            return self._insert(*args)
        short_code = args[0]
        row = self.rows.get(short_code)
        return {"long_url": row["long_url"]} if row else None

    def _insert(self, short_code, long_url):
        if short_code in self.rows:
            raise Exception(
                "duplicate key value violates unique constraint "
                f'"{self.table}_pkey"'
            )
        if any(row["long_url"] == long_url for row in self.rows.values()):
            raise Exception(
                "duplicate key value violates unique constraint "
                f'"{self.table}_long_url_key"'
            )
        row = {
            "short_code": short_code,
            "long_url": long_url,
            "created_at": datetime.now(timezone.utc),
        }
        self.rows[short_code] = row
        return row


@pytest.fixture
def fake_store():
    return FakeStore()
