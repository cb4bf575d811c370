"""SettingsRepository — key/JSONB rows in platform_settings."""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import InternalError

_GET_SETTING_SQL = text("""
    SELECT value FROM platform_settings WHERE key = :key
""")

_UPSERT_SETTING_SQL = text("""
    INSERT INTO platform_settings (key, value)
    VALUES (:key, CAST(:value AS JSONB))
    ON CONFLICT (key) DO UPDATE
        SET value = EXCLUDED.value,
            updated_at = NOW()
    RETURNING value
""")


class SettingsRepository:
    async def get_value(self, db: AsyncSession, key: str) -> dict[str, Any] | None:
        result = await db.execute(_GET_SETTING_SQL, {"key": key})
        row = result.fetchone()
        return dict(row.value) if row else None

    async def upsert_value(
        self, db: AsyncSession, key: str, value: dict[str, Any]
    ) -> dict[str, Any]:
        result = await db.execute(_UPSERT_SETTING_SQL, {"key": key, "value": json.dumps(value)})
        row = result.fetchone()
        if row is None:
            raise InternalError("Settings upsert returned no rows — this should never happen")
        return dict(row.value)
