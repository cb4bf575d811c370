from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession


class SettingsRepositoryProtocol(Protocol):
    async def get_value(self, db: AsyncSession, key: str) -> dict[str, Any] | None: ...

    async def upsert_value(
        self, db: AsyncSession, key: str, value: dict[str, Any]
    ) -> dict[str, Any]: ...
