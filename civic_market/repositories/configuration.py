from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite

from civic_market.models.configuration_flag import ConfigurationFlag
from civic_market.repositories.base import SqlRepository


class ConfigurationRepository(SqlRepository):

    def _insert(self):
        # ON CONFLICT lives in the dialect modules
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite.insert(ConfigurationFlag)
        return postgresql.insert(ConfigurationFlag)

    async def get(self, key: str) -> ConfigurationFlag | None:
        async with self.guard("load configuration flag"):
            return (await self.db.execute(
                select(ConfigurationFlag).where(ConfigurationFlag.key == key)
            )).scalar_one_or_none()

    async def list_all(self) -> list[ConfigurationFlag]:
        async with self.guard("list configuration flags"):
            rows = (await self.db.execute(select(ConfigurationFlag).order_by(ConfigurationFlag.key.asc()))).scalars()
            return list(rows)

    async def upsert(
        self,
        key: str,
        value: str,
        description: str | None = None,
        *,
        updated_by: str | None = None,
    ) -> ConfigurationFlag:
        insert_stmt = self._insert().values(
            key=key,
            value=value,
            description=description,
            updated_by=updated_by,
        )
        stmt = (
            insert_stmt.on_conflict_do_update(
                index_elements=[ConfigurationFlag.key],
                set_={
                    "value": insert_stmt.excluded.value,
                    # omitted description keeps the stored one
                    "description": func.coalesce(insert_stmt.excluded.description, ConfigurationFlag.description),
                    "updated_by": insert_stmt.excluded.updated_by,
                    "updated_at": func.now(),
                },
            )
            .returning(ConfigurationFlag)
            .execution_options(populate_existing=True)
        )
        async with self.guard("upsert configuration flag"):
            return (await self.db.execute(stmt)).scalar_one()
