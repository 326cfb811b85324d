"""
Configuration flags.

Values are free-form strings in storage. Business code never compares them:
it asks ConfigurationStore.is_enabled(Flag.X), which parses the value once at
this boundary. Every call goes to the store; a flag flip is visible to the
very next request.
"""
from __future__ import annotations

import enum
import logging

from civic_market.models.configuration_flag import ConfigurationFlag
from civic_market.repositories.configuration import ConfigurationRepository

log = logging.getLogger(__name__)

# "sim" is the historical sentinel written by the municipal admin UI
TRUTHY_VALUES = frozenset({"sim", "true", "yes", "on", "1", "enabled"})


class Flag(str, enum.Enum):
    ALLOW_CLIENT_PUBLISHING = "allow-client-publishing"
    REQUIRE_MANUAL_REVIEW = "require-manual-review"
    COMMENTS_ENABLED = "comments-enabled"


# Defaults seeded by the baseline migration and scripts/seed_flags.py.
DEFAULT_FLAGS: dict[Flag, tuple[str, str]] = {
    Flag.ALLOW_CLIENT_PUBLISHING: ("false", "Residents may publish products"),
    Flag.REQUIRE_MANUAL_REVIEW: ("true", "Listings by non-municipal users start as pending"),
    Flag.COMMENTS_ENABLED: ("true", "Comments are open on listings"),
}


def parse_flag_value(raw: str | None) -> bool:
    if raw is None:
        return False
    return raw.strip().lower() in TRUTHY_VALUES


class ConfigurationStore:
    def __init__(self, repo: ConfigurationRepository):
        self.repo = repo

    async def get(self, key: str) -> ConfigurationFlag | None:
        return await self.repo.get(key)

    async def list_all(self) -> list[ConfigurationFlag]:
        return await self.repo.list_all()

    async def upsert(
        self,
        key: str,
        value: str,
        description: str | None = None,
        *,
        actor_id: str | None = None,
    ) -> ConfigurationFlag:
        row = await self.repo.upsert(key, value, description, updated_by=actor_id)
        await self.repo.commit()
        log.info("configuration flag %s set to %r by %s", key, value, actor_id)
        return row

    async def is_enabled(self, flag: Flag) -> bool:
        """Absent flags read as disabled."""
        row = await self.repo.get(flag.value)
        return parse_flag_value(row.value if row else None)
