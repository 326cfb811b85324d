from functools import lru_cache

from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from civic_market.core.config import settings
from civic_market.core.db import get_db
from civic_market.repositories.comments import CommentRepository
from civic_market.repositories.configuration import ConfigurationRepository
from civic_market.repositories.listings import ListingRepository
from civic_market.services.comments import CommentThreadManager
from civic_market.services.configuration import ConfigurationStore
from civic_market.services.listings import ListingLifecycleManager
from civic_market.services.media import MediaLifecycleManager
from civic_market.services.storage import LocalMediaStore


@lru_cache
def get_media_store() -> LocalMediaStore:
    return LocalMediaStore(settings.media_dir, settings.public_base_url)


def get_configuration_store(db: AsyncSession = Depends(get_db)) -> ConfigurationStore:
    return ConfigurationStore(ConfigurationRepository(db))


def get_listing_manager(
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    store: LocalMediaStore = Depends(get_media_store),
) -> ListingLifecycleManager:
    # post-commit media cleanup runs after the response is sent
    media = MediaLifecycleManager(store, dispatch=background_tasks.add_task)
    return ListingLifecycleManager(
        listings=ListingRepository(db),
        config=ConfigurationStore(ConfigurationRepository(db)),
        media=media,
    )


def get_comment_manager(db: AsyncSession = Depends(get_db)) -> CommentThreadManager:
    return CommentThreadManager(CommentRepository(db), ListingRepository(db))
