# Seeds the default configuration flags without overwriting values an administrator already set.
import asyncio

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from civic_market.core.config import settings
from civic_market.repositories.configuration import ConfigurationRepository
from civic_market.services.configuration import DEFAULT_FLAGS


async def seed_defaults(db: AsyncSession) -> list[str]:
    repo = ConfigurationRepository(db)
    inserted = []
    for flag, (value, description) in DEFAULT_FLAGS.items():
        if await repo.get(flag.value) is None:
            await repo.upsert(flag.value, value, description, updated_by="seed")
            inserted.append(flag.value)
    await repo.commit()
    return inserted


async def main():
    engine = create_async_engine(settings.database_url, pool_pre_ping=True)
    Session = async_sessionmaker(engine, expire_on_commit=False)

    async with Session() as db:
        inserted = await seed_defaults(db)

    for key in inserted:
        print(f"Inserted {key}")
    print(f"{len(DEFAULT_FLAGS) - len(inserted)} flags already set")

    await engine.dispose()

if __name__ == "__main__":
    asyncio.run(main())
