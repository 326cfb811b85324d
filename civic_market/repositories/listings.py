from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, or_, select, update

from civic_market.models.listing import Listing
from civic_market.repositories.base import Page, SqlRepository

_ORDER_COLUMNS = {
    "id": Listing.id,
    "title": Listing.title,
    "kind": Listing.kind,
    "status": Listing.status,
    "created_at": Listing.created_at,
}


class ListingRepository(SqlRepository):

    async def get(self, listing_id: str) -> Listing | None:
        async with self.guard("load listing"):
            return (await self.db.execute(select(Listing).where(Listing.id == listing_id))).scalar_one_or_none()

    async def add(self, listing: Listing) -> Listing:
        async with self.guard("insert listing"):
            self.db.add(listing)
            await self.db.flush()
        return listing

    async def update_fields(self, listing_id: str, fields: dict[str, Any], *, updated_by: str) -> Listing | None:
        """
        Partial UPDATE of the given columns only.
        Returns None when no row matched (deleted since it was loaded).
        """
        stmt = (
            update(Listing)
            .where(Listing.id == listing_id)
            .values(**fields, updated_by=updated_by)
            .returning(Listing)
            .execution_options(populate_existing=True)
        )
        async with self.guard("update listing"):
            return (await self.db.execute(stmt)).scalar_one_or_none()

    async def delete(self, listing_id: str) -> bool:
        async with self.guard("delete listing"):
            result = await self.db.execute(
                delete(Listing).where(Listing.id == listing_id).returning(Listing.id)
            )
            return result.scalar_one_or_none() is not None

    async def query(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        order_by: str = "created_at",
        order_direction: str = "DESC",
        kind: str | None = None,
        status: str | None = None,
    ) -> Page[Listing]:
        conditions = []
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(Listing.title.ilike(pattern), Listing.description.ilike(pattern)))
        if kind:
            conditions.append(Listing.kind == kind)
        if status:
            conditions.append(Listing.status == status)

        column = _ORDER_COLUMNS.get(order_by, Listing.created_at)
        ordering = column.asc() if order_direction.upper() == "ASC" else column.desc()

        count_stmt = select(func.count()).select_from(Listing).where(*conditions)
        data_stmt = (
            select(Listing)
            .where(*conditions)
            .order_by(ordering, Listing.id.asc())
            .limit(limit)
            .offset((page - 1) * limit)
        )

        async with self.guard("query listings"):
            total = (await self.db.execute(count_stmt)).scalar_one()
            rows = (await self.db.execute(data_stmt)).scalars().all()

        return Page(items=rows, page=page, limit=limit, total=int(total))

    async def referenced_media_urls(self) -> set[str]:
        async with self.guard("collect media references"):
            rows = (await self.db.execute(select(Listing.media_url).where(Listing.media_url.is_not(None)))).scalars()
            return set(rows)
