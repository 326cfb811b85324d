from __future__ import annotations

from sqlalchemy import delete, func, select, update

from civic_market.models.comment import Comment
from civic_market.repositories.base import Page, SqlRepository

_ORDER_COLUMNS = {
    "id": Comment.id,
    "created_at": Comment.created_at,
}


class CommentRepository(SqlRepository):

    async def get(self, comment_id: str) -> Comment | None:
        async with self.guard("load comment"):
            return (await self.db.execute(select(Comment).where(Comment.id == comment_id))).scalar_one_or_none()

    async def add(self, comment: Comment) -> Comment:
        async with self.guard("insert comment"):
            self.db.add(comment)
            await self.db.flush()
        return comment

    async def update_text(self, comment_id: str, text: str, *, updated_by: str) -> Comment | None:
        stmt = (
            update(Comment)
            .where(Comment.id == comment_id)
            .values(text=text, updated_by=updated_by)
            .returning(Comment)
            .execution_options(populate_existing=True)
        )
        async with self.guard("update comment"):
            return (await self.db.execute(stmt)).scalar_one_or_none()

    async def delete(self, comment_id: str) -> bool:
        # replies go with their parent (ON DELETE CASCADE)
        async with self.guard("delete comment"):
            result = await self.db.execute(
                delete(Comment).where(Comment.id == comment_id).returning(Comment.id)
            )
            return result.scalar_one_or_none() is not None

    async def list_by_listing(
        self,
        listing_id: str,
        *,
        page: int = 1,
        limit: int = 20,
        order_by: str = "created_at",
        order_direction: str = "ASC",
    ) -> Page[Comment]:
        column = _ORDER_COLUMNS.get(order_by, Comment.created_at)
        ordering = column.asc() if order_direction.upper() == "ASC" else column.desc()

        async with self.guard("list comments"):
            total = (await self.db.execute(
                select(func.count()).select_from(Comment).where(Comment.listing_id == listing_id)
            )).scalar_one()
            rows = (await self.db.execute(
                select(Comment)
                .where(Comment.listing_id == listing_id)
                .order_by(ordering, Comment.id.asc())
                .limit(limit)
                .offset((page - 1) * limit)
            )).scalars().all()

        return Page(items=rows, page=page, limit=limit, total=int(total))
