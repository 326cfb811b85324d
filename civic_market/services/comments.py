from __future__ import annotations

import logging

from civic_market.core.errors import NotFound, ValidationError
from civic_market.models.comment import Comment
from civic_market.repositories.base import Page
from civic_market.repositories.comments import CommentRepository
from civic_market.repositories.listings import ListingRepository
from civic_market.schemas.comment import CommentOut, CommentQuery
from civic_market.services.auth import Principal
from civic_market.services.permissions import Action, require

log = logging.getLogger(__name__)


class CommentThreadManager:
    def __init__(self, comments: CommentRepository, listings: ListingRepository):
        self.comments = comments
        self.listings = listings

    async def _require_listing(self, listing_id: str):
        listing = await self.listings.get(listing_id)
        if listing is None:
            raise NotFound("Listing not found")
        return listing

    async def _require_comment(self, comment_id: str) -> Comment:
        comment = await self.comments.get(comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        return comment

    async def create(self, listing_id: str, author_id: str, text: str, parent_id: str | None = None) -> Comment:
        """Any authenticated principal may comment; replies must stay on the parent's listing."""
        await self._require_listing(listing_id)

        if parent_id:
            parent = await self.comments.get(parent_id)
            if parent is None:
                raise NotFound("Parent comment not found")
            if parent.listing_id != listing_id:
                raise ValidationError("reply must belong to the same listing as its parent")

        comment = Comment(
            listing_id=listing_id,
            author_id=author_id,
            text=text,
            parent_id=parent_id or None,
            updated_by=author_id,
        )
        await self.comments.add(comment)
        await self.comments.commit()
        return comment

    async def update(self, comment_id: str, principal: Principal, text: str) -> Comment:
        comment = await self._require_comment(comment_id)
        require(principal.role, Action.EDIT_COMMENT, actor_id=principal.user_id, author_id=comment.author_id)

        updated = await self.comments.update_text(comment_id, text, updated_by=principal.user_id)
        if updated is None:
            raise NotFound("Comment not found")
        await self.comments.commit()
        return updated

    async def delete(self, comment_id: str, principal: Principal) -> CommentOut:
        comment = await self._require_comment(comment_id)
        listing = await self.listings.get(comment.listing_id)
        require(
            principal.role,
            Action.DELETE_COMMENT,
            actor_id=principal.user_id,
            author_id=comment.author_id,
            owner_id=listing.owner_id if listing else None,
        )

        snapshot = CommentOut.model_validate(comment)
        if not await self.comments.delete(comment_id):
            raise NotFound("Comment not found")
        await self.comments.commit()

        log.info("comment %s deleted by %s", comment_id, principal.user_id)
        return snapshot

    async def list_by_listing(self, listing_id: str, query: CommentQuery) -> Page[Comment]:
        await self._require_listing(listing_id)
        return await self.comments.list_by_listing(
            listing_id,
            page=query.page,
            limit=query.limit,
            order_by=query.orderBy,
            order_direction=query.orderDirection,
        )
