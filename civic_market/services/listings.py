from __future__ import annotations

import logging
from typing import Any

from civic_market.core.errors import NotFound, ValidationError
from civic_market.models.listing import Listing
from civic_market.repositories.base import Page
from civic_market.repositories.listings import ListingRepository
from civic_market.schemas.listing import (
    ListingChanges,
    ListingCreate,
    ListingDraft,
    ListingOut,
    ListingPatch,
    ListingQuery,
)
from civic_market.services.auth import Principal
from civic_market.services.configuration import ConfigurationStore, Flag
from civic_market.services.media import MediaLifecycleManager, decide_media_change
from civic_market.services.permissions import Action, Role, publish_action, require
from civic_market.services.validation import validate_or_raise

log = logging.getLogger(__name__)

MODERATION_TARGETS = ("approved", "rejected")


def validate_new_listing(draft: ListingDraft) -> dict[str, Any]:
    validated = validate_or_raise(ListingCreate, draft.model_dump())
    return validated.model_dump()


def validate_listing_changes(kind: str, changes: ListingChanges) -> dict[str, Any]:
    """
    Column values for a partial update, holding only what the client sent.
    Fields that do not apply to the listing kind are dropped, as on create.
    """
    supplied = changes.model_dump(exclude_unset=True)

    for key in ("title", "description"):
        if key in supplied and supplied[key] is None:
            raise ValidationError(f"{key} cannot be empty")

    if kind == "product":
        supplied.pop("event_date", None)
        supplied.pop("event_location", None)
        if "price" in supplied:
            if supplied["price"] is None:
                raise ValidationError("price is required for products")
            if supplied["price"] <= 0:
                raise ValidationError("price must be greater than zero")
    else:
        supplied.pop("price", None)
        if "event_date" in supplied and supplied["event_date"] is None:
            raise ValidationError("event date is required for events")
        if "event_location" in supplied and not supplied["event_location"]:
            raise ValidationError("event location is required for events")

    validated = validate_or_raise(ListingPatch, supplied)
    return {key: getattr(validated, key) for key in supplied}


class ListingLifecycleManager:
    """
    Create / update / moderate / delete for listings.

    Every path checks permission before looking at field values, so a caller
    without rights learns nothing about validation rules.
    """

    def __init__(self, listings: ListingRepository, config: ConfigurationStore, media: MediaLifecycleManager):
        self.listings = listings
        self.config = config
        self.media = media

    async def get(self, listing_id: str) -> Listing:
        listing = await self.listings.get(listing_id)
        if listing is None:
            raise NotFound("Listing not found")
        return listing

    async def search(self, query: ListingQuery) -> Page[Listing]:
        return await self.listings.query(
            page=query.page,
            limit=query.limit,
            search=query.search,
            order_by=query.orderBy,
            order_direction=query.orderDirection,
            kind=query.kind,
            status=query.status,
        )

    async def _authorize_publish(self, principal: Principal, kind: str) -> None:
        action = publish_action(kind)
        client_publishing = False
        if action is Action.PUBLISH_PRODUCT and principal.role is Role.RESIDENT:
            client_publishing = await self.config.is_enabled(Flag.ALLOW_CLIENT_PUBLISHING)
        require(principal.role, action, client_publishing_enabled=client_publishing)

    async def _initial_status(self, principal: Principal) -> str:
        if principal.is_municipal:
            return "approved"
        if await self.config.is_enabled(Flag.REQUIRE_MANUAL_REVIEW):
            return "pending"
        return "approved"

    async def create(self, principal: Principal, draft: ListingDraft, *, upload_url: str | None = None) -> Listing:
        """
        upload_url is the public URL of an image the intake boundary already
        stored. It is removed again if the listing is not created.
        """
        try:
            await self._authorize_publish(principal, draft.kind)
            fields = validate_new_listing(draft)
            status = await self._initial_status(principal)

            listing = Listing(
                **fields,
                owner_id=principal.user_id,
                status=status,
                media_url=upload_url,
                updated_by=principal.user_id,
            )
            await self.listings.add(listing)
            await self.listings.commit()
        except Exception:
            self.media.discard_upload(upload_url)
            raise

        log.info("listing %s created by %s (%s) with status %s", listing.id, principal.user_id, principal.role.value, status)
        return listing

    async def update(
        self,
        principal: Principal,
        listing_id: str,
        changes: ListingChanges,
        *,
        upload_url: str | None = None,
        remove_media: bool = False,
    ) -> Listing:
        queue = self.media.post_commit_queue()
        try:
            listing = await self.get(listing_id)
            require(principal.role, Action.EDIT_LISTING, actor_id=principal.user_id, owner_id=listing.owner_id)

            media_change = decide_media_change(upload_url=upload_url, remove_requested=remove_media)
            fields = validate_listing_changes(listing.kind, changes)
            fields.update(self.media.apply(media_change, listing.media_url, queue))

            if not fields:
                return listing

            updated = await self.listings.update_fields(listing_id, fields, updated_by=principal.user_id)
            if updated is None:
                # deleted between load and write
                raise NotFound("Listing not found")

            await queue.commit(self.listings)
        except Exception:
            self.media.discard_upload(upload_url)
            raise

        log.info("listing %s updated by %s: %s", listing_id, principal.user_id, sorted(fields))
        return updated

    async def moderate(self, principal: Principal, listing_id: str, status: str) -> Listing:
        require(principal.role, Action.MODERATE_LISTING_STATUS)
        if status not in MODERATION_TARGETS:
            raise ValidationError('Invalid status. Use "approved" or "rejected".')

        await self.get(listing_id)
        # re-moderating an already approved/rejected listing is allowed
        updated = await self.listings.update_fields(listing_id, {"status": status}, updated_by=principal.user_id)
        if updated is None:
            raise NotFound("Listing not found")
        await self.listings.commit()

        log.info("listing %s moderated to %s by %s", listing_id, status, principal.user_id)
        return updated

    async def delete(self, principal: Principal, listing_id: str) -> ListingOut:
        listing = await self.get(listing_id)
        require(principal.role, Action.DELETE_LISTING, actor_id=principal.user_id, owner_id=listing.owner_id)

        snapshot = ListingOut.model_validate(listing)
        queue = self.media.post_commit_queue()
        self.media.schedule_delete(queue, listing.media_url)

        if not await self.listings.delete(listing_id):
            raise NotFound("Listing not found")
        await queue.commit(self.listings)

        log.info("listing %s deleted by %s", listing_id, principal.user_id)
        return snapshot
