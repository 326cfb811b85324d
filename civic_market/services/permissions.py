"""
Who may do what. Pure functions: callers load whatever the rule needs
(owner, author, flag values) and pass it in.
"""
from __future__ import annotations

import enum

from civic_market.core.errors import PermissionDenied


class Role(str, enum.Enum):
    MUNICIPAL = "municipal"
    PRODUCER = "producer"
    RESIDENT = "resident"


class Action(str, enum.Enum):
    PUBLISH_EVENT = "publish_event"
    PUBLISH_PRODUCT = "publish_product"
    EDIT_LISTING = "edit_listing"
    DELETE_LISTING = "delete_listing"
    MODERATE_LISTING_STATUS = "moderate_listing_status"
    EDIT_COMMENT = "edit_comment"
    DELETE_COMMENT = "delete_comment"


DENIED_MESSAGES = {
    Action.PUBLISH_EVENT: "Only the municipality can publish events",
    Action.PUBLISH_PRODUCT: "You are not allowed to publish products",
    Action.EDIT_LISTING: "You are not allowed to edit this listing",
    Action.DELETE_LISTING: "You are not allowed to delete this listing",
    Action.MODERATE_LISTING_STATUS: "Only the municipality can moderate listings",
    Action.EDIT_COMMENT: "You are not allowed to edit this comment",
    Action.DELETE_COMMENT: "You are not allowed to delete this comment",
}


def publish_action(kind: str) -> Action:
    return Action.PUBLISH_EVENT if kind == "event" else Action.PUBLISH_PRODUCT


def can_perform(
    role: Role | str,
    action: Action,
    *,
    actor_id: str | None = None,
    owner_id: str | None = None,
    author_id: str | None = None,
    client_publishing_enabled: bool = False,
) -> bool:
    role = Role(role)
    is_municipal = role is Role.MUNICIPAL

    if action is Action.PUBLISH_EVENT:
        return is_municipal

    if action is Action.PUBLISH_PRODUCT:
        if role is Role.PRODUCER:
            return True
        return role is Role.RESIDENT and client_publishing_enabled

    if action in (Action.EDIT_LISTING, Action.DELETE_LISTING):
        return is_municipal or _same(actor_id, owner_id)

    if action is Action.MODERATE_LISTING_STATUS:
        return is_municipal

    if action is Action.EDIT_COMMENT:
        return is_municipal or _same(actor_id, author_id)

    if action is Action.DELETE_COMMENT:
        return is_municipal or _same(actor_id, author_id) or _same(actor_id, owner_id)

    return False


def require(role: Role | str, action: Action, **context) -> None:
    if not can_perform(role, action, **context):
        raise PermissionDenied(DENIED_MESSAGES[action])


def _same(actor_id: str | None, other_id: str | None) -> bool:
    return actor_id is not None and other_id is not None and str(actor_id) == str(other_id)
