from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ListingKind = Literal["product", "event"]
ListingStatus = Literal["pending", "approved", "rejected"]
ListingOrderBy = Literal["id", "title", "kind", "status", "created_at"]
OrderDirection = Literal["ASC", "DESC"]

# same precision as the listings.price column, Numeric(12, 2)
Price = Annotated[Decimal, Field(max_digits=12, decimal_places=2)]


def _blank_to_none(v: Any) -> Any:
    # multipart forms send "" for fields the user left empty
    if isinstance(v, str) and not v.strip():
        return None
    return v


def _as_utc(v: datetime | None) -> datetime | None:
    # naive timestamps from forms are taken as UTC
    if v is not None and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


class ListingDraft(BaseModel):
    """
    Shape of a create request once the form is parsed.
    Only types are checked here; length and kind rules run inside the
    engine, after the permission gate.
    """
    title: str = ""
    description: str = ""
    kind: ListingKind
    price: Decimal | None = None
    event_date: datetime | None = None
    event_location: str | None = None

    @field_validator("price", "event_date", "event_location", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        return _blank_to_none(v)


class ListingChanges(BaseModel):
    """
    Partial update DTO. Only these fields can be changed through the
    general update path; status, owner and creation time have no slot here.
    Unset fields are told apart from explicit values via exclude_unset.
    """
    model_config = ConfigDict(extra="forbid")

    title: str | None = None
    description: str | None = None
    price: Decimal | None = None
    event_date: datetime | None = None
    event_location: str | None = None

    @field_validator("price", "event_date", "event_location", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        return _blank_to_none(v)


# --- Field rules, applied by the engine ---

class ListingCreate(BaseModel):
    title: str = Field(min_length=5, max_length=150)
    description: str = Field(min_length=10, max_length=2000)
    kind: ListingKind
    price: Price | None = None
    event_date: datetime | None = None
    event_location: str | None = Field(default=None, max_length=255)

    @field_validator("title", "description", "event_location", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("event_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)

    @model_validator(mode="after")
    def validate_kind_fields(self) -> "ListingCreate":
        if self.kind == "product":
            if self.price is None:
                raise ValueError("price is required for products")
            if self.price <= 0:
                raise ValueError("price must be greater than zero")
            # event fields are meaningless for products
            self.event_date = None
            self.event_location = None
        else:
            if self.event_date is None:
                raise ValueError("event date is required for events")
            if not self.event_location:
                raise ValueError("event location is required for events")
            self.price = None
        return self


class ListingPatch(BaseModel):
    """Field rules for a partial update; the listing kind is passed in as context."""
    title: str | None = Field(default=None, min_length=5, max_length=150)
    description: str | None = Field(default=None, min_length=10, max_length=2000)
    price: Price | None = None
    event_date: datetime | None = None
    event_location: str | None = Field(default=None, max_length=255)

    @field_validator("title", "description", "event_location", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("event_date")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return _as_utc(v)


class ListingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    title: str
    description: str
    kind: ListingKind
    price: Decimal | None
    event_date: datetime | None
    event_location: str | None
    media_url: str | None
    status: ListingStatus
    created_at: datetime
    updated_at: datetime


class ListingStatusUpdate(BaseModel):
    # kept loose so an unknown status reaches the engine and yields a 400 there
    status: str


class ListingQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    search: str | None = Field(default=None, max_length=100)
    orderBy: ListingOrderBy = "created_at"
    orderDirection: OrderDirection = "DESC"
    kind: ListingKind | None = None
    status: ListingStatus | None = "approved"
