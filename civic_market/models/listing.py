from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import DateTime

from civic_market.core.ids import gen_id
from civic_market.models.base import Base, AuditMixin


LISTING_KINDS = ("product", "event")
LISTING_STATUSES = ("pending", "approved", "rejected")


class Listing(AuditMixin, Base):
    __tablename__ = "listings"
    __table_args__ = (
        CheckConstraint("kind IN ('product', 'event')", name="ck_listing_kind"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_listing_status"),
        # price belongs to products only
        CheckConstraint(
            "(kind = 'product' AND price > 0) OR (kind = 'event' AND price IS NULL)",
            name="ck_listing_price_by_kind",
        ),
        Index("ix_listings_status_created_at", "status", "created_at"),
    )

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("lst"))

    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[str] = mapped_column(String(2000), nullable=False)

    # "product" | "event"
    kind: Mapped[str] = mapped_column(String(20), nullable=False)

    price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    event_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    event_location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # public URL of the single stored image, if any
    media_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # "pending" | "approved" | "rejected"
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
