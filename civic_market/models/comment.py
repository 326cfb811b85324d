from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from civic_market.core.ids import gen_id
from civic_market.models.base import Base, AuditMixin


class Comment(AuditMixin, Base):
    """
    A message on a listing. Replies point at a parent on the same listing;
    the thread is stored flat and assembled by clients.
    """
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: gen_id("cmt"))

    listing_id: Mapped[str] = mapped_column(
        String, ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[str] = mapped_column(String(64), nullable=False)
    text: Mapped[str] = mapped_column(String(1000), nullable=False)

    parent_id: Mapped[str | None] = mapped_column(
        String, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True
    )
