from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from sqlalchemy.types import DateTime

from civic_market.models.base import Base


class ConfigurationFlag(Base):
    """
    Named runtime switch. Values are stored raw; services/configuration.py
    owns their interpretation.
    """
    __tablename__ = "configuration_flags"
    __mapper_args__ = {"eager_defaults": True}

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    updated_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
