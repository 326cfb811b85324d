from alembic import op
import sqlalchemy as sa

revision = "0001_listings_comments_config"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "listings",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("owner_id", sa.String(length=64), nullable=False),

        sa.Column("title", sa.String(length=150), nullable=False),
        sa.Column("description", sa.String(length=2000), nullable=False),
        sa.Column("kind", sa.String(length=20), nullable=False),

        sa.Column("price", sa.Numeric(12, 2), nullable=True),
        sa.Column("event_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("event_location", sa.String(length=255), nullable=True),

        sa.Column("media_url", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_by", sa.String(length=64), nullable=True),

        sa.CheckConstraint("kind IN ('product', 'event')", name="ck_listing_kind"),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_listing_status"),
        sa.CheckConstraint(
            "(kind = 'product' AND price > 0) OR (kind = 'event' AND price IS NULL)",
            name="ck_listing_price_by_kind",
        ),
    )
    op.create_index("ix_listings_owner_id", "listings", ["owner_id"])
    op.create_index("ix_listings_status_created_at", "listings", ["status", "created_at"])

    op.create_table(
        "comments",
        sa.Column("id", sa.String(), primary_key=True),
        sa.Column("listing_id", sa.String(), sa.ForeignKey("listings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author_id", sa.String(length=64), nullable=False),
        sa.Column("text", sa.String(length=1000), nullable=False),
        sa.Column("parent_id", sa.String(), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True),

        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_by", sa.String(length=64), nullable=True),
    )
    op.create_index("ix_comments_listing_id", "comments", ["listing_id"])
    op.create_index("ix_comments_parent_id", "comments", ["parent_id"])

    flags = op.create_table(
        "configuration_flags",
        sa.Column("key", sa.String(length=100), primary_key=True),
        sa.Column("value", sa.String(length=500), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_by", sa.String(length=64), nullable=True),
    )

    op.bulk_insert(flags, [
        {"key": "allow-client-publishing", "value": "false", "description": "Residents may publish products", "updated_by": "migration"},
        {"key": "require-manual-review", "value": "true", "description": "Listings by non-municipal users start as pending", "updated_by": "migration"},
        {"key": "comments-enabled", "value": "true", "description": "Comments are open on listings", "updated_by": "migration"},
    ])


def downgrade():
    op.drop_table("configuration_flags")
    op.drop_index("ix_comments_parent_id", table_name="comments")
    op.drop_index("ix_comments_listing_id", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_listings_status_created_at", table_name="listings")
    op.drop_index("ix_listings_owner_id", table_name="listings")
    op.drop_table("listings")
