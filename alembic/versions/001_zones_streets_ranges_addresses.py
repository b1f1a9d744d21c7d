"""Initial migration: areas, zones, streets, street segment ranges and addresses.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "areas",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(20), unique=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "zones",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("code", sa.String(20), unique=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("area_id", UUID(as_uuid=True), sa.ForeignKey("areas.id"), nullable=False),
        sa.Column("latitude", sa.Double, nullable=True),
        sa.Column("longitude", sa.Double, nullable=True),
        sa.Column("radius_meters", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "(latitude IS NULL AND longitude IS NULL) OR (latitude IS NOT NULL AND longitude IS NOT NULL)",
            name="ck_zone_centroid_pair",
        ),
        sa.CheckConstraint("radius_meters IS NULL OR radius_meters > 0", name="ck_zone_radius_positive"),
    )
    op.create_index("ix_zones_area_id", "zones", ["area_id"])
    op.create_index("ix_zones_centroid", "zones", ["latitude", "longitude"])

    op.create_table(
        "streets",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("neighborhood", sa.String(150), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_streets_name", "streets", ["name"])

    op.create_table(
        "street_segment_ranges",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("street_id", UUID(as_uuid=True), sa.ForeignKey("streets.id"), nullable=False),
        sa.Column("zone_id", UUID(as_uuid=True), sa.ForeignKey("zones.id"), nullable=False),
        sa.Column("range_start", sa.Integer, nullable=True),
        sa.Column("range_end", sa.Integer, nullable=True),
        sa.Column("side", sa.String(10), nullable=False, server_default="BOTH"),
        sa.Column("block_label", sa.String(10), nullable=True),
        sa.Column("priority", sa.Integer, nullable=False, server_default="1"),
        sa.Column("from_intersection", sa.String(200), nullable=True),
        sa.Column("to_intersection", sa.String(200), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_by", UUID(as_uuid=True), nullable=True),
        sa.Column("updated_by", UUID(as_uuid=True), nullable=True),
        sa.Column("deleted_by", UUID(as_uuid=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "(range_start IS NULL AND range_end IS NULL) OR (range_start IS NOT NULL AND range_end IS NOT NULL)",
            name="ck_range_bounds_paired",
        ),
        sa.CheckConstraint(
            "range_start IS NULL OR (range_start >= 0 AND range_end >= range_start)",
            name="ck_range_bounds_ordered",
        ),
        sa.CheckConstraint("side IN ('BOTH', 'EVEN', 'ODD', 'ALL')", name="ck_range_side"),
        sa.CheckConstraint("priority BETWEEN 1 AND 10", name="ck_range_priority"),
    )
    op.create_index(
        "uq_range_street_zone_start_side",
        "street_segment_ranges",
        ["street_id", "zone_id", "range_start", "side"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )
    op.create_index(
        "uq_range_street_block",
        "street_segment_ranges",
        ["street_id", "block_label"],
        unique=True,
        postgresql_where=sa.text("is_active AND block_label IS NOT NULL"),
    )
    op.create_index("ix_ranges_street_side_start", "street_segment_ranges", ["street_id", "side", "range_start"])
    op.create_index("ix_ranges_zone_id", "street_segment_ranges", ["zone_id"])

    op.create_table(
        "addresses",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("street_id", UUID(as_uuid=True), sa.ForeignKey("streets.id"), nullable=False),
        sa.Column("house_number", sa.String(20), nullable=True),
        sa.Column("block_label", sa.String(10), nullable=True),
        sa.Column("lot_label", sa.String(10), nullable=True),
        sa.Column("full_address", sa.String(300), nullable=True),
        sa.Column("zone_id", UUID(as_uuid=True), sa.ForeignKey("zones.id"), nullable=True),
        sa.Column("area_id", UUID(as_uuid=True), sa.ForeignKey("areas.id"), nullable=True),
        sa.Column("latitude", sa.Double, nullable=True),
        sa.Column("longitude", sa.Double, nullable=True),
        sa.Column("resolution_source", sa.String(20), nullable=True),
        sa.Column("resolution_method", sa.String(30), nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "resolution_source IS NULL OR resolution_source IN ('database', 'external-geocoder', 'manual')",
            name="ck_address_resolution_source",
        ),
    )
    op.create_index("ix_addresses_street_number", "addresses", ["street_id", "house_number"])
    op.create_index("ix_addresses_street_block_lot", "addresses", ["street_id", "block_label", "lot_label"])
    op.create_index("ix_addresses_zone_id", "addresses", ["zone_id"])


def downgrade() -> None:
    op.drop_table("addresses")
    op.drop_table("street_segment_ranges")
    op.drop_table("streets")
    op.drop_table("zones")
    op.drop_table("areas")
