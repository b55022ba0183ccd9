"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-12

Tables as defined in garden_catalog/models/database_models.py:
users, garden_beds, plants, conversations.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("location", sa.Text, nullable=True),
        sa.Column("yard_size", sa.Text, nullable=True),
        sa.Column("experience_level", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_active", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── garden_beds ───────────────────────────────────────────────────────
    op.create_table(
        "garden_beds",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("bed_name", sa.Text, nullable=False),
        sa.Column("bed_size_sqft", sa.Float, nullable=True),
        sa.Column("sun_exposure", sa.Text, nullable=True),
        sa.Column("soil_type", sa.Text, nullable=True),
        sa.Column("soil_moisture", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── plants ────────────────────────────────────────────────────────────
    op.create_table(
        "plants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("bed_id", sa.String(36), sa.ForeignKey("garden_beds.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("common_name", sa.Text, nullable=False),
        sa.Column("scientific_name", sa.Text, nullable=True),
        sa.Column("plant_type", sa.Text, nullable=True),
        sa.Column("date_planted", sa.Text, nullable=True),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("quantity", sa.Integer, server_default="1"),
        sa.Column("spacing_inches", sa.Float, nullable=True),
        sa.Column("current_height", sa.Text, nullable=True),
        sa.Column("health_status", sa.Text, nullable=True),
        sa.Column("identification_confidence", sa.Integer, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── conversations ─────────────────────────────────────────────────────
    op.create_table(
        "conversations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("messages", sa.Text, nullable=False),
        sa.Column("context", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("conversations")
    op.drop_table("plants")
    op.drop_table("garden_beds")
    op.drop_table("users")
