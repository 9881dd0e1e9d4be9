"""initial_schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 12:00:00.000000 UTC

Creates the four tables:
  - users     (accounts; username and email unique, stored lower-cased)
  - profiles  (one organization profile per user, upserted on owner_id)
  - likes     (swipe decisions, unique on (user_id, profile_id))
  - resumes   (parsed resumes, many per user)
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- users table ---
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("username", sa.String(length=20), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False, comment="pbkdf2_sha256$iterations$salt$digest"),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    # --- profiles table ---
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False, comment="Owning user; one profile per user"),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("storage_key", sa.String(length=1024), nullable=True),
        sa.Column("storage_url", sa.Text(), nullable=True),
        sa.Column("organization_name", sa.String(length=255), nullable=True),
        sa.Column("ein", sa.String(length=32), nullable=True),
        sa.Column("mission_statement", sa.Text(), nullable=True),
        sa.Column("year_founded", sa.String(length=16), nullable=True),
        sa.Column("location_served", sa.Text(), nullable=True),
        sa.Column("biggest_accomplishment", sa.Text(), nullable=True),
        sa.Column("one_sentence_summary", sa.Text(), nullable=True),
        sa.Column("legal_designation", sa.String(length=128), nullable=True),
        sa.Column("primary_cause_areas", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("populations", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("geographical_focus", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("owner_id"),
    )

    # --- likes table ---
    op.create_table(
        "likes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("profile_id", sa.String(length=36), nullable=False),
        sa.Column("action", sa.String(length=8), nullable=False, comment="'like' or 'pass'"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["profile_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "profile_id", name="uq_likes_user_profile"),
    )
    op.create_index(op.f("ix_likes_user_id"), "likes", ["user_id"], unique=False)
    op.create_index(op.f("ix_likes_profile_id"), "likes", ["profile_id"], unique=False)

    # --- resumes table ---
    op.create_table(
        "resumes",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("owner_id", sa.String(length=36), nullable=False),
        sa.Column("file_name", sa.String(length=255), nullable=False),
        sa.Column("file_type", sa.String(length=16), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=64), nullable=True),
        sa.Column("last_job", sa.String(length=255), nullable=True),
        sa.Column("last_company", sa.String(length=255), nullable=True),
        sa.Column("years_experience", sa.String(length=32), nullable=True),
        sa.Column("technical_skills", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("education", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_resumes_owner_id"), "resumes", ["owner_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_resumes_owner_id"), table_name="resumes")
    op.drop_table("resumes")
    op.drop_index(op.f("ix_likes_profile_id"), table_name="likes")
    op.drop_index(op.f("ix_likes_user_id"), table_name="likes")
    op.drop_table("likes")
    op.drop_table("profiles")
    op.drop_table("users")
