"""unbounded_text_columns

Revision ID: 002_unbounded_text_columns
Revises: 001_initial_schema
Create Date: 2026-10-20 09:00:00.000000 UTC

Free-text columns filled from user input or model output become TEXT, so an
over-long value is stored instead of failing the INSERT:
  - users     email, name
  - profiles  file reference and every scalar organization field
  - resumes   file name/type and every scalar parsed field
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_unbounded_text_columns"
down_revision: Union[str, None] = "001_initial_schema"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# table -> (column, previous length, nullable)
_COLUMNS = {
    "users": [
        ("email", 320, False),
        ("name", 255, False),
    ],
    "profiles": [
        ("file_name", 255, True),
        ("storage_key", 1024, True),
        ("organization_name", 255, True),
        ("ein", 32, True),
        ("year_founded", 16, True),
        ("legal_designation", 128, True),
        ("geographical_focus", 32, True),
    ],
    "resumes": [
        ("file_name", 255, False),
        ("file_type", 16, False),
        ("full_name", 255, True),
        ("email", 320, True),
        ("phone", 64, True),
        ("last_job", 255, True),
        ("last_company", 255, True),
        ("years_experience", 32, True),
    ],
}


def upgrade() -> None:
    for table, columns in _COLUMNS.items():
        with op.batch_alter_table(table) as batch:
            for name, length, nullable in columns:
                batch.alter_column(
                    name,
                    existing_type=sa.String(length=length),
                    type_=sa.Text(),
                    existing_nullable=nullable,
                )


def downgrade() -> None:
    # Values longer than the old limits make this fail on PostgreSQL
    for table, columns in _COLUMNS.items():
        with op.batch_alter_table(table) as batch:
            for name, length, nullable in columns:
                batch.alter_column(
                    name,
                    existing_type=sa.Text(),
                    type_=sa.String(length=length),
                    existing_nullable=nullable,
                )
