"""Create the package catalog

Revision ID: 0001
Revises:
Create Date: 2025-06-23

Tables added:
- packages: One row per cataloged (name, version, architecture)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the packages table and its indexes."""
    op.create_table(
        "packages",
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("version", sa.Text(), nullable=False),
        sa.Column("architecture", sa.Text(), nullable=False),
        sa.Column("control", sa.Text(), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("filepath", sa.Text(), nullable=False),
        sa.Column("md5", sa.LargeBinary(), nullable=False),
        sa.Column("description_md5", sa.LargeBinary(), nullable=False),
        sa.Column("sha1", sa.LargeBinary(), nullable=False),
        sa.Column("sha256", sa.LargeBinary(), nullable=False),
    )
    op.create_index("avoid_dupes", "packages", ["version", "name", "architecture"], unique=True)
    op.create_index("by_arch", "packages", ["architecture"])


def downgrade() -> None:
    """Drop the packages table."""
    op.drop_index("by_arch", table_name="packages")
    op.drop_index("avoid_dupes", table_name="packages")
    op.drop_table("packages")
