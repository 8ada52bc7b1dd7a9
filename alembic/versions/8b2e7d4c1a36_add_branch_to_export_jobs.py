"""add branch to export jobs

Revision ID: 8b2e7d4c1a36
Revises: 3f8a1c2d9e04
Create Date: 2026-01-05 07:16:23.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '8b2e7d4c1a36'
down_revision: Union[str, Sequence[str], None] = '3f8a1c2d9e04'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
	"""Upgrade schema."""
	op.add_column('export_jobs', sa.Column('branch_id', sa.String(length=36), nullable=True))
	op.create_index('ix_export_jobs_branch_id', 'export_jobs', ['branch_id'], unique=False)
	op.create_index('ix_export_jobs_business_id_branch_id', 'export_jobs', ['business_id', 'branch_id'], unique=False)


def downgrade() -> None:
	"""Downgrade schema."""
	op.drop_index('ix_export_jobs_business_id_branch_id', table_name='export_jobs')
	op.drop_index('ix_export_jobs_branch_id', table_name='export_jobs')
	op.drop_column('export_jobs', 'branch_id')
