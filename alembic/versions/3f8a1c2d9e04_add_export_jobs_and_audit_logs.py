"""add export jobs and audit logs

Revision ID: 3f8a1c2d9e04
Revises: 
Create Date: 2025-12-30 03:28:13.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f8a1c2d9e04'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
	"""Upgrade schema."""
	op.create_table(
		'export_jobs',
		sa.Column('id', sa.String(length=36), nullable=False),
		sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
		sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
		sa.Column('business_id', sa.String(length=36), nullable=False),
		sa.Column('type', sa.String(length=32), nullable=False),
		sa.Column('status', sa.String(length=16), nullable=False),
		sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
		sa.Column('requested_by_user_id', sa.String(length=36), nullable=True),
		sa.Column('started_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('last_error', sa.Text(), nullable=True),
		sa.Column('metadata', sa.JSON(), nullable=False),
		sa.ForeignKeyConstraint(['business_id'], ['businesses.id']),
		sa.PrimaryKeyConstraint('id')
	)
	op.create_index('ix_export_jobs_created_at', 'export_jobs', ['created_at'], unique=False)
	op.create_index('ix_export_jobs_business_id', 'export_jobs', ['business_id'], unique=False)
	op.create_index('ix_export_jobs_type', 'export_jobs', ['type'], unique=False)
	op.create_index('ix_export_jobs_status', 'export_jobs', ['status'], unique=False)

	op.create_table(
		'audit_logs',
		sa.Column('id', sa.String(length=36), nullable=False),
		sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
		sa.Column('business_id', sa.String(length=36), nullable=False),
		sa.Column('user_id', sa.String(length=36), nullable=True),
		sa.Column('role_id', sa.String(length=36), nullable=True),
		sa.Column('branch_id', sa.String(length=36), nullable=True),
		sa.Column('request_id', sa.String(length=64), nullable=True),
		sa.Column('session_id', sa.String(length=64), nullable=True),
		sa.Column('correlation_id', sa.String(length=64), nullable=True),
		sa.Column('action', sa.String(length=64), nullable=False),
		sa.Column('resource_type', sa.String(length=64), nullable=False),
		sa.Column('resource_id', sa.String(length=64), nullable=True),
		sa.Column('outcome', sa.String(length=16), nullable=False),
		sa.Column('reason', sa.Text(), nullable=True),
		sa.Column('metadata', sa.JSON(), nullable=True),
		sa.Column('before', sa.JSON(), nullable=True),
		sa.Column('after', sa.JSON(), nullable=True),
		sa.Column('diff', sa.JSON(), nullable=True),
		sa.Column('device_id', sa.String(length=36), nullable=True),
		sa.Column('offline_at', sa.DateTime(timezone=True), nullable=True),
		sa.Column('previous_hash', sa.String(length=64), nullable=True),
		sa.Column('hash', sa.String(length=64), nullable=False),
		sa.PrimaryKeyConstraint('id')
	)
	op.create_index('ix_audit_logs_created_at', 'audit_logs', ['created_at'], unique=False)
	op.create_index('ix_audit_logs_business_id', 'audit_logs', ['business_id'], unique=False)
	op.create_index('ix_audit_logs_user_id', 'audit_logs', ['user_id'], unique=False)
	op.create_index('ix_audit_logs_branch_id', 'audit_logs', ['branch_id'], unique=False)
	op.create_index('ix_audit_logs_action', 'audit_logs', ['action'], unique=False)


def downgrade() -> None:
	"""Downgrade schema."""
	op.drop_index('ix_audit_logs_action', table_name='audit_logs')
	op.drop_index('ix_audit_logs_branch_id', table_name='audit_logs')
	op.drop_index('ix_audit_logs_user_id', table_name='audit_logs')
	op.drop_index('ix_audit_logs_business_id', table_name='audit_logs')
	op.drop_index('ix_audit_logs_created_at', table_name='audit_logs')
	op.drop_table('audit_logs')
	op.drop_index('ix_export_jobs_status', table_name='export_jobs')
	op.drop_index('ix_export_jobs_type', table_name='export_jobs')
	op.drop_index('ix_export_jobs_business_id', table_name='export_jobs')
	op.drop_index('ix_export_jobs_created_at', table_name='export_jobs')
	op.drop_table('export_jobs')
