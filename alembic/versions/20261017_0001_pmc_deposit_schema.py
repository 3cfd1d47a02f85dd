"""PMC deposit schema - works, submissions, activities, messages

Revision ID: 0001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Works table
    op.create_table(
        'works',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_by_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # Work versions; occ is the optimistic-concurrency counter
    op.create_table(
        'work_versions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('work_id', sa.Uuid(), sa.ForeignKey('works.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('title', sa.String(1000), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('authors', sa.JSON(), nullable=False),
        sa.Column('author_details', sa.JSON(), nullable=False),
        sa.Column('date', sa.String(32), nullable=True),
        sa.Column('doi', sa.String(500), nullable=True),
        sa.Column('canonical', sa.Boolean(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('cdn', sa.String(500), nullable=True),
        sa.Column('cdn_key', sa.String(64), nullable=False),
        sa.Column('draft', sa.Boolean(), nullable=False, default=True),
        sa.Column('occ', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_work_versions_work_draft', 'work_versions', ['work_id', 'draft'])

    # Submissions table
    op.create_table(
        'submissions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('work_id', sa.Uuid(), sa.ForeignKey('works.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('site_name', sa.String(100), nullable=False),
        sa.Column('date_published', sa.String(10), nullable=True),
        sa.Column('submitted_by_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_submissions_work_site', 'submissions', ['work_id', 'site_name'])

    # Submission versions
    op.create_table(
        'submission_versions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('submission_id', sa.Uuid(), sa.ForeignKey('submissions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('work_version_id', sa.Uuid(), sa.ForeignKey('work_versions.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('status', sa.String(64), nullable=False, default='DRAFT'),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.Column('submitted_by_id', sa.Uuid(), nullable=True),
        sa.Column('date_published', sa.String(10), nullable=True),
        sa.Column('occ', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        'ix_submission_versions_submission_status',
        'submission_versions',
        ['submission_id', 'status'],
    )

    # Activities (append-only audit trail)
    op.create_table(
        'activities',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('activity_type', sa.String(64), nullable=False, index=True),
        sa.Column('status', sa.String(255), nullable=True),
        sa.Column('activity_by_id', sa.Uuid(), nullable=True),
        sa.Column('work_id', sa.Uuid(), nullable=True),
        sa.Column('work_version_id', sa.Uuid(), nullable=True),
        sa.Column('submission_id', sa.Uuid(), nullable=True),
        sa.Column('submission_version_id', sa.Uuid(), nullable=True, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, index=True),
    )
    op.create_index('ix_activities_sv_time', 'activities', ['submission_version_id', 'created_at'])

    # Inbound messages
    op.create_table(
        'messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('module', sa.String(50), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, index=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('results', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('messages')
    op.drop_index('ix_activities_sv_time', table_name='activities')
    op.drop_table('activities')
    op.drop_index('ix_submission_versions_submission_status', table_name='submission_versions')
    op.drop_table('submission_versions')
    op.drop_index('ix_submissions_work_site', table_name='submissions')
    op.drop_table('submissions')
    op.drop_index('ix_work_versions_work_draft', table_name='work_versions')
    op.drop_table('work_versions')
    op.drop_table('works')
