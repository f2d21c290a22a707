"""Add project participants

Creates:
- project_participants: contacts taking part in a project as BUILDER or OWNER

Revision ID: 20261020_participants
Revises: 20261019_initial
Create Date: 2026-10-20

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261020_participants'
down_revision: Union[str, Sequence[str], None] = '20261019_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name):
    """Check if a table exists in the database."""
    from sqlalchemy import inspect
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade() -> None:
    if not table_exists('project_participants'):
        op.create_table(
            'project_participants',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('project_id', sa.Uuid(), nullable=False),
            sa.Column('role', sa.String(50), nullable=False),
            sa.Column('contact_id', sa.Uuid(), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
            sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        )
        op.create_index('ix_project_participants_project_id', 'project_participants', ['project_id'])
        op.create_index('ix_project_participants_contact_id', 'project_participants', ['contact_id'])


def downgrade() -> None:
    if table_exists('project_participants'):
        op.drop_table('project_participants')
