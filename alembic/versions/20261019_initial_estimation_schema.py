"""Initial estimation schema

Creates:
- contacts, contact_labels: contacts with embedded address and label rows
- users: accounts (unique username, email and contact)
- work_items: priced units of work owned by a user
- projects: builder/owner pair with embedded location
- estimates, estimate_groups, estimate_lines: the estimate aggregate
- quotes: supplier unit prices for work items

Enum columns are plain strings holding member names.

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261019_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def table_exists(table_name):
    """Check if a table exists in the database."""
    from sqlalchemy import inspect
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def address_columns():
    """Columns of an embedded address."""
    return [
        sa.Column('unit_number', sa.String(20), nullable=True),
        sa.Column('street_number', sa.String(20), nullable=True),
        sa.Column('street_name', sa.String(200), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('state_or_province', sa.String(100), nullable=True),
        sa.Column('postal_or_zip_code', sa.String(20), nullable=True),
        sa.Column('country', sa.String(100), nullable=True),
    ]


def timestamp_columns():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    """Create the estimation schema."""

    # =========================================================================
    # 1. CONTACTS & USERS
    # =========================================================================
    if not table_exists('contacts'):
        op.create_table(
            'contacts',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('first_name', sa.String(100), nullable=False),
            sa.Column('last_name', sa.String(100), nullable=False),
            sa.Column('email', sa.String(100), nullable=False),
            sa.Column('phone', sa.String(30), nullable=True),
            *address_columns(),
            *timestamp_columns(),
            sa.PrimaryKeyConstraint('id'),
            sa.UniqueConstraint('email', name='uq_contacts_email'),
        )
        op.create_index('ix_contacts_email', 'contacts', ['email'])
        op.create_index('ix_contacts_last_updated_at', 'contacts', ['last_updated_at'])

    if not table_exists('contact_labels'):
        op.create_table(
            'contact_labels',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('contact_id', sa.Uuid(), nullable=False),
            sa.Column('label', sa.String(50), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['contact_id'], ['contacts.id'], ondelete='CASCADE'),
        )
        op.create_index('ix_contact_labels_contact_id', 'contact_labels', ['contact_id'])

    if not table_exists('users'):
        op.create_table(
            'users',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('username', sa.String(100), nullable=False),
            sa.Column('email', sa.String(100), nullable=False),
            sa.Column('registered', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('contact_id', sa.Uuid(), nullable=False),
            *timestamp_columns(),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
            sa.UniqueConstraint('username', name='uq_users_username'),
            sa.UniqueConstraint('email', name='uq_users_email'),
            sa.UniqueConstraint('contact_id', name='uq_users_contact_id'),
        )
        op.create_index('ix_users_username', 'users', ['username'])
        op.create_index('ix_users_email', 'users', ['email'])
        op.create_index('ix_users_last_updated_at', 'users', ['last_updated_at'])

    # =========================================================================
    # 2. WORK ITEMS & PROJECTS
    # =========================================================================
    if not table_exists('work_items'):
        op.create_table(
            'work_items',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('code', sa.String(50), nullable=False),
            sa.Column('name', sa.String(250), nullable=False),
            sa.Column('description', sa.String(1000), nullable=True),
            sa.Column('optional', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('user_id', sa.Uuid(), nullable=False),
            sa.Column('default_group_name', sa.String(100), nullable=False, server_default='Unassigned'),
            sa.Column('domain', sa.String(30), nullable=False, server_default='PUBLIC'),
            *timestamp_columns(),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        )
        op.create_index('ix_work_items_code', 'work_items', ['code'])
        op.create_index('ix_work_items_user_id', 'work_items', ['user_id'])
        op.create_index('ix_work_items_last_updated_at', 'work_items', ['last_updated_at'])

    if not table_exists('projects'):
        op.create_table(
            'projects',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('builder_id', sa.Uuid(), nullable=False),
            sa.Column('owner_id', sa.Uuid(), nullable=False),
            *address_columns(),
            *timestamp_columns(),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['builder_id'], ['users.id']),
            sa.ForeignKeyConstraint(['owner_id'], ['users.id']),
        )
        op.create_index('ix_projects_builder_id', 'projects', ['builder_id'])
        op.create_index('ix_projects_owner_id', 'projects', ['owner_id'])
        op.create_index('ix_projects_last_updated_at', 'projects', ['last_updated_at'])

    # =========================================================================
    # 3. ESTIMATE AGGREGATE
    # =========================================================================
    if not table_exists('estimates'):
        op.create_table(
            'estimates',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('project_id', sa.Uuid(), nullable=False),
            sa.Column('overall_multiplier', sa.Float(), nullable=False, server_default='1.0'),
            *timestamp_columns(),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['project_id'], ['projects.id']),
        )
        op.create_index('ix_estimates_project_id', 'estimates', ['project_id'])
        op.create_index('ix_estimates_last_updated_at', 'estimates', ['last_updated_at'])

    if not table_exists('estimate_groups'):
        op.create_table(
            'estimate_groups',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('estimate_id', sa.Uuid(), nullable=False),
            sa.Column('name', sa.String(100), nullable=False),
            sa.Column('description', sa.String(500), nullable=True),
            *timestamp_columns(),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['estimate_id'], ['estimates.id']),
        )
        op.create_index('ix_estimate_groups_estimate_id', 'estimate_groups', ['estimate_id'])
        op.create_index('ix_estimate_groups_last_updated_at', 'estimate_groups', ['last_updated_at'])

    if not table_exists('estimate_lines'):
        op.create_table(
            'estimate_lines',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('estimate_id', sa.Uuid(), nullable=False),
            sa.Column('group_id', sa.Uuid(), nullable=False),
            sa.Column('work_item_id', sa.Uuid(), nullable=False),
            sa.Column('quantity', sa.Float(), nullable=False, server_default='0'),
            sa.Column('strategy', sa.String(30), nullable=False, server_default='AVERAGE'),
            sa.Column('multiplier', sa.Float(), nullable=False, server_default='1.0'),
            sa.Column('computed_cost', sa.Numeric(17, 2), nullable=False, server_default='0.00'),
            *timestamp_columns(),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['estimate_id'], ['estimates.id']),
            sa.ForeignKeyConstraint(['group_id'], ['estimate_groups.id']),
            sa.ForeignKeyConstraint(['work_item_id'], ['work_items.id']),
        )
        op.create_index('ix_estimate_lines_estimate_id', 'estimate_lines', ['estimate_id'])
        op.create_index('ix_estimate_lines_group_id', 'estimate_lines', ['group_id'])
        op.create_index('ix_estimate_lines_work_item_id', 'estimate_lines', ['work_item_id'])
        op.create_index('ix_estimate_lines_last_updated_at', 'estimate_lines', ['last_updated_at'])

    # =========================================================================
    # 4. QUOTES
    # =========================================================================
    if not table_exists('quotes'):
        op.create_table(
            'quotes',
            sa.Column('id', sa.Uuid(), nullable=False),
            sa.Column('work_item_id', sa.Uuid(), nullable=False),
            sa.Column('created_by_id', sa.Uuid(), nullable=False),
            sa.Column('supplier_id', sa.Uuid(), nullable=False),
            sa.Column('unit', sa.String(30), nullable=False),
            sa.Column('unit_price', sa.Numeric(17, 2), nullable=False),
            sa.Column('currency', sa.String(3), nullable=False),
            sa.Column('domain', sa.String(30), nullable=False, server_default='PUBLIC'),
            sa.Column('valid', sa.Boolean(), nullable=False, server_default=sa.true()),
            *address_columns(),
            *timestamp_columns(),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(['work_item_id'], ['work_items.id']),
            sa.ForeignKeyConstraint(['created_by_id'], ['users.id']),
            sa.ForeignKeyConstraint(['supplier_id'], ['users.id']),
        )
        op.create_index('ix_quotes_work_item_id', 'quotes', ['work_item_id'])
        op.create_index('ix_quotes_created_by_id', 'quotes', ['created_by_id'])
        op.create_index('ix_quotes_supplier_id', 'quotes', ['supplier_id'])
        op.create_index('ix_quotes_last_updated_at', 'quotes', ['last_updated_at'])


def downgrade() -> None:
    """Drop the estimation schema."""
    for table in (
        'quotes',
        'estimate_lines',
        'estimate_groups',
        'estimates',
        'projects',
        'work_items',
        'users',
        'contact_labels',
        'contacts',
    ):
        if table_exists(table):
            op.drop_table(table)
