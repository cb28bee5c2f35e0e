"""Create users, status and plot tables

Sales and development statuses are soft-deleted configuration rows.
Uniqueness of code, name and the default flag only applies to rows that
are not deleted, so it is enforced with partial unique indexes.

Revision ID: 001_status_tables
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_status_tables'
down_revision = None
branch_labels = None
depends_on = None


def _status_columns():
    """Columns shared by every status definition table."""
    return [
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('color_code', sa.String(7), nullable=False, server_default='#808080'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sequence', sa.Integer(), nullable=False, server_default='1'),

        # Audit
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),

        # Soft delete
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    ]


def _status_indexes(table: str) -> None:
    for column in ('is_active', 'is_default', 'sequence', 'is_deleted'):
        op.create_index(f'ix_{table}_{column}', table, [column])

    live = sa.text('is_deleted = false')
    op.create_index(
        f'uq_{table}_code_live', table, ['status_code'],
        unique=True, postgresql_where=live,
    )
    op.create_index(
        f'uq_{table}_name_live', table, [sa.text('lower(status_name)')],
        unique=True, postgresql_where=live,
    )
    op.create_index(
        f'uq_{table}_single_default', table, ['is_default'],
        unique=True, postgresql_where=sa.text('is_default = true AND is_deleted = false'),
    )


def _drop_status_indexes(table: str) -> None:
    for name in ('single_default', 'name_live', 'code_live'):
        op.drop_index(f'uq_{table}_{name}', table_name=table)
    for column in ('is_deleted', 'sequence', 'is_default', 'is_active'):
        op.drop_index(f'ix_{table}_{column}', table_name=table)


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='user'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_status', 'users', ['status'])

    # Sales statuses
    op.create_table(
        'sales_statuses',
        *_status_columns(),
        sa.Column('status_name', sa.String(50), nullable=False),
        sa.Column('status_code', sa.String(20), nullable=False),
        sa.Column('status_type', sa.String(20), nullable=False, server_default='available'),
        sa.Column('allows_sale', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('requires_approval', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('notification_template', sa.String(1000), nullable=True),
    )
    op.create_index('ix_sales_statuses_status_type', 'sales_statuses', ['status_type'])
    op.create_index('ix_sales_statuses_allows_sale', 'sales_statuses', ['allows_sale'])
    _status_indexes('sales_statuses')

    # Development statuses
    op.create_table(
        'development_statuses',
        *_status_columns(),
        sa.Column('status_name', sa.String(100), nullable=False),
        sa.Column('status_code', sa.String(20), nullable=False),
        sa.Column('dev_category', sa.String(30), nullable=False, server_default='construction'),
        sa.Column('dev_phase', sa.String(30), nullable=False, server_default='pre_construction'),
        sa.Column('icon', sa.String(50), nullable=True),
        sa.Column('percentage_complete', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('requires_documentation', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('estimated_duration_days', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_development_statuses_dev_category', 'development_statuses', ['dev_category'])
    op.create_index('ix_development_statuses_dev_phase', 'development_statuses', ['dev_phase'])
    _status_indexes('development_statuses')

    op.create_table(
        'development_status_transitions',
        sa.Column('from_status_id', sa.Integer(), primary_key=True),
        sa.Column('to_status_id', sa.Integer(), primary_key=True),
        sa.ForeignKeyConstraint(['from_status_id'], ['development_statuses.id'],
                                name='fk_dev_transitions_from', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['to_status_id'], ['development_statuses.id'],
                                name='fk_dev_transitions_to', ondelete='CASCADE'),
    )

    # Plots
    op.create_table(
        'plots',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('plot_no', sa.String(50), nullable=False),
        sa.Column('project_code', sa.String(50), nullable=False),
        sa.Column('plot_street', sa.String(100), nullable=True),
        sa.Column('sales_status_id', sa.Integer(), nullable=True),
        sa.Column('development_status_id', sa.Integer(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('updated_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('is_deleted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['sales_status_id'], ['sales_statuses.id'],
                                name='fk_plots_sales_status'),
        sa.ForeignKeyConstraint(['development_status_id'], ['development_statuses.id'],
                                name='fk_plots_development_status'),
    )
    op.create_index('ix_plots_project_code', 'plots', ['project_code'])
    op.create_index('ix_plots_sales_status_id', 'plots', ['sales_status_id'])
    op.create_index('ix_plots_development_status_id', 'plots', ['development_status_id'])
    op.create_index('ix_plots_is_deleted', 'plots', ['is_deleted'])
    op.create_index(
        'uq_plots_project_plot_no_live', 'plots',
        ['project_code', sa.text('lower(plot_no)')],
        unique=True, postgresql_where=sa.text('is_deleted = false'),
    )


def downgrade() -> None:
    op.drop_index('uq_plots_project_plot_no_live', table_name='plots')
    op.drop_index('ix_plots_is_deleted', table_name='plots')
    op.drop_index('ix_plots_development_status_id', table_name='plots')
    op.drop_index('ix_plots_sales_status_id', table_name='plots')
    op.drop_index('ix_plots_project_code', table_name='plots')
    op.drop_table('plots')

    op.drop_table('development_status_transitions')

    _drop_status_indexes('development_statuses')
    op.drop_index('ix_development_statuses_dev_phase', table_name='development_statuses')
    op.drop_index('ix_development_statuses_dev_category', table_name='development_statuses')
    op.drop_table('development_statuses')

    _drop_status_indexes('sales_statuses')
    op.drop_index('ix_sales_statuses_allows_sale', table_name='sales_statuses')
    op.drop_index('ix_sales_statuses_status_type', table_name='sales_statuses')
    op.drop_table('sales_statuses')

    op.drop_index('ix_users_status', table_name='users')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
