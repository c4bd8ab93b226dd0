"""
Initial schema: people, cells, yearly cell memberships and the audit trail.

A person holds at most one membership per year, enforced by a unique key on
(person_id, year); the year is copied onto the membership row from its cell.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'initial_cells_20250101'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'people',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('display_name', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=True),
        sa.Column('member_status', sa.String(), nullable=False, server_default='ACTIVE'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "member_status in ('NEWCOMER','ACTIVE','LONG_TERM_ABSENT','MOVED','GRADUATED')",
            name='ck_people_member_status',
        ),
    )
    op.create_index('ix_people_display_name', 'people', ['display_name'])

    op.create_table(
        'cells',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(), nullable=False, server_default=''),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_cells_year', 'cells', ['year'])

    op.create_table(
        'cell_memberships',
        sa.Column('cell_id', sa.Integer(), sa.ForeignKey('cells.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('person_id', sa.Integer(), sa.ForeignKey('people.id'), primary_key=True),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('person_id', 'year', name='uq_cell_memberships_person_year'),
        sa.CheckConstraint("role in ('leader','co_leader','member')", name='ck_cell_memberships_role'),
    )
    op.create_index('idx_cell_memberships_cell_id', 'cell_memberships', ['cell_id'])

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('action_type', sa.Text(), nullable=False),
        sa.Column('target_type', sa.Text(), nullable=True),
        sa.Column('target_id', sa.Integer(), nullable=True),
        sa.Column('period_year', sa.Integer(), nullable=True),
        sa.Column('status', sa.Text(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_audit_logs_period_year_created_at', 'audit_logs', ['period_year', 'created_at'])
    op.create_index('ix_audit_logs_action_type', 'audit_logs', ['action_type'])


def downgrade() -> None:
    op.drop_index('ix_audit_logs_action_type', table_name='audit_logs')
    op.drop_index('ix_audit_logs_period_year_created_at', table_name='audit_logs')
    op.drop_table('audit_logs')
    op.drop_index('idx_cell_memberships_cell_id', table_name='cell_memberships')
    op.drop_table('cell_memberships')
    op.drop_index('ix_cells_year', table_name='cells')
    op.drop_table('cells')
    op.drop_index('ix_people_display_name', table_name='people')
    op.drop_table('people')
