"""Initial schema creation

Revision ID: a001
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'a001'
down_revision = None
branch_labels = None
depends_on = None


SHIFT_STATUSES = ('open', 'assigned', 'completed', 'cancelled')
ASSIGNMENT_STATUSES = ('pending', 'accepted', 'declined', 'expired', 'cancelled')
ASSIGNMENT_RESPONSES = ('accept', 'decline')
CLAIM_STATUSES = ('pending', 'approved', 'rejected', 'cancelled')
SWAP_TYPES = ('open', 'targeted')
SWAP_STATUSES = ('proposed', 'target_accepted', 'target_declined', 'approved', 'denied', 'cancelled')


def _status(values, name):
    # Stored as VARCHAR plus CHECK, matching the models' non-native enums
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def upgrade() -> None:
    """Create initial database schema."""

    # Create shifts table
    op.create_table(
        'shifts',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location_id', sa.String(36), nullable=False),
        sa.Column('team_id', sa.String(36), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('min_duration_minutes', sa.Integer(), nullable=True),
        sa.Column('max_duration_minutes', sa.Integer(), nullable=True),
        sa.Column('max_people', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', _status(SHIFT_STATUSES, 'shiftstatus'), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_by', sa.String(36), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('end_time > start_time', name='ck_shift_end_after_start'),
        sa.CheckConstraint('max_people >= 1', name='ck_shift_max_people')
    )
    op.create_index('ix_shifts_location_id', 'shifts', ['location_id'])
    op.create_index('ix_shifts_team_id', 'shifts', ['team_id'])
    op.create_index('ix_shifts_start_time', 'shifts', ['start_time'])
    op.create_index('ix_shifts_status', 'shifts', ['status'])

    # Create shift_claims table
    op.create_table(
        'shift_claims',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('shift_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('status', _status(CLAIM_STATUSES, 'claimstatus'), nullable=False),
        sa.Column('approved_by', sa.String(36), nullable=True),
        sa.Column('approval_notes', sa.Text(), nullable=True),
        sa.Column('active_key', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['shift_id'], ['shifts.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('shift_id', 'active_key', name='uq_claim_active_user')
    )
    op.create_index('ix_shift_claims_shift_id', 'shift_claims', ['shift_id'])
    op.create_index('ix_shift_claims_user_id', 'shift_claims', ['user_id'])
    op.create_index('ix_shift_claims_status', 'shift_claims', ['status'])

    # Create shift_assignments table
    op.create_table(
        'shift_assignments',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('shift_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=False),
        sa.Column('assigned_by', sa.String(36), nullable=False),
        sa.Column('assignment_status', _status(ASSIGNMENT_STATUSES, 'assignmentstatus'), nullable=False),
        sa.Column('acceptance_deadline', sa.DateTime(), nullable=True),
        sa.Column('response', _status(ASSIGNMENT_RESPONSES, 'assignmentresponse'), nullable=True),
        sa.Column('response_notes', sa.Text(), nullable=True),
        sa.Column('claim_id', sa.String(36), nullable=True),
        sa.Column('active_key', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['shift_id'], ['shifts.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('shift_id', 'active_key', name='uq_assignment_active_user')
    )
    op.create_index('ix_shift_assignments_shift_id', 'shift_assignments', ['shift_id'])
    op.create_index('ix_shift_assignments_user_id', 'shift_assignments', ['user_id'])
    op.create_index('ix_shift_assignments_assignment_status', 'shift_assignments', ['assignment_status'])
    op.create_index('ix_shift_assignments_acceptance_deadline', 'shift_assignments', ['acceptance_deadline'])

    # Create swap_requests table (shifts and users referenced by id only)
    op.create_table(
        'swap_requests',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('requesting_user_id', sa.String(36), nullable=False),
        sa.Column('original_shift_id', sa.String(36), nullable=False),
        sa.Column('target_user_id', sa.String(36), nullable=True),
        sa.Column('target_shift_id', sa.String(36), nullable=True),
        sa.Column('swap_type', _status(SWAP_TYPES, 'swaptype'), nullable=False),
        sa.Column('status', _status(SWAP_STATUSES, 'swapstatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('response_notes', sa.Text(), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.Column('approved_by', sa.String(36), nullable=True),
        sa.Column('approval_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_swap_requests_requesting_user_id', 'swap_requests', ['requesting_user_id'])
    op.create_index('ix_swap_requests_original_shift_id', 'swap_requests', ['original_shift_id'])
    op.create_index('ix_swap_requests_target_user_id', 'swap_requests', ['target_user_id'])
    op.create_index('ix_swap_requests_status', 'swap_requests', ['status'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('swap_requests')
    op.drop_table('shift_assignments')
    op.drop_table('shift_claims')
    op.drop_table('shifts')
