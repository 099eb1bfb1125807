"""create marketplace tables

Revision ID: 3a9d1e6b2c40
Revises:
Create Date: 2025-02-01 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3a9d1e6b2c40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table('users',
    sa.Column('id', sa.String(length=64), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('role', sa.String(length=20), nullable=False),
    sa.Column('phone', sa.String(length=50), nullable=True),
    sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint("role IN ('student', 'tutor', 'admin')", name='users_role_check'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('email')
    )
    op.create_index('idx_users_role', 'users', ['role'], unique=False)

    op.create_table('tutors',
    sa.Column('id', sa.String(length=64), nullable=False),
    sa.Column('user_id', sa.String(length=64), nullable=True),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('bio', sa.Text(), nullable=False),
    sa.Column('subjects', sa.JSON(), nullable=False),
    sa.Column('grades', sa.JSON(), nullable=False),
    sa.Column('calendly_link', sa.String(length=500), nullable=False),
    sa.Column('rating', sa.Float(), nullable=False),
    sa.Column('total_sessions', sa.Integer(), nullable=False),
    sa.Column('joined_date', sa.Date(), nullable=True),
    sa.Column('avatar_initials', sa.String(length=4), nullable=False),
    sa.Column('is_active', sa.Boolean(), nullable=False, server_default='false'),
    sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint('rating >= 0 AND rating <= 5', name='tutors_rating_check'),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_tutors_is_active', 'tutors', ['is_active'], unique=False)
    op.create_index('idx_tutors_user', 'tutors', ['user_id'], unique=False)

    op.create_table('students',
    sa.Column('id', sa.String(length=64), nullable=False),
    sa.Column('user_id', sa.String(length=64), nullable=True),
    sa.Column('name', sa.String(length=255), nullable=False),
    sa.Column('email', sa.String(length=255), nullable=False),
    sa.Column('grade', sa.String(length=10), nullable=False),
    sa.Column('parent_name', sa.String(length=255), nullable=False),
    sa.Column('parent_email', sa.String(length=255), nullable=False),
    sa.Column('joined_date', sa.Date(), nullable=True),
    sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
    sa.PrimaryKeyConstraint('id')
    )

    op.create_table('sessions',
    sa.Column('id', sa.String(length=64), nullable=False),
    sa.Column('student_id', sa.String(length=64), nullable=False),
    sa.Column('tutor_id', sa.String(length=64), nullable=False),
    sa.Column('subject', sa.String(length=100), nullable=False),
    sa.Column('scheduled_at', sa.DateTime(), nullable=False),
    sa.Column('duration_minutes', sa.Integer(), nullable=False),
    sa.Column('status', sa.String(length=32), nullable=False, server_default='scheduled'),
    sa.Column('price', sa.Float(), nullable=False),
    sa.Column('notes', sa.Text(), nullable=False),
    sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
    sa.CheckConstraint(
        "status IN ('pending_confirmation', 'confirmed', 'scheduled', 'completed', 'cancelled', 'no_show')",
        name='sessions_status_check'
    ),
    sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['tutor_id'], ['tutors.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_sessions_tutor_time', 'sessions', ['tutor_id', 'scheduled_at'], unique=False)
    op.create_index('idx_sessions_student', 'sessions', ['student_id'], unique=False)
    op.create_index('idx_sessions_status', 'sessions', ['status'], unique=False)

    op.create_table('payments',
    sa.Column('id', sa.String(length=64), nullable=False),
    sa.Column('session_id', sa.String(length=64), nullable=False),
    sa.Column('amount', sa.Float(), nullable=False),
    sa.Column('tutor_amount', sa.Float(), nullable=False),
    sa.Column('student_paid', sa.Boolean(), nullable=False, server_default='false'),
    sa.Column('tutor_paid', sa.Boolean(), nullable=False, server_default='false'),
    sa.Column('created_at', sa.Date(), server_default=sa.text('CURRENT_DATE'), nullable=False),
    sa.Column('payment_date', sa.DateTime(), nullable=True),
    sa.CheckConstraint('amount >= 0', name='payments_amount_check'),
    sa.ForeignKeyConstraint(['session_id'], ['sessions.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_payments_session', 'payments', ['session_id'], unique=False)
    op.create_index('idx_payments_outstanding', 'payments', ['student_paid', 'tutor_paid'], unique=False)


def downgrade() -> None:
    op.drop_index('idx_payments_outstanding', table_name='payments')
    op.drop_index('idx_payments_session', table_name='payments')
    op.drop_table('payments')
    op.drop_index('idx_sessions_status', table_name='sessions')
    op.drop_index('idx_sessions_student', table_name='sessions')
    op.drop_index('idx_sessions_tutor_time', table_name='sessions')
    op.drop_table('sessions')
    op.drop_table('students')
    op.drop_index('idx_tutors_user', table_name='tutors')
    op.drop_index('idx_tutors_is_active', table_name='tutors')
    op.drop_table('tutors')
    op.drop_index('idx_users_role', table_name='users')
    op.drop_table('users')
