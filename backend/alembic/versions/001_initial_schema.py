"""Initial hostel schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


role_enum = sa.Enum('super_admin', 'admin', 'sub_admin', 'custom', 'warden', 'principal', 'security', 'student', name='role')
share_status_enum = sa.Enum('unpaid', 'pending', 'paid', name='sharestatus')
payment_status_enum = sa.Enum('pending', 'success', 'failed', 'cancelled', name='paymentstatus')
leave_status_enum = sa.Enum('Pending OTP Verification', 'Approved', 'Rejected', name='leavestatus')
visit_type_enum = sa.Enum('outgoing', 'incoming', name='visittype')
outpass_status_enum = sa.Enum('Pending', 'Approved', 'Rejected', name='outpassstatus')
prereg_status_enum = sa.Enum('pending', 'approved', 'rejected', name='preregistrationstatus')


def upgrade() -> None:
    # Courses and branches
    op.create_table(
        'courses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sa.UniqueConstraint('code'),
    )
    op.create_table(
        'branches',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('course_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('course_id', 'code', name='uq_branch_course_code'),
    )

    # Staff accounts
    op.create_table(
        'admins',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('username', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('full_name', sa.String(), nullable=True),
        sa.Column('role', role_enum, nullable=False),
        sa.Column('permissions', sa.JSON(), nullable=False),
        sa.Column('permission_access_levels', sa.JSON(), nullable=False),
        sa.Column('custom_role_name', sa.String(), nullable=True),
        sa.Column('hostel_type', sa.String(), nullable=True),
        sa.Column('course_ids', sa.JSON(), nullable=False),
        sa.Column('branch_id', sa.Uuid(), nullable=True),
        sa.Column('requires_password_change', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_admins_username', 'admins', ['username'], unique=True)

    # Students
    op.create_table(
        'students',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('roll_number', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('gender', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('course_id', sa.Uuid(), nullable=True),
        sa.Column('branch_id', sa.Uuid(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('room_number', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('parent_phone', sa.String(), nullable=True),
        sa.Column('requires_password_change', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_login', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id']),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_students_roll_number', 'students', ['roll_number'], unique=True)
    op.create_index('ix_students_room_number', 'students', ['room_number'])

    # Rooms and electricity billing
    op.create_table(
        'rooms',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('room_number', sa.String(), nullable=False),
        sa.Column('gender', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('bed_count', sa.Integer(), nullable=False),
        sa.Column('meter_reading', sa.Integer(), nullable=True),
        sa.Column('electricity_rate', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_number', 'gender', 'category', name='uq_room_number_gender_category'),
    )
    op.create_index('ix_rooms_room_number', 'rooms', ['room_number'])

    op.create_table(
        'electricity_bills',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('room_id', sa.Uuid(), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('start_units', sa.Integer(), nullable=False),
        sa.Column('end_units', sa.Integer(), nullable=False),
        sa.Column('rate', sa.Numeric(10, 2), nullable=False),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('room_id', 'month', name='uq_bill_room_month'),
    )

    op.create_table(
        'bill_shares',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('bill_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('student_share', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_status', share_status_enum, nullable=False),
        sa.Column('payment_id', sa.Uuid(), nullable=True),
        sa.Column('order_id', sa.String(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['bill_id'], ['electricity_bills.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bill_id', 'student_id', name='uq_share_bill_student'),
    )
    op.create_index('ix_bill_shares_student_id', 'bill_shares', ['student_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('share_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('room_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('order_id', sa.String(), nullable=False),
        sa.Column('payment_session_id', sa.String(), nullable=True),
        sa.Column('payment_url', sa.String(), nullable=True),
        sa.Column('status', payment_status_enum, nullable=False),
        sa.Column('failure_reason', sa.String(), nullable=True),
        sa.Column('gateway_payment_id', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['share_id'], ['bill_shares.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id']),
        sa.ForeignKeyConstraint(['room_id'], ['rooms.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_order_id', 'payments', ['order_id'], unique=True)
    op.create_index('ix_payments_share_id', 'payments', ['share_id'])
    op.create_index('ix_payments_student_id', 'payments', ['student_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])

    # Leave and gate visits
    op.create_table(
        'leaves',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('start_date', sa.DateTime(), nullable=False),
        sa.Column('end_date', sa.DateTime(), nullable=False),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('status', leave_status_enum, nullable=False),
        sa.Column('otp_code', sa.String(length=6), nullable=True),
        sa.Column('rejection_reason', sa.String(), nullable=True),
        sa.Column('approved_by', sa.Uuid(), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('qr_available_from', sa.DateTime(), nullable=True),
        sa.Column('qr_view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qr_locked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('outgoing_visit_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('incoming_visit_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('max_visits', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('visit_locked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_leaves_student_id', 'leaves', ['student_id'])

    op.create_table(
        'leave_visits',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('leave_id', sa.Uuid(), nullable=False),
        sa.Column('visit_type', visit_type_enum, nullable=False),
        sa.Column('scanned_at', sa.DateTime(), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('scanned_by', sa.String(), nullable=True),
        sa.ForeignKeyConstraint(['leave_id'], ['leaves.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_leave_visits_leave_id', 'leave_visits', ['leave_id'])

    op.create_table(
        'outpasses',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('date_of_outpass', sa.Date(), nullable=False),
        sa.Column('out_time', sa.Time(), nullable=False),
        sa.Column('in_time', sa.Time(), nullable=False),
        sa.Column('reason', sa.String(), nullable=False),
        sa.Column('status', outpass_status_enum, nullable=False),
        sa.Column('rejection_reason', sa.String(), nullable=True),
        sa.Column('approved_by', sa.Uuid(), nullable=True),
        sa.Column('qr_view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('qr_locked', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_outpasses_student_id', 'outpasses', ['student_id'])

    # Mess
    op.create_table(
        'menus',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('meals', sa.JSON(), nullable=False),
        sa.Column('updated_by', sa.Uuid(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['updated_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_menus_date', 'menus', ['date'], unique=True)

    op.create_table(
        'meal_ratings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('menu_id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('meal', sa.String(), nullable=False),
        sa.Column('rating', sa.Integer(), nullable=False),
        sa.Column('comment', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['menu_id'], ['menus.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('menu_id', 'student_id', 'meal', name='uq_rating_menu_student_meal'),
    )

    op.create_table(
        'notifications',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('message', sa.String(), nullable=False),
        sa.Column('kind', sa.String(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_student_id', 'notifications', ['student_id'])

    # Attendance
    op.create_table(
        'attendance',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('student_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('morning', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('evening', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('notes', sa.String(), nullable=True),
        sa.Column('taken_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['student_id'], ['students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['taken_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id', 'date', name='uq_attendance_student_date'),
    )
    op.create_index('ix_attendance_date', 'attendance', ['date'])

    # Pre-registrations
    op.create_table(
        'preregistrations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('roll_number', sa.String(), nullable=False),
        sa.Column('gender', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('course_id', sa.Uuid(), nullable=True),
        sa.Column('branch_id', sa.Uuid(), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('parent_phone', sa.String(), nullable=True),
        sa.Column('status', prereg_status_enum, nullable=False),
        sa.Column('rejection_reason', sa.String(), nullable=True),
        sa.Column('reviewed_by', sa.Uuid(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['course_id'], ['courses.id']),
        sa.ForeignKeyConstraint(['branch_id'], ['branches.id']),
        sa.ForeignKeyConstraint(['reviewed_by'], ['admins.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_preregistrations_roll_number', 'preregistrations', ['roll_number'])
    op.create_index('ix_preregistrations_status', 'preregistrations', ['status'])


def downgrade() -> None:
    op.drop_table('preregistrations')
    op.drop_table('attendance')
    op.drop_table('notifications')
    op.drop_table('meal_ratings')
    op.drop_table('menus')
    op.drop_table('outpasses')
    op.drop_table('leave_visits')
    op.drop_table('leaves')
    op.drop_table('payments')
    op.drop_table('bill_shares')
    op.drop_table('electricity_bills')
    op.drop_table('rooms')
    op.drop_table('students')
    op.drop_table('admins')
    op.drop_table('branches')
    op.drop_table('courses')

    for enum_type in (
        prereg_status_enum, outpass_status_enum, visit_type_enum, leave_status_enum,
        payment_status_enum, share_status_enum, role_enum,
    ):
        enum_type.drop(op.get_bind(), checkfirst=True)
