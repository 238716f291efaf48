"""create lifecycle tables

Revision ID: 5c1e7a9d2b40
Revises:
Create Date: 2026-10-19 09:12:44.381920

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e7a9d2b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

pricing_tier = sa.Enum('FREE', 'BASIC', 'STANDARD', 'PREMIUM', 'ENTERPRISE', name='pricingtierenum')
enrollment_status = sa.Enum('PENDING', 'ACTIVE', 'COMPLETED', 'CANCELLED', 'REFUNDED', 'SUSPENDED', name='enrollmentstatusenum')
lesson_progress_status = sa.Enum('NOT_STARTED', 'IN_PROGRESS', 'COMPLETED', name='lessonprogressstatusenum')
payment_type = sa.Enum('ENROLLMENT', 'SUBSCRIPTION', 'RENEWAL', name='paymenttypeenum')
payment_status = sa.Enum('PENDING', 'PROCESSING', 'COMPLETED', 'FAILED', 'REFUNDED', 'PARTIALLY_REFUNDED', name='paymentstatusenum')
certificate_status = sa.Enum('ACTIVE', 'REVOKED', 'EXPIRED', name='certificatestatusenum')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_customers_email', 'customers', ['email'], unique=True)

    op.create_table(
        'formations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('slug', sa.String(), nullable=False),
        sa.Column('summary', sa.String(), nullable=True),
        sa.Column('pricing_tier', pricing_tier, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(), nullable=False),
        sa.Column('instructor_name', sa.String(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=True),
        sa.Column('enrollment_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_formations_slug', 'formations', ['slug'], unique=True)
    op.create_index('ix_formations_title', 'formations', ['title'])

    op.create_table(
        'modules',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('formation_id', sa.Integer(), sa.ForeignKey('formations.id'), nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_published', sa.Boolean(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_modules_formation_id', 'modules', ['formation_id'])

    op.create_table(
        'lessons',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('formation_id', sa.Integer(), sa.ForeignKey('formations.id'), nullable=False),
        sa.Column('module_id', sa.Integer(), sa.ForeignKey('modules.id'), nullable=True),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('duration_seconds', sa.Integer(), nullable=True),
        sa.Column('order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_preview', sa.Boolean(), nullable=True),
        sa.Column('is_published', sa.Boolean(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_lessons_formation_id', 'lessons', ['formation_id'])
    op.create_index('ix_lessons_module_id', 'lessons', ['module_id'])

    op.create_table(
        'enrollments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('formation_id', sa.Integer(), sa.ForeignKey('formations.id'), nullable=False),
        sa.Column('status', enrollment_status, nullable=False),
        sa.Column('progress_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('enrolled_at', sa.DateTime(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(), nullable=True),
        sa.Column('access_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('amount_paid', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('payment_reference', sa.String(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        'uq_enrollments_live_customer_formation', 'enrollments', ['customer_id', 'formation_id'],
        unique=True,
        sqlite_where=sa.text("status != 'CANCELLED' AND deleted_at IS NULL"),
        postgresql_where=sa.text("status != 'CANCELLED' AND deleted_at IS NULL"),
    )
    op.create_index('ix_enrollments_customer_status', 'enrollments', ['customer_id', 'status'])
    op.create_index('ix_enrollments_formation_status', 'enrollments', ['formation_id', 'status'])

    op.create_table(
        'lesson_progress',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('enrollment_id', sa.Integer(), sa.ForeignKey('enrollments.id'), nullable=False),
        sa.Column('lesson_id', sa.Integer(), sa.ForeignKey('lessons.id'), nullable=False),
        sa.Column('status', lesson_progress_status, nullable=False),
        sa.Column('progress_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(), nullable=True),
        sa.Column('time_spent_seconds', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('access_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_position', sa.Integer(), nullable=True),
        sa.Column('is_favorite', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('notes', sa.JSON(), nullable=True),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('enrollment_id', 'lesson_id', name='uq_lesson_progress_enrollment_lesson'),
    )
    op.create_index('ix_lesson_progress_enrollment_status', 'lesson_progress', ['enrollment_id', 'status'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('enrollment_id', sa.Integer(), sa.ForeignKey('enrollments.id'), nullable=True),
        sa.Column('formation_id', sa.Integer(), sa.ForeignKey('formations.id'), nullable=True),
        sa.Column('type', payment_type, nullable=False),
        sa.Column('status', payment_status, nullable=False),
        sa.Column('stripe_payment_intent_id', sa.String(), nullable=True),
        sa.Column('stripe_checkout_session_id', sa.String(), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('amount_refunded', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('currency', sa.String(), nullable=False),
        sa.Column('payment_method_type', sa.String(), nullable=True),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('failure_reason', sa.String(), nullable=True),
        sa.Column('failure_code', sa.String(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('refunded_at', sa.DateTime(), nullable=True),
        sa.Column('failed_at', sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_payments_customer_id', 'payments', ['customer_id'])
    op.create_index('ix_payments_enrollment_id', 'payments', ['enrollment_id'])
    op.create_index('ix_payments_formation_id', 'payments', ['formation_id'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_stripe_payment_intent_id', 'payments', ['stripe_payment_intent_id'], unique=True)
    op.create_index('ix_payments_stripe_checkout_session_id', 'payments', ['stripe_checkout_session_id'], unique=True)

    op.create_table(
        'certificates',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('enrollment_id', sa.Integer(), sa.ForeignKey('enrollments.id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('formation_id', sa.Integer(), sa.ForeignKey('formations.id'), nullable=False),
        sa.Column('certificate_number', sa.String(), nullable=False),
        sa.Column('verification_code', sa.String(), nullable=False),
        sa.Column('status', certificate_status, nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_reason', sa.String(), nullable=True),
        sa.Column('student_name', sa.String(), nullable=False),
        sa.Column('formation_title', sa.String(), nullable=False),
        sa.Column('instructor_name', sa.String(), nullable=True),
        sa.Column('completion_date', sa.Date(), nullable=False),
        sa.Column('artifact_path', sa.String(), nullable=True),
        sa.Column('artifact_size_bytes', sa.Integer(), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_certificates_certificate_number', 'certificates', ['certificate_number'], unique=True)
    op.create_index('ix_certificates_verification_code', 'certificates', ['verification_code'], unique=True)
    op.create_index('ix_certificates_enrollment_id', 'certificates', ['enrollment_id'])
    op.create_index('ix_certificates_customer_id', 'certificates', ['customer_id'])
    op.create_index('ix_certificates_formation_id', 'certificates', ['formation_id'])
    op.create_index('ix_certificates_status', 'certificates', ['status'])


def downgrade() -> None:
    op.drop_table('certificates')
    op.drop_table('payments')
    op.drop_table('lesson_progress')
    op.drop_index('uq_enrollments_live_customer_formation', table_name='enrollments')
    op.drop_table('enrollments')
    op.drop_table('lessons')
    op.drop_table('modules')
    op.drop_table('formations')
    op.drop_table('customers')

    bind = op.get_bind()
    for enum in (certificate_status, payment_status, payment_type, lesson_progress_status, enrollment_status, pricing_tier):
        enum.drop(bind, checkfirst=True)
