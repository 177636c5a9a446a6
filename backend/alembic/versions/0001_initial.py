"""initial

Revision ID: 0001
Revises:
Create Date: 2025-05-20
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

SURGERY_TYPE = ('DIAGNOSTIC', 'CURATIVE', 'RECONSTRUCTIVE', 'COSMETIC', 'PALLIATIVE')


def upgrade() -> None:
    # hospitals
    op.create_table(
        'hospitals',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('slug', sa.String(200), unique=True, nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('tagline', sa.String(300), nullable=True),
        sa.Column('rating', sa.Float(), nullable=True, server_default='0'),
        sa.Column('review_count', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('year_established', sa.Integer(), nullable=True),
        # location
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('district', sa.String(100), nullable=False),
        sa.Column('region', sa.String(100), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        # media
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('gallery_images', postgresql.JSON(astext_type=sa.Text()), nullable=True),
        # credentials / coverage
        sa.Column('accreditations', postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column('insurance_accepted', postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column('is_verified', sa.Boolean(), nullable=True, server_default=sa.false()),
        # contact
        sa.Column('contact_phone', sa.String(50), nullable=True),
        sa.Column('contact_email', sa.String(200), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_hospitals_region', 'hospitals', ['region'])

    # surgeries
    op.create_table(
        'surgeries',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('hospital_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hospitals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('type', sa.Enum(*SURGERY_TYPE, name='surgerytype'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('min_cost', sa.Integer(), nullable=False),
        sa.Column('max_cost', sa.Integer(), nullable=False),
        sa.Column('average_duration', sa.String(100), nullable=True),
        sa.Column('recovery_time', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.CheckConstraint('min_cost <= max_cost', name='ck_surgeries_cost_range'),
    )
    op.create_index('ix_surgeries_hospital_id', 'surgeries', ['hospital_id'])

    # doctors
    op.create_table(
        'doctors',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('hospital_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hospitals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('photo_url', sa.String(500), nullable=True),
        sa.Column('specialization', sa.String(200), nullable=False),
        sa.Column('qualification', sa.String(300), nullable=True),
        sa.Column('experience', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('consultation_fee', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('rating', sa.Float(), nullable=True, server_default='0'),
        sa.Column('review_count', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('availability', postgresql.JSON(astext_type=sa.Text()), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
    )
    op.create_index('ix_doctors_hospital_id', 'doctors', ['hospital_id'])

    # reviews
    op.create_table(
        'reviews',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('hospital_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hospitals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('user_name', sa.String(200), nullable=False),
        sa.Column('rating', sa.Float(), nullable=False),
        sa.Column('title', sa.String(300), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('surgery_type', postgresql.ENUM(*SURGERY_TYPE, name='surgerytype', create_type=False), nullable=True),
        sa.Column('visit_date', sa.Date(), nullable=True),
        sa.Column('helpful', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_reviews_hospital_id', 'reviews', ['hospital_id'])

    # bookings
    op.create_table(
        'bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('hospital_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hospitals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('doctor_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('doctors.id', ondelete='SET NULL'), nullable=True),
        sa.Column('surgery_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('surgeries.id', ondelete='SET NULL'), nullable=True),
        sa.Column('booking_type', sa.Enum('CONSULTATION', 'SURGERY', 'VISIT', name='bookingtype'), nullable=False),
        sa.Column(
            'status',
            sa.Enum('PENDING', 'CONFIRMED', 'COMPLETED', 'CANCELLED', name='bookingstatus'),
            nullable=False,
            server_default='PENDING',
        ),
        # slot
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('scheduled_time', sa.Time(), nullable=False),
        # patient contact
        sa.Column('patient_name', sa.String(200), nullable=False),
        sa.Column('patient_email', sa.String(320), nullable=False),
        sa.Column('patient_phone', sa.String(20), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('confirmation_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_bookings_user_id', 'bookings', ['user_id'])
    op.create_index('ix_bookings_hospital_date', 'bookings', ['hospital_id', 'scheduled_date'])

    # profiles
    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(64), unique=True, nullable=False),
        sa.Column('full_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # favorites
    op.create_table(
        'favorites',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', sa.String(64), nullable=False),
        sa.Column('hospital_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('hospitals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('user_id', 'hospital_id', name='uq_favorites_user_hospital'),
    )
    op.create_index('ix_favorites_user_id', 'favorites', ['user_id'])


def downgrade() -> None:
    op.drop_table('favorites')
    op.drop_table('profiles')
    op.drop_table('bookings')
    op.drop_table('reviews')
    op.drop_table('doctors')
    op.drop_table('surgeries')
    op.drop_table('hospitals')
    sa.Enum(name='bookingstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='bookingtype').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='surgerytype').drop(op.get_bind(), checkfirst=True)
