"""Initial schema: users, companies, professionals and introduction requests

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
import sys
from pathlib import Path

# Add alembic directory to path to import migration_helpers
alembic_dir = Path(__file__).resolve().parent.parent
if str(alembic_dir) not in sys.path:
    sys.path.insert(0, str(alembic_dir))

from migration_helpers import (
    create_index_if_not_exists,
    create_table_if_not_exists,
    drop_table_if_exists,
)


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

JSON_TYPE = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def _base_columns():
    return [
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def _pk(table_name: str):
    return sa.PrimaryKeyConstraint('id', name=f'pk_{table_name}')


def _fk(table_name: str, column: str, referred_table: str):
    return sa.ForeignKeyConstraint(
        [column], [f'{referred_table}.id'],
        name=f'fk_{table_name}_{column}_{referred_table}'
    )


def _indexes(table_name: str, *columns: str, unique: bool = False):
    for column in columns:
        create_index_if_not_exists(f'ix_{table_name}_{column}', table_name, [column], unique=unique)


def upgrade():
    """Create every table the application uses."""
    create_table_if_not_exists(
        'users',
        *_base_columns(),
        sa.Column('external_id', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(32)),
        sa.Column('phone_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('role', sa.String(50), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('last_login', sa.DateTime()),
        _pk('users'),
    )
    _indexes('users', 'external_id', 'email', unique=True)
    _indexes('users', 'role', 'is_active')

    create_table_if_not_exists(
        'user_sessions',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('session_token', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('last_activity', sa.DateTime()),
        sa.Column('ip_address', sa.String(45)),
        _pk('user_sessions'),
        _fk('user_sessions', 'user_id', 'users'),
    )
    _indexes('user_sessions', 'session_token', unique=True)
    _indexes('user_sessions', 'user_id', 'expires_at', 'last_activity')

    create_table_if_not_exists(
        'companies',
        *_base_columns(),
        sa.Column('company_name', sa.String(255), nullable=False),
        sa.Column('company_logo_url', sa.String()),
        sa.Column('industry', sa.String(255)),
        sa.Column('company_size', sa.String(50)),
        sa.Column('headquarters_location', sa.String(255)),
        sa.Column('company_website', sa.String(1024)),
        sa.Column('company_description', sa.Text()),
        sa.Column('introduction_credits', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint(
            'introduction_credits >= 0',
            name='ck_companies_introduction_credits_non_negative'
        ),
        _pk('companies'),
    )
    _indexes('companies', 'company_name', 'industry')

    create_table_if_not_exists(
        'hr_partners',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('first_name', sa.String(255)),
        sa.Column('last_name', sa.String(255)),
        sa.Column('job_title', sa.String(255)),
        sa.Column('profile_photo_url', sa.String()),
        sa.Column('linkedin_url', sa.String(1024)),
        _pk('hr_partners'),
        _fk('hr_partners', 'user_id', 'users'),
        _fk('hr_partners', 'company_id', 'companies'),
    )
    _indexes('hr_partners', 'user_id', unique=True)
    _indexes('hr_partners', 'company_id')

    create_table_if_not_exists(
        'job_roles',
        *_base_columns(),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('role_title', sa.String(255), nullable=False),
        sa.Column('role_description', sa.Text()),
        sa.Column('seniority_level', sa.String(50)),
        sa.Column('location_city', sa.String(255)),
        sa.Column('location_state', sa.String(255)),
        sa.Column('salary_range_min', sa.Integer()),
        sa.Column('salary_range_max', sa.Integer()),
        sa.Column('remote_option', sa.String(50)),
        sa.Column('employment_type', sa.String(50)),
        sa.Column('status', sa.String(20), nullable=False, server_default='DRAFT'),
        sa.Column('is_confidential', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('confidential_reason', sa.Text()),
        _pk('job_roles'),
        _fk('job_roles', 'company_id', 'companies'),
    )
    _indexes('job_roles', 'company_id', 'status')

    create_table_if_not_exists(
        'professionals',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('first_name', sa.String(255)),
        sa.Column('last_name', sa.String(255)),
        sa.Column('preferred_name', sa.String(255)),
        sa.Column('profile_headline', sa.String(255)),
        sa.Column('location_city', sa.String(255)),
        sa.Column('location_state', sa.String(255)),
        sa.Column('current_industry', sa.String(255)),
        sa.Column('current_title', sa.String(255)),
        sa.Column('current_company', sa.String(255)),
        sa.Column('years_of_experience', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('profile_summary', sa.Text()),
        sa.Column('resume_url', sa.String(1024)),
        sa.Column('profile_photo_url', sa.String(1024)),
        sa.Column('linkedin_url', sa.String(1024)),
        sa.Column('portfolio_url', sa.String(1024)),
        sa.Column('salary_expectation_min', sa.Integer()),
        sa.Column('salary_expectation_max', sa.Integer()),
        sa.Column('notice_period_days', sa.Integer()),
        sa.Column('willing_to_relocate', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('open_to_opportunities', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('confidential_search', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('hide_from_company_ids', JSON_TYPE, nullable=False),
        sa.Column('verification_status', sa.String(20), nullable=False, server_default='UNVERIFIED'),
        sa.Column('profile_completeness', sa.Integer(), nullable=False, server_default='0'),
        _pk('professionals'),
        _fk('professionals', 'user_id', 'users'),
    )
    _indexes('professionals', 'user_id', unique=True)
    _indexes('professionals', 'location_city', 'location_state', 'current_industry', 'verification_status')

    for table_name, columns in (
        ('professional_skills', [
            sa.Column('skill_name', sa.String(255), nullable=False),
            sa.Column('is_primary_skill', sa.Boolean(), nullable=False, server_default=sa.false()),
        ]),
        ('work_history', [
            sa.Column('job_title', sa.String(255), nullable=False),
            sa.Column('company_name', sa.String(255), nullable=False),
            sa.Column('industry', sa.String(255)),
            sa.Column('location', sa.String(255)),
            sa.Column('employment_type', sa.String(50), nullable=False, server_default='full_time'),
            sa.Column('start_date', sa.Date(), nullable=False),
            sa.Column('end_date', sa.Date()),
            sa.Column('is_current', sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column('description', sa.Text()),
        ]),
        ('education', [
            sa.Column('institution_name', sa.String(255), nullable=False),
            sa.Column('degree', sa.String(255)),
            sa.Column('field_of_study', sa.String(255)),
            sa.Column('start_year', sa.Integer()),
            sa.Column('end_year', sa.Integer()),
        ]),
        ('certifications', [
            sa.Column('certification_name', sa.String(255), nullable=False),
            sa.Column('issuing_organization', sa.String(255)),
            sa.Column('issue_date', sa.Date()),
            sa.Column('expiry_date', sa.Date()),
            sa.Column('credential_url', sa.String(1024)),
        ]),
    ):
        create_table_if_not_exists(
            table_name,
            *_base_columns(),
            sa.Column('professional_id', sa.Uuid(), nullable=False),
            *columns,
            _pk(table_name),
            _fk(table_name, 'professional_id', 'professionals'),
        )
        _indexes(table_name, 'professional_id')

    create_table_if_not_exists(
        'introduction_requests',
        *_base_columns(),
        sa.Column('job_role_id', sa.Uuid(), nullable=False),
        sa.Column('company_id', sa.Uuid(), nullable=False),
        sa.Column('sent_by_hr_id', sa.Uuid(), nullable=False),
        sa.Column('professional_id', sa.Uuid(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('personalized_message', sa.Text(), nullable=False),
        sa.Column('professional_response', sa.Text()),
        sa.Column('sent_at', sa.DateTime(), nullable=False),
        sa.Column('response_date', sa.DateTime()),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('viewed_by_professional', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('viewed_at', sa.DateTime()),
        _pk('introduction_requests'),
        _fk('introduction_requests', 'job_role_id', 'job_roles'),
        _fk('introduction_requests', 'company_id', 'companies'),
        _fk('introduction_requests', 'sent_by_hr_id', 'hr_partners'),
        _fk('introduction_requests', 'professional_id', 'professionals'),
    )
    _indexes(
        'introduction_requests',
        'job_role_id', 'company_id', 'sent_by_hr_id', 'professional_id', 'status', 'sent_at', 'expires_at'
    )
    # At most one pending request per (job role, professional)
    create_index_if_not_exists(
        'uq_introduction_requests_pending_pair',
        'introduction_requests',
        ['job_role_id', 'professional_id'],
        unique=True,
        where="status = 'PENDING'"
    )

    create_table_if_not_exists(
        'notifications',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('notification_type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('related_entity_type', sa.String(100)),
        sa.Column('related_entity_id', sa.String(100)),
        sa.Column('action_url', sa.String(1024)),
        sa.Column('channel', sa.String(20), nullable=False, server_default='IN_APP'),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        _pk('notifications'),
        _fk('notifications', 'user_id', 'users'),
    )
    _indexes('notifications', 'user_id', 'notification_type', 'related_entity_id')

    create_table_if_not_exists(
        'user_activity_logs',
        *_base_columns(),
        sa.Column('user_id', sa.Uuid(), nullable=False),
        sa.Column('action_type', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(100)),
        sa.Column('entity_id', sa.String(100)),
        sa.Column('description', sa.Text()),
        sa.Column('activity_metadata', JSON_TYPE),
        _pk('user_activity_logs'),
        _fk('user_activity_logs', 'user_id', 'users'),
    )
    _indexes('user_activity_logs', 'user_id', 'action_type', 'entity_id')


def downgrade():
    """Drop every table, dependents first."""
    for table_name in (
        'user_activity_logs',
        'notifications',
        'introduction_requests',
        'certifications',
        'education',
        'work_history',
        'professional_skills',
        'professionals',
        'job_roles',
        'hr_partners',
        'companies',
        'user_sessions',
        'users',
    ):
        drop_table_if_exists(table_name)
