"""initial_volunteer_schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 10:00:00.000000

자원봉사자 관리 초기 스키마: places, pep_classes, authorizations, volunteers,
volunteer_hours, notebooks, attendances.
Initial volunteer-management schema.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # places — 교육 장소 (Places where classes run)
    op.create_table(
        'places',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('full_name', sa.String(255), nullable=False),
    )

    # pep_classes — PEP 클래스 (Classes, one notebook folder each)
    op.create_table(
        'pep_classes',
        sa.Column('idpep', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('place_id', sa.Integer(), sa.ForeignKey('places.id', ondelete='SET NULL'), nullable=True),
        sa.Column('notebook_directory', sa.String(500), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    # authorizations — 권한 프로필 (Module permission flags per profile)
    op.create_table(
        'authorizations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('attendance_module_permission', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('manage_volunteer_module_permission', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('notebook_module_permission', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('reading_workshop_module_permission', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('book_club_module_permission', sa.Boolean(), server_default=sa.text('false'), nullable=False),
    )

    # volunteers — 자원봉사자 (unique per email)
    op.create_table(
        'volunteers',
        sa.Column('idvol', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('idpep', sa.Integer(), sa.ForeignKey('pep_classes.idpep', ondelete='SET NULL'), nullable=True),
        sa.Column('birth_date', sa.Date(), nullable=False),
        sa.Column('phone_number', sa.String(50), nullable=False),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('state', sa.String(100), nullable=False),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('disability', sa.String(255), nullable=True),
        sa.Column('how_found_pep', sa.String(255), nullable=False),
        sa.Column('knowledge_pep', sa.String(255), nullable=False),
        sa.Column('workshops', sa.JSON(), nullable=True),
        sa.Column('schooling', sa.String(255), nullable=False),
        sa.Column('bachelor', sa.String(255), nullable=True),
        sa.Column('studies_knowledge', sa.Text(), nullable=False),
        sa.Column('life_experience', sa.Text(), nullable=False),
        sa.Column('desires', sa.Text(), nullable=False),
        sa.Column('roles_pep', sa.JSON(), nullable=True),
        sa.Column('interest_future_roles', sa.JSON(), nullable=True),
        sa.Column('need_declaration', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('authorization', sa.String(100), server_default='voluntario', nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_volunteers_created_at', 'volunteers', ['created_at'])

    # volunteer_hours — 봉사 시간 기록 (Reported hours)
    op.create_table(
        'volunteer_hours',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('idvol', sa.Integer(), sa.ForeignKey('volunteers.idvol', ondelete='CASCADE'), nullable=False),
        sa.Column('hours', sa.Float(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_volunteer_hours_idvol_created', 'volunteer_hours', ['idvol', 'created_at'])

    # notebooks — 학생 노트북 평가 기록 (Unreserved -> Reserved -> Evaluated)
    notebook_columns: list[sa.Column] = [
        sa.Column('idcad', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('idvol', sa.Integer(), sa.ForeignKey('volunteers.idvol', ondelete='SET NULL'), nullable=True),
        sa.Column('idpep', sa.Integer(), sa.ForeignKey('pep_classes.idpep', ondelete='SET NULL'), nullable=True),
        sa.Column('student_name', sa.String(255), nullable=False),
        sa.Column('student_registration', sa.String(50), nullable=True),
        sa.Column('student_prison_unit', sa.String(255), nullable=True),
        sa.Column('evaluator_name', sa.String(255), nullable=True),
        sa.Column('evaluator_email', sa.String(255), nullable=True),
    ]
    notebook_columns += [sa.Column(f'subject{i}', sa.Text(), nullable=True) for i in range(1, 11)]
    notebook_columns.append(sa.Column('relevant_content', sa.Text(), nullable=True))
    notebook_columns += [sa.Column(f'a{i}', sa.Text(), nullable=True) for i in range(1, 14)]
    notebook_columns += [
        sa.Column('conclusion', sa.Text(), nullable=True),
        sa.Column('approved', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('archives_exclusion', sa.Boolean(), server_default=sa.text('false'), nullable=False),
        sa.Column('reservation_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('evaluated_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]
    op.create_table('notebooks', *notebook_columns)
    op.create_index('ix_notebooks_idvol', 'notebooks', ['idvol'])
    op.create_index('ix_notebooks_idpep', 'notebooks', ['idpep'])

    # attendances — 워크숍 출석 (one submission per volunteer per workshop session)
    op.create_table(
        'attendances',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('idvol', sa.Integer(), sa.ForeignKey('volunteers.idvol', ondelete='CASCADE'), nullable=False),
        sa.Column('workshop_name', sa.String(255), nullable=False),
        sa.Column('workshop_date', sa.Date(), nullable=False),
        sa.Column('attended', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('idvol', 'workshop_name', 'workshop_date', name='uq_attendance_volunteer_workshop'),
    )
    op.create_index('ix_attendances_workshop_date', 'attendances', ['workshop_date'])


def downgrade() -> None:
    op.drop_index('ix_attendances_workshop_date', table_name='attendances')
    op.drop_table('attendances')
    op.drop_index('ix_notebooks_idpep', table_name='notebooks')
    op.drop_index('ix_notebooks_idvol', table_name='notebooks')
    op.drop_table('notebooks')
    op.drop_index('ix_volunteer_hours_idvol_created', table_name='volunteer_hours')
    op.drop_table('volunteer_hours')
    op.drop_index('ix_volunteers_created_at', table_name='volunteers')
    op.drop_table('volunteers')
    op.drop_table('authorizations')
    op.drop_table('pep_classes')
    op.drop_table('places')
