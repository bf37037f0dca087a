"""initial schema: plan, activities, strava credentials, coaching

Revision ID: 001
Revises:
Create Date: 2025-01-06 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'phase',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('weekly_km_target_start', sa.Float(), nullable=True),
        sa.Column('weekly_km_target_end', sa.Float(), nullable=True),
        sa.Column('long_run_target_km', sa.Float(), nullable=True),
        sa.Column('focus_areas', sa.JSON(), nullable=True),
        sa.CheckConstraint('start_date <= end_date', name='ck_phase_date_order'),
    )
    op.create_index('ix_phase_dates', 'phase', ['start_date', 'end_date'])

    op.create_table(
        'week',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('phase_id', sa.Uuid(), nullable=False),
        sa.Column('week_number', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('target_km', sa.Float(), nullable=True),
        sa.Column('target_elevation', sa.Float(), nullable=True),
        sa.Column('target_hours', sa.Float(), nullable=True),
        sa.Column('target_strength_sessions', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(['phase_id'], ['phase.id'], ),
        sa.CheckConstraint('start_date <= end_date', name='ck_week_date_order'),
    )
    op.create_index('ix_week_phase_id', 'week', ['phase_id'])
    op.create_index('ix_week_week_number', 'week', ['week_number'])
    op.create_index('ix_week_dates', 'week', ['start_date', 'end_date'])

    op.create_table(
        'planned_workout',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('week_id', sa.Uuid(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('workout_type', sa.Text(), nullable=False),
        sa.Column('title', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('target_km', sa.Float(), nullable=True),
        sa.Column('target_duration_minutes', sa.Integer(), nullable=True),
        sa.Column('target_elevation', sa.Float(), nullable=True),
        sa.Column('intensity', sa.Text(), nullable=True),
        sa.Column('countdown_number', sa.Integer(), nullable=True),
        sa.Column('is_key_workout', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.ForeignKeyConstraint(['week_id'], ['week.id'], ),
    )
    op.create_index('ix_planned_workout_week_id', 'planned_workout', ['week_id'])
    op.create_index('ix_planned_workout_date', 'planned_workout', ['date'])

    op.create_table(
        'activity',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('strava_id', sa.BigInteger(), nullable=False),
        sa.Column('strava_athlete_id', sa.BigInteger(), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('name', sa.Text(), nullable=True),
        sa.Column('activity_type', sa.Text(), nullable=True),
        sa.Column('sport_type', sa.Text(), nullable=True),
        sa.Column('distance_km', sa.Float(), nullable=True),
        sa.Column('moving_time_seconds', sa.Integer(), nullable=True),
        sa.Column('elapsed_time_seconds', sa.Integer(), nullable=True),
        sa.Column('elevation_gain', sa.Float(), nullable=True),
        sa.Column('average_speed', sa.Float(), nullable=True),
        sa.Column('max_speed', sa.Float(), nullable=True),
        sa.Column('average_heartrate', sa.Integer(), nullable=True),
        sa.Column('max_heartrate', sa.Integer(), nullable=True),
        sa.Column('calories', sa.Float(), nullable=True),
        sa.Column('suffer_score', sa.Float(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('matched_workout_id', sa.Uuid(), nullable=True),
        sa.Column('raw_data', sa.JSON(), nullable=True),
        sa.Column('synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['matched_workout_id'], ['planned_workout.id'], ),
        sa.UniqueConstraint('strava_id', name='uq_activity_strava_id'),
    )
    op.create_index('ix_activity_strava_athlete_id', 'activity', ['strava_athlete_id'])
    op.create_index('ix_activity_start_time', 'activity', ['start_time'])

    op.create_table(
        'weekly_summary',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('week_id', sa.Uuid(), nullable=False),
        sa.Column('actual_km', sa.Float(), nullable=True),
        sa.Column('actual_elevation', sa.Integer(), nullable=True),
        sa.Column('actual_hours', sa.Float(), nullable=True),
        sa.Column('actual_activities', sa.Integer(), nullable=True),
        sa.Column('completion_percentage', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('ai_analysis', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['week_id'], ['week.id'], ),
        sa.UniqueConstraint('week_id', name='uq_weekly_summary_week_id'),
    )

    op.create_table(
        'strava_credential',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('athlete_id', sa.BigInteger(), nullable=False),
        sa.Column('access_token', sa.Text(), nullable=False),
        sa.Column('refresh_token', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.BigInteger(), nullable=False),
        sa.Column('athlete_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('athlete_id', name='uq_strava_credential_athlete_id'),
    )

    op.create_table(
        'lifestyle_log',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('sleep_hours', sa.Float(), nullable=True),
        sa.Column('sleep_quality', sa.Integer(), nullable=True),
        sa.Column('weight_kg', sa.Float(), nullable=True),
        sa.Column('energy_level', sa.Integer(), nullable=True),
        sa.Column('soreness_level', sa.Integer(), nullable=True),
        sa.Column('stress_level', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('no_sugar', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_lifestyle_log_date', 'lifestyle_log', ['date'])

    op.create_table(
        'ai_analysis',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('week_id', sa.Uuid(), nullable=True),
        sa.Column('analysis_type', sa.Text(), nullable=True),
        sa.Column('ai_model', sa.Text(), nullable=True),
        sa.Column('prompt', sa.Text(), nullable=True),
        sa.Column('response', sa.Text(), nullable=True),
        sa.Column('recommendations', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(['week_id'], ['week.id'], ),
    )
    op.create_index('ix_ai_analysis_week_id', 'ai_analysis', ['week_id'])

    op.create_table(
        'goal',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('target_date', sa.Date(), nullable=True),
        sa.Column('goal_type', sa.Text(), nullable=True),
        sa.Column('target_value', sa.Float(), nullable=True),
        sa.Column('current_value', sa.Float(), nullable=True),
        sa.Column('is_completed', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )


def downgrade() -> None:
    op.drop_table('goal')
    op.drop_index('ix_ai_analysis_week_id', table_name='ai_analysis')
    op.drop_table('ai_analysis')
    op.drop_index('ix_lifestyle_log_date', table_name='lifestyle_log')
    op.drop_table('lifestyle_log')
    op.drop_table('strava_credential')
    op.drop_table('weekly_summary')
    op.drop_index('ix_activity_start_time', table_name='activity')
    op.drop_index('ix_activity_strava_athlete_id', table_name='activity')
    op.drop_table('activity')
    op.drop_index('ix_planned_workout_date', table_name='planned_workout')
    op.drop_index('ix_planned_workout_week_id', table_name='planned_workout')
    op.drop_table('planned_workout')
    op.drop_index('ix_week_dates', table_name='week')
    op.drop_index('ix_week_week_number', table_name='week')
    op.drop_index('ix_week_phase_id', table_name='week')
    op.drop_table('week')
    op.drop_index('ix_phase_dates', table_name='phase')
    op.drop_table('phase')
