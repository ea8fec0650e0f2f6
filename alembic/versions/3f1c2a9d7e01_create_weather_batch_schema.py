"""create weather batch schema

Revision ID: 3f1c2a9d7e01
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9d7e01'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ALERT_TYPES = ('HEAT_WAVE', 'COLD_WAVE', 'HEAVY_RAIN', 'HEAVY_SNOW', 'STRONG_WIND', 'ABNORMAL_WEATHER')
ALERT_LEVELS = ('NOTICE', 'ADVISORY', 'WARNING', 'EMERGENCY')
BATCH_STATUSES = ('STARTING', 'STARTED', 'COMPLETED', 'FAILED', 'STOPPED')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    # Observations
    op.create_table(
        'weather_observations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column('city_code', sa.String(length=50), nullable=False),
        sa.Column('city_name', sa.String(length=100), nullable=False),
        sa.Column('temperature', sa.Float(), nullable=True),
        sa.Column('feels_like', sa.Float(), nullable=True),
        sa.Column('temp_min', sa.Float(), nullable=True),
        sa.Column('temp_max', sa.Float(), nullable=True),
        sa.Column('humidity', sa.Integer(), nullable=True),
        sa.Column('pressure', sa.Integer(), nullable=True),
        sa.Column('weather_main', sa.String(length=50), nullable=True),
        sa.Column('weather_description', sa.String(length=200), nullable=True),
        sa.Column('cloudiness', sa.Integer(), nullable=True),
        sa.Column('wind_speed', sa.Float(), nullable=True),
        sa.Column('wind_direction', sa.Integer(), nullable=True),
        sa.Column('rainfall', sa.Float(), nullable=True),
        sa.Column('snowfall', sa.Float(), nullable=True),
        sa.Column('visibility', sa.Integer(), nullable=True),
        sa.Column('collected_at', sa.DateTime(), nullable=False),
        sa.Column('weather_time', sa.DateTime(), nullable=True),
        sa.Column('temperature_change', sa.Float(), nullable=True),
        sa.Column('is_abnormal', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_weather_observations_id'), 'weather_observations', ['id'], unique=False)
    op.create_index(op.f('ix_weather_observations_city_code'), 'weather_observations', ['city_code'], unique=False)
    op.create_index(op.f('ix_weather_observations_collected_at'), 'weather_observations', ['collected_at'], unique=False)
    op.create_index('idx_observation_city_collected', 'weather_observations', ['city_code', 'collected_at'], unique=False)

    # Daily statistics
    op.create_table(
        'daily_statistics',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column('statistics_date', sa.Date(), nullable=False),
        sa.Column('city_code', sa.String(length=50), nullable=False),
        sa.Column('city_name', sa.String(length=100), nullable=False),
        sa.Column('avg_temperature', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('max_temperature', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('min_temperature', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('temperature_range', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('avg_humidity', sa.Integer(), nullable=True),
        sa.Column('avg_pressure', sa.Integer(), nullable=True),
        sa.Column('dominant_weather', sa.String(length=50), nullable=True),
        sa.Column('clear_hours', sa.Integer(), nullable=False),
        sa.Column('cloudy_hours', sa.Integer(), nullable=False),
        sa.Column('rainy_hours', sa.Integer(), nullable=False),
        sa.Column('abnormal_weather_count', sa.Integer(), nullable=False),
        sa.Column('max_temperature_change', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.Column('total_records', sa.Integer(), nullable=False),
        sa.Column('data_collection_rate', sa.Numeric(precision=5, scale=2), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('statistics_date', 'city_code', name='uq_statistics_date_city')
    )
    op.create_index(op.f('ix_daily_statistics_id'), 'daily_statistics', ['id'], unique=False)
    op.create_index(op.f('ix_daily_statistics_statistics_date'), 'daily_statistics', ['statistics_date'], unique=False)
    op.create_index(op.f('ix_daily_statistics_city_code'), 'daily_statistics', ['city_code'], unique=False)
    op.create_index('idx_statistics_city_date', 'daily_statistics', ['city_code', 'statistics_date'], unique=False)

    # Alerts
    op.create_table(
        'weather_alerts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column('city_code', sa.String(length=50), nullable=False),
        sa.Column('city_name', sa.String(length=100), nullable=False),
        sa.Column('alert_type', sa.Enum(*ALERT_TYPES, name='alerttype', native_enum=False, length=30), nullable=False),
        sa.Column('alert_level', sa.Enum(*ALERT_LEVELS, name='alertlevel', native_enum=False, length=30), nullable=False),
        sa.Column('alert_title', sa.String(length=200), nullable=False),
        sa.Column('alert_message', sa.String(length=1000), nullable=True),
        sa.Column('trigger_value', sa.Float(), nullable=True),
        sa.Column('threshold_value', sa.Float(), nullable=True),
        sa.Column('observation_id', sa.Integer(), nullable=True),
        sa.Column('alert_time', sa.DateTime(), nullable=False),
        sa.Column('is_sent', sa.Boolean(), nullable=False),
        sa.Column('sent_time', sa.DateTime(), nullable=True),
        sa.Column('is_resolved', sa.Boolean(), nullable=False),
        sa.Column('resolved_time', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['observation_id'], ['weather_observations.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_weather_alerts_id'), 'weather_alerts', ['id'], unique=False)
    op.create_index(op.f('ix_weather_alerts_city_code'), 'weather_alerts', ['city_code'], unique=False)
    op.create_index(op.f('ix_weather_alerts_alert_time'), 'weather_alerts', ['alert_time'], unique=False)
    op.create_index('idx_alert_city_type_resolved', 'weather_alerts', ['city_code', 'alert_type', 'is_resolved'], unique=False)

    # Batch execution bookkeeping
    op.create_table(
        'job_executions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column('job_name', sa.String(length=100), nullable=False),
        sa.Column('job_key', sa.String(length=32), nullable=False),
        sa.Column('parameters', sa.JSON(), nullable=False),
        sa.Column('status', sa.Enum(*BATCH_STATUSES, name='batchstatus', native_enum=False, length=20), nullable=False),
        sa.Column('exit_message', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_job_executions_id'), 'job_executions', ['id'], unique=False)
    op.create_index(op.f('ix_job_executions_job_name'), 'job_executions', ['job_name'], unique=False)
    op.create_index('idx_job_execution_name_key', 'job_executions', ['job_name', 'job_key'], unique=False)

    op.create_table(
        'step_executions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        *_timestamps(),
        sa.Column('job_execution_id', sa.Integer(), nullable=False),
        sa.Column('step_name', sa.String(length=100), nullable=False),
        sa.Column('status', sa.Enum(*BATCH_STATUSES, name='batchstatus', native_enum=False, length=20), nullable=False),
        sa.Column('read_count', sa.Integer(), nullable=False),
        sa.Column('write_count', sa.Integer(), nullable=False),
        sa.Column('filter_count', sa.Integer(), nullable=False),
        sa.Column('commit_count', sa.Integer(), nullable=False),
        sa.Column('rollback_count', sa.Integer(), nullable=False),
        sa.Column('exit_message', sa.Text(), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=True),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['job_execution_id'], ['job_executions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_step_executions_id'), 'step_executions', ['id'], unique=False)
    op.create_index(op.f('ix_step_executions_job_execution_id'), 'step_executions', ['job_execution_id'], unique=False)


def downgrade() -> None:
    op.drop_table('step_executions')
    op.drop_table('job_executions')
    op.drop_table('weather_alerts')
    op.drop_table('daily_statistics')
    op.drop_table('weather_observations')
