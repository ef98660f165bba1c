"""initial relay schema

Revision ID: 20260201_initial_relay_schema
Revises:
Create Date: 2026-02-01
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20260201_initial_relay_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'integration_requests',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('agency_id', sa.String(64), nullable=True, index=True),
        sa.Column('provider_type', sa.String(40), nullable=False),
        sa.Column('provider_name', sa.String(40), nullable=False),
        sa.Column('request_type', sa.String(80), nullable=False),
        sa.Column('provider_request_id', sa.String(255), nullable=True),
        sa.Column('request_payload', sa.JSON(), nullable=True),
        sa.Column('response_payload', sa.JSON(), nullable=True),
        sa.Column('response_status', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('latency_ms', sa.Integer(), nullable=True),
        sa.Column('started_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_integration_request_provider_time', 'integration_requests', ['provider_name', 'started_at'])
    op.create_index('ix_integration_request_provider_request', 'integration_requests', ['provider_request_id'])

    op.create_table(
        'integration_providers',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('agency_id', sa.String(64), nullable=False, index=True),
        sa.Column('provider_type', sa.String(40), nullable=False),
        sa.Column('provider_name', sa.String(40), nullable=False),
        sa.Column('enabled', sa.Boolean(), server_default=sa.true(), nullable=False),
        sa.Column('health_status', sa.String(16), server_default='unknown', nullable=False),
        sa.Column('last_success_at', sa.DateTime(), nullable=True),
        sa.Column('last_failure_at', sa.DateTime(), nullable=True),
        sa.Column('failure_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('agency_id', 'provider_name', name='uq_integration_provider_agency_name'),
    )

    op.create_table(
        'device_registry',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('device_id', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('resident_id', sa.String(64), nullable=True, index=True),
        sa.Column('device_type', sa.String(40), nullable=False),
        sa.Column('device_name', sa.String(128), nullable=True),
        sa.Column('manufacturer', sa.String(80), nullable=True),
        sa.Column('model', sa.String(80), nullable=True),
        sa.Column('serial_number', sa.String(128), nullable=True),
        sa.Column('firmware_version', sa.String(80), nullable=True),
        sa.Column('battery_level', sa.Integer(), nullable=True),
        sa.Column('trust_state', sa.String(24), server_default='UNVERIFIED', nullable=False),
        sa.Column('capabilities', sa.JSON(), nullable=True),
        sa.Column('last_seen_at', sa.DateTime(), nullable=True),
        sa.Column('real_device_verified', sa.Boolean(), server_default=sa.false(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()')),
    )

    op.create_table(
        'health_metrics',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('resident_id', sa.String(64), nullable=False, index=True),
        sa.Column('device_registry_id', sa.String(25), sa.ForeignKey('device_registry.id'), nullable=True),
        sa.Column('metric_key', sa.String(64), nullable=True, unique=True),
        sa.Column('metric_category', sa.String(40), nullable=False),
        sa.Column('metric_type', sa.String(128), nullable=False),
        sa.Column('value_numeric', sa.Float(), nullable=True),
        sa.Column('value_json', sa.JSON(), nullable=True),
        sa.Column('unit', sa.String(40), nullable=True),
        sa.Column('confidence_level', sa.String(16), nullable=False),
        sa.Column('measurement_source', sa.String(24), nullable=False),
        sa.Column('data_source', sa.String(24), server_default='REAL_DEVICE', nullable=False),
        sa.Column('recorded_at', sa.DateTime(), nullable=False),
        sa.Column('synced_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('device_firmware_version', sa.String(80), nullable=True),
        sa.Column('device_battery_level', sa.Integer(), nullable=True),
        sa.Column('raw_data', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
    )
    op.create_index('ix_health_metric_resident_time', 'health_metrics', ['resident_id', 'recorded_at'])
    op.create_index('ix_health_metric_category_type', 'health_metrics', ['metric_category', 'metric_type'])

    op.create_table(
        'device_data_events',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('device_registry_id', sa.String(25), sa.ForeignKey('device_registry.id'), nullable=True),
        sa.Column('resident_id', sa.String(64), nullable=False, index=True),
        sa.Column('event_type', sa.String(40), nullable=False),
        sa.Column('event_data', sa.JSON(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
    )
    op.create_index('ix_device_event_resident_time', 'device_data_events', ['resident_id', 'occurred_at'])

    op.create_table(
        'external_user_mappings',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('provider_type', sa.String(40), nullable=False),
        sa.Column('external_user_id', sa.String(128), nullable=False),
        sa.Column('agency_id', sa.String(64), nullable=False),
        sa.Column('resident_id', sa.String(64), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.UniqueConstraint('provider_type', 'external_user_id', name='uq_external_user_provider_user'),
    )

    op.create_table(
        'device_data_staging',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('agency_id', sa.String(64), nullable=False, index=True),
        sa.Column('device_id', sa.String(255), nullable=False),
        sa.Column('device_registry_id', sa.String(25), sa.ForeignKey('device_registry.id'), nullable=True),
        sa.Column('resident_id', sa.String(64), nullable=True),
        sa.Column('raw_payload', sa.JSON(), nullable=False),
        sa.Column('payload_format', sa.String(24), server_default='json', nullable=False),
        sa.Column('payload_hash', sa.String(32), nullable=False),
        sa.Column('status', sa.String(16), server_default='pending', nullable=False),
        sa.Column('vitals_created', sa.Integer(), server_default='0', nullable=False),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('received_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_device_staging_hash_time', 'device_data_staging', ['payload_hash', 'received_at'])
    op.create_index('ix_device_staging_status_time', 'device_data_staging', ['status', 'received_at'])

    op.create_table(
        'vital_signs',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('resident_id', sa.String(64), nullable=False, index=True),
        sa.Column('staging_id', sa.String(25), sa.ForeignKey('device_data_staging.id'), nullable=True),
        sa.Column('vital_type', sa.String(40), nullable=False),
        sa.Column('value', sa.Float(), nullable=False),
        sa.Column('unit', sa.String(24), nullable=True),
        sa.Column('measured_at', sa.DateTime(), nullable=False),
        sa.Column('source', sa.String(24), server_default='device', nullable=False),
        sa.Column('source_field', sa.String(64), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
    )
    op.create_index('ix_vital_resident_time', 'vital_signs', ['resident_id', 'measured_at'])

    op.create_table(
        'notification_deliveries',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('agency_id', sa.String(64), nullable=False, index=True),
        sa.Column('notification_type', sa.String(16), server_default='sms', nullable=False),
        sa.Column('recipient_contact', sa.String(64), nullable=False),
        sa.Column('resident_id', sa.String(64), nullable=True),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('status', sa.String(16), server_default='queued', nullable=False),
        sa.Column('provider_message_id', sa.String(64), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'voice_transcription_jobs',
        sa.Column('id', sa.String(25), primary_key=True, index=True),
        sa.Column('agency_id', sa.String(64), nullable=False, index=True),
        sa.Column('resident_id', sa.String(64), nullable=True),
        sa.Column('task_id', sa.String(64), nullable=True),
        sa.Column('audio_storage_path', sa.String(512), nullable=False),
        sa.Column('audio_filename', sa.String(255), nullable=True),
        sa.Column('audio_size_bytes', sa.BigInteger(), nullable=True),
        sa.Column('status', sa.String(16), server_default='pending', nullable=False),
        sa.Column('transcript_text', sa.Text(), nullable=True),
        sa.Column('confidence_score', sa.Float(), nullable=True),
        sa.Column('language_detected', sa.String(16), nullable=True),
        sa.Column('audio_duration_seconds', sa.Float(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()')),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('voice_transcription_jobs')
    op.drop_table('notification_deliveries')
    op.drop_index('ix_vital_resident_time', table_name='vital_signs')
    op.drop_table('vital_signs')
    op.drop_index('ix_device_staging_status_time', table_name='device_data_staging')
    op.drop_index('ix_device_staging_hash_time', table_name='device_data_staging')
    op.drop_table('device_data_staging')
    op.drop_table('external_user_mappings')
    op.drop_index('ix_device_event_resident_time', table_name='device_data_events')
    op.drop_table('device_data_events')
    op.drop_index('ix_health_metric_category_type', table_name='health_metrics')
    op.drop_index('ix_health_metric_resident_time', table_name='health_metrics')
    op.drop_table('health_metrics')
    op.drop_table('device_registry')
    op.drop_table('integration_providers')
    op.drop_index('ix_integration_request_provider_request', table_name='integration_requests')
    op.drop_index('ix_integration_request_provider_time', table_name='integration_requests')
    op.drop_table('integration_requests')
