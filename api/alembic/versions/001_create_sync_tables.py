"""create_sync_tables

Revision ID: 001_create_sync_tables
Revises:
Create Date: 2026-10-19 10:12:41.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_create_sync_tables'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    # mentors/expertise pertenecen al modulo de perfiles; se crean solo si faltan
    if not inspector.has_table('mentors'):
        op.create_table('mentors',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('airtable_record_id', sa.String(length=64), nullable=True),
        sa.Column('headline', sa.Text(), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('title', sa.String(length=255), nullable=True),
        sa.Column('industry', sa.Text(), nullable=True),
        sa.Column('stage', sa.String(length=100), nullable=True),
        sa.Column('timezone', sa.String(length=100), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('sync_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_mentors_email'), 'mentors', ['email'], unique=False)
        op.create_index(op.f('ix_mentors_airtable_record_id'), 'mentors', ['airtable_record_id'], unique=True)
    else:
        columns = {c['name'] for c in inspector.get_columns('mentors')}
        if 'airtable_record_id' not in columns:
            op.add_column('mentors', sa.Column('airtable_record_id', sa.String(length=64), nullable=True))
            op.create_index(op.f('ix_mentors_airtable_record_id'), 'mentors', ['airtable_record_id'], unique=True)
        if 'sync_version' not in columns:
            op.add_column('mentors', sa.Column('sync_version', sa.Integer(), nullable=False, server_default='0'))

    if not inspector.has_table('expertise'):
        op.create_table('expertise',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('mentor_id', sa.String(length=36), nullable=False),
        sa.Column('area', sa.String(length=255), nullable=False),
        sa.Column('subarea', sa.String(length=255), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['mentor_id'], ['mentors.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index(op.f('ix_expertise_mentor_id'), 'expertise', ['mentor_id'], unique=False)

    if not inspector.has_table('airtable_sync_metadata'):
        op.create_table('airtable_sync_metadata',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=36), nullable=False),
        sa.Column('airtable_record_id', sa.String(length=64), nullable=True),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sync_version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('entity_type', 'entity_id', name='uq_airtable_sync_metadata_entity')
        )
        op.create_index(op.f('ix_airtable_sync_metadata_entity_id'), 'airtable_sync_metadata', ['entity_id'], unique=False)
        op.create_index(op.f('ix_airtable_sync_metadata_airtable_record_id'), 'airtable_sync_metadata', ['airtable_record_id'], unique=False)

    if not inspector.has_table('airtable_outbox'):
        op.create_table('airtable_outbox',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=36), nullable=False),
        sa.Column('action', sa.String(length=20), nullable=False, server_default='upsert'),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_airtable_outbox_status_created_at', 'airtable_outbox', ['status', 'created_at'], unique=False)
        op.create_index(op.f('ix_airtable_outbox_entity_id'), 'airtable_outbox', ['entity_id'], unique=False)


def downgrade() -> None:
    """Downgrade schema. Solo elimina las tablas propias del sync."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table('airtable_outbox'):
        op.drop_index(op.f('ix_airtable_outbox_entity_id'), table_name='airtable_outbox')
        op.drop_index('ix_airtable_outbox_status_created_at', table_name='airtable_outbox')
        op.drop_table('airtable_outbox')

    if inspector.has_table('airtable_sync_metadata'):
        op.drop_index(op.f('ix_airtable_sync_metadata_airtable_record_id'), table_name='airtable_sync_metadata')
        op.drop_index(op.f('ix_airtable_sync_metadata_entity_id'), table_name='airtable_sync_metadata')
        op.drop_table('airtable_sync_metadata')
