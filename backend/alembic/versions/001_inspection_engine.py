"""Inspection engine - locations, profiles, inspections, evidences, deletion log

Revision ID: 001_inspection_engine
Revises:
Create Date: 2026-10-19

Locations, profiles and user_locations are owned by the hub; they are
created here so the engine can run standalone in development.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '001_inspection_engine'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # =========================================================================
    # ASSIGNMENT RECORDS
    # =========================================================================
    op.create_table(
        'locations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.UniqueConstraint('code'),
    )

    op.create_table(
        'profiles',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', sa.String(50), nullable=False, server_default='requester'),
        sa.Column('location_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('locations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('allowed_departments', postgresql.JSONB(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        'user_locations',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('location_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('locations.id', ondelete='CASCADE'), primary_key=True),
    )

    # =========================================================================
    # INSPECTIONS - one audit event, metrics cached on the row
    # =========================================================================
    op.create_table(
        'inspections',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('location_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('locations.id'), nullable=False),
        sa.Column('department', sa.String(100), nullable=False),
        sa.Column('category', sa.String(50), nullable=True),
        sa.Column('inspector_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('inspector_name', sa.String(255), nullable=False),
        sa.Column('inspection_date', sa.Date(), nullable=False),
        sa.Column('property_code', sa.String(50), nullable=False, server_default=''),
        sa.Column('property_name', sa.String(255), nullable=False, server_default=''),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('total_areas', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_items', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('items_cumple', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('items_no_cumple', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('items_na', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('items_pending', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('coverage_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('compliance_percentage', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('average_score', sa.Numeric(4, 2), nullable=False, server_default='0'),
        sa.Column('general_comments', sa.Text(), nullable=False, server_default=''),
        sa.Column('reviewed_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint(
            "status IN ('draft', 'completed', 'approved', 'rejected')",
            name='inspections_status_valid',
        ),
        sa.CheckConstraint('coverage_percentage BETWEEN 0 AND 100', name='inspections_coverage_range'),
        sa.CheckConstraint('compliance_percentage BETWEEN 0 AND 100', name='inspections_compliance_range'),
        sa.CheckConstraint('average_score BETWEEN 0 AND 10', name='inspections_average_score_range'),
    )
    op.create_index('idx_inspections_location', 'inspections', ['location_id'])
    op.create_index('idx_inspections_department', 'inspections', ['department'])
    op.create_index('idx_inspections_inspector', 'inspections', ['inspector_user_id'])
    op.create_index('idx_inspections_status', 'inspections', ['status'])
    op.create_index('idx_inspections_date', 'inspections', ['inspection_date'])

    # =========================================================================
    # AREAS / ITEMS
    # =========================================================================
    op.create_table(
        'inspection_areas',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('inspection_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('inspections.id', ondelete='CASCADE'), nullable=False),
        sa.Column('area_name', sa.String(255), nullable=False),
        sa.Column('area_order', sa.Integer(), nullable=False),
        sa.Column('calculated_score', sa.Numeric(4, 2), nullable=False, server_default='0'),
        sa.UniqueConstraint('inspection_id', 'area_order', name='inspection_areas_order_unique'),
    )
    op.create_index('idx_inspection_areas_inspection', 'inspection_areas', ['inspection_id'])

    op.create_table(
        'inspection_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('inspection_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('inspections.id', ondelete='CASCADE'), nullable=False),
        sa.Column('area_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('inspection_areas.id', ondelete='CASCADE'), nullable=False),
        sa.Column('item_order', sa.Integer(), nullable=False),
        sa.Column('descripcion', sa.Text(), nullable=False),
        sa.Column('tipo_dato', sa.String(50), nullable=False, server_default='Fijo'),
        sa.Column('cumplimiento_valor', sa.String(20), nullable=False, server_default=''),
        sa.Column('cumplimiento_editable', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('calif_valor', sa.Numeric(4, 2), nullable=False, server_default='0'),
        sa.Column('calif_editable', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('comentarios_valor', sa.Text(), nullable=False, server_default=''),
        sa.Column('comentarios_libre', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.CheckConstraint(
            "cumplimiento_valor IN ('', 'Cumple', 'No Cumple', 'N/A')",
            name='inspection_items_cumplimiento_valid',
        ),
        sa.CheckConstraint('calif_valor BETWEEN 0 AND 10', name='inspection_items_calif_range'),
    )
    op.create_index('idx_inspection_items_inspection', 'inspection_items', ['inspection_id'])
    op.create_index('idx_inspection_items_area', 'inspection_items', ['area_id'])

    # =========================================================================
    # EVIDENCES - two slots per item, files live in object storage
    # =========================================================================
    op.create_table(
        'inspection_item_evidences',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('inspection_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('inspections.id', ondelete='CASCADE'), nullable=False),
        sa.Column('item_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('inspection_items.id', ondelete='CASCADE'), nullable=False),
        sa.Column('slot', sa.Integer(), nullable=False),
        sa.Column('storage_path', sa.String(500), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=True),
        sa.Column('file_size', sa.BigInteger(), nullable=True),
        sa.Column('mime_type', sa.String(100), nullable=True),
        sa.Column('uploaded_by', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('item_id', 'slot', name='inspection_item_evidences_item_slot_unique'),
        sa.CheckConstraint('slot IN (1, 2)', name='inspection_item_evidences_slot_valid'),
    )
    op.create_index('idx_inspection_item_evidences_inspection', 'inspection_item_evidences', ['inspection_id'])
    op.create_index('idx_inspection_item_evidences_item', 'inspection_item_evidences', ['item_id'])

    # =========================================================================
    # DELETION LOG - no FK, outlives the aggregate
    # =========================================================================
    op.create_table(
        'inspection_deletion_log',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('inspection_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('deleted_by', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('deleted_by_role', sa.String(50), nullable=False),
        sa.Column('acknowledgment_text', sa.Text(), nullable=False),
        sa.Column('snapshot_json', postgresql.JSONB(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('length(trim(acknowledgment_text)) >= 20', name='inspection_deletion_log_ack_length'),
    )
    op.create_index('idx_inspection_deletion_log_inspection', 'inspection_deletion_log', ['inspection_id'])


def downgrade() -> None:
    op.drop_table('inspection_deletion_log')
    op.drop_table('inspection_item_evidences')
    op.drop_table('inspection_items')
    op.drop_table('inspection_areas')
    op.drop_table('inspections')
    op.drop_table('user_locations')
    op.drop_table('profiles')
    op.drop_table('locations')
