"""
Evidence Store

Each checklist item has exactly two evidence slots. Writing an occupied slot
replaces its record; the previous storage path is handed back so the caller
can remove the orphaned file from object storage.
"""

import logging
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transaction, utcnow
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.evidence import EVIDENCE_SLOTS, InspectionItemEvidence
from app.models.inspection import Inspection, InspectionItem
from app.schemas.evidence import EvidenceResponse, EvidenceUpsert, EvidenceUpsertResult
from app.services.access_scope import AccessScope, Actor
from app.services.inspection_service import ensure_visible, load_aggregate

logger = logging.getLogger(__name__)


def _validate_slot(slot: int) -> None:
    if slot not in EVIDENCE_SLOTS:
        raise ValidationError(f"Evidence slot must be one of {EVIDENCE_SLOTS}", field="slot", slot=slot)


def _find_item(inspection: Inspection, item_id: uuid.UUID) -> InspectionItem:
    for area in inspection.areas:
        for item in area.items:
            if item.id == item_id:
                return item
    raise NotFoundError(
        f"Item {item_id} not found in inspection {inspection.id}",
        inspection_id=inspection.id,
        item_id=item_id,
    )


def _ensure_writable(inspection: Inspection) -> None:
    if inspection.is_frozen:
        raise ConflictError(
            f"Inspection is {inspection.status.value}; evidences are frozen",
            inspection_id=inspection.id,
            status=inspection.status.value,
        )


def _slot_record(item: InspectionItem, slot: int) -> Optional[InspectionItemEvidence]:
    for evidence in item.evidences:
        if evidence.slot == slot:
            return evidence
    return None


class EvidenceService:
    """Attach and remove item evidence records."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def attach(
        self,
        inspection_id: uuid.UUID,
        item_id: uuid.UUID,
        slot: int,
        payload: EvidenceUpsert,
        actor: Actor,
        scope: AccessScope,
    ) -> EvidenceUpsertResult:
        """
        Write evidence metadata into a slot, replacing whatever was there.

        Raises:
            ValidationError: slot outside 1..2
            NotFoundError: unknown inspection or item
            ConflictError: inspection already reviewed
        """
        _validate_slot(slot)

        async with transaction(self.db):
            inspection = await load_aggregate(self.db, inspection_id)
            ensure_visible(inspection, scope)
            _ensure_writable(inspection)
            item = _find_item(inspection, item_id)

            replaced_path = None
            evidence = _slot_record(item, slot)
            if evidence is None:
                evidence = InspectionItemEvidence(
                    id=uuid.uuid4(),
                    inspection_id=inspection.id,
                    slot=slot,
                )
                item.evidences.append(evidence)
            elif evidence.storage_path != payload.storage_path:
                replaced_path = evidence.storage_path

            evidence.storage_path = payload.storage_path
            evidence.file_name = payload.file_name
            evidence.file_size = payload.file_size
            evidence.mime_type = payload.mime_type
            evidence.uploaded_by = actor.user_id
            evidence.created_at = utcnow()
            await self.db.flush()

        if replaced_path:
            logger.info(f"Evidence slot {slot} of item {item_id} replaced ({replaced_path} -> {payload.storage_path})")
        else:
            logger.info(f"Evidence stored in slot {slot} of item {item_id}")

        return EvidenceUpsertResult(
            evidence=EvidenceResponse.model_validate(evidence),
            replaced_storage_path=replaced_path,
        )

    async def remove(
        self,
        inspection_id: uuid.UUID,
        item_id: uuid.UUID,
        slot: int,
        actor: Actor,
        scope: AccessScope,
    ) -> EvidenceResponse:
        """Delete the record in a slot; returns it so the caller can drop the file."""
        _validate_slot(slot)

        async with transaction(self.db):
            inspection = await load_aggregate(self.db, inspection_id)
            ensure_visible(inspection, scope)
            _ensure_writable(inspection)
            item = _find_item(inspection, item_id)

            evidence = _slot_record(item, slot)
            if evidence is None:
                raise NotFoundError(
                    f"No evidence in slot {slot} of item {item_id}",
                    item_id=item_id,
                    slot=slot,
                )
            removed = EvidenceResponse.model_validate(evidence)
            item.evidences.remove(evidence)
            await self.db.flush()

        logger.info(f"Evidence removed from slot {slot} of item {item_id} by {actor.user_id}")
        return removed
