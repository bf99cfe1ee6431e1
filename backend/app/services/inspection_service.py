"""
Inspection Aggregate Store

Owns the inspection -> areas -> items (-> evidences) aggregate:
- create from a template in ONE transaction (retried once on transient conflicts)
- read the full ordered aggregate
- apply item deltas, rescore and persist metrics in ONE transaction
- drive lifecycle transitions (completion reports critical items to the notifier)
- delete behind an audit acknowledgment

Metrics on the inspection row are a cache of scoring.recompute() over the
current items. They are rewritten in the same transaction as every item
change and never computed lazily on read.
"""

import asyncio
import logging
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError

from app.bridges.alerts import CriticalAlertBridge
from app.bridges.storage import StorageBridge
from app.core.config import Settings, settings as default_settings
from app.core.database import transaction, utcnow
from app.core.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from app.models.deletion_log import InspectionDeletionLog
from app.models.inspection import (
    Inspection,
    InspectionArea,
    InspectionItem,
    InspectionStatus,
)
from app.models.location import Location
from app.models.user import UserRole
from app.schemas.inspection import (
    AreaTemplate,
    CriticalItem,
    InspectionCreate,
    InspectionResponse,
    InspectionSummary,
    ItemDelta,
    ItemsUpdate,
    MetricsResponse,
    StatusChangeResponse,
)
from app.services.access_scope import AccessScope, Actor, can_access, canonical_department
from app.services.lifecycle import InspectionLifecycle, TransitionRecord
from app.services.scoring import InspectionMetrics, find_critical_items, recompute
from app.services.templates import TemplateCatalog

logger = logging.getLogger(__name__)

METRIC_FIELDS = (
    "total_areas",
    "total_items",
    "items_cumple",
    "items_no_cumple",
    "items_na",
    "items_pending",
    "coverage_percentage",
    "compliance_percentage",
    "average_score",
)

DELETE_ROLES = frozenset({UserRole.ADMIN.value})

CREATE_ATTEMPTS = 2


async def load_aggregate(db: AsyncSession, inspection_id: uuid.UUID) -> Inspection:
    """Inspection with ordered areas, ordered items and evidences, fresh from the DB."""
    result = await db.execute(
        select(Inspection)
        .where(Inspection.id == inspection_id)
        .options(
            selectinload(Inspection.areas)
            .selectinload(InspectionArea.items)
            .selectinload(InspectionItem.evidences)
        )
        .execution_options(populate_existing=True)
    )
    inspection = result.scalar_one_or_none()
    if inspection is None:
        raise NotFoundError(f"Inspection {inspection_id} not found", inspection_id=inspection_id)
    return inspection


def ensure_visible(inspection: Inspection, scope: AccessScope) -> None:
    if not can_access(scope, inspection.location_id, inspection.department):
        raise ForbiddenError(
            "Inspection is outside your access scope",
            inspection_id=inspection.id,
            location_id=inspection.location_id,
            department=inspection.department,
        )


def apply_metrics(inspection: Inspection) -> InspectionMetrics:
    """Rescore the aggregate in memory and write metrics onto the rows."""
    metrics = recompute([area.items for area in inspection.areas])
    for area, score in zip(inspection.areas, metrics.area_scores):
        area.calculated_score = score
    for field in METRIC_FIELDS:
        setattr(inspection, field, getattr(metrics, field))
    return metrics


class InspectionService:
    """Aggregate store and lifecycle entry points for inspections."""

    def __init__(
        self,
        db: AsyncSession,
        catalog: TemplateCatalog,
        storage: Optional[StorageBridge] = None,
        config: Settings = default_settings,
        alerts: Optional[CriticalAlertBridge] = None,
    ) -> None:
        self.db = db
        self.catalog = catalog
        self.storage = storage
        self.alerts = alerts
        self.config = config
        self.lifecycle = InspectionLifecycle(
            require_complete_for_approval=config.REQUIRE_COMPLETE_FOR_APPROVAL,
        )

    # =========================================================================
    # CREATE
    # =========================================================================

    def _resolve_checklist(self, data: InspectionCreate) -> tuple[str, Optional[str], list[AreaTemplate]]:
        """(department, category, areas) from explicit areas or the template catalog."""
        departments = self.config.INSPECTION_DEPARTMENTS
        aliases = self.config.DEPARTMENT_ALIASES

        if data.areas is not None:
            department = canonical_department(data.department or "", departments, aliases)
            if department is None:
                raise ValidationError(f"Unknown department '{data.department}'", field="department")
            return department, data.category, [area.model_copy(deep=True) for area in data.areas]

        try:
            template = self.catalog.get(data.category or "")
        except KeyError:
            raise ValidationError(f"Unknown template category '{data.category}'", field="category")
        if data.department and canonical_department(data.department, [template.department], aliases) is None:
            raise ValidationError(
                f"Template '{template.category}' belongs to {template.department}, not {data.department}",
                field="department",
            )
        return template.department, template.category, template.build_areas()

    def _build_aggregate(
        self,
        data: InspectionCreate,
        actor: Actor,
        department: str,
        category: Optional[str],
        areas: list[AreaTemplate],
        property_code: str,
        property_name: str,
    ) -> Inspection:
        inspection_id = uuid.uuid4()
        inspection = Inspection(
            id=inspection_id,
            location_id=data.location_id,
            department=department,
            category=category,
            inspector_user_id=actor.user_id,
            inspector_name=actor.full_name,
            inspection_date=data.inspection_date,
            property_code=property_code,
            property_name=property_name,
            status=InspectionStatus.DRAFT,
            general_comments=data.general_comments or "",
        )
        for area_t in areas:
            area = InspectionArea(
                id=uuid.uuid4(),
                area_name=area_t.area_name,
                area_order=area_t.area_order,
            )
            for item_t in area_t.items:
                area.items.append(
                    InspectionItem(
                        id=uuid.uuid4(),
                        inspection_id=inspection_id,
                        item_order=item_t.item_order,
                        descripcion=item_t.descripcion,
                        tipo_dato=item_t.tipo_dato,
                        cumplimiento_valor=item_t.cumplimiento_valor.value,
                        cumplimiento_editable=item_t.cumplimiento_editable,
                        calif_valor=item_t.calif_valor,
                        calif_editable=item_t.calif_editable,
                        comentarios_valor=item_t.comentarios_valor,
                        comentarios_libre=item_t.comentarios_libre,
                    )
                )
            inspection.areas.append(area)

        # Template values may be pre-filled: metrics must match from the first write
        apply_metrics(inspection)
        return inspection

    async def create_inspection(self, data: InspectionCreate, actor: Actor, scope: AccessScope) -> InspectionResponse:
        """
        Persist a new inspection with all its areas and items.

        The unit of work inserts the inspection, then its areas, then their
        items, all inside one transaction: any failure leaves nothing behind.

        Raises:
            NotFoundError: unknown or inactive location
            ValidationError: unknown department/category
            ForbiddenError: location/department outside the actor's scope
        """
        location = await self.db.get(Location, data.location_id)
        if location is None or not location.is_active:
            raise NotFoundError(f"Location {data.location_id} not found", location_id=data.location_id)
        property_code = data.property_code or location.code
        property_name = data.property_name or location.name

        department, category, areas = self._resolve_checklist(data)
        if not can_access(scope, data.location_id, department):
            raise ForbiddenError(
                "Cannot create inspections outside your access scope",
                location_id=data.location_id,
                department=department,
            )

        for attempt in range(1, CREATE_ATTEMPTS + 1):
            inspection = self._build_aggregate(
                data, actor, department, category, areas, property_code, property_name
            )
            try:
                async with transaction(self.db):
                    self.db.add(inspection)
                    await self.db.flush()
                break
            except OperationalError as e:
                if attempt == CREATE_ATTEMPTS:
                    raise
                logger.warning(f"Transient conflict creating inspection, retrying: {e}")

        logger.info(
            f"Created inspection {inspection.id} ({department}) at {property_code} "
            f"with {inspection.total_areas} areas / {inspection.total_items} items"
        )
        return await self.get_inspection(inspection.id, scope)

    # =========================================================================
    # READ
    # =========================================================================

    async def get_inspection(self, inspection_id: uuid.UUID, scope: AccessScope) -> InspectionResponse:
        """Full aggregate; evidences carry signed URLs when storage is configured."""
        inspection = await load_aggregate(self.db, inspection_id)
        ensure_visible(inspection, scope)
        response = InspectionResponse.model_validate(inspection)

        if self.storage is not None and self.storage.is_configured:
            evidences = [ev for area in response.areas for item in area.items for ev in item.evidences]
            urls = await asyncio.gather(
                *(
                    self.storage.create_signed_url(ev.storage_path, self.config.EVIDENCE_URL_TTL_SECONDS)
                    for ev in evidences
                )
            )
            for ev, url in zip(evidences, urls):
                ev.signed_url = url

        return response

    # =========================================================================
    # UPDATE ITEMS
    # =========================================================================

    @staticmethod
    def _apply_delta(item: InspectionItem, delta: ItemDelta) -> None:
        if delta.cumplimiento_valor is not None:
            value = delta.cumplimiento_valor.value
            if value != item.cumplimiento_valor and not item.cumplimiento_editable:
                raise ValidationError(
                    "Compliance value of this item is not editable",
                    item_id=item.id,
                    field="cumplimiento_valor",
                )
            item.cumplimiento_valor = value

        if delta.calif_valor is not None:
            if Decimal(delta.calif_valor) != Decimal(item.calif_valor) and not item.calif_editable:
                raise ValidationError(
                    "Score of this item is not editable",
                    item_id=item.id,
                    field="calif_valor",
                )
            item.calif_valor = delta.calif_valor

        if delta.comentarios_valor is not None:
            if delta.comentarios_valor != item.comentarios_valor and not item.comentarios_libre:
                raise ValidationError(
                    "Comments of this item are not free-form",
                    item_id=item.id,
                    field="comentarios_valor",
                )
            item.comentarios_valor = delta.comentarios_valor

    async def update_items(
        self,
        inspection_id: uuid.UUID,
        payload: ItemsUpdate,
        actor: Actor,
        scope: AccessScope,
    ) -> MetricsResponse:
        """
        Apply a batch of item deltas, rescore, and persist metrics atomically.

        Raises:
            NotFoundError: unknown inspection, or item not owned by it
            ValidationError: edit of a non-editable field
            ConflictError: frozen inspection, or stale expected_version
        """
        async with transaction(self.db):
            inspection = await load_aggregate(self.db, inspection_id)
            ensure_visible(inspection, scope)

            if inspection.is_frozen:
                raise ConflictError(
                    f"Inspection is {inspection.status.value}; items are frozen",
                    inspection_id=inspection_id,
                    status=inspection.status.value,
                )
            if payload.expected_version is not None and payload.expected_version != inspection.version:
                raise ConflictError(
                    "Inspection was modified by someone else; reload and retry",
                    inspection_id=inspection_id,
                    expected_version=payload.expected_version,
                    current_version=inspection.version,
                )

            items = {item.id: item for area in inspection.areas for item in area.items}
            for delta in payload.items:
                item = items.get(delta.item_id)
                if item is None:
                    raise NotFoundError(
                        f"Item {delta.item_id} not found in inspection {inspection_id}",
                        inspection_id=inspection_id,
                        item_id=delta.item_id,
                    )
                self._apply_delta(item, delta)

            if payload.general_comments is not None:
                inspection.general_comments = payload.general_comments

            metrics = apply_metrics(inspection)
            # Always touch the row so the version advances with every save
            inspection.updated_at = utcnow()
            try:
                await self.db.flush()
            except StaleDataError:
                raise ConflictError(
                    "Inspection was modified by someone else; reload and retry",
                    inspection_id=inspection_id,
                )

        logger.info(
            f"Inspection {inspection_id}: {len(payload.items)} items saved by {actor.user_id}; "
            f"coverage={metrics.coverage_percentage}% compliance={metrics.compliance_percentage}% "
            f"score={metrics.average_score}"
        )
        return MetricsResponse(
            inspection_id=inspection_id,
            version=inspection.version,
            **metrics.model_dump(),
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def transition_status(
        self,
        inspection_id: uuid.UUID,
        target: InspectionStatus,
        actor: Actor,
        scope: AccessScope,
    ) -> StatusChangeResponse:
        """
        Move an inspection to `target`.

        Entering `completed` rescores first so the submitted metrics can never
        be stale, and collects the items scored below CRITICAL_SCORE_THRESHOLD.
        Those are sent to the notifier after the commit.

        Raises:
            InvalidTransitionError, ForbiddenError, ValidationError, ConflictError
        """
        critical: list[CriticalItem] = []
        async with transaction(self.db):
            inspection = await load_aggregate(self.db, inspection_id)
            ensure_visible(inspection, scope)

            self.lifecycle.check(inspection, target, actor)
            if target == InspectionStatus.COMPLETED:
                apply_metrics(inspection)
                critical = find_critical_items(inspection.areas, self.config.CRITICAL_SCORE_THRESHOLD)
            record: TransitionRecord = self.lifecycle.apply(inspection, target, actor)
            try:
                await self.db.flush()
            except StaleDataError:
                raise ConflictError(
                    "Inspection was modified by someone else; reload and retry",
                    inspection_id=inspection_id,
                )

        logger.debug(f"Transition recorded: {record}")
        summary = InspectionSummary.model_validate(inspection)
        response = StatusChangeResponse(**summary.model_dump(), critical_items=critical)
        if critical:
            logger.warning(f"Inspection {inspection_id} completed with {len(critical)} critical items")
            if self.alerts is not None:
                response.alert_delivered = await self.alerts.notify_critical_items(summary, critical)
        return response

    # =========================================================================
    # DELETE
    # =========================================================================

    async def delete_inspection(
        self,
        inspection_id: uuid.UUID,
        acknowledgment_text: str,
        actor: Actor,
        scope: AccessScope,
    ) -> None:
        """
        Delete the aggregate after logging who deleted it and why.

        The deletion log row (with a JSON snapshot of the aggregate) and the
        cascade delete share one transaction.

        Raises:
            ForbiddenError: actor may not delete
            ValidationError: acknowledgment shorter than DELETE_ACK_MIN_LENGTH after trimming
        """
        if actor.role not in DELETE_ROLES:
            raise ForbiddenError(f"Role '{actor.role}' cannot delete inspections", inspection_id=inspection_id)

        acknowledgment = (acknowledgment_text or "").strip()
        minimum = self.config.DELETE_ACK_MIN_LENGTH
        if len(acknowledgment) < minimum:
            raise ValidationError(
                f"Acknowledgment must be at least {minimum} characters",
                inspection_id=inspection_id,
                field="acknowledgment_text",
            )

        async with transaction(self.db):
            inspection = await load_aggregate(self.db, inspection_id)
            ensure_visible(inspection, scope)

            snapshot = InspectionResponse.model_validate(inspection).model_dump(mode="json")
            self.db.add(
                InspectionDeletionLog(
                    inspection_id=inspection.id,
                    deleted_by=actor.user_id,
                    deleted_by_role=actor.role,
                    acknowledgment_text=acknowledgment,
                    snapshot_json=snapshot,
                )
            )
            await self.db.flush()
            await self.db.delete(inspection)
            await self.db.flush()

        logger.info(f"Deleted inspection {inspection_id} by {actor.user_id} ({actor.role})")
