"""
Evidence slots and signed URL resolution.
"""

import uuid

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func, select

from app.bridges.storage import StorageBridge
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models import InspectionItemEvidence, InspectionStatus
from app.schemas.evidence import EvidenceUpsert
from app.services.evidence_service import EvidenceService
from app.services.inspection_service import InspectionService

from conftest import explicit_create, scope_for


@pytest.fixture
def inspections(db, catalog):
    return InspectionService(db, catalog)


@pytest.fixture
def evidences(db):
    return EvidenceService(db)


@pytest_asyncio.fixture
async def created(inspections, inspector):
    return await inspections.create_inspection(explicit_create(), inspector, scope_for(inspector))


def photo(path, size=1024):
    return EvidenceUpsert(storage_path=path, file_name=path.rsplit("/", 1)[-1], file_size=size, mime_type="image/jpeg")


async def evidence_count(db):
    return (await db.execute(select(func.count()).select_from(InspectionItemEvidence))).scalar_one()


class TestAttach:
    async def test_fill_both_slots(self, evidences, inspections, created, inspector):
        scope = scope_for(inspector)
        item = created.areas[0].items[0]

        first = await evidences.attach(created.id, item.id, 1, photo("insp/a.jpg"), inspector, scope)
        second = await evidences.attach(created.id, item.id, 2, photo("insp/b.jpg"), inspector, scope)

        assert first.evidence.slot == 1
        assert first.replaced_storage_path is None
        assert second.evidence.slot == 2
        assert second.evidence.uploaded_by == inspector.user_id

        fetched = await inspections.get_inspection(created.id, scope)
        stored = fetched.areas[0].items[0].evidences
        assert [e.slot for e in stored] == [1, 2]
        assert [e.storage_path for e in stored] == ["insp/a.jpg", "insp/b.jpg"]
        assert all(e.signed_url is None for e in stored)

    async def test_second_upload_replaces_slot(self, evidences, created, inspector, db):
        scope = scope_for(inspector)
        item = created.areas[0].items[0]

        await evidences.attach(created.id, item.id, 1, photo("insp/old.jpg"), inspector, scope)
        result = await evidences.attach(created.id, item.id, 1, photo("insp/new.jpg", 2048), inspector, scope)

        assert result.replaced_storage_path == "insp/old.jpg"
        assert result.evidence.storage_path == "insp/new.jpg"
        assert result.evidence.file_size == 2048
        assert await evidence_count(db) == 1

    async def test_evidence_does_not_touch_metrics(self, evidences, inspections, created, inspector):
        scope = scope_for(inspector)
        item = created.areas[0].items[0]
        await evidences.attach(created.id, item.id, 1, photo("insp/a.jpg"), inspector, scope)
        fetched = await inspections.get_inspection(created.id, scope)
        assert fetched.version == created.version
        assert fetched.items_pending == 5

    @pytest.mark.parametrize("slot", [0, 3])
    async def test_invalid_slot(self, evidences, created, inspector, slot):
        item = created.areas[0].items[0]
        with pytest.raises(ValidationError):
            await evidences.attach(created.id, item.id, slot, photo("insp/a.jpg"), inspector, scope_for(inspector))

    async def test_unknown_item(self, evidences, created, inspector):
        with pytest.raises(NotFoundError):
            await evidences.attach(created.id, uuid.uuid4(), 1, photo("insp/a.jpg"), inspector, scope_for(inspector))

    async def test_frozen_inspection(self, evidences, inspections, created, inspector, supervisor):
        scope = scope_for(inspector)
        await inspections.transition_status(created.id, InspectionStatus.COMPLETED, inspector, scope)
        await inspections.transition_status(created.id, InspectionStatus.REJECTED, supervisor, scope_for(supervisor))

        with pytest.raises(ConflictError):
            await evidences.attach(
                created.id, created.areas[0].items[0].id, 1, photo("insp/a.jpg"), inspector, scope
            )


class TestRemove:
    async def test_remove_returns_record(self, evidences, created, inspector, db):
        scope = scope_for(inspector)
        item = created.areas[0].items[0]
        await evidences.attach(created.id, item.id, 2, photo("insp/a.jpg"), inspector, scope)

        removed = await evidences.remove(created.id, item.id, 2, inspector, scope)

        assert removed.storage_path == "insp/a.jpg"
        assert await evidence_count(db) == 0

    async def test_remove_empty_slot(self, evidences, created, inspector):
        with pytest.raises(NotFoundError):
            await evidences.remove(created.id, created.areas[0].items[0].id, 1, inspector, scope_for(inspector))


def fake_storage(handler):
    return StorageBridge(
        base_url="https://storage.test",
        service_key="service-key",
        transport=httpx.MockTransport(handler),
    )


class TestSignedUrls:
    async def test_signed_url_attached(self, db, catalog, evidences, created, inspector):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"signedURL": "/object/sign/inspection-evidences/insp/a.jpg?token=t"})

        scope = scope_for(inspector)
        item = created.areas[0].items[0]
        await evidences.attach(created.id, item.id, 1, photo("insp/a.jpg"), inspector, scope)

        service = InspectionService(db, catalog, storage=fake_storage(handler))
        fetched = await service.get_inspection(created.id, scope)

        url = fetched.areas[0].items[0].evidences[0].signed_url
        assert url == "https://storage.test/storage/v1/object/sign/inspection-evidences/insp/a.jpg?token=t"
        assert requests[0].url.path == "/storage/v1/object/sign/inspection-evidences/insp/a.jpg"
        assert requests[0].headers["authorization"] == "Bearer service-key"

    async def test_signing_failure_yields_null(self, db, catalog, evidences, created, inspector):
        def handler(request):
            return httpx.Response(500, text="boom")

        scope = scope_for(inspector)
        item = created.areas[0].items[0]
        await evidences.attach(created.id, item.id, 1, photo("insp/a.jpg"), inspector, scope)

        service = InspectionService(db, catalog, storage=fake_storage(handler))
        fetched = await service.get_inspection(created.id, scope)

        assert fetched.areas[0].items[0].evidences[0].signed_url is None

    async def test_unconfigured_bridge(self):
        assert await StorageBridge().create_signed_url("insp/a.jpg") is None
