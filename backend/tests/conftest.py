"""
Shared fixtures: in-memory SQLite database, seeded locations and profiles,
actors with resolved scopes.
"""

import os
import uuid
from datetime import date

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.core.database import Base
from app.models import Location, Profile, UserLocation, UserRole
from app.schemas.inspection import AreaTemplate, InspectionCreate, ItemTemplate
from app.services.access_scope import Actor, resolve_scope
from app.services.templates import TemplateCatalog


LOCATION_A = uuid.UUID("00000000-0000-0000-0000-00000000000a")
LOCATION_B = uuid.UUID("00000000-0000-0000-0000-00000000000b")
LOCATION_CLOSED = uuid.UUID("00000000-0000-0000-0000-0000000000cc")

ADMIN_ID = uuid.UUID("10000000-0000-0000-0000-000000000001")
SUPERVISOR_ID = uuid.UUID("10000000-0000-0000-0000-000000000002")
INSPECTOR_ID = uuid.UUID("10000000-0000-0000-0000-000000000003")
OTHER_INSPECTOR_ID = uuid.UUID("10000000-0000-0000-0000-000000000004")
CORPORATE_ID = uuid.UUID("10000000-0000-0000-0000-000000000005")
UNASSIGNED_ID = uuid.UUID("10000000-0000-0000-0000-000000000006")


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        session.add_all([
            Location(id=LOCATION_A, code="CUN", name="Hotel Cancun"),
            Location(id=LOCATION_B, code="PVR", name="Hotel Puerto Vallarta"),
            Location(id=LOCATION_CLOSED, code="OLD", name="Hotel Cerrado", is_active=False),
        ])
        await session.flush()
        session.add_all([
            Profile(id=ADMIN_ID, full_name="Ana Admin", role=UserRole.ADMIN.value),
            Profile(id=SUPERVISOR_ID, full_name="Sergio Supervisor", role=UserRole.SUPERVISOR.value, location_id=LOCATION_A),
            Profile(id=INSPECTOR_ID, full_name="Irene Inspectora", role=UserRole.AGENT_L1.value, location_id=LOCATION_A),
            Profile(id=OTHER_INSPECTOR_ID, full_name="Omar Otro", role=UserRole.AGENT_L1.value, location_id=LOCATION_B),
            Profile(
                id=CORPORATE_ID,
                full_name="Carla Corporativo",
                role=UserRole.CORPORATE_ADMIN.value,
                allowed_departments=["gsh "],
            ),
            Profile(id=UNASSIGNED_ID, full_name="Nadia Nadie", role=UserRole.REQUESTER.value),
        ])
        await session.flush()
        session.add(UserLocation(user_id=SUPERVISOR_ID, location_id=LOCATION_B))
        await session.commit()
    return maker


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def catalog():
    catalog = TemplateCatalog(departments=settings.INSPECTION_DEPARTMENTS)
    catalog.load()
    return catalog


ACTIVE_LOCATIONS = (LOCATION_A, LOCATION_B)


def make_actor(user_id, role, primary=None, assigned=(), allowed=None, name="Tester"):
    return Actor(
        user_id=user_id,
        role=role,
        full_name=name,
        primary_location_id=primary,
        assigned_location_ids=frozenset(assigned),
        allowed_departments=tuple(allowed) if allowed is not None else None,
    )


def scope_for(actor):
    return resolve_scope(actor, ACTIVE_LOCATIONS, settings.INSPECTION_DEPARTMENTS, settings.DEPARTMENT_ALIASES)


@pytest.fixture
def admin():
    return make_actor(ADMIN_ID, UserRole.ADMIN.value, name="Ana Admin")


@pytest.fixture
def supervisor():
    return make_actor(
        SUPERVISOR_ID, UserRole.SUPERVISOR.value, primary=LOCATION_A, assigned=[LOCATION_B], name="Sergio Supervisor"
    )


@pytest.fixture
def inspector():
    return make_actor(INSPECTOR_ID, UserRole.AGENT_L1.value, primary=LOCATION_A, name="Irene Inspectora")


@pytest.fixture
def other_inspector():
    return make_actor(OTHER_INSPECTOR_ID, UserRole.AGENT_L1.value, primary=LOCATION_B, name="Omar Otro")


@pytest.fixture
def corporate():
    return make_actor(CORPORATE_ID, UserRole.CORPORATE_ADMIN.value, allowed=["gsh "], name="Carla Corporativo")


def worked_example_areas():
    """Two unevaluated areas: Lobby (3 items) and Pasillos (2 items).

    Filled by the tests as Lobby [Cumple 8, Cumple 10, No Cumple] and
    Pasillos [N/A, N/A]: coverage 100, compliance 67, area scores 9 and 0.
    """
    return [
        AreaTemplate(
            area_name="Lobby",
            area_order=1,
            items=[
                ItemTemplate(item_order=1, descripcion="Piso limpio"),
                ItemTemplate(item_order=2, descripcion="Mostrador ordenado"),
                ItemTemplate(item_order=3, descripcion="Iluminacion funcional"),
            ],
        ),
        AreaTemplate(
            area_name="Pasillos",
            area_order=2,
            items=[
                ItemTemplate(item_order=1, descripcion="Senalizacion visible"),
                ItemTemplate(item_order=2, descripcion="Extintores vigentes"),
            ],
        ),
    ]


def explicit_create(location_id=LOCATION_A, department="GSH", areas=None):
    return InspectionCreate(
        location_id=location_id,
        inspection_date=date(2026, 10, 1),
        department=department,
        areas=areas if areas is not None else worked_example_areas(),
    )
