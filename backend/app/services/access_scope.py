"""
Access Scope Resolver

Single place that decides which locations and departments an actor may list,
read and aggregate. Pure: the caller loads the actor's assignment records and
the location/department catalogs, this module only combines them.

Role families:
    full access          admin            all active locations, any department
    department-limited   corporate_admin  all active locations, allow-list of departments
    location-limited     everyone else    assigned locations + primary location

An actor with no usable assignment is NOT an error: the resolver returns a
scope whose status says why it is empty, and queries short-circuit to empty.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional, Sequence

from app.core.errors import ForbiddenError
from app.models.user import UserRole


ALL_SELECTOR = "ALL"

FULL_ACCESS_ROLES = frozenset({UserRole.ADMIN.value})
DEPARTMENT_RESTRICTED_ROLES = frozenset({UserRole.CORPORATE_ADMIN.value})


class ScopeStatus(str, Enum):
    """Why a scope is (or is not) empty."""
    OK = "ok"
    NO_LOCATIONS = "no_locations"
    NO_DEPARTMENTS = "no_departments"


@dataclass(frozen=True)
class Actor:
    """Authenticated user plus the assignment records the resolver needs."""
    user_id: uuid.UUID
    role: str
    full_name: str = ""
    primary_location_id: Optional[uuid.UUID] = None
    assigned_location_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)
    allowed_departments: Optional[tuple[str, ...]] = None


@dataclass(frozen=True)
class AccessScope:
    """Everything the actor may see. `departments is None` means unrestricted."""
    status: ScopeStatus
    location_ids: frozenset[uuid.UUID]
    departments: Optional[frozenset[str]] = None
    full_access: bool = False

    @property
    def is_empty(self) -> bool:
        return self.status != ScopeStatus.OK


@dataclass(frozen=True)
class ScopeFilter:
    """A scope narrowed to the dashboard's current selection; fed to queries."""
    status: ScopeStatus
    location_ids: frozenset[uuid.UUID]
    departments: Optional[frozenset[str]] = None

    @property
    def is_empty(self) -> bool:
        if self.status != ScopeStatus.OK or not self.location_ids:
            return True
        return self.departments is not None and not self.departments


def _norm(name: str) -> str:
    return " ".join(name.split()).casefold()


def canonical_department(
    name: str,
    catalog: Iterable[str],
    aliases: Optional[Mapping[str, str]] = None,
) -> Optional[str]:
    """Catalog spelling of `name` (trimmed, case-insensitive match), or None.

    `aliases` maps short department ids ("rrhh") to catalog names.
    """
    wanted = _norm(name)
    for alias, target in (aliases or {}).items():
        if _norm(alias) == wanted:
            wanted = _norm(target)
            break
    for entry in catalog:
        if _norm(entry) == wanted:
            return entry
    return None


def intersect_departments(
    allowed: Optional[Sequence[str]],
    catalog: Sequence[str],
    aliases: Optional[Mapping[str, str]] = None,
) -> frozenset[str]:
    """Allow-list intersected with the canonical catalog, in catalog spelling."""
    if not allowed:
        return frozenset()
    matches = (canonical_department(a, catalog, aliases) for a in allowed if a and a.strip())
    return frozenset(match for match in matches if match is not None)


def resolve_scope(
    actor: Actor,
    active_location_ids: Iterable[uuid.UUID],
    department_catalog: Sequence[str],
    department_aliases: Optional[Mapping[str, str]] = None,
) -> AccessScope:
    """Compute the actor's access scope from role and assignments."""
    active = frozenset(active_location_ids)

    if actor.role in FULL_ACCESS_ROLES:
        return AccessScope(status=ScopeStatus.OK, location_ids=active, full_access=True)

    if actor.role in DEPARTMENT_RESTRICTED_ROLES:
        departments = intersect_departments(actor.allowed_departments, department_catalog, department_aliases)
        status = ScopeStatus.OK if departments else ScopeStatus.NO_DEPARTMENTS
        return AccessScope(status=status, location_ids=active, departments=departments)

    locations = set(actor.assigned_location_ids)
    if actor.primary_location_id is not None:
        locations.add(actor.primary_location_id)
    if not locations:
        return AccessScope(status=ScopeStatus.NO_LOCATIONS, location_ids=frozenset())
    return AccessScope(status=ScopeStatus.OK, location_ids=frozenset(locations))


def narrow(
    scope: AccessScope,
    location_id: Optional[uuid.UUID] = None,
    department: Optional[str] = None,
    department_catalog: Sequence[str] = (),
    department_aliases: Optional[Mapping[str, str]] = None,
) -> ScopeFilter:
    """
    Apply a location / department selection to a scope.

    `None` location means every location in scope. Department `None` or "ALL"
    means every department in scope: a no-op for unrestricted scopes and
    exactly the allowed set for restricted ones, never the full catalog.

    Raises:
        ForbiddenError: explicit selection outside the scope
    """
    if scope.is_empty:
        return ScopeFilter(status=scope.status, location_ids=frozenset(), departments=scope.departments)

    location_ids = scope.location_ids
    if location_id is not None:
        if location_id not in scope.location_ids:
            raise ForbiddenError("Location is outside your access scope", location_id=location_id)
        location_ids = frozenset({location_id})

    departments = scope.departments
    if department is not None and department.strip() and _norm(department) != _norm(ALL_SELECTOR):
        if scope.departments is None:
            match = canonical_department(department, department_catalog, department_aliases)
            departments = frozenset({match or department.strip()})
        else:
            match = canonical_department(department, scope.departments, department_aliases)
            if match is None:
                raise ForbiddenError("Department is outside your access scope", department=department)
            departments = frozenset({match})

    return ScopeFilter(status=ScopeStatus.OK, location_ids=location_ids, departments=departments)


def can_access(scope: AccessScope, location_id: uuid.UUID, department: str) -> bool:
    """True when one inspection (by location and department) is inside the scope."""
    if scope.is_empty or location_id not in scope.location_ids:
        return False
    if scope.departments is None:
        return True
    return canonical_department(department, scope.departments) is not None
