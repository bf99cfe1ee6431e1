"""
Access scope resolver tests.

Pure function of role, assignments and catalogs.
"""

import uuid

import pytest

from app.core.config import settings
from app.core.errors import ForbiddenError
from app.models.user import UserRole
from app.services.access_scope import (
    Actor,
    ScopeStatus,
    can_access,
    canonical_department,
    intersect_departments,
    narrow,
    resolve_scope,
)

A = uuid.uuid4()
B = uuid.uuid4()
C = uuid.uuid4()
ACTIVE = [A, B, C]
CATALOG = ["RECURSOS HUMANOS", "GSH", "MANTENIMIENTO"]


def actor(role, primary=None, assigned=(), allowed=None):
    return Actor(
        user_id=uuid.uuid4(),
        role=role,
        primary_location_id=primary,
        assigned_location_ids=frozenset(assigned),
        allowed_departments=allowed,
    )


class TestLocationRestricted:
    """Roles limited to assigned + primary locations."""

    def test_assigned_locations_without_department_restriction(self):
        scope = resolve_scope(actor(UserRole.SUPERVISOR.value, assigned=[A, B]), ACTIVE, CATALOG)
        assert scope.status == ScopeStatus.OK
        assert scope.location_ids == {A, B}
        assert scope.departments is None

    def test_primary_location_joins_assignments(self):
        scope = resolve_scope(actor(UserRole.AGENT_L1.value, primary=C, assigned=[A]), ACTIVE, CATALOG)
        assert scope.location_ids == {A, C}

    def test_no_assignment_is_explicit_empty_scope(self):
        scope = resolve_scope(actor(UserRole.REQUESTER.value), ACTIVE, CATALOG)
        assert scope.status == ScopeStatus.NO_LOCATIONS
        assert scope.is_empty
        assert narrow(scope).is_empty

    def test_other_location_forbidden(self):
        scope = resolve_scope(actor(UserRole.AGENT_L1.value, primary=A), ACTIVE, CATALOG)
        with pytest.raises(ForbiddenError):
            narrow(scope, location_id=B)


class TestFullAccess:
    """admin sees every active location and department."""

    def test_all_active_locations(self):
        scope = resolve_scope(actor(UserRole.ADMIN.value), ACTIVE, CATALOG)
        assert scope.full_access
        assert scope.location_ids == set(ACTIVE)
        assert scope.departments is None

    def test_all_selector_is_noop(self):
        scope = resolve_scope(actor(UserRole.ADMIN.value), ACTIVE, CATALOG)
        narrowed = narrow(scope, department="ALL", department_catalog=CATALOG)
        assert narrowed.departments is None
        assert narrowed.location_ids == set(ACTIVE)

    def test_department_selection_uses_catalog_spelling(self):
        scope = resolve_scope(actor(UserRole.ADMIN.value), ACTIVE, CATALOG)
        narrowed = narrow(scope, location_id=A, department=" gsh", department_catalog=CATALOG)
        assert narrowed.location_ids == {A}
        assert narrowed.departments == {"GSH"}


class TestDepartmentRestricted:
    """corporate_admin limited by a department allow-list."""

    def test_all_expands_to_allowed_set_only(self):
        scope = resolve_scope(actor(UserRole.CORPORATE_ADMIN.value, allowed=("GSH",)), ACTIVE, CATALOG)
        narrowed = narrow(scope, department="ALL", department_catalog=CATALOG)
        assert narrowed.departments == {"GSH"}

    def test_short_id_resolves_with_shipped_catalog(self):
        scope = resolve_scope(
            actor(UserRole.CORPORATE_ADMIN.value, allowed=("RRHH",)),
            ACTIVE,
            settings.INSPECTION_DEPARTMENTS,
            settings.DEPARTMENT_ALIASES,
        )
        assert scope.status == ScopeStatus.OK
        narrowed = narrow(scope, department="ALL", department_catalog=settings.INSPECTION_DEPARTMENTS)
        assert narrowed.departments == {"RECURSOS HUMANOS"}

    def test_short_id_selects_department(self):
        scope = resolve_scope(
            actor(UserRole.CORPORATE_ADMIN.value, allowed=("RECURSOS HUMANOS", "GSH")),
            ACTIVE,
            settings.INSPECTION_DEPARTMENTS,
            settings.DEPARTMENT_ALIASES,
        )
        narrowed = narrow(scope, department="rrhh", department_aliases=settings.DEPARTMENT_ALIASES)
        assert narrowed.departments == {"RECURSOS HUMANOS"}

    def test_allow_list_matched_trimmed_and_case_insensitive(self):
        scope = resolve_scope(
            actor(UserRole.CORPORATE_ADMIN.value, allowed=("  gsh ", "mantenimiento", "VENTAS")),
            ACTIVE,
            CATALOG,
        )
        assert scope.departments == {"GSH", "MANTENIMIENTO"}
        assert scope.location_ids == set(ACTIVE)

    @pytest.mark.parametrize("allowed", [None, (), ("VENTAS",)])
    def test_empty_intersection_is_no_departments(self, allowed):
        scope = resolve_scope(actor(UserRole.CORPORATE_ADMIN.value, allowed=allowed), ACTIVE, CATALOG)
        assert scope.status == ScopeStatus.NO_DEPARTMENTS
        narrowed = narrow(scope, department="ALL")
        assert narrowed.is_empty
        assert narrowed.status == ScopeStatus.NO_DEPARTMENTS

    def test_department_outside_allow_list_forbidden(self):
        scope = resolve_scope(actor(UserRole.CORPORATE_ADMIN.value, allowed=("GSH",)), ACTIVE, CATALOG)
        with pytest.raises(ForbiddenError):
            narrow(scope, department="MANTENIMIENTO", department_catalog=CATALOG)

    def test_can_access_checks_department(self):
        scope = resolve_scope(actor(UserRole.CORPORATE_ADMIN.value, allowed=("GSH",)), ACTIVE, CATALOG)
        assert can_access(scope, A, "gsh")
        assert not can_access(scope, A, "MANTENIMIENTO")


class TestHelpers:
    def test_canonical_department(self):
        assert canonical_department("recursos   humanos", CATALOG) == "RECURSOS HUMANOS"
        assert canonical_department("VENTAS", CATALOG) is None

    def test_canonical_department_alias(self):
        assert canonical_department("rrhh", CATALOG, {"rrhh": "RECURSOS HUMANOS"}) == "RECURSOS HUMANOS"
        assert canonical_department("rrhh", CATALOG) is None

    def test_intersect_ignores_blank_entries(self):
        assert intersect_departments(["", "  ", "gsh"], CATALOG) == {"GSH"}

    def test_can_access_outside_locations(self):
        scope = resolve_scope(actor(UserRole.AGENT_L1.value, primary=A), ACTIVE, CATALOG)
        assert can_access(scope, A, "GSH")
        assert not can_access(scope, B, "GSH")
