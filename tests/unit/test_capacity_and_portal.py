"""
Unit tests for ProgramCapacityService and PortalAdminService.
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from admissions_crm.infrastructure.db.models import (
    PortalBranding,
    PortalBrandingUpdate,
    PortalNavigationCreate,
    PortalNavigationItem,
    ProgramCapacity,
    ProgramCapacityCreate,
)
from admissions_crm.infrastructure.exceptions import (
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from admissions_crm.infrastructure.services.portal_admin_service import PortalAdminService
from admissions_crm.infrastructure.services.program_capacity_service import (
    ProgramCapacityService,
    compute_availability,
)


# =============================================================================
# Capacity
# =============================================================================

def capacity(tenant_id, total=50, filled=30, reserved=5, waitlist=0):
    return ProgramCapacity(
        tenant_id=tenant_id,
        program_name="Nursing BSN",
        total_seats=total,
        filled_seats=filled,
        reserved_seats=reserved,
        waitlist_count=waitlist,
    )


class TestComputeAvailability:

    def test_available_seats(self, tenant_id):
        result = compute_availability(capacity(tenant_id))
        assert result["available_seats"] == 15
        assert result["utilization_percent"] == 70.0
        assert result["at_capacity"] is False

    def test_overbooked_never_negative(self, tenant_id):
        result = compute_availability(capacity(tenant_id, total=10, filled=9, reserved=3, waitlist=4))
        assert result["available_seats"] == 0
        assert result["at_capacity"] is True
        assert result["utilization_percent"] == 120.0
        assert result["waitlist_count"] == 4

    def test_zero_seats(self, tenant_id):
        result = compute_availability(capacity(tenant_id, total=0, filled=0, reserved=0))
        assert result["utilization_percent"] == 0.0
        assert result["at_capacity"] is True


class TestProgramCapacityService:

    @pytest.fixture
    def service(self, mock_session, tenant_id):
        service = ProgramCapacityService(mock_session, tenant_id)
        service._repo = AsyncMock()
        return service

    async def test_create_duplicate(self, service, tenant_id):
        service._repo.get_by_program.return_value = capacity(tenant_id)
        with pytest.raises(DuplicateError):
            await service.create(ProgramCapacityCreate(program_name="Nursing BSN", total_seats=40))

    async def test_availability_unknown_program(self, service):
        service._repo.get_by_program.return_value = None
        with pytest.raises(NotFoundError):
            await service.availability("Dentistry")

    async def test_availability(self, service, tenant_id):
        service._repo.get_by_program.return_value = capacity(tenant_id)
        result = await service.availability("Nursing BSN")
        assert result["program_name"] == "Nursing BSN"
        assert result["available_seats"] == 15


# =============================================================================
# Portal
# =============================================================================

def nav_item(tenant_id, label, position):
    return PortalNavigationItem(tenant_id=tenant_id, label=label, path=f"/{label.lower()}",
                                position=position)


class TestPortalAdminService:

    @pytest.fixture
    def service(self, mock_session, tenant_id):
        service = PortalAdminService(mock_session, tenant_id)
        service._branding_repo = AsyncMock()
        service._navigation_repo = AsyncMock()
        service._branding_repo.save.side_effect = lambda b: b
        service._navigation_repo.save.side_effect = lambda i: i
        return service

    async def test_default_branding(self, service, tenant_id):
        service._branding_repo.get_for_tenant.return_value = None

        branding = await service.get_branding()

        assert branding.tenant_id == tenant_id
        assert branding.portal_name == "Student Portal"
        service._branding_repo.save.assert_not_awaited()

    async def test_save_branding_creates_row(self, service):
        service._branding_repo.get_for_tenant.return_value = None

        branding = await service.save_branding(
            PortalBrandingUpdate(portal_name="Northside Students", primary_color="#0f766e")
        )

        assert branding.portal_name == "Northside Students"
        assert branding.primary_color == "#0f766e"
        assert branding.secondary_color == "#64748b"

    async def test_partial_branding_keeps_other_fields(self, service, tenant_id):
        existing = PortalBranding(tenant_id=tenant_id, portal_name="Northside Students")
        service._branding_repo.get_for_tenant.return_value = existing

        branding = await service.save_branding(PortalBrandingUpdate(primary_color="#0f766e"))

        assert branding.portal_name == "Northside Students"
        assert branding.primary_color == "#0f766e"

    def test_branding_color_validated(self):
        with pytest.raises(ValueError):
            PortalBrandingUpdate(primary_color="teal")

    @pytest.mark.parametrize("field", ["portal_name", "primary_color", "secondary_color"])
    @pytest.mark.parametrize("value", [None, "   "])
    def test_branding_rejects_cleared_required_field(self, field, value):
        with pytest.raises(ValueError):
            PortalBrandingUpdate(**{field: value})

    def test_branding_omitted_fields_are_not_sent(self):
        update = PortalBrandingUpdate(logo_url=None)
        assert update.model_dump(exclude_unset=True) == {"logo_url": None}

    async def test_create_navigation_appends(self, service, tenant_id):
        service._navigation_repo.next_position.return_value = 3
        service._navigation_repo.create.return_value = nav_item(tenant_id, "Documents", 3)

        await service.create_navigation_item(PortalNavigationCreate(label="Documents", path="/documents"))

        _, kwargs = service._navigation_repo.create.call_args
        assert kwargs["position"] == 3

    async def test_reorder(self, service, tenant_id):
        home = nav_item(tenant_id, "Home", 0)
        docs = nav_item(tenant_id, "Documents", 1)
        service._navigation_repo.get_many.return_value = [home, docs]
        service._navigation_repo.list_ordered.return_value = [docs, home]

        result = await service.reorder_navigation([(home.id, 1), (docs.id, 0)])

        assert home.position == 1
        assert docs.position == 0
        assert result == [docs, home]

    async def test_reorder_unknown_item(self, service, tenant_id):
        home = nav_item(tenant_id, "Home", 0)
        service._navigation_repo.get_many.return_value = [home]

        with pytest.raises(ValidationError):
            await service.reorder_navigation([(home.id, 1), (uuid4(), 0)])

        service._navigation_repo.save.assert_not_awaited()

    async def test_delete_missing_item(self, service):
        service._navigation_repo.delete.return_value = False
        with pytest.raises(NotFoundError):
            await service.delete_navigation_item(uuid4())
