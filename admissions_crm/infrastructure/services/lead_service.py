"""
Lead Service

Lead CRUD, filtered listing, bulk pipeline operations and duplicate
detection for one tenant.
"""

import csv
import io
import logging
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.domain.duplicates import (
    MergeResolution,
    check_for_duplicate,
    find_duplicate_groups,
    merge_lead_values,
)
from admissions_crm.infrastructure.db.database import run_after_commit, savepoint
from admissions_crm.infrastructure.db.models import (
    DuplicatePreventionMode,
    Lead,
    LeadCreate,
    LeadStatus,
    LeadUpdate,
    utcnow,
)
from admissions_crm.infrastructure.db.repositories import (
    DocumentRepository,
    LeadFilters,
    LeadRepository,
    TenantRepository,
)
from admissions_crm.infrastructure.exceptions import (
    AdmissionsCRMError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from admissions_crm.infrastructure.services.storage_service import StorageService


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

EXPORT_COLUMNS = [
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("country", "Country"),
    ("status", "Status"),
    ("priority", "Priority"),
    ("source", "Source"),
    ("lead_score", "Lead Score"),
    ("program_interest", "Program Interest"),
    ("tags", "Tags"),
    ("created_at", "Created At"),
    ("last_contacted_at", "Last Contact"),
]


def _export_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return getattr(value, "value", value)


def render_leads_csv(leads: Sequence[Lead]) -> str:
    """Render leads as CSV with human-readable headers."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([label for _, label in EXPORT_COLUMNS])
    for lead in leads:
        writer.writerow([_export_cell(getattr(lead, key)) for key, _ in EXPORT_COLUMNS])
    return buffer.getvalue()


class LeadService:
    """
    Leads of one tenant.

    Bulk operations apply per lead and report ``{success, failed, errors}``
    rather than aborting on the first missing lead.
    """

    def __init__(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        storage: Optional[StorageService] = None,
    ):
        self._session = session
        self._tenant_id = tenant_id
        self._lead_repo = LeadRepository(session, tenant_id)
        self._tenant_repo = TenantRepository(session)
        self._document_repo = DocumentRepository(session, tenant_id)
        self._storage = storage or StorageService()

    # =========================================================================
    # CRUD
    # =========================================================================

    async def create_lead(self, data: LeadCreate) -> Lead:
        """
        Create a lead, enforcing the tenant's duplicate-prevention mode.

        Raises:
            DuplicateError: A lead with the same email/phone already exists
        """
        await self._ensure_not_duplicate(data.email, data.phone)
        lead = await self._lead_repo.create(data)
        logger.info(f"Lead {lead.id} created from source '{lead.source}'")
        return lead

    async def get_lead(self, lead_id: UUID) -> Lead:
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found", operation="get", table="leads")
        return lead

    async def update_lead(self, lead_id: UUID, data: LeadUpdate) -> Lead:
        lead = await self.get_lead(lead_id)

        changes = data.model_dump(exclude_unset=True)
        if "email" in changes or "phone" in changes:
            await self._ensure_not_duplicate(
                changes.get("email", lead.email),
                changes.get("phone", lead.phone),
                exclude_id=lead_id,
            )

        for field, value in changes.items():
            setattr(lead, field, value)
        return await self._lead_repo.save(lead)

    async def delete_lead(self, lead_id: UUID) -> None:
        """Delete a lead. Its documents' stored objects go once the delete commits."""
        if not await self._lead_repo.exists(lead_id):
            raise NotFoundError(f"Lead {lead_id} not found", operation="delete", table="leads")
        await self._delete_leads([lead_id])
        logger.info(f"Lead {lead_id} deleted")

    async def _delete_leads(self, lead_ids: List[UUID]) -> None:
        """
        Delete leads; document rows follow through the foreign key cascade
        and their stored objects are removed after commit.
        """
        paths = await self._document_repo.storage_paths_for_leads(lead_ids)
        for lead_id in lead_ids:
            await self._lead_repo.delete(lead_id)
        for path in paths:
            run_after_commit(self._session, partial(self._storage.remove, path))

    async def list_leads(
        self,
        filters: Optional[LeadFilters] = None,
        page: int = 1,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> Dict[str, Any]:
        """Filtered page of leads. ``page_size`` is capped at 100."""
        page = max(1, page)
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))

        items, total = await self._lead_repo.search(
            filters or LeadFilters(),
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        return {
            "items": items,
            "total": total,
            "page": page,
            "page_size": page_size,
        }

    async def export_leads_csv(self, filters: Optional[LeadFilters] = None) -> str:
        """Every lead matching ``filters`` as CSV."""
        leads = await self._lead_repo.list_filtered(filters or LeadFilters())
        logger.info(f"Exporting {len(leads)} lead(s)")
        return render_leads_csv(leads)

    # =========================================================================
    # Pipeline operations
    # =========================================================================

    async def change_status(self, lead_id: UUID, status: LeadStatus) -> Lead:
        lead = await self.get_lead(lead_id)
        previous = lead.status
        self._apply_status(lead, status)
        lead = await self._lead_repo.save(lead)
        logger.info(f"Lead {lead_id} status {getattr(previous, 'value', previous)} -> {status.value}")
        return lead

    async def assign_leads(self, lead_ids: List[UUID], user_id: UUID) -> Dict[str, Any]:
        """Assign leads to a member of the tenant."""
        membership = await self._tenant_repo.get_membership(self._tenant_id, user_id)
        if membership is None:
            raise ValidationError(
                "Assignee is not an active member of this tenant",
                details={"user_id": str(user_id)}
            )

        def assign(lead: Lead) -> None:
            lead.assigned_to = user_id
            lead.assigned_at = utcnow()

        result = await self._bulk(lead_ids, assign)
        logger.info(f"Assigned {result['success']} lead(s) to {user_id}")
        return result

    async def claim_leads(self, lead_ids: List[UUID], user_id: UUID) -> Dict[str, Any]:
        """
        Assign still-unassigned leads to the caller.

        Leads that already have an owner are reported as failed.
        """
        if not lead_ids:
            raise ValidationError("No leads selected")

        success = 0
        errors: List[Dict[str, str]] = []
        for lead_id in lead_ids:
            lead = await self._lead_repo.get_by_id(lead_id)
            if lead is None:
                errors.append({"lead_id": str(lead_id), "error": "not found"})
                continue
            if lead.assigned_to is not None:
                errors.append({"lead_id": str(lead_id), "error": "already assigned"})
                continue
            lead.assigned_to = user_id
            lead.assigned_at = utcnow()
            await self._lead_repo.save(lead)
            success += 1

        logger.info(f"User {user_id} claimed {success} lead(s)")
        return {"success": success, "failed": len(errors), "errors": errors}

    async def bulk_update_status(self, lead_ids: List[UUID], status: LeadStatus) -> Dict[str, Any]:
        result = await self._bulk(lead_ids, lambda lead: self._apply_status(lead, status))
        logger.info(f"Bulk status {status.value}: {result['success']} ok, {result['failed']} failed")
        return result

    async def add_tags(self, lead_ids: List[UUID], tags: List[str]) -> Dict[str, Any]:
        cleaned = self._clean_tags(tags)

        def add(lead: Lead) -> None:
            current = list(lead.tags or [])
            lead.tags = current + [t for t in cleaned if t not in current]

        return await self._bulk(lead_ids, add)

    async def remove_tags(self, lead_ids: List[UUID], tags: List[str]) -> Dict[str, Any]:
        cleaned = set(self._clean_tags(tags))

        def remove(lead: Lead) -> None:
            lead.tags = [t for t in (lead.tags or []) if t not in cleaned]

        return await self._bulk(lead_ids, remove)

    @staticmethod
    def _clean_tags(tags: List[str]) -> List[str]:
        cleaned = [t.strip() for t in tags if t and t.strip()]
        if not cleaned:
            raise ValidationError("At least one tag is required")
        return cleaned

    @staticmethod
    def _apply_status(lead: Lead, status: LeadStatus) -> None:
        lead.status = status
        if status == LeadStatus.CONTACTED:
            lead.last_contacted_at = utcnow()

    async def _bulk(
        self,
        lead_ids: List[UUID],
        apply: Callable[[Lead], Any],
    ) -> Dict[str, Any]:
        if not lead_ids:
            raise ValidationError("No leads selected")

        success = 0
        errors: List[Dict[str, str]] = []
        for lead_id in lead_ids:
            lead = await self._lead_repo.get_by_id(lead_id)
            if lead is None:
                errors.append({"lead_id": str(lead_id), "error": "not found"})
                continue
            apply(lead)
            await self._lead_repo.save(lead)
            success += 1

        return {"success": success, "failed": len(errors), "errors": errors}

    # =========================================================================
    # Duplicates
    # =========================================================================

    async def find_duplicates(self) -> List[Dict[str, Any]]:
        """All duplicate groups among the tenant's leads."""
        leads = await self._lead_repo.list_all()
        groups = find_duplicate_groups(leads)
        logger.info(f"Found {len(groups)} duplicate group(s) among {len(leads)} leads")
        return [group.to_dict() for group in groups]

    async def merge_leads(
        self,
        primary_id: UUID,
        secondary_ids: List[UUID],
        resolution: Optional[MergeResolution] = None,
    ) -> Lead:
        """
        Fold duplicate leads into ``primary_id`` and delete them.

        Raises:
            ValidationError: No secondaries, or the primary is among them
            NotFoundError: Any of the leads does not exist
        """
        resolution = resolution or MergeResolution()
        secondary_ids = list(dict.fromkeys(secondary_ids))
        if not secondary_ids or primary_id in secondary_ids:
            raise ValidationError(
                "Select a primary lead and at least one other lead to merge into it",
                details={"primary_id": str(primary_id)}
            )

        primary = await self.get_lead(primary_id)
        secondaries = [await self.get_lead(lead_id) for lead_id in secondary_ids]

        values = merge_lead_values(primary, secondaries, resolution, utcnow().date())
        for field, value in values.items():
            setattr(primary, field, value)
        primary = await self._lead_repo.save(primary)

        if resolution.merge_documents:
            for secondary in secondaries:
                await self._document_repo.reassign_lead(secondary.id, primary.id)
        await self._delete_leads(secondary_ids)

        logger.info(f"Merged {len(secondary_ids)} lead(s) into {primary_id}")
        return primary

    async def bulk_merge_groups(
        self,
        groups: List[List[UUID]],
        resolution: Optional[MergeResolution] = None,
    ) -> Dict[str, Any]:
        """
        Merge each group into its first lead. Every group runs in its own
        savepoint, so a failing group is reported without undoing the others.
        """
        if not groups:
            raise ValidationError("No duplicate groups selected")

        success = 0
        errors: List[Dict[str, Any]] = []
        for lead_ids in groups:
            if len(lead_ids) < 2:
                success += 1
                continue
            try:
                async with savepoint(self._session):
                    await self.merge_leads(lead_ids[0], lead_ids[1:], resolution)
                success += 1
            except (AdmissionsCRMError, SQLAlchemyError) as e:
                logger.error(f"Merge failed for group {lead_ids[0]}: {e}")
                errors.append({"lead_ids": [str(i) for i in lead_ids], "error": str(e)})

        logger.info(f"Bulk merge: {success} group(s) merged, {len(errors)} failed")
        return {"success": success, "failed": len(errors), "errors": errors}

    async def delete_duplicates(self, lead_ids: List[UUID]) -> Dict[str, Any]:
        """Delete the given duplicate leads, reporting ids that do not exist."""
        if not lead_ids:
            raise ValidationError("No leads selected")

        lead_ids = list(dict.fromkeys(lead_ids))
        existing = {lead.id for lead in await self._lead_repo.get_many(lead_ids)}
        await self._delete_leads([lead_id for lead_id in lead_ids if lead_id in existing])

        errors = [
            {"lead_id": str(lead_id), "error": "not found"}
            for lead_id in lead_ids if lead_id not in existing
        ]
        logger.info(f"Deleted {len(existing)} duplicate lead(s)")
        return {"success": len(existing), "failed": len(errors), "errors": errors}

    async def get_duplicate_prevention(self) -> Optional[str]:
        tenant = await self._tenant_repo.get_by_id(self._tenant_id)
        if tenant is None:
            raise NotFoundError(f"Tenant {self._tenant_id} not found", table="tenants")
        return tenant.duplicate_prevention

    async def set_duplicate_prevention(
        self,
        mode: Optional[DuplicatePreventionMode]
    ) -> Optional[str]:
        value = getattr(mode, "value", mode)
        tenant = await self._tenant_repo.set_duplicate_prevention(self._tenant_id, value)
        if tenant is None:
            raise NotFoundError(f"Tenant {self._tenant_id} not found", table="tenants")
        logger.info(f"Duplicate prevention for tenant {self._tenant_id} set to {value}")
        return tenant.duplicate_prevention

    async def _ensure_not_duplicate(
        self,
        email: str,
        phone: Optional[str],
        exclude_id: Optional[UUID] = None,
    ) -> None:
        mode = await self.get_duplicate_prevention()
        if not mode:
            return

        candidates: List[Lead] = []
        if mode in ("email", "both"):
            match = await self._lead_repo.get_by_email(email)
            if match:
                candidates.append(match)
        if mode in ("phone", "both") and phone:
            candidates.extend(await self._lead_repo.list_with_phone())

        candidates = [lead for lead in candidates if lead.id != exclude_id]
        result = check_for_duplicate(email, phone, candidates, mode)
        if result.is_duplicate:
            raise DuplicateError(
                f"A lead with the same {result.match_type.value} already exists "
                f"({result.existing_lead.id})",
                operation="create",
                table="leads"
            )
