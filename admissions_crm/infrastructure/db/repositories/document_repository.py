"""
Lead Document Repository
"""

from typing import Dict, List
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from admissions_crm.infrastructure.db.repositories.base_repository import BaseRepository
from admissions_crm.infrastructure.db.models.document import DocumentStatus, LeadDocument


class DocumentRepository(BaseRepository[LeadDocument, SQLModel, SQLModel]):
    """Repository for lead documents."""

    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(LeadDocument, session, tenant_id)

    async def list_for_lead(self, lead_id: UUID) -> List[LeadDocument]:
        stmt = (
            self._select()
            .where(LeadDocument.lead_id == lead_id)
            .order_by(LeadDocument.created_at.desc())
        )
        return await self._scalars(stmt)

    async def status_counts(self, lead_id: UUID) -> Dict[str, int]:
        """Count a lead's documents per admin status."""
        stmt = (
            select(LeadDocument.admin_status, func.count(LeadDocument.id))
            .where(
                LeadDocument.tenant_id == self._tenant_id,
                LeadDocument.lead_id == lead_id,
            )
            .group_by(LeadDocument.admin_status)
        )
        result = await self._session.execute(stmt)
        counts = {status.value: 0 for status in DocumentStatus}
        for status, count in result.all():
            counts[getattr(status, "value", status)] = count
        return counts

    async def storage_paths_for_leads(self, lead_ids: List[UUID]) -> List[str]:
        """Stored object paths of every document owned by ``lead_ids``."""
        if not lead_ids:
            return []
        stmt = select(LeadDocument.storage_path).where(
            LeadDocument.tenant_id == self._tenant_id,
            LeadDocument.lead_id.in_(lead_ids),
            LeadDocument.storage_path.isnot(None),
        )
        result = await self._session.execute(stmt)
        return [path for path in result.scalars().all() if path]

    async def reassign_lead(self, from_lead_id: UUID, to_lead_id: UUID) -> int:
        """Move every document of one lead to another. Returns the row count."""
        stmt = (
            update(LeadDocument)
            .where(
                LeadDocument.tenant_id == self._tenant_id,
                LeadDocument.lead_id == from_lead_id,
            )
            .values(lead_id=to_lead_id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount
