"""
Bulk Program Fit Assessment Script

Recomputes program fit and yield propensity for a tenant's leads.

Usage:
    python scripts/bulk_assess.py --tenant <uuid> --all
    python scripts/bulk_assess.py --tenant <uuid> --lead <uuid> --lead <uuid>
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional
from uuid import UUID

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from admissions_crm.config.settings import get_settings
from admissions_crm.infrastructure.db.database import close_db, get_session_context
from admissions_crm.infrastructure.services.program_fit_service import ProgramFitService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def run(tenant_id: UUID, lead_ids: Optional[List[UUID]], assessed_by: Optional[UUID]) -> int:
    """Assess the given leads (or all of them) in batches. Returns the failure count."""
    batch_size = get_settings().bulk_assessment_max_batch
    assessed = 0
    failed = 0

    try:
        async with get_session_context() as session:
            service = ProgramFitService(session, tenant_id)
            if lead_ids is None:
                lead_ids = await service.list_lead_ids()

            logger.info(f"Assessing {len(lead_ids)} leads for tenant {tenant_id}")

            for start in range(0, len(lead_ids), batch_size):
                batch = lead_ids[start:start + batch_size]
                result = await service.bulk_assess_applicants(batch, assessed_by)
                assessed += len(result["assessed"])
                failed += len(result["failed"])
                for failure in result["failed"]:
                    logger.warning(f"  {failure['lead_id']}: {failure['error']}")
    finally:
        await close_db()

    logger.info(f"Done: {assessed} assessed, {failed} failed")
    return failed



def main() -> None:
    parser = argparse.ArgumentParser(description="Recompute program fit assessments")
    parser.add_argument("--tenant", type=UUID, required=True, help="Tenant id")
    parser.add_argument("--user", type=UUID, default=None, help="Recorded as assessed_by")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--lead", type=UUID, action="append", help="Lead id (repeatable)")
    target.add_argument("--all", action="store_true", help="Assess every lead of the tenant")
    args = parser.parse_args()

    failed = asyncio.run(run(args.tenant, None if args.all else args.lead, args.user))
    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
