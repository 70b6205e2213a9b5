"""
API Dependencies

FastAPI dependency injection for authentication, tenant context and the
tenant-scoped services.

Security: Supabase JWTs are verified with the project's JWKS (ES256) and
fall back to the HS256 JWT secret. The tenant comes from the X-Tenant-ID
header and is only accepted when the caller is an active member of it.
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Optional
from uuid import UUID

import jwt
from jwt import PyJWKClient
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from admissions_crm.config.settings import get_settings
from admissions_crm.infrastructure.db.dependencies import (
    SessionDep,
    TenantRepoDep,
)
from admissions_crm.infrastructure.db.models import TenantRole
from admissions_crm.infrastructure.exceptions import TenantAccessError
from admissions_crm.infrastructure.services.document_service import DocumentService
from admissions_crm.infrastructure.services.entry_requirement_service import (
    EntryRequirementService,
)
from admissions_crm.infrastructure.services.lead_service import LeadService
from admissions_crm.infrastructure.services.portal_admin_service import PortalAdminService
from admissions_crm.infrastructure.services.practicum_service import PracticumService
from admissions_crm.infrastructure.services.program_capacity_service import (
    ProgramCapacityService,
)
from admissions_crm.infrastructure.services.program_fit_service import ProgramFitService
from admissions_crm.infrastructure.services.storage_service import (
    StorageService,
    get_storage_service,
)


logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

# PyJWKClient caches keys and refreshes them itself.
_jwks_client: Optional[PyJWKClient] = None


def _get_jwks_client() -> PyJWKClient:
    """Return a singleton PyJWKClient for the Supabase JWKS endpoint."""
    global _jwks_client
    if _jwks_client is None:
        settings = get_settings()
        jwks_url = f"{settings.supabase_url}/auth/v1/.well-known/jwks.json"
        _jwks_client = PyJWKClient(jwks_url, cache_keys=True)
    return _jwks_client


def _decode(token: str, key, algorithm: str, issuer: str) -> dict:
    return jwt.decode(
        token,
        key,
        algorithms=[algorithm],
        issuer=issuer,
        audience="authenticated",
        options={"require": ["exp", "sub", "iss"]},
    )


def _decode_with_jwks(token: str, issuer: str) -> dict:
    """Verify JWT using the Supabase JWKS endpoint (ES256)."""
    signing_key = _get_jwks_client().get_signing_key_from_jwt(token)
    return _decode(token, signing_key.key, "ES256", issuer)


def _decode_with_secret(token: str, secret: str, issuer: str) -> dict:
    """Verify JWT using the HS256 project secret."""
    return _decode(token, secret, "HS256", issuer)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity claims of a verified token."""
    id: UUID
    email: Optional[str] = None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> AuthenticatedUser:
    """
    Verify the bearer token and return the caller (``sub`` and ``email`` claims).

    Raises:
        HTTPException 401: token missing, expired, or invalid.
    """
    if not credentials:
        raise _unauthorized("Missing authorization token")

    token = credentials.credentials
    settings = get_settings()
    issuer = f"{settings.supabase_url}/auth/v1"

    payload: Optional[dict] = None

    try:
        payload = _decode_with_jwks(token, issuer)
    except (jwt.exceptions.PyJWKClientError, jwt.InvalidTokenError) as jwks_err:
        logger.debug("JWKS verification failed, trying HS256 fallback: %s", jwks_err)

    if payload is None and settings.supabase_jwt_secret:
        try:
            payload = _decode_with_secret(token, settings.supabase_jwt_secret, issuer)
        except jwt.ExpiredSignatureError:
            raise _unauthorized("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning("HS256 JWT verification also failed: %s", e)

    if payload is None:
        raise _unauthorized("Invalid or unverifiable token")

    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise _unauthorized("Invalid token: missing user ID")
    return AuthenticatedUser(id=user_id, email=payload.get("email"))


# =============================================================================
# Tenant context
# =============================================================================

@dataclass(frozen=True)
class TenantContext:
    """Who is calling, for which tenant, in which role."""
    user_id: UUID
    tenant_id: UUID
    role: TenantRole
    email: Optional[str] = None

    @property
    def is_staff(self) -> bool:
        return self.role in (TenantRole.ADMIN, TenantRole.SALES_REP)

    def has_email(self, email: Optional[str]) -> bool:
        """Case-insensitive match against the token's email claim."""
        if not self.email or not email:
            return False
        return self.email.strip().lower() == email.strip().lower()


async def get_tenant_context(
    tenant_repo: TenantRepoDep,
    user: AuthenticatedUser = Depends(get_current_user),
    x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-ID"),
) -> TenantContext:
    """
    Resolve the caller's membership in the tenant named by X-Tenant-ID.

    Raises:
        HTTPException 400: header missing or malformed
        TenantAccessError: caller is not an active member
    """
    if not x_tenant_id:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header required")
    try:
        tenant_id = UUID(x_tenant_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="X-Tenant-ID must be a UUID")

    membership = await tenant_repo.get_membership(tenant_id, user.id)
    if membership is None:
        logger.warning(f"User {user.id} denied access to tenant {tenant_id}")
        raise TenantAccessError("Not a member of this tenant", tenant_id=tenant_id)

    return TenantContext(
        user_id=user.id,
        tenant_id=tenant_id,
        role=TenantRole(membership.role),
        email=user.email,
    )


def require_roles(*roles: TenantRole):
    """Dependency factory admitting only callers holding one of ``roles``."""

    async def checker(context: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        if context.role not in roles:
            raise TenantAccessError(
                "Insufficient role for this operation",
                tenant_id=context.tenant_id,
                required_roles=[r.value for r in roles],
            )
        return context

    return checker


def ensure_lead_access(context: TenantContext, lead) -> None:
    """
    Staff may act on any lead of the tenant, a student only on the lead
    registered under their own email.

    Raises:
        TenantAccessError: caller may not act on the lead
    """
    if context.is_staff:
        return
    if context.role == TenantRole.STUDENT and context.has_email(lead.email):
        return
    logger.warning(f"User {context.user_id} denied access to lead {lead.id}")
    raise TenantAccessError("No access to this applicant", tenant_id=context.tenant_id)


def ensure_assignment_access(context: TenantContext, assignment, lead) -> None:
    """
    Staff, the placed student and the placement's preceptor may work on an
    assignment.

    Raises:
        TenantAccessError: caller is none of them
    """
    if context.is_staff:
        return
    if context.role == TenantRole.STUDENT and context.has_email(lead.email):
        return
    if context.role == TenantRole.PRECEPTOR and context.has_email(assignment.preceptor_email):
        return
    logger.warning(f"User {context.user_id} denied access to assignment {assignment.id}")
    raise TenantAccessError("No access to this placement", tenant_id=context.tenant_id)


TenantContextDep = Annotated[TenantContext, Depends(get_tenant_context)]
StaffContextDep = Annotated[
    TenantContext,
    Depends(require_roles(TenantRole.ADMIN, TenantRole.SALES_REP)),
]
AdminContextDep = Annotated[TenantContext, Depends(require_roles(TenantRole.ADMIN))]


# =============================================================================
# Service providers
# =============================================================================

def get_lead_service(
    session: SessionDep,
    context: TenantContextDep,
    storage: StorageService = Depends(get_storage_service),
) -> LeadService:
    return LeadService(session, context.tenant_id, storage)


def get_document_service(
    session: SessionDep,
    context: TenantContextDep,
    storage: StorageService = Depends(get_storage_service),
) -> DocumentService:
    return DocumentService(session, context.tenant_id, storage)


def get_requirement_service(
    session: SessionDep,
    context: TenantContextDep,
) -> EntryRequirementService:
    return EntryRequirementService(session, context.tenant_id)


def get_program_fit_service(session: SessionDep, context: TenantContextDep) -> ProgramFitService:
    return ProgramFitService(session, context.tenant_id)


def get_capacity_service(
    session: SessionDep,
    context: TenantContextDep,
) -> ProgramCapacityService:
    return ProgramCapacityService(session, context.tenant_id)


def get_practicum_service(session: SessionDep, context: TenantContextDep) -> PracticumService:
    return PracticumService(session, context.tenant_id)


def get_portal_admin_service(
    session: SessionDep,
    context: TenantContextDep,
) -> PortalAdminService:
    return PortalAdminService(session, context.tenant_id)


LeadServiceDep = Annotated[LeadService, Depends(get_lead_service)]
DocumentServiceDep = Annotated[DocumentService, Depends(get_document_service)]
RequirementServiceDep = Annotated[EntryRequirementService, Depends(get_requirement_service)]
ProgramFitServiceDep = Annotated[ProgramFitService, Depends(get_program_fit_service)]
CapacityServiceDep = Annotated[ProgramCapacityService, Depends(get_capacity_service)]
PracticumServiceDep = Annotated[PracticumService, Depends(get_practicum_service)]
PortalAdminServiceDep = Annotated[PortalAdminService, Depends(get_portal_admin_service)]
