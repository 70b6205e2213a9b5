"""
Test configuration and fixtures for the Admissions CRM.

Provides shared fixtures for unit and integration tests.
"""

import os

# Settings are read at import time, so the environment must be in place first.
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-at-least-32-bytes!")
os.environ.setdefault("ENVIRONMENT", "testing")

import pytest
from datetime import datetime, timezone
from typing import AsyncGenerator, Optional
from unittest.mock import MagicMock, AsyncMock
from uuid import uuid4

from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from admissions_crm.infrastructure.db.models import (
    DocumentStatus,
    Lead,
    LeadDocument,
    LeadEntryRequirement,
    RequirementStatus,
    TenantRole,
)


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app():
    """Get the FastAPI application with dependency overrides cleared afterwards."""
    from admissions_crm.main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Get synchronous test client."""
    return TestClient(app)


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Get async test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# =============================================================================
# Tenant Fixtures
# =============================================================================

@pytest.fixture
def tenant_id():
    return uuid4()


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture
def tenant_headers(tenant_id):
    return {"Authorization": "Bearer test-token", "X-Tenant-ID": str(tenant_id)}


@pytest.fixture
def as_role(app, tenant_id, user_id):
    """
    Install a tenant context for the given role.

    Usage:
        as_role(TenantRole.ADMIN)
        as_role(TenantRole.STUDENT, email="maria.silva@example.com")
    """
    from admissions_crm.api.dependencies import TenantContext, get_tenant_context

    def install(role: TenantRole = TenantRole.ADMIN, email: Optional[str] = None) -> TenantContext:
        context = TenantContext(user_id=user_id, tenant_id=tenant_id, role=role, email=email)
        app.dependency_overrides[get_tenant_context] = lambda: context
        return context

    return install


@pytest.fixture
def override_service(app):
    """
    Replace a service provider with a mock.

    Usage:
        service = override_service(get_lead_service)
        service.get_lead.return_value = lead
    """

    def install(provider):
        mock = AsyncMock()
        app.dependency_overrides[provider] = lambda: mock
        return mock

    return install


# =============================================================================
# Sample Data Fixtures
# =============================================================================

@pytest.fixture
def make_lead(tenant_id):
    """Factory for Lead rows."""

    def factory(**overrides) -> Lead:
        values = {
            "tenant_id": tenant_id,
            "first_name": "Maria",
            "last_name": "Silva",
            "email": "maria.silva@example.com",
            "phone": "+1 (555) 123-4567",
            "program_interest": ["Nursing BSN"],
        }
        values.update(overrides)
        return Lead(**values)

    return factory


@pytest.fixture
def make_document(tenant_id):
    """Factory for LeadDocument rows."""

    def factory(lead_id, **overrides) -> LeadDocument:
        values = {
            "tenant_id": tenant_id,
            "lead_id": lead_id,
            "document_type": "transcript",
            "file_name": "transcript.pdf",
            "storage_path": f"{tenant_id}/{lead_id}/abc-transcript.pdf",
            "admin_status": DocumentStatus.UPLOADED,
        }
        values.update(overrides)
        return LeadDocument(**values)

    return factory


@pytest.fixture
def make_lead_requirement(tenant_id):
    """Factory for LeadEntryRequirement rows."""

    def factory(lead_id, **overrides) -> LeadEntryRequirement:
        values = {
            "tenant_id": tenant_id,
            "lead_id": lead_id,
            "entry_requirement_id": uuid4(),
            "status": RequirementStatus.PENDING,
        }
        values.update(overrides)
        return LeadEntryRequirement(**values)

    return factory


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


@pytest.fixture
def mock_session():
    """AsyncSession stand-in; repositories are replaced per test."""
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.info = {}
    return session


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
async def db_engine():
    """In-memory SQLite engine with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine):
    return async_sessionmaker(
        bind=db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(db_session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session bound to the in-memory database. Rolls back after each test."""
    async with db_session_factory() as session:
        yield session
        await session.rollback()
