"""
Database Infrastructure Package for the Admissions CRM

Exports database utilities and dependency providers.
"""

from admissions_crm.infrastructure.db.database import (
    DatabaseManager,
    build_database_url,
    get_db_manager,
    get_session,
    get_session_context,
    init_db,
    close_db,
)

from admissions_crm.infrastructure.db.dependencies import (
    SessionDep,
    TenantRepoDep,
    get_tenant_repository,
)


__all__ = [
    # Database management
    "DatabaseManager",
    "build_database_url",
    "get_db_manager",
    "get_session",
    "get_session_context",
    "init_db",
    "close_db",
    # Dependencies
    "SessionDep",
    "TenantRepoDep",
    "get_tenant_repository",
]
