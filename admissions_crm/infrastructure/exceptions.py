"""
Custom Exceptions for the Admissions CRM

Hierarchical exception classes for proper error handling across layers.
"""

from typing import Optional, Dict, Any
from uuid import UUID


class AdmissionsCRMError(Exception):
    """Base exception for all Admissions CRM errors."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


class ValidationError(AdmissionsCRMError):
    """Raised when input validation or a business rule check fails."""
    pass


class DatabaseError(AdmissionsCRMError):
    """Raised when database operations fail."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, details, original_error)


class NotFoundError(DatabaseError):
    """Raised when a requested resource is not found."""
    pass


class DuplicateError(DatabaseError):
    """Raised when attempting to create a duplicate resource."""
    pass


class TenantAccessError(AdmissionsCRMError):
    """Raised when a user acts outside the tenants or roles granted to them."""

    def __init__(
        self,
        message: str,
        tenant_id: Optional[UUID] = None,
        required_roles: Optional[list] = None,
    ):
        details: Dict[str, Any] = {}
        if tenant_id:
            details["tenant_id"] = str(tenant_id)
        if required_roles:
            details["required_roles"] = list(required_roles)
        super().__init__(message, details)


class RequirementSyncError(AdmissionsCRMError):
    """
    Raised when a cascading requirement/document write fails.

    The request session is rolled back, so neither write persists.
    """

    def __init__(
        self,
        message: str,
        requirement_id: Optional[UUID] = None,
        document_id: Optional[UUID] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if requirement_id:
            details["requirement_id"] = str(requirement_id)
        if document_id:
            details["document_id"] = str(document_id)
        super().__init__(message, details, original_error)


class StorageError(AdmissionsCRMError):
    """Raised when object storage operations fail."""

    def __init__(
        self,
        message: str,
        bucket: Optional[str] = None,
        path: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if bucket:
            details["bucket"] = bucket
        if path:
            details["path"] = path
        super().__init__(message, details, original_error)


class ConfigurationError(AdmissionsCRMError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list] = None,
        original_error: Optional[Exception] = None
    ):
        details = {}
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(message, details, original_error)
