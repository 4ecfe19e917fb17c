"""
Business exceptions raised to the HTTP layer.

WHAT: Domain-specific exceptions that map to HTTP status codes
WHY: Directory and navigation failures are absorbed in the core; only these reach clients
HOW: Custom exception classes with error codes and messages
"""

from typing import Optional, List, Dict, Any


class BusinessException(Exception):
    """Base class for business logic exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class WorkspaceNotFoundException(BusinessException):
    """Raised when a workspace id is unknown or has expired."""

    def __init__(self, workspace_id: str):
        super().__init__(
            message=f"Workspace not found: {workspace_id}",
            code="WORKSPACE_NOT_FOUND",
            details={"workspace_id": workspace_id}
        )


class AuthenticationException(BusinessException):
    """Raised when the identity provider rejects credentials."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="AUTHENTICATION_FAILED",
        )


class ValidationException(BusinessException):
    """Raised for validation errors."""

    def __init__(self, message: str, field_errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details={"field_errors": field_errors} if field_errors else None
        )
