"""
Core Application - Infrastructure & Base Classes

Generic, reusable building blocks with no notification-specific logic.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError: Input validation failures
    - PermissionDeniedError: Refused permissions
    - ExternalServiceError: Collaborator failures

Decorators (import from core.decorators):
    - contain_errors: No-throw boundary for public service operations

Note:
    Models are NOT imported here to avoid AppRegistryNotReady errors.
    Import them directly from core.models.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    ExternalServiceError,
    PermissionDeniedError,
    ValidationError,
)

# Decorators (no Django model dependencies)
from .decorators import contain_errors

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "PermissionDeniedError",
    "ExternalServiceError",
    # Decorators
    "contain_errors",
]
