"""
Confluence Services

Service layer containing all trading logic.
Each service has a defined interface (contract) and implementation.
"""

from confluence.services.base import (
    BaseService,
    ExternalAPIError,
    ServiceError,
    ValidationError,
)

__all__ = ["BaseService", "ServiceError", "ValidationError", "ExternalAPIError"]
