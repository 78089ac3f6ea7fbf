"""
KlinePro Services

Service layer containing all business logic.
Each service has a defined interface (contract) and implementation.
"""

from klinepro.services.base import (
    BaseService,
    ServiceError,
    InvalidInputError,
    RemoteServiceError,
    RateLimitError,
)

__all__ = [
    "BaseService",
    "ServiceError",
    "InvalidInputError",
    "RemoteServiceError",
    "RateLimitError",
]
