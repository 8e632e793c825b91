"""Core infrastructure components."""
from .exceptions import (
    AppException,
    NotFoundError,
    RankingServiceError,
    ValidationError,
)

__all__ = [
    "AppException",
    "NotFoundError",
    "RankingServiceError",
    "ValidationError",
]
