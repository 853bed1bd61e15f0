"""Pydantic schemas for request/response models.

All schemas are re-exported here for convenient imports.
"""

from luvv.schemas.generation import GenerateLuvvRequest, GenerateLuvvResponse
from luvv.schemas.stats import (
    DailyCount,
    DashboardStats,
    HealthStats,
    ProviderHealth,
    VisitCounts,
)

__all__ = [
    # Generation schemas
    "GenerateLuvvRequest",
    "GenerateLuvvResponse",
    # Stats schemas
    "DashboardStats",
    "VisitCounts",
    "DailyCount",
    "HealthStats",
    "ProviderHealth",
]
