"""Business logic services.

This module contains service-layer functions that implement business logic.
Services are called by route handlers and orchestrate database operations.
"""

from luvv.services.gateway import (
    GatewayConfig,
    GenerationGateway,
    GenerationRequest,
    GenerationResult,
    persist_generation,
)
from luvv.services.normalizer import extract_messages
from luvv.services.personalization import to_personalized, to_template
from luvv.services.stats import get_dashboard_stats, record_visit
from luvv.services.templates import PersistenceError

__all__ = [
    "GatewayConfig",
    "GenerationGateway",
    "GenerationRequest",
    "GenerationResult",
    "persist_generation",
    "extract_messages",
    "to_template",
    "to_personalized",
    "get_dashboard_stats",
    "record_visit",
    "PersistenceError",
]
