"""Message generation route.

- POST /api/generate-luvv: {relationship, tone, recipient, sender}
  → 200 {"messages": [...], "provider": "..."}
  → 400 {"error", "code"} on validation failure
  → 503 {"error", "code"} when cache, providers and safety net are all exhausted

Persistence of new templates and ledger rows is scheduled as a background
task so the caller never waits for it.
"""

from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session, sessionmaker

from luvv.api.deps import (
    get_db,
    get_gateway_config,
    get_provider_router,
    get_provider_specs,
    get_session_factory,
)
from luvv.schemas.generation import GenerateLuvvRequest, GenerateLuvvResponse
from luvv.services.gateway import (
    GatewayConfig,
    GenerationGateway,
    GenerationRequest,
    persist_generation,
)
from luvv.services.llm import ProviderRouter, ProviderSpec

router = APIRouter()


@router.post("/api/generate-luvv")
async def generate_luvv(
    body: GenerateLuvvRequest,
    background_tasks: BackgroundTasks,
    db: Annotated[Session, Depends(get_db)],
    session_factory: Annotated[sessionmaker[Session], Depends(get_session_factory)],
    provider_router: Annotated[ProviderRouter, Depends(get_provider_router)],
    providers: Annotated[list[ProviderSpec], Depends(get_provider_specs)],
    config: Annotated[GatewayConfig, Depends(get_gateway_config)],
) -> dict:
    """Generate 1-3 personalized Valentine messages.

    Returns:
        {"messages": [...], "provider": "cache" | "<provider tag>" | "safety-net"}
    """
    request = GenerationRequest.create(
        relationship=body.relationship,
        tone=body.tone,
        recipient_name=body.recipient,
        sender_name=body.sender,
    )

    gateway = GenerationGateway(db, provider_router, providers, config)
    result = await gateway.generate(request)

    background_tasks.add_task(persist_generation, session_factory, request, result)

    return GenerateLuvvResponse(messages=result.messages, provider=result.provider).model_dump()
