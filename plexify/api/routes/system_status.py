from __future__ import annotations

from fastapi import APIRouter, Depends

from plexify.api.deps import get_gateway
from plexify.llm.gateway import LLMGateway

router = APIRouter(prefix="/api/system-status", tags=["system-status"])


@router.get("/providers")
async def provider_status(gateway: LLMGateway = Depends(get_gateway)):
    """Configuration and eligibility of every gateway provider."""
    return {"providers": gateway.provider_health()}
