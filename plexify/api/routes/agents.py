from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from plexify.agents.registry import AgentRegistry
from plexify.api.deps import get_agent_registry, get_document_store
from plexify.models.schemas import AgentRequest
from plexify.services.documents import DocumentStore

router = APIRouter(prefix="/api/agents", tags=["agents"])


@router.post("/{agent_id}")
async def run_agent(
    agent_id: str,
    body: Optional[AgentRequest] = None,
    registry: AgentRegistry = Depends(get_agent_registry),
    store: DocumentStore = Depends(get_document_store),
):
    """Run one structured-output agent over the selected sources."""
    agent = registry.get(agent_id)
    body = body or AgentRequest()
    sources = await store.sources_for_request(body)
    project_id = body.project_id or store.settings.default_project_id

    envelope = await agent.generate(project_id, sources, body.instructions)
    return envelope.model_dump(mode="json", by_alias=True, exclude_none=True)
