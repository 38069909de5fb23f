from __future__ import annotations

from fastapi import Request

from plexify.agents.registry import AgentRegistry
from plexify.llm.gateway import LLMGateway
from plexify.services.documents import DocumentStore
from plexify.services.elevenlabs import ElevenLabsClient
from plexify.services.podcast_script import PodcastScriptService
from plexify.services.tts import AudioBriefingService


def get_document_store(request: Request) -> DocumentStore:
    return request.app.state.document_store


def get_agent_registry(request: Request) -> AgentRegistry:
    return request.app.state.agent_registry


def get_gateway(request: Request) -> LLMGateway:
    return request.app.state.gateway


def get_audio_briefing_service(request: Request) -> AudioBriefingService:
    return request.app.state.audio_briefing


def get_podcast_script_service(request: Request) -> PodcastScriptService:
    return request.app.state.podcast_script


def get_elevenlabs_client(request: Request) -> ElevenLabsClient:
    return request.app.state.elevenlabs
