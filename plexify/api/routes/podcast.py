from __future__ import annotations

import time
from typing import Optional

from fastapi import APIRouter, Depends
from loguru import logger

from plexify.api.deps import get_document_store, get_elevenlabs_client, get_podcast_script_service
from plexify.errors import ConfigurationError, InputError
from plexify.models.schemas import PodcastRequest, PodcastResponse, PodcastResult
from plexify.services.documents import DocumentStore
from plexify.services.elevenlabs import ElevenLabsClient
from plexify.services.podcast_script import PodcastScriptService, build_context

router = APIRouter(prefix="/api/podcast", tags=["podcast"])

DISTRICT_NAME = "Golden Triangle BID"


@router.post("/generate")
async def generate_podcast(
    body: Optional[PodcastRequest] = None,
    store: DocumentStore = Depends(get_document_store),
    script_service: PodcastScriptService = Depends(get_podcast_script_service),
    audio_client: ElevenLabsClient = Depends(get_elevenlabs_client),
):
    """Documents -> two-host script -> rendered MP3.

    Errors are rendered as ``{"success": false, "error": ...}`` by the
    podcast-specific exception handlers in ``plexify.main``.
    """
    body = body or PodcastRequest()
    if not body.document_ids:
        raise InputError("No documents selected. Please select at least one document.")
    if not audio_client.is_configured():
        raise ConfigurationError("ElevenLabs API key not configured")

    project_id = body.project_id or store.settings.default_project_id
    logger.info(f"[podcast] Starting generation for documents: {body.document_ids}")

    loaded = await store.load_selected_documents(project_id, body.document_ids)
    if not loaded.documents:
        raise InputError("Could not load selected documents.")

    context = build_context(loaded.documents)
    script = await script_service.generate(context, DISTRICT_NAME)
    logger.info(f"[podcast] Script generated: {script.word_count} words, {len(script.dialogue)} turns")

    audio = await audio_client.generate_podcast_audio(script.dialogue, f"gt-{int(time.time() * 1000)}")

    response = PodcastResponse(
        podcast=PodcastResult(
            podcast_url=audio.audio_url,
            title=script.title,
            duration=audio.duration,
            script=script.dialogue,
        )
    )
    return response.model_dump(mode="json", by_alias=True)
