from __future__ import annotations

from fastapi import APIRouter, Depends

from plexify.api.deps import get_audio_briefing_service
from plexify.errors import InputError
from plexify.models.schemas import TTSRequest, TTSResult
from plexify.services.tts import AudioBriefingService

router = APIRouter(prefix="/api/tts", tags=["tts"])


@router.post("/generate")
async def generate_audio_briefing(
    body: TTSRequest,
    service: AudioBriefingService = Depends(get_audio_briefing_service),
):
    if body.content is None:
        raise InputError("Missing content")
    if not body.output_id:
        raise InputError("Missing outputId")

    result: TTSResult = await service.generate(body.content, body.output_id)
    return result.model_dump(mode="json", by_alias=True)
