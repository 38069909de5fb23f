from __future__ import annotations

import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import httpx
from loguru import logger

from plexify.config import Settings, settings as default_settings
from plexify.errors import ConfigurationError, PlexifyError, ProviderError
from plexify.llm import credentials
from plexify.models.schemas import DialogueTurn
from plexify.services.env_safety import sanitize_ssl_keylogfile

PODCAST_VOICE_IDS = {
    "CASSIDY": "56AoDkrOh6qfVPDXZ7Pt",
    "MARK": "UgBBYS2sOqTuMpoF3BR0",
}

TEXT_TO_DIALOGUE_MAX_CHARS = 5000
TEXT_TO_DIALOGUE_CHUNK_TARGET_CHARS = 4500
DIALOGUE_MODEL_ID = "eleven_v3"
OUTPUT_FORMAT = "mp3_44100_128"
WORDS_PER_MINUTE = 150


@dataclass
class PodcastAudio:
    audio_url: str
    duration: float


def split_text_by_max_chars(text: str, max_chars: int) -> list[str]:
    """Split on the last space before the limit (unless that leaves a tiny head)."""
    parts: list[str] = []
    remaining = text.strip()
    while len(remaining) > max_chars:
        window = remaining[:max_chars]
        last_space = window.rfind(" ")
        cut = last_space if last_space > 200 else max_chars
        parts.append(remaining[:cut].strip())
        remaining = remaining[cut:].strip()
    if remaining:
        parts.append(remaining)
    return parts


def chunk_dialogue(script: Sequence[DialogueTurn], max_chars: int) -> list[list[DialogueTurn]]:
    """Group turns into request-sized chunks, splitting oversized turns first."""
    normalized: list[DialogueTurn] = []
    for turn in script:
        text = (turn.text or "").strip()
        if not text:
            continue
        if len(text) <= max_chars:
            normalized.append(DialogueTurn(speaker=turn.speaker, text=text))
            continue
        for part in split_text_by_max_chars(text, max_chars):
            normalized.append(DialogueTurn(speaker=turn.speaker, text=part))

    chunks: list[list[DialogueTurn]] = []
    current: list[DialogueTurn] = []
    current_chars = 0
    for turn in normalized:
        if current and current_chars + len(turn.text) > max_chars:
            chunks.append(current)
            current = []
            current_chars = 0
        current.append(turn)
        current_chars += len(turn.text)
    if current:
        chunks.append(current)
    return chunks


def _normalize_for_filename(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class ElevenLabsClient:
    """Renders a dialogue script to one MP3 via the text-to-dialogue API."""

    def __init__(
        self,
        cfg: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = cfg or default_settings
        self._http_client = http_client

    @property
    def output_dir(self) -> Path:
        return Path(self.settings.podcast_output_dir)

    @property
    def dialogue_url(self) -> str:
        return f"{self.settings.elevenlabs_base_url.rstrip('/')}/v1/text-to-dialogue"

    def is_configured(self) -> bool:
        return credentials.elevenlabs_api_key(self.settings) is not None

    async def _convert(self, client: httpx.AsyncClient, api_key: str, chunk: list[DialogueTurn]) -> bytes:
        response = await client.post(
            self.dialogue_url,
            params={"output_format": OUTPUT_FORMAT},
            json={
                "model_id": DIALOGUE_MODEL_ID,
                "settings": {"stability": 0.5},
                "inputs": [
                    {"text": turn.text, "voice_id": PODCAST_VOICE_IDS[turn.speaker]} for turn in chunk
                ],
            },
            headers={"xi-api-key": api_key, "Accept": "audio/mpeg"},
        )
        if not response.is_success:
            raise ProviderError("elevenlabs", response.status_code, response.text)
        return response.content

    async def _render(self, client: httpx.AsyncClient, api_key: str, chunks: list[list[DialogueTurn]]) -> bytes:
        buffers: list[bytes] = []
        for idx, chunk in enumerate(chunks, 1):
            chunk_chars = sum(len(t.text) for t in chunk)
            if chunk_chars > TEXT_TO_DIALOGUE_MAX_CHARS:
                raise PlexifyError(
                    f"Internal error: chunk {idx} exceeds ElevenLabs limit "
                    f"(chars={chunk_chars}, max={TEXT_TO_DIALOGUE_MAX_CHARS})"
                )
            logger.info(f"[podcast] ElevenLabs chunk {idx}/{len(chunks)}: chars={chunk_chars}")
            buffers.append(await self._convert(client, api_key, chunk))
        # Segments share one encoding, so byte concatenation stays playable.
        return b"".join(buffers)

    async def generate_podcast_audio(self, script: Sequence[DialogueTurn], output_id: str) -> PodcastAudio:
        api_key = credentials.elevenlabs_api_key(self.settings)
        logger.info(f"[podcast] ElevenLabs API key configured: {bool(api_key)}")
        if not api_key:
            raise ConfigurationError("ElevenLabs API key not configured")

        total_chars = sum(len(t.text) for t in script)
        max_per_request = min(TEXT_TO_DIALOGUE_MAX_CHARS, TEXT_TO_DIALOGUE_CHUNK_TARGET_CHARS)
        chunks = chunk_dialogue(script, max_per_request) if total_chars > max_per_request else [list(script)]
        logger.info(
            f"[podcast] ElevenLabs text-to-dialogue: totalChars={total_chars}, "
            f"chunks={len(chunks)}, maxPerRequest={max_per_request}"
        )

        if self._http_client is not None:
            audio = await self._render(self._http_client, api_key, chunks)
        else:
            sanitize_ssl_keylogfile()
            async with httpx.AsyncClient(timeout=self.settings.http_timeout_seconds) as client:
                audio = await self._render(client, api_key, chunks)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = f"podcast-{_normalize_for_filename(output_id)}-{int(time.time() * 1000)}.mp3"
        output_path = self.output_dir / filename
        output_path.write_bytes(audio)
        logger.info(f"[podcast] Wrote podcast file: {output_path} (bytes={len(audio)})")

        total_words = sum(len(t.text.split()) for t in script)
        return PodcastAudio(
            audio_url=f"/podcasts/{filename}",
            duration=total_words / WORDS_PER_MINUTE * 60,
        )
