"""Audio briefings: a report outline read aloud by OpenAI text-to-speech."""

from __future__ import annotations

import re
import time
from pathlib import Path
from typing import Any

from loguru import logger

from plexify.config import Settings, settings as default_settings
from plexify.errors import ConfigurationError
from plexify.llm import credentials
from plexify.models.schemas import AudioChapter, TTSContent, TTSResult
from plexify.services.env_safety import sanitize_ssl_keylogfile

WORDS_PER_MINUTE = 150
MAX_SCRIPT_CHARS = 3500


def normalize_for_filename(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def word_count(text: str) -> int:
    return len(text.split())


def estimate_chapter_timings(chapters: list[AudioChapter]) -> float:
    """Fill in start time and duration per chapter; returns the total in seconds."""
    current = 0.0
    for chapter in chapters:
        duration = word_count(chapter.text) / WORDS_PER_MINUTE * 60
        chapter.start_time = current
        chapter.duration = duration
        current += duration
    return current


def build_script(content: TTSContent) -> tuple[str, list[AudioChapter]]:
    chapters = [
        AudioChapter(
            title="Introduction",
            text=". ".join(p for p in (content.title, content.subtitle) if p),
        )
    ]

    parts = [f"{content.title}."]
    if content.subtitle:
        parts.append(f"{content.subtitle}.")

    for section in content.sections:
        section_text = ". ".join(section.items) if section.items else (section.text or "")
        cleaned = section_text.strip()
        if not cleaned:
            continue
        parts.append(f"{section.heading}.")
        parts.append(cleaned)
        chapters.append(AudioChapter(title=section.heading, text=cleaned))

    full_script = "\n\n".join(parts)[:MAX_SCRIPT_CHARS]
    return full_script, chapters


class AudioBriefingService:
    def __init__(self, cfg: Settings | None = None, client: Any | None = None) -> None:
        self.settings = cfg or default_settings
        self._client = client

    @property
    def output_dir(self) -> Path:
        return Path(self.settings.audio_output_dir)

    def is_configured(self) -> bool:
        return credentials.openai_api_key(self.settings) is not None

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            api_key = credentials.openai_api_key(self.settings)
            if not api_key:
                raise ConfigurationError("OpenAI API key not configured")
            sanitize_ssl_keylogfile()
            self._client = AsyncOpenAI(api_key=api_key, base_url=self.settings.openai_base_url)
        return self._client

    async def generate(self, content: TTSContent, output_id: str) -> TTSResult:
        client = self._get_client()
        full_script, chapters = build_script(content)

        response = await client.audio.speech.create(
            model=self.settings.tts_model,
            voice=self.settings.tts_voice,
            input=full_script,
            speed=1.0,
        )

        self.output_dir.mkdir(parents=True, exist_ok=True)
        filename = f"briefing-{normalize_for_filename(output_id)}-{int(time.time() * 1000)}.mp3"
        output_path = self.output_dir / filename
        output_path.write_bytes(response.content)
        logger.info(f"Wrote audio briefing {output_path} ({len(full_script)} chars)")

        total = estimate_chapter_timings(chapters)
        return TTSResult(audio_url=f"/audio/{filename}", chapters=chapters, total_duration=total)
