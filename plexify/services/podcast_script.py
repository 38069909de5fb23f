"""Two-host podcast scripts (CASSIDY hosts, MARK analyses) written by Claude."""

from __future__ import annotations

from typing import Any, Sequence

from plexify.config import Settings, settings as default_settings
from plexify.errors import ConfigurationError, StructuredOutputError
from plexify.llm import credentials
from plexify.llm.executor import AnthropicExecutor, build_model_candidates
from plexify.llm.parsing import extract_json_object
from plexify.models.schemas import DialogueTurn, PodcastScript
from plexify.services.documents import ExtractedDocument
from plexify.services.prompt_store import PromptStore, default_store

# Text-to-dialogue accepts 5,000 characters per request; leave headroom.
MAX_DIALOGUE_CHARS = 4500
PER_DOC_CONTEXT_CHARS = 12_000
TOTAL_CONTEXT_CHARS = 60_000
SCRIPT_MAX_TOKENS = 8192
PODCAST_FALLBACK_MODELS = (
    "claude-sonnet-4-20250514",
    "claude-3-5-sonnet-latest",
    "claude-3-5-haiku-latest",
)
SPEAKERS = ("CASSIDY", "MARK")


def build_context(docs: Sequence[ExtractedDocument]) -> str:
    total = 0
    parts = []
    for doc in docs:
        if total >= TOTAL_CONTEXT_CHARS:
            break
        chunk = doc.text[:PER_DOC_CONTEXT_CHARS]
        total += len(chunk)
        parts.append(f"--- SOURCE: {doc.display_name} ---\n{chunk}\n--- END SOURCE ---")
    return "\n\n".join(parts)


def clamp_dialogue(turns: list[DialogueTurn], max_chars: int = MAX_DIALOGUE_CHARS) -> list[DialogueTurn]:
    """Keep turns in order until the character budget is spent; the last one may be cut."""
    clamped: list[DialogueTurn] = []
    used = 0
    for turn in turns:
        text = turn.text.strip()
        if not text:
            continue
        if used + len(text) > max_chars:
            remaining = max_chars - used
            if remaining > 0:
                clipped = text[:remaining].strip()
                if clipped:
                    clamped.append(DialogueTurn(speaker=turn.speaker, text=clipped))
            break
        clamped.append(DialogueTurn(speaker=turn.speaker, text=text))
        used += len(text)
    return clamped


def _valid_turns(raw_turns: list[Any]) -> list[DialogueTurn]:
    turns = []
    for t in raw_turns:
        if not isinstance(t, dict):
            continue
        speaker, text = t.get("speaker"), t.get("text")
        if speaker in SPEAKERS and isinstance(text, str) and text.strip():
            turns.append(DialogueTurn(speaker=speaker, text=text))
    return turns


class PodcastScriptService:
    def __init__(
        self,
        executor: AnthropicExecutor,
        *,
        cfg: Settings | None = None,
        prompts: PromptStore | None = None,
    ) -> None:
        self.executor = executor
        self.settings = cfg or default_settings
        self.prompts = prompts or default_store

    async def generate(self, context: str, district_name: str = "Golden Triangle BID") -> PodcastScript:
        info = credentials.anthropic_key_info(self.settings)
        if info is None:
            raise ConfigurationError("Anthropic API key not configured")

        prompt = self.prompts.render(
            "podcast.user_prompt",
            max_chars=MAX_DIALOGUE_CHARS,
            district_name=district_name,
            context=context,
        )
        models = build_model_candidates(
            credentials.preferred_anthropic_model(self.settings), PODCAST_FALLBACK_MODELS
        )
        response = await self.executor.complete(
            info.key,
            models,
            SCRIPT_MAX_TOKENS,
            None,
            prompt,
            system=self.prompts.resolve("podcast.system_prompt"),
            caller="podcast-script",
        )
        if not response.content:
            raise StructuredOutputError("No text content in Claude response")

        parsed = extract_json_object(response.content)
        if parsed is None or not isinstance(parsed.get("dialogue"), list):
            raise StructuredOutputError("Failed to parse podcast script")

        dialogue = _valid_turns(parsed["dialogue"])
        final = clamp_dialogue(dialogue) or dialogue

        return PodcastScript(
            title=parsed.get("title") or f"{district_name} Deep Dive",
            description=parsed.get("description") or f"A deep dive discussion of {district_name}.",
            dialogue=final,
            word_count=sum(len(t.text.split()) for t in final),
        )
