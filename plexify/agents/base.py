from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Sequence

from pydantic import ValidationError

from plexify.config import Settings, settings as default_settings
from plexify.errors import StructuredOutputError
from plexify.llm import credentials
from plexify.llm.executor import AnthropicExecutor, build_model_candidates
from plexify.llm.parsing import extract_json_object
from plexify.models.structured_outputs import (
    SCHEMA_VERSION,
    CamelModel,
    SourceRef,
    StructuredOutputEnvelope,
)
from plexify.services import logger as log_service
from plexify.services.documents import SourceDocument
from plexify.services.prompt_store import PromptStore, default_store

CITATION_EXAMPLE = {"number": 1, "sourceId": "string", "sourceName": "string", "quote": "string"}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class StructuredOutputAgent:
    """Turns selected source documents into one versioned JSON envelope.

    Subclasses provide the output model, the JSON example embedded in the
    prompt, and the canned payload returned when no usable Anthropic key is
    configured (demo mode makes no network calls).
    """

    agent_id: str = "base"
    prompt_key: str = ""
    output_model: type[CamelModel] = CamelModel
    snippet_chars: int = 3000
    max_tokens: int = 1600
    temperature: float = 0.2
    default_source: SourceRef = SourceRef(id="demo-source", label="Demo Source")

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

    # --- subclass hooks ---

    def output_example(self) -> dict[str, Any]:
        raise NotImplementedError

    def demo_output(self, sources_used: list[SourceRef]) -> dict[str, Any]:
        raise NotImplementedError

    # --- prompt assembly ---

    def demo_citation(self, sources_used: list[SourceRef]) -> dict[str, Any]:
        first = sources_used[0] if sources_used else self.default_source
        return {
            "number": 1,
            "sourceId": first.id,
            "sourceName": first.label,
            "quote": "Demo citation (API key not configured).",
        }

    def schema_example(self, project_id: str) -> dict[str, Any]:
        return {
            "agentId": self.agent_id,
            "schemaVersion": SCHEMA_VERSION,
            "generatedAt": "ISO_TIMESTAMP",
            "projectId": project_id,
            "sourcesUsed": [{"id": "string", "label": "string"}],
            "output": self.output_example(),
        }

    def build_context(self, sources: Sequence[SourceDocument]) -> str:
        parts = []
        for idx, source in enumerate(sources, 1):
            trimmed = source.text.strip()
            if len(trimmed) > self.snippet_chars:
                trimmed = f"{trimmed[: self.snippet_chars]}\n…"
            parts.append(f"[Source {idx}] {source.label}\n{trimmed}")
        return "\n\n".join(parts)

    def build_prompt(
        self,
        project_id: str,
        sources: Sequence[SourceDocument],
        instructions: str | None = None,
    ) -> str:
        return self.prompts.render(
            "agents.structured_output",
            task=self.prompts.resolve(f"{self.prompt_key}.task"),
            context=self.build_context(sources),
            instructions=instructions or "None",
            schema=json.dumps(self.schema_example(project_id), indent=2),
            notes=self.prompts.resolve(f"{self.prompt_key}.notes"),
        )

    # --- generation ---

    def _envelope(
        self, project_id: str, sources_used: list[SourceRef], output: dict[str, Any]
    ) -> StructuredOutputEnvelope:
        try:
            validated = self.output_model.model_validate(output)
        except ValidationError as e:
            raise StructuredOutputError(
                f"Structured output did not match the {self.agent_id} schema: {e.error_count()} error(s); "
                f"first: {e.errors()[0]['msg']} at {'.'.join(str(p) for p in e.errors()[0]['loc'])}"
            ) from e
        return StructuredOutputEnvelope[self.output_model](
            agent_id=self.agent_id,
            schema_version=SCHEMA_VERSION,
            generated_at=utc_timestamp(),
            project_id=project_id,
            sources_used=sources_used,
            output=validated,
        )

    async def generate(
        self,
        project_id: str,
        sources: Sequence[SourceDocument],
        instructions: str | None = None,
    ) -> StructuredOutputEnvelope:
        sources_used = [SourceRef(id=s.id, label=s.label) for s in sources]

        api_key = credentials.usable_anthropic_key(self.settings)
        if not api_key:
            log_service.log_agent_event(
                self.agent_id,
                project_id,
                "agent_demo_mode",
                "no usable Anthropic key, returning demo output",
                source_ids=[s.id for s in sources_used],
            )
            return self._envelope(project_id, sources_used, self.demo_output(sources_used))

        prompt = self.build_prompt(project_id, sources, instructions)
        models = build_model_candidates(credentials.preferred_anthropic_model(self.settings))
        response = await self.executor.complete(
            api_key,
            models,
            self.max_tokens,
            self.temperature,
            prompt,
            caller=self.agent_id,
        )

        parsed = extract_json_object(response.content)
        if parsed is None:
            raise StructuredOutputError("Failed to parse structured JSON from model output")

        output = parsed.get("output") if isinstance(parsed.get("output"), dict) else parsed
        envelope = self._envelope(project_id, sources_used, output)
        log_service.log_agent_event(
            self.agent_id,
            project_id,
            "agent_completed",
            f"generated from {len(sources_used)} source(s)",
            model=response.model,
            source_ids=[s.id for s in sources_used],
        )
        return envelope
