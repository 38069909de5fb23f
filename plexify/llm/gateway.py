"""Provider-level routing and failover for single-shot prompts.

A request is routed to an ordered provider chain (first matching rule wins);
providers without credentials are skipped and the first success is returned.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, replace
from typing import Any

from loguru import logger

from plexify.config import Settings, settings as default_settings
from plexify.errors import AllProvidersFailedError, ConfigurationError
from plexify.llm import credentials
from plexify.llm.executor import AnthropicExecutor, build_model_candidates
from plexify.llm.normalizer import StandardResponse, Usage, normalize_response
from plexify.services import logger as log_service
from plexify.services.env_safety import sanitize_ssl_keylogfile
from plexify.services.prompt_store import PromptStore, default_store


class TaskType:
    ASK_PLEXI = "ask_plexi"
    OUTREACH_GENERATION = "outreach_generation"
    ENRICHMENT = "enrichment"
    DEAL_ROOM_ARTIFACT = "deal_room_artifact"
    EVIDENCE_BUNDLE = "evidence_bundle"
    WARMTH_ANALYSIS = "warmth_analysis"
    DOCUMENT_SUMMARY = "document_summary"
    GENERAL = "general"


class ClientTier:
    STANDARD = "standard"
    GOVERNMENT = "government"
    GOVERNMENT_STATE = "gov_state"
    ENTERPRISE = "enterprise"


@dataclass
class PromptRequest:
    prompt: str
    task_type: str = TaskType.GENERAL
    system_prompt: str | None = None
    max_tokens: int = 1024
    temperature: float = 0.7
    client_tier: str | None = None
    priority: str | None = None
    tenant_id: str | None = None
    context: dict[str, Any] | None = None


@dataclass(frozen=True)
class RoutingRule:
    providers: tuple[str, ...]
    client_tier: str | None = None
    task_type: str | None = None
    priority: str | None = None
    reason: str = ""

    def matches(self, request: PromptRequest) -> bool:
        if self.client_tier and request.client_tier != self.client_tier:
            return False
        if self.task_type and request.task_type != self.task_type:
            return False
        if self.priority and request.priority != self.priority:
            return False
        return True


ROUTING_RULES: tuple[RoutingRule, ...] = (
    RoutingRule(("openai",), client_tier=ClientTier.GOVERNMENT, reason="Federal supply chain compliance"),
    RoutingRule(("anthropic", "openai"), task_type=TaskType.OUTREACH_GENERATION, reason="quality_first"),
    RoutingRule(("anthropic", "openai"), task_type=TaskType.DEAL_ROOM_ARTIFACT, reason="quality_first"),
    RoutingRule(("anthropic", "openai"), task_type=TaskType.EVIDENCE_BUNDLE, reason="quality_first"),
    RoutingRule(("openai", "anthropic"), task_type=TaskType.ENRICHMENT, reason="quality_first"),
    RoutingRule(("anthropic", "openai"), task_type=TaskType.DOCUMENT_SUMMARY, reason="cost_optimized"),
)

DEFAULT_CHAIN: tuple[str, ...] = ("anthropic", "openai")


def route(request: PromptRequest, rules: tuple[RoutingRule, ...] = ROUTING_RULES) -> list[str]:
    for rule in rules:
        if rule.matches(request):
            return list(rule.providers)
    return list(DEFAULT_CHAIN)


def apply_prompt_variant(
    request: PromptRequest, provider_name: str, prompts: PromptStore = default_store
) -> PromptRequest:
    """Wrap the system prompt in the layout the provider handles best.

    Claude gets XML-tagged instructions, OpenAI gets plain markdown sections.
    Task types without a variant for ``provider_name`` pass through unchanged.
    """
    key = f"gateway.system_variants.{request.task_type}.{provider_name}"
    try:
        prompts.resolve(key)
    except KeyError:
        return request

    context = request.context or {}
    system_prompt = prompts.render(
        key,
        base_prompt=request.system_prompt or "",
        account_name=context.get("accountName") or "Unknown",
        context_json=json.dumps(context),
    )
    return replace(request, system_prompt=system_prompt)


@dataclass
class ProviderInfo:
    model: str
    enabled: bool = True
    government_eligible: bool = False
    # USD per token
    cost_per_input_token: float = 0.0
    cost_per_output_token: float = 0.0

    def cost(self, usage: Usage) -> float:
        return usage.input_tokens * self.cost_per_input_token + usage.output_tokens * self.cost_per_output_token


class ProviderAdapter:
    name = "unknown"

    def __init__(self, info: ProviderInfo) -> None:
        self.info = info

    def is_configured(self) -> bool:
        return False

    async def send(self, request: PromptRequest) -> StandardResponse:
        raise NotImplementedError(f"{self.name} adapter: send() not implemented")

    def priced(self, response: StandardResponse) -> StandardResponse:
        usage = replace(response.usage, cost=self.info.cost(response.usage))
        return replace(response, usage=usage)


class AnthropicProvider(ProviderAdapter):
    name = "anthropic"

    def __init__(self, executor: AnthropicExecutor, cfg: Settings | None = None) -> None:
        self._settings = cfg or default_settings
        preferred = credentials.preferred_anthropic_model(self._settings)
        self.candidates = build_model_candidates(preferred)
        super().__init__(
            ProviderInfo(
                model=self.candidates[0],
                cost_per_input_token=3 / 1_000_000,
                cost_per_output_token=15 / 1_000_000,
            )
        )
        self._executor = executor

    def is_configured(self) -> bool:
        return credentials.anthropic_key_info(self._settings) is not None

    async def send(self, request: PromptRequest) -> StandardResponse:
        info = credentials.anthropic_key_info(self._settings)
        if info is None:
            raise ConfigurationError("Missing ANTHROPIC_API_KEY. Set it in .env.local.")
        response = await self._executor.complete(
            info.key,
            self.candidates,
            request.max_tokens,
            request.temperature,
            request.prompt,
            system=request.system_prompt,
            caller=f"gateway:{request.task_type}",
        )
        return self.priced(response)


class OpenAIProvider(ProviderAdapter):
    name = "openai"

    def __init__(self, cfg: Settings | None = None, client: Any | None = None) -> None:
        self._settings = cfg or default_settings
        super().__init__(
            ProviderInfo(
                model=self._settings.openai_model,
                enabled=bool(self._settings.openai_api_key),
                government_eligible=True,
                cost_per_input_token=2.5 / 1_000_000,
                cost_per_output_token=10 / 1_000_000,
            )
        )
        self._client = client

    def is_configured(self) -> bool:
        return credentials.openai_api_key(self._settings) is not None

    def _get_client(self) -> Any:
        if self._client is None:
            from openai import AsyncOpenAI

            api_key = credentials.openai_api_key(self._settings)
            if not api_key:
                raise ConfigurationError("Missing OPENAI_API_KEY")
            sanitize_ssl_keylogfile()
            self._client = AsyncOpenAI(api_key=api_key, base_url=self._settings.openai_base_url)
        return self._client

    async def send(self, request: PromptRequest) -> StandardResponse:
        messages: list[dict[str, str]] = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.append({"role": "user", "content": request.prompt})

        t0 = time.monotonic()
        response = await self._get_client().chat.completions.create(
            model=self.info.model,
            max_tokens=request.max_tokens,
            temperature=request.temperature,
            messages=messages,
        )
        raw = response.model_dump() if hasattr(response, "model_dump") else response
        normalized = self.priced(normalize_response(raw, "openai", t0))
        log_service.log_llm_call(
            model=normalized.model or self.info.model,
            caller=f"gateway:{request.task_type}",
            provider="openai",
            input_tokens=normalized.usage.input_tokens,
            output_tokens=normalized.usage.output_tokens,
            duration_ms=normalized.latency,
            cost=normalized.usage.cost,
        )
        return normalized


class LLMGateway:
    """Single entry point for prompt calls that may use either provider."""

    def __init__(self, providers: dict[str, ProviderAdapter], prompts: PromptStore | None = None) -> None:
        self.providers = providers
        self.prompts = prompts or default_store

    def _adapter(self, name: str) -> ProviderAdapter:
        adapter = self.providers.get(name)
        if adapter is None:
            raise ConfigurationError(f"[LLM Gateway] Unknown provider: {name}")
        return adapter

    async def send_prompt(self, request: PromptRequest) -> StandardResponse:
        last_error: Exception | None = None
        for provider_name in route(request):
            try:
                adapter = self._adapter(provider_name)
                if not adapter.is_configured():
                    continue
                return await adapter.send(apply_prompt_variant(request, provider_name, self.prompts))
            except Exception as e:  # vendor SDK errors fall through to the next provider too
                last_error = e
                logger.error(f"[LLM Gateway] {provider_name} failed: {e}")

        raise AllProvidersFailedError(last_error)

    def provider_health(self) -> dict[str, dict[str, Any]]:
        return {
            name: {
                "configured": adapter.is_configured(),
                "enabled": adapter.info.enabled,
                "governmentEligible": adapter.info.government_eligible,
                "model": adapter.info.model or "unknown",
            }
            for name, adapter in self.providers.items()
        }


def build_gateway(executor: AnthropicExecutor, cfg: Settings | None = None) -> LLMGateway:
    cfg = cfg or default_settings
    return LLMGateway(
        {
            "anthropic": AnthropicProvider(executor, cfg),
            "openai": OpenAIProvider(cfg),
        }
    )
