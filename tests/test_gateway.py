"""Tests for gateway routing and provider failover."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from plexify.errors import AllProvidersFailedError, ProviderError
from plexify.llm.gateway import (
    AnthropicProvider,
    ClientTier,
    LLMGateway,
    OpenAIProvider,
    PromptRequest,
    ProviderAdapter,
    ProviderInfo,
    TaskType,
    apply_prompt_variant,
    build_gateway,
    route,
)
from plexify.llm.normalizer import StandardResponse, Usage


def _response(provider: str, content: str = "ok") -> StandardResponse:
    return StandardResponse(content=content, provider=provider, model="m", usage=Usage(), latency=1)


class _FakeProvider(ProviderAdapter):
    def __init__(self, name: str, configured: bool = True, error: Exception | None = None) -> None:
        super().__init__(ProviderInfo(model=f"{name}-model"))
        self.name = name
        self.configured = configured
        self.error = error
        self.calls = 0
        self.last_request: PromptRequest | None = None

    def is_configured(self) -> bool:
        return self.configured

    async def send(self, request: PromptRequest) -> StandardResponse:
        self.calls += 1
        self.last_request = request
        if self.error:
            raise self.error
        return _response(self.name)


class TestRoute:
    def test_government_tier_is_openai_only(self):
        request = PromptRequest(prompt="x", task_type=TaskType.ENRICHMENT, client_tier=ClientTier.GOVERNMENT)
        assert route(request) == ["openai"]

    def test_enrichment_prefers_openai(self):
        assert route(PromptRequest(prompt="x", task_type=TaskType.ENRICHMENT)) == ["openai", "anthropic"]

    def test_quality_tasks_prefer_anthropic(self):
        for task in (TaskType.OUTREACH_GENERATION, TaskType.DEAL_ROOM_ARTIFACT, TaskType.EVIDENCE_BUNDLE):
            assert route(PromptRequest(prompt="x", task_type=task)) == ["anthropic", "openai"]

    def test_unmatched_request_uses_default_chain(self):
        assert route(PromptRequest(prompt="x", task_type=TaskType.ASK_PLEXI)) == ["anthropic", "openai"]


class TestSendPrompt:
    @pytest.mark.asyncio
    async def test_fails_over_to_next_provider(self):
        anthropic = _FakeProvider("anthropic", error=ProviderError("anthropic", 529, "overloaded"))
        openai = _FakeProvider("openai")
        gateway = LLMGateway({"anthropic": anthropic, "openai": openai})

        result = await gateway.send_prompt(PromptRequest(prompt="x"))

        assert result.provider == "openai"
        assert anthropic.calls == 1

    @pytest.mark.asyncio
    async def test_skips_unconfigured_providers(self):
        anthropic = _FakeProvider("anthropic", configured=False)
        openai = _FakeProvider("openai")
        gateway = LLMGateway({"anthropic": anthropic, "openai": openai})

        result = await gateway.send_prompt(PromptRequest(prompt="x"))

        assert result.provider == "openai"
        assert anthropic.calls == 0

    @pytest.mark.asyncio
    async def test_all_failed_reports_last_error(self):
        gateway = LLMGateway(
            {
                "anthropic": _FakeProvider("anthropic", error=RuntimeError("first")),
                "openai": _FakeProvider("openai", error=RuntimeError("second")),
            }
        )

        with pytest.raises(AllProvidersFailedError, match="second"):
            await gateway.send_prompt(PromptRequest(prompt="x"))

    @pytest.mark.asyncio
    async def test_nothing_configured(self):
        gateway = LLMGateway({"anthropic": _FakeProvider("anthropic", configured=False)})

        with pytest.raises(AllProvidersFailedError, match="no provider configured"):
            await gateway.send_prompt(PromptRequest(prompt="x"))


@pytest.mark.asyncio
async def test_anthropic_provider_delegates_to_executor(make_settings):
    cfg = make_settings(anthropic_api_key="sk-ant-test", anthropic_model="claude-3-5-haiku-latest")
    executor = MagicMock()
    executor.complete = AsyncMock(return_value=_response("anthropic"))
    provider = AnthropicProvider(executor, cfg)

    await provider.send(PromptRequest(prompt="hi", system_prompt="sys", max_tokens=50, temperature=0.1))

    args, kwargs = executor.complete.call_args
    assert args[0] == "sk-ant-test"
    assert args[1][0] == "claude-3-5-haiku-latest"
    assert args[2:] == (50, 0.1, "hi")
    assert kwargs["system"] == "sys"


@pytest.mark.asyncio
async def test_openai_provider_normalizes_completion(make_settings):
    cfg = make_settings(openai_api_key="sk-test")
    completion = MagicMock()
    completion.model_dump.return_value = {
        "model": "gpt-4o",
        "choices": [{"message": {"content": "hello"}, "finish_reason": "stop"}],
        "usage": {"prompt_tokens": 3, "completion_tokens": 1},
    }
    client = SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(return_value=completion)))
    )
    provider = OpenAIProvider(cfg, client=client)

    result = await provider.send(PromptRequest(prompt="hi", system_prompt="sys"))

    assert result.content == "hello"
    assert result.provider == "openai"
    assert result.usage.cost == pytest.approx(3 * 2.5e-6 + 1 * 10e-6)
    messages = client.chat.completions.create.call_args.kwargs["messages"]
    assert messages == [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}]


def test_provider_health(make_settings):
    cfg = make_settings(anthropic_api_key="sk-ant-test")
    gateway = build_gateway(MagicMock(), cfg)

    health = gateway.provider_health()

    assert health["anthropic"]["configured"] is True
    assert health["anthropic"]["model"] == "claude-sonnet-4-20250514"
    assert health["openai"]["configured"] is False
    assert health["openai"]["governmentEligible"] is True


@pytest.mark.asyncio
async def test_anthropic_provider_prices_usage(make_settings):
    cfg = make_settings(anthropic_api_key="sk-ant-test")
    executor = MagicMock()
    executor.complete = AsyncMock(
        return_value=StandardResponse(content="ok", provider="anthropic", model="m", usage=Usage(1000, 200), latency=1)
    )
    provider = AnthropicProvider(executor, cfg)

    result = await provider.send(PromptRequest(prompt="hi"))

    assert result.usage.cost == pytest.approx(1000 * 3e-6 + 200 * 15e-6)
    assert result.to_dict()["usage"]["cost"] == result.usage.cost
    assert result.usage.input_tokens == 1000


class TestPromptVariants:
    def test_anthropic_gets_xml_wrapper(self):
        request = PromptRequest(prompt="q", task_type=TaskType.ASK_PLEXI, system_prompt="Answer briefly.")

        adapted = apply_prompt_variant(request, "anthropic")

        assert adapted.system_prompt.startswith("<role>You are Ask Plexi")
        assert adapted.system_prompt.endswith("</constraints>\nAnswer briefly.")
        assert adapted.prompt == "q"
        assert request.system_prompt == "Answer briefly."

    def test_openai_gets_markdown_wrapper_with_context(self):
        request = PromptRequest(
            prompt="q",
            task_type=TaskType.OUTREACH_GENERATION,
            system_prompt="Draft an intro email.",
            context={"accountName": "Turner Construction"},
        )

        adapted = apply_prompt_variant(request, "openai")

        assert "Task: Draft an intro email." in adapted.system_prompt
        assert "- Account: Turner Construction" in adapted.system_prompt
        assert "<role>" not in adapted.system_prompt

    def test_missing_account_name_defaults_to_unknown(self):
        request = PromptRequest(prompt="q", task_type=TaskType.OUTREACH_GENERATION)

        adapted = apply_prompt_variant(request, "anthropic")

        assert "<account>Unknown</account>" in adapted.system_prompt

    def test_task_without_variant_is_unchanged(self):
        request = PromptRequest(prompt="q", task_type=TaskType.DOCUMENT_SUMMARY, system_prompt="sys")

        assert apply_prompt_variant(request, "anthropic") is request

    @pytest.mark.asyncio
    async def test_send_prompt_applies_variant_per_provider(self):
        anthropic = _FakeProvider("anthropic", error=RuntimeError("down"))
        openai = _FakeProvider("openai")
        gateway = LLMGateway({"anthropic": anthropic, "openai": openai})

        await gateway.send_prompt(
            PromptRequest(prompt="q", task_type=TaskType.ENRICHMENT, context={"accountName": "Acme"})
        )

        assert anthropic.last_request.system_prompt.startswith("<role>")
        assert openai.last_request.system_prompt.startswith("You are a construction industry research analyst.")
        assert 'Context: {"accountName": "Acme"}' in openai.last_request.system_prompt
