"""Anthropic Messages API calls with sequential model-name fallback.

Anthropic accounts differ in which model identifiers they can use. A request
walks an ordered candidate list and moves on only when the API answers 404 for
the model; every other failure is terminal. Each request starts again from the
first candidate.
"""

from __future__ import annotations

import time
from typing import Any, Iterable, Sequence

import httpx
from loguru import logger

from plexify.config import Settings, settings as default_settings
from plexify.errors import NoModelAvailableError, ProviderAuthenticationError, ProviderError
from plexify.llm.credentials import anthropic_key_provenance
from plexify.llm.normalizer import StandardResponse, normalize_response
from plexify.services import logger as log_service
from plexify.services.env_safety import sanitize_ssl_keylogfile

FALLBACK_MODELS: tuple[str, ...] = (
    "claude-sonnet-4-20250514",
    "claude-3-5-sonnet-latest",
    "claude-3-5-haiku-latest",
    "claude-3-sonnet-20240229",
    "claude-3-haiku-20240307",
)


def build_model_candidates(
    preferred: str | None = None,
    fallbacks: Iterable[str] = FALLBACK_MODELS,
) -> tuple[str, ...]:
    """Preferred model first, then the fallback chain, de-duplicated in order."""
    seen: dict[str, None] = {}
    for model in (preferred, *fallbacks):
        if model and model.strip():
            seen.setdefault(model.strip(), None)
    return tuple(seen)


def _is_model_not_found(status_code: int, body: str) -> bool:
    return status_code == 404 and "model" in body


class AnthropicExecutor:
    """Issues Messages API requests, falling back across model identifiers."""

    name = "anthropic"

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient | None = None,
        cfg: Settings | None = None,
    ) -> None:
        self._http_client = http_client
        self._settings = cfg or default_settings

    @property
    def messages_url(self) -> str:
        return f"{self._settings.anthropic_base_url.rstrip('/')}/v1/messages"

    def _auth_error(self, api_key: str) -> ProviderAuthenticationError:
        info = anthropic_key_provenance(api_key, self._settings)
        return ProviderAuthenticationError(
            "Anthropic authentication failed (invalid x-api-key). "
            f"{info.describe()}. "
            "Verify .env.local contains a valid sk-ant-* key and restart the server."
        )

    async def _post(self, client: httpx.AsyncClient, api_key: str, body: dict[str, Any]) -> httpx.Response:
        return await client.post(
            self.messages_url,
            json=body,
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": self._settings.anthropic_version,
            },
        )

    async def _invoke_with(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        models: Sequence[str],
        max_tokens: int,
        temperature: float | None,
        prompt: str,
        system: str | None,
        caller: str,
    ) -> dict[str, Any]:
        remaining = list(models)
        while True:
            if not remaining:
                raise NoModelAvailableError("anthropic")
            model = remaining.pop(0)

            body: dict[str, Any] = {
                "model": model,
                "max_tokens": max_tokens,
                "messages": [{"role": "user", "content": prompt}],
            }
            if temperature is not None:
                body["temperature"] = temperature
            if system:
                body["system"] = system

            t0 = time.monotonic()
            response = await self._post(client, api_key, body)
            elapsed_ms = int((time.monotonic() - t0) * 1000)

            if response.is_success:
                payload = response.json()
                usage = payload.get("usage") or {}
                log_service.log_llm_call(
                    model=model,
                    caller=caller,
                    input_tokens=int(usage.get("input_tokens") or 0),
                    output_tokens=int(usage.get("output_tokens") or 0),
                    duration_ms=elapsed_ms,
                )
                return payload

            text = response.text
            will_retry = _is_model_not_found(response.status_code, text) and bool(remaining)
            log_service.log_llm_call(
                model=model,
                caller=caller,
                duration_ms=elapsed_ms,
                status="retry" if will_retry else "error",
                error=f"{response.status_code}: {text[:200]}",
            )

            if response.status_code == 401:
                raise self._auth_error(api_key)

            if will_retry:
                logger.debug(f"Anthropic model {model} unavailable, trying {remaining[0]}")
                continue

            raise ProviderError("anthropic", response.status_code, text)

    async def invoke(
        self,
        api_key: str,
        models: Sequence[str],
        max_tokens: int,
        temperature: float | None,
        prompt: str,
        *,
        system: str | None = None,
        caller: str = "executor",
    ) -> dict[str, Any]:
        """Call the Messages API and return the raw JSON payload."""
        if self._http_client is not None:
            return await self._invoke_with(
                self._http_client, api_key, models, max_tokens, temperature, prompt, system, caller
            )

        sanitize_ssl_keylogfile()
        async with httpx.AsyncClient(timeout=self._settings.http_timeout_seconds) as client:
            return await self._invoke_with(
                client, api_key, models, max_tokens, temperature, prompt, system, caller
            )

    async def complete(
        self,
        api_key: str,
        models: Sequence[str],
        max_tokens: int,
        temperature: float | None,
        prompt: str,
        *,
        system: str | None = None,
        caller: str = "executor",
    ) -> StandardResponse:
        """Invoke and normalize in one step."""
        t0 = time.monotonic()
        raw = await self.invoke(
            api_key, models, max_tokens, temperature, prompt, system=system, caller=caller
        )
        return normalize_response(raw, "anthropic", t0)
