"""Error taxonomy shared by the gateway, agents and HTTP layer.

Every error carries the HTTP status the API layer should answer with. Route
handlers never build error responses by hand: they raise one of these and the
exception handlers in ``plexify.main`` render ``{"error": message}``.
"""

from __future__ import annotations


class PlexifyError(Exception):
    """Base class for domain errors surfaced to API clients."""

    status_code: int = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def __str__(self) -> str:
        return self.message


# --- Input errors ---


class InputError(PlexifyError):
    status_code = 400


class UnknownAgentError(PlexifyError):
    status_code = 404

    def __init__(self, agent_id: str) -> None:
        super().__init__("Unknown agent")
        self.agent_id = agent_id


class DocumentLoadError(InputError):
    """Selected documents could not be loaded from the district folder."""


# --- Configuration errors ---


class ConfigurationError(PlexifyError):
    status_code = 500


class ProviderAuthenticationError(ConfigurationError):
    status_code = 401


# --- Vendor errors ---


class ProviderError(PlexifyError):
    """Non-2xx vendor response that is not retried."""

    def __init__(self, provider: str, status: int, body: str) -> None:
        super().__init__(f"{provider.capitalize()} error {status}: {body}")
        self.provider = provider
        self.status = status
        self.body = body


class NoModelAvailableError(PlexifyError):
    def __init__(self, provider: str = "anthropic") -> None:
        super().__init__(f"No {provider.capitalize()} model available to try")
        self.provider = provider


class AllProvidersFailedError(PlexifyError):
    def __init__(self, last_error: Exception | None) -> None:
        detail = str(last_error) if last_error else "no provider configured"
        super().__init__(f"All LLM providers failed. Last error: {detail}")
        self.last_error = last_error


# --- Output-contract errors ---


class StructuredOutputError(PlexifyError):
    status_code = 500
