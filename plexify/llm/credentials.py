"""API key lookup with enough provenance to diagnose misconfiguration."""

from __future__ import annotations

from dataclasses import dataclass

from plexify.config import Settings, settings as default_settings
from plexify.services.env_safety import sanitize_env_value

ANTHROPIC_KEY_PREFIX = "sk-ant-"
ANTHROPIC_KEY_SOURCES = ("VITE_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY", "ANTHROPIC_APIKEY")
ANTHROPIC_MODEL_SOURCES = ("VITE_ANTHROPIC_MODEL", "ANTHROPIC_MODEL", "ANTHROPIC_MODEL_ID")


@dataclass(frozen=True)
class ApiKeyInfo:
    key: str
    source: str
    length: int
    has_expected_prefix: bool

    def describe(self) -> str:
        return (
            f"Loaded key from {self.source} (length={self.length}, "
            f"startsWithSkAnt={str(self.has_expected_prefix).lower()})"
        )


def _anthropic_info(key: str, source: str) -> ApiKeyInfo:
    return ApiKeyInfo(
        key=key,
        source=source,
        length=len(key),
        has_expected_prefix=key.startswith(ANTHROPIC_KEY_PREFIX),
    )


def anthropic_key_info(cfg: Settings | None = None) -> ApiKeyInfo | None:
    """Return the first configured Anthropic key and where it came from."""
    cfg = cfg or default_settings
    for source in ANTHROPIC_KEY_SOURCES:
        raw = getattr(cfg, source.lower(), "")
        if not raw:
            continue
        return _anthropic_info(sanitize_env_value(raw), source)
    return None


def anthropic_key_provenance(api_key: str, cfg: Settings | None = None) -> ApiKeyInfo:
    """Describe a key that was actually sent.

    The source is the first configured variable holding the same value, or
    ``"request argument"`` when the caller supplied a key of its own.
    """
    cfg = cfg or default_settings
    key = sanitize_env_value(api_key or "")
    for source in ANTHROPIC_KEY_SOURCES:
        raw = getattr(cfg, source.lower(), "")
        if raw and sanitize_env_value(raw) == key:
            return _anthropic_info(key, source)
    return _anthropic_info(key, "request argument")


def usable_anthropic_key(cfg: Settings | None = None) -> str | None:
    """Key usable for live calls, or None when the agents should run in demo mode."""
    info = anthropic_key_info(cfg)
    if info is None or not info.has_expected_prefix:
        return None
    return info.key


def preferred_anthropic_model(cfg: Settings | None = None) -> str | None:
    cfg = cfg or default_settings
    for source in ANTHROPIC_MODEL_SOURCES:
        raw = getattr(cfg, source.lower(), "")
        if raw and raw.strip():
            return sanitize_env_value(raw)
    return None


def openai_api_key(cfg: Settings | None = None) -> str | None:
    cfg = cfg or default_settings
    if not cfg.openai_api_key:
        return None
    return sanitize_env_value(cfg.openai_api_key) or None


def elevenlabs_api_key(cfg: Settings | None = None) -> str | None:
    cfg = cfg or default_settings
    raw = cfg.elevenlabs_api_key or cfg.vite_elevenlabs_api_key
    if not raw:
        return None
    return sanitize_env_value(raw) or None
