from __future__ import annotations

import json
from pathlib import Path
from string import Template
from typing import Any


PROMPTS_PATH = Path(__file__).resolve().parents[1] / "prompts" / "prompts.json"


class PromptStore:
    """Prompt catalog loaded from JSON and reloaded when the file changes."""

    def __init__(self, path: Path = PROMPTS_PATH) -> None:
        self.path = path
        self._catalog: dict[str, Any] | None = None
        self._mtime_ns: int | None = None

    def _load_catalog(self) -> dict[str, Any]:
        mtime_ns = self.path.stat().st_mtime_ns
        if self._catalog is not None and self._mtime_ns == mtime_ns:
            return self._catalog

        payload = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError("Prompt catalog must be a JSON object.")
        self._catalog = payload
        self._mtime_ns = mtime_ns
        return payload

    def resolve(self, key: str) -> str:
        node: Any = self._load_catalog()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                raise KeyError(f"Prompt key not found: {key}")
            node = node[part]
        if not isinstance(node, str):
            raise TypeError(f"Prompt key must map to a string: {key}")
        return node

    def render(self, key: str, **values: Any) -> str:
        template = Template(self.resolve(key))
        try:
            return template.substitute(**values)
        except KeyError as exc:
            missing = str(exc.args[0])
            raise KeyError(f"Missing template value '{missing}' for prompt '{key}'") from exc

    def clear(self) -> None:
        self._catalog = None
        self._mtime_ns = None


default_store = PromptStore()


def render_prompt(key: str, **values: Any) -> str:
    return default_store.render(key, **values)
