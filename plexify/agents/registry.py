from __future__ import annotations

from plexify.agents.assessment_trends import AssessmentTrendsAgent
from plexify.agents.base import StructuredOutputAgent
from plexify.agents.board_brief import BoardBriefAgent
from plexify.agents.ozrf_section import OZRFSectionAgent
from plexify.config import Settings, settings as default_settings
from plexify.errors import UnknownAgentError
from plexify.llm.executor import AnthropicExecutor
from plexify.services.prompt_store import PromptStore

AGENT_CLASSES: dict[str, type[StructuredOutputAgent]] = {
    cls.agent_id: cls for cls in (BoardBriefAgent, AssessmentTrendsAgent, OZRFSectionAgent)
}


class AgentRegistry:
    """Builds one agent per id, all sharing the same executor."""

    def __init__(
        self,
        executor: AnthropicExecutor,
        *,
        cfg: Settings | None = None,
        prompts: PromptStore | None = None,
    ) -> None:
        cfg = cfg or default_settings
        self._agents = {
            agent_id: cls(executor, cfg=cfg, prompts=prompts)
            for agent_id, cls in AGENT_CLASSES.items()
        }

    def get(self, agent_id: str) -> StructuredOutputAgent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise UnknownAgentError(agent_id)
        return agent

    def ids(self) -> list[str]:
        return list(self._agents)
