from __future__ import annotations

from typing import Any

from plexify.agents.base import StructuredOutputAgent
from plexify.models.structured_outputs import BoardBrief, SourceRef


class BoardBriefAgent(StructuredOutputAgent):
    """Concise board-ready summary: metrics, highlights, risks, recommendations."""

    agent_id = "board-brief"
    prompt_key = "agents.board_brief"
    output_model = BoardBrief
    snippet_chars = 2500
    max_tokens = 1200
    default_source = SourceRef(id="gt-annual-2024", label="Golden Triangle BID Annual Report 2024")

    def output_example(self) -> dict[str, Any]:
        return {
            "title": "string",
            "districtName": "string",
            "reportingPeriod": "string",
            "executiveSummary": ["string"],
            "keyMetrics": [{"label": "string", "value": "string"}],
            "highlights": ["string"],
            "risks": ["string"],
            "recommendations": ["string"],
        }

    def demo_output(self, sources_used: list[SourceRef]) -> dict[str, Any]:
        return {
            "title": "Board Brief (Demo)",
            "districtName": "Golden Triangle BID",
            "reportingPeriod": "FY 2024",
            "executiveSummary": [
                "Assessment collections remained strong and supported core programs.",
                "Priority initiatives include streetscape maintenance, safety coordination, and wayfinding planning.",
            ],
            "keyMetrics": [
                {"label": "Assessments billed", "value": "$2.44M"},
                {"label": "Assessments collected", "value": "$2.30M"},
                {"label": "Collection rate", "value": "94.2%"},
            ],
            "highlights": [
                "Continued streetscape improvements (sidewalk repairs, tree wells, litter abatement).",
                "Wayfinding signage program planning advanced.",
            ],
            "risks": ["Delinquency follow-up may impact cashflow if not improved."],
            "recommendations": [
                "Increase delinquency follow-up cadence and board-level reporting.",
                "Finalize wayfinding signage timeline and procurement plan.",
            ],
        }
