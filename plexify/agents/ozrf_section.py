from __future__ import annotations

from typing import Any

from plexify.agents.base import CITATION_EXAMPLE, StructuredOutputAgent, utc_today
from plexify.models.structured_outputs import OZRFSection, SourceRef


def _cited(value: Any, citation: dict[str, Any]) -> dict[str, Any]:
    return {"value": value, "citation": citation}


class OZRFSectionAgent(StructuredOutputAgent):
    """Opportunity Zone reporting framework (OZRF) compliance section."""

    agent_id = "ozrf-section"
    prompt_key = "agents.ozrf_section"
    output_model = OZRFSection
    snippet_chars = 3000
    max_tokens = 1600
    default_source = SourceRef(id="gt-annual-2024", label="Golden Triangle BID Annual Report 2024")

    def output_example(self) -> dict[str, Any]:
        c = CITATION_EXAMPLE
        return {
            "title": "string",
            "metadata": {"reportingPeriod": "string", "preparedDate": "YYYY-MM-DD"},
            "sections": {
                "communityImpact": {
                    "jobsCreated": _cited(0, dict(c)),
                    "jobsRetained": _cited(0, dict(c)),
                    "localHiringRate": _cited("string", dict(c)),
                },
                "investmentFacilitation": {
                    "totalInvestment": _cited("string", dict(c)),
                    "qofInvestments": _cited(0, dict(c)),
                    "businessRelocations": _cited(0, dict(c)),
                },
                "environmentalSocial": [
                    {"metric": "string", "value": "string", "citation": dict(c)},
                ],
                "disclosureStatement": "string",
            },
        }

    def demo_output(self, sources_used: list[SourceRef]) -> dict[str, Any]:
        citation = self.demo_citation(sources_used)
        return {
            "title": "OZRF Compliance Section (Demo)",
            "metadata": {"reportingPeriod": "Q3 2024", "preparedDate": utc_today()},
            "sections": {
                "communityImpact": {
                    "jobsCreated": _cited(45, citation),
                    "jobsRetained": _cited(120, citation),
                    "localHiringRate": _cited("78%", citation),
                },
                "investmentFacilitation": {
                    "totalInvestment": _cited("$12.5M", citation),
                    "qofInvestments": _cited(3, citation),
                    "businessRelocations": _cited(2, citation),
                },
                "environmentalSocial": [
                    {"metric": "Brownfield Remediation", "value": "2 acres", "citation": citation},
                    {"metric": "Affordable Housing Units", "value": "15 planned", "citation": citation},
                    {"metric": "Community Programs", "value": "4 active initiatives", "citation": citation},
                ],
                "disclosureStatement": (
                    "This section prepared in accordance with OZRF guidelines. Data sourced from "
                    "district records and verified against original documentation."
                ),
            },
        }
