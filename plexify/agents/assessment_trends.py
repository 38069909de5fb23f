from __future__ import annotations

from typing import Any

from plexify.agents.base import CITATION_EXAMPLE, StructuredOutputAgent, utc_today
from plexify.models.structured_outputs import AssessmentTrends, SourceRef


class AssessmentTrendsAgent(StructuredOutputAgent):
    """Collection rates, delinquency aging and top delinquent properties, with citations."""

    agent_id = "assessment-trends"
    prompt_key = "agents.assessment_trends"
    output_model = AssessmentTrends
    snippet_chars = 3000
    max_tokens = 1600
    default_source = SourceRef(id="q3-assessment-collections", label="Q3 Assessment Collection Summary")

    def output_example(self) -> dict[str, Any]:
        return {
            "title": "string",
            "metadata": {"period": "string", "preparedDate": "YYYY-MM-DD"},
            "sections": {
                "collectionSummary": {
                    "rows": [
                        {
                            "propertyType": "string",
                            "billed": "string",
                            "collected": "string",
                            "rate": "string",
                            "citation": dict(CITATION_EXAMPLE),
                        }
                    ],
                    "total": {
                        "billed": "string",
                        "collected": "string",
                        "rate": "string",
                        "citation": dict(CITATION_EXAMPLE),
                    },
                },
                "delinquencyAging": [
                    {
                        "bucket": "string",
                        "amount": "string",
                        "propertyCount": 0,
                        "citation": dict(CITATION_EXAMPLE),
                    }
                ],
                "topDelinquent": [
                    {
                        "address": "string",
                        "amount": "string",
                        "daysOverdue": 0,
                        "citation": dict(CITATION_EXAMPLE),
                    }
                ],
                "recommendations": [{"content": "string"}],
            },
        }

    def demo_output(self, sources_used: list[SourceRef]) -> dict[str, Any]:
        citation = self.demo_citation(sources_used)

        def row(property_type: str, billed: str, collected: str, rate: str) -> dict[str, Any]:
            return {
                "propertyType": property_type,
                "billed": billed,
                "collected": collected,
                "rate": rate,
                "citation": citation,
            }

        return {
            "title": "Assessment Trends Analysis (Demo)",
            "metadata": {"period": "Q3 2024", "preparedDate": utc_today()},
            "sections": {
                "collectionSummary": {
                    "rows": [
                        row("Commercial", "$1.2M", "$1.15M", "96%"),
                        row("Retail", "$800K", "$728K", "91%"),
                        row("Residential", "$440K", "$387K", "88%"),
                    ],
                    "total": {
                        "billed": "$2.44M",
                        "collected": "$2.27M",
                        "rate": "93%",
                        "citation": citation,
                    },
                },
                "delinquencyAging": [
                    {"bucket": "30 days", "amount": "$45,000", "propertyCount": 12, "citation": citation},
                    {"bucket": "60 days", "amount": "$23,000", "propertyCount": 5, "citation": citation},
                    {"bucket": "90+ days", "amount": "$12,000", "propertyCount": 3, "citation": citation},
                ],
                "topDelinquent": [
                    {"address": "123 Main St", "amount": "$8,500", "daysOverdue": 120, "citation": citation},
                    {"address": "456 Oak Ave", "amount": "$4,200", "daysOverdue": 95, "citation": citation},
                    {"address": "789 Pine Rd", "amount": "$3,800", "daysOverdue": 90, "citation": citation},
                ],
                "recommendations": [
                    {"content": "Increase follow-up cadence for 60+ day accounts."},
                    {"content": "Add weekly delinquency aging snapshot to board reporting."},
                ],
            },
        }
