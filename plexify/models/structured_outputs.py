"""Envelope and output shapes produced by the structured-output agents."""

from __future__ import annotations

from typing import Generic, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AgentId = Literal["board-brief", "assessment-trends", "ozrf-section"]
AGENT_IDS: tuple[str, ...] = ("board-brief", "assessment-trends", "ozrf-section")
SCHEMA_VERSION = "1.0"

# Figures the model may emit either as display text ("94.2%") or as a bare number.
Scalar = Union[str, int, float]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class SourceRef(CamelModel):
    id: str
    label: str


class StructuredCitation(CamelModel):
    number: int = 1
    source_id: str = ""
    source_name: str = ""
    quote: str = ""


# --- Board brief ---


class BoardBriefMetric(CamelModel):
    label: str
    value: Scalar


class BoardBrief(CamelModel):
    title: str
    district_name: Optional[str] = None
    reporting_period: Optional[str] = None
    executive_summary: list[str] = Field(default_factory=list)
    key_metrics: list[BoardBriefMetric] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)


# --- Assessment trends ---


class AssessmentPeriod(CamelModel):
    period: str = ""
    prepared_date: str = ""


class CollectionRow(CamelModel):
    property_type: str
    billed: Scalar
    collected: Scalar
    rate: Scalar
    citation: Optional[StructuredCitation] = None


class CollectionTotal(CamelModel):
    billed: Scalar = ""
    collected: Scalar = ""
    rate: Scalar = ""
    citation: Optional[StructuredCitation] = None


class CollectionSummary(CamelModel):
    rows: list[CollectionRow] = Field(default_factory=list)
    total: Optional[CollectionTotal] = None


class DelinquencyBucket(CamelModel):
    bucket: str
    amount: Scalar
    property_count: Optional[int] = None
    citation: Optional[StructuredCitation] = None


class DelinquentProperty(CamelModel):
    address: str
    amount: Scalar
    days_overdue: Optional[int] = None
    citation: Optional[StructuredCitation] = None


class Recommendation(CamelModel):
    content: str


class AssessmentSections(CamelModel):
    collection_summary: CollectionSummary = Field(default_factory=CollectionSummary)
    delinquency_aging: list[DelinquencyBucket] = Field(default_factory=list)
    top_delinquent: list[DelinquentProperty] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)


class AssessmentTrends(CamelModel):
    title: str
    metadata: AssessmentPeriod = Field(default_factory=AssessmentPeriod)
    sections: AssessmentSections = Field(default_factory=AssessmentSections)


# --- OZRF section ---


class CitedValue(CamelModel):
    value: Optional[Scalar] = None
    citation: Optional[StructuredCitation] = None


class CommunityImpact(CamelModel):
    jobs_created: Optional[CitedValue] = None
    jobs_retained: Optional[CitedValue] = None
    local_hiring_rate: Optional[CitedValue] = None


class InvestmentFacilitation(CamelModel):
    total_investment: Optional[CitedValue] = None
    qof_investments: Optional[CitedValue] = None
    business_relocations: Optional[CitedValue] = None


class EnvironmentalSocialMetric(CamelModel):
    metric: str
    value: Scalar
    citation: Optional[StructuredCitation] = None


class OZRFReportingPeriod(CamelModel):
    reporting_period: str = ""
    prepared_date: str = ""


class OZRFSections(CamelModel):
    community_impact: CommunityImpact = Field(default_factory=CommunityImpact)
    investment_facilitation: InvestmentFacilitation = Field(default_factory=InvestmentFacilitation)
    environmental_social: list[EnvironmentalSocialMetric] = Field(default_factory=list)
    disclosure_statement: str = ""


class OZRFSection(CamelModel):
    title: str
    metadata: OZRFReportingPeriod = Field(default_factory=OZRFReportingPeriod)
    sections: OZRFSections = Field(default_factory=OZRFSections)


# --- Envelope ---

OutputT = TypeVar("OutputT", bound=CamelModel)


class StructuredOutputEnvelope(CamelModel, Generic[OutputT]):
    agent_id: str
    schema_version: Literal["1.0"] = SCHEMA_VERSION
    generated_at: str
    project_id: str
    sources_used: list[SourceRef]
    output: OutputT


BoardBriefEnvelope = StructuredOutputEnvelope[BoardBrief]
AssessmentTrendsEnvelope = StructuredOutputEnvelope[AssessmentTrends]
OZRFSectionEnvelope = StructuredOutputEnvelope[OZRFSection]
