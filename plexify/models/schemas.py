from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from plexify.models.structured_outputs import CamelModel, Scalar


# --- Requests ---


class AgentRequest(CamelModel):
    project_id: Optional[str] = None
    document_ids: Optional[list[str]] = None
    source_ids: Optional[list[str]] = None
    instructions: Optional[str] = None


class TTSSection(CamelModel):
    heading: str
    items: Optional[list[str]] = None
    text: Optional[str] = None


class TTSContent(CamelModel):
    title: str
    subtitle: Optional[str] = None
    sections: list[TTSSection] = Field(default_factory=list)


class TTSRequest(CamelModel):
    content: Optional[TTSContent] = None
    output_id: Optional[str] = None


class PodcastRequest(CamelModel):
    document_ids: list[str] = Field(default_factory=list)
    project_id: Optional[str] = None


class ExportMetric(CamelModel):
    label: str
    value: Scalar


class BoardBriefSection(CamelModel):
    heading: str
    items: Optional[list[str]] = None
    text: Optional[str] = None
    metrics: Optional[list[ExportMetric]] = None


class ExportCitation(CamelModel):
    source: str
    text: Optional[str] = None


class BoardBriefContent(CamelModel):
    title: str
    subtitle: Optional[str] = None
    sections: list[BoardBriefSection] = Field(default_factory=list)
    citations: Optional[list[ExportCitation]] = None


class DocxExportRequest(CamelModel):
    board_brief: Optional[BoardBriefContent] = None
    editor_content: Optional[str] = None
    filename: Optional[str] = None


# --- Responses ---


class AudioChapter(CamelModel):
    title: str
    text: str
    start_time: Optional[float] = None
    duration: Optional[float] = None


class TTSResult(CamelModel):
    audio_url: str
    chapters: list[AudioChapter]
    total_duration: float


class DialogueTurn(CamelModel):
    speaker: Literal["CASSIDY", "MARK"]
    text: str


class PodcastScript(CamelModel):
    title: str
    description: str
    dialogue: list[DialogueTurn]
    word_count: int


class PodcastResult(CamelModel):
    podcast_url: str
    title: str
    duration: float
    script: list[DialogueTurn]


class PodcastResponse(CamelModel):
    success: bool = True
    podcast: PodcastResult


class HealthResponse(CamelModel):
    status: str
    timestamp: str
    version: str
    environment: str
