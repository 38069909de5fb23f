"""Source document loading for the agents and podcast pipeline.

District documents live under ``<real_docs_dir>/<district-slug>/`` next to an
``index.json`` that maps document ids to filenames. Extracted PDF text is kept
in a cache dict owned by the caller of ``DocumentStore`` (one per app, or one
per test) and keyed by resolved file path. Entries are never invalidated.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from plexify.config import Settings, settings as default_settings
from plexify.errors import DocumentLoadError, InputError
from plexify.models.schemas import AgentRequest

MAX_DOCUMENT_CHARS = 40_000
MAX_LISTED_PDFS = 25
_SLUG_RE = re.compile(r"^[a-z0-9-]+$", re.IGNORECASE)


@dataclass(frozen=True)
class SourceDocument:
    id: str
    label: str
    text: str


@dataclass(frozen=True)
class ExtractedText:
    text: str
    page_count: int


@dataclass(frozen=True)
class ExtractedDocument:
    id: str
    filename: str
    display_name: str
    text: str
    page_count: int

    def as_source(self) -> SourceDocument:
        return SourceDocument(id=self.id, label=self.display_name, text=self.text)


@dataclass(frozen=True)
class MissingDocument:
    id: str
    filename: str
    display_name: str
    reason: str


@dataclass
class LoadResult:
    documents: list[ExtractedDocument] = field(default_factory=list)
    missing: list[MissingDocument] = field(default_factory=list)


@dataclass(frozen=True)
class DemoSource:
    id: str
    label: str
    filename: str


DEMO_SOURCES: tuple[DemoSource, ...] = (
    DemoSource(
        id="gt-annual-2024",
        label="Golden Triangle BID Annual Report 2024",
        filename="Golden_Triangle_BID_Annual_Report_2024.txt",
    ),
    DemoSource(
        id="q3-assessment-collections",
        label="Q3 Assessment Collection Summary",
        filename="Q3_Assessment_Collection_Summary.txt",
    ),
    DemoSource(
        id="board-minutes-oct-2024",
        label="Board Meeting Minutes (Oct 2024)",
        filename="Board_Meeting_Minutes_October_2024.txt",
    ),
)


def assert_safe_slug(slug: str) -> None:
    if not _SLUG_RE.match(slug or ""):
        raise InputError("Invalid district slug")


def assert_safe_filename(filename: str) -> None:
    if Path(filename).name != filename:
        raise InputError("Invalid filename")
    if not filename.lower().endswith(".pdf"):
        raise InputError(f"Unsupported file type: {filename}")


def clamp_text(text: str, max_chars: int = MAX_DOCUMENT_CHARS) -> str:
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}\n\n[...truncated...]"


def _read_pdf(path: Path) -> ExtractedText:
    reader = PdfReader(str(path))
    pages = [page.extract_text() or "" for page in reader.pages]
    return ExtractedText(text="\n".join(pages), page_count=len(reader.pages))


class DocumentStore:
    def __init__(
        self,
        cfg: Settings | None = None,
        *,
        cache: Optional[dict[str, ExtractedText]] = None,
    ) -> None:
        self.settings = cfg or default_settings
        self.cache: dict[str, ExtractedText] = cache if cache is not None else {}

    @property
    def real_docs_dir(self) -> Path:
        return Path(self.settings.real_docs_dir).resolve()

    @property
    def demo_data_dir(self) -> Path:
        return Path(self.settings.demo_data_dir).resolve()

    def district_dir(self, district_slug: str) -> Path:
        assert_safe_slug(district_slug)
        return self.real_docs_dir / district_slug

    async def extract_pdf_text(self, district_slug: str, filename: str) -> ExtractedText:
        assert_safe_filename(filename)
        path = (self.district_dir(district_slug) / filename).resolve()
        key = str(path)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        extracted = await asyncio.to_thread(_read_pdf, path)
        self.cache[key] = extracted
        return extracted

    def read_index(self, district_slug: str) -> dict:
        index_path = self.district_dir(district_slug) / "index.json"
        try:
            payload = json.loads(index_path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise DocumentLoadError(
                f"No document index found for district '{district_slug}' "
                f"(expected {index_path.relative_to(self.real_docs_dir.parent)})."
            ) from e
        except json.JSONDecodeError as e:
            raise DocumentLoadError(
                f"Malformed index.json for district '{district_slug}': {e.msg} (line {e.lineno}, column {e.colno})."
            ) from e
        if not isinstance(payload, dict) or not isinstance(payload.get("documents"), list):
            raise DocumentLoadError(f"Malformed index.json for district '{district_slug}'.")
        return payload

    async def load_selected_documents(self, district_slug: str, document_ids: list[str]) -> LoadResult:
        index = self.read_index(district_slug)
        requested = set(document_ids)
        result = LoadResult()

        entries = [d for d in index["documents"] if isinstance(d, dict) and d.get("id") in requested]
        found_ids = {d["id"] for d in entries}
        for doc_id in document_ids:
            if doc_id not in found_ids:
                result.missing.append(
                    MissingDocument(id=doc_id, filename="", display_name=doc_id, reason="not in index.json")
                )

        for entry in entries:
            filename = str(entry.get("filename", ""))
            display_name = str(entry.get("displayName") or filename)
            if not filename.lower().endswith(".pdf"):
                # Only PDFs are extracted for now.
                continue

            try:
                extracted = await self.extract_pdf_text(district_slug, filename)
            except (OSError, PdfReadError, InputError) as e:
                logger.warning(f"Could not load {district_slug}/{filename}: {e}")
                result.missing.append(
                    MissingDocument(id=entry["id"], filename=filename, display_name=display_name, reason=str(e))
                )
                continue

            result.documents.append(
                ExtractedDocument(
                    id=entry["id"],
                    filename=filename,
                    display_name=display_name,
                    text=clamp_text(extracted.text),
                    page_count=int(entry.get("pageCount") or extracted.page_count),
                )
            )

        return result

    def list_available_pdfs(self, district_slug: str) -> list[str]:
        try:
            directory = self.district_dir(district_slug)
            names = sorted(p.name for p in directory.iterdir() if p.name.lower().endswith(".pdf"))
        except (OSError, InputError):
            return []
        return names[:MAX_LISTED_PDFS]

    def load_demo_sources(self, source_ids: Optional[list[str]] = None) -> list[SourceDocument]:
        selected = [s for s in DEMO_SOURCES if s.id in source_ids] if source_ids else list(DEMO_SOURCES)

        docs: list[SourceDocument] = []
        missing: list[str] = []
        for source in selected:
            path = self.demo_data_dir / source.filename
            try:
                text = path.read_text(encoding="utf-8")
            except OSError:
                missing.append(source.filename)
                continue
            docs.append(SourceDocument(id=source.id, label=source.label, text=text))

        if missing:
            raise DocumentLoadError(f"Could not load demo sources: {', '.join(missing)}")
        return docs

    async def sources_for_request(self, body: AgentRequest) -> list[SourceDocument]:
        """Resolve the sources an agent request refers to.

        ``documentIds`` selects district PDFs; without it the demo text sources
        (optionally filtered by ``sourceIds``) are used.
        """
        district_slug = body.project_id or self.settings.default_project_id

        if body.document_ids is None:
            return self.load_demo_sources(body.source_ids)

        if len(body.document_ids) == 0:
            raise InputError(
                "No documents selected. Please select at least one document from the Sources panel."
            )

        result = await self.load_selected_documents(district_slug, body.document_ids)
        if not result.documents:
            details = ""
            if result.missing:
                details = " Missing: " + ", ".join(
                    f"{m.display_name} ({m.filename or 'no file'})" for m in result.missing
                )
            available = self.list_available_pdfs(district_slug)
            available_text = (
                f" Available PDFs: {', '.join(available)}"
                if available
                else " No PDFs found in the district folder."
            )
            raise DocumentLoadError(
                "Could not load selected PDFs. Verify the filenames in index.json match files in "
                f"public/real-docs/{district_slug}/.{details}{available_text}"
            )

        if result.missing:
            logger.warning(
                f"Proceeding without {len(result.missing)} document(s): "
                + ", ".join(m.id for m in result.missing)
            )
        return [d.as_source() for d in result.documents]
