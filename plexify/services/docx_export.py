"""Board report export to Word (.docx) using python-docx."""

from __future__ import annotations

import io
import re
from datetime import date
from typing import Optional

from bs4 import BeautifulSoup, Tag
from docx import Document
from docx.document import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor

from plexify.models.schemas import BoardBriefContent, DocxExportRequest

DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

PURPLE = RGBColor(0x6B, 0x21, 0xA8)
GRAY = RGBColor(0x66, 0x66, 0x66)
LIGHT_GRAY = RGBColor(0x99, 0x99, 0x99)

BLOCK_TAGS = ["p", "div", "section", "article", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6", "li"]

_BULLET_RE = re.compile(r"^([•\-*])\s+(.*)$")
_NUMBERED_RE = re.compile(r"^\d+\.\s+(.*)$")


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _classify(line: str) -> tuple[str, str]:
    bullet = _BULLET_RE.match(line)
    if bullet:
        return "bullet", bullet.group(2).strip()
    numbered = _NUMBERED_RE.match(line)
    if numbered:
        return "numbered", numbered.group(1).strip()
    return "text", line


def _list_kind(item: Tag) -> str:
    parent = item.find_parent(["ol", "ul"])
    if parent is not None and parent.name == "ol":
        return "numbered"
    return "bullet"


def html_to_paragraphs(html: str) -> list[tuple[str, str]]:
    """Flatten editor HTML into ``(kind, text)`` pairs.

    ``kind`` is ``"bullet"``, ``"numbered"`` or ``"text"``. List items take
    their kind from the enclosing ``ol``/``ul``; other blocks are split on
    ``<br>`` and typed by any leading marker (``•``, ``-``, ``1.``). Entities
    are decoded by the parser. Markup beyond paragraphs, headings and lists
    is dropped.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    for br in soup.find_all("br"):
        br.replace_with("\n")

    blocks = [
        element for element in soup.find_all(BLOCK_TAGS) if element.find(BLOCK_TAGS) is None
    ]
    if not blocks:
        blocks = [soup]

    paragraphs: list[tuple[str, str]] = []
    for block in blocks:
        if block.name == "li":
            text = _collapse(block.get_text())
            if text:
                paragraphs.append((_list_kind(block), text))
            continue
        for raw_line in block.get_text().split("\n"):
            line = _collapse(raw_line)
            if line:
                paragraphs.append(_classify(line))
    return paragraphs


def _centered_run(doc: DocxDocument, text: str, size: int, color: RGBColor, **style) -> None:
    paragraph = doc.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = paragraph.add_run(text)
    run.font.size = Pt(size)
    run.font.color.rgb = color
    run.bold = style.get("bold", False)
    run.italic = style.get("italic", False)


def _add_board_brief(doc: DocxDocument, brief: BoardBriefContent) -> None:
    doc.add_heading(brief.title, level=1)

    if brief.subtitle:
        run = doc.add_paragraph().add_run(brief.subtitle)
        run.italic = True
        run.font.color.rgb = GRAY

    for section in brief.sections:
        doc.add_heading(section.heading, level=2)

        for item in section.items or []:
            doc.add_paragraph(item, style="List Bullet")

        if section.text:
            doc.add_paragraph(section.text)

        if section.metrics:
            table = doc.add_table(rows=len(section.metrics), cols=2)
            table.style = "Table Grid"
            for row, metric in enumerate(section.metrics):
                label_cell = table.cell(row, 0)
                label_cell.paragraphs[0].add_run(metric.label).bold = True
                table.cell(row, 1).text = str(metric.value)
            doc.add_paragraph("")

    if brief.citations:
        doc.add_heading("Sources", level=2)
        for citation in brief.citations:
            paragraph = doc.add_paragraph()
            paragraph.paragraph_format.left_indent = Inches(0.25)
            paragraph.add_run(f"[{citation.source}] ").bold = True
            quote = (citation.text or "").strip()
            if quote:
                paragraph.add_run(quote)


def generate_board_report_docx(request: DocxExportRequest, export_date: Optional[str] = None) -> bytes:
    doc = Document()
    today = date.today()
    date_label = export_date or f"{today:%B} {today.day}, {today.year}"

    _centered_run(doc, "BOARD REPORT", 14, PURPLE, bold=True)
    _centered_run(doc, f"Generated: {date_label}", 10, GRAY)

    if request.board_brief:
        _add_board_brief(doc, request.board_brief)

    if request.editor_content and request.editor_content.strip():
        doc.add_heading("Additional Notes", level=2)
        for kind, text in html_to_paragraphs(request.editor_content):
            if kind == "bullet":
                doc.add_paragraph(text, style="List Bullet")
            elif kind == "numbered":
                doc.add_paragraph(text, style="List Number")
            else:
                doc.add_paragraph(text)

    _centered_run(doc, "Generated by PlexifyBID", 9, LIGHT_GRAY, italic=True)

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()
