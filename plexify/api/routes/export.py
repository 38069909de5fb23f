from __future__ import annotations

import re

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from plexify.errors import InputError
from plexify.models.schemas import DocxExportRequest
from plexify.services.docx_export import DOCX_MEDIA_TYPE, generate_board_report_docx

router = APIRouter(prefix="/api/export", tags=["export"])


def safe_export_filename(filename: str | None) -> str:
    return re.sub(r"[^a-zA-Z0-9\-_]", "-", filename or "board-report")


@router.post("/docx")
async def export_docx(body: DocxExportRequest):
    has_notes = bool(body.editor_content and body.editor_content.strip())
    if body.board_brief is None and not has_notes:
        raise InputError("No content to export")

    content = await run_in_threadpool(generate_board_report_docx, body)
    filename = safe_export_filename(body.filename)
    return Response(
        content=content,
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}.docx"'},
    )
