"""
Router for PDF repackaging.

Rewrites PDFs that browser viewers fail to render into a fresh document
with the same pages.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Response, UploadFile
from fastapi.concurrency import run_in_threadpool

from ..config import Settings, get_settings
from ..models import error_responses
from ..services.pdf_service import PDFService, get_pdf_service
from .upload import content_disposition, read_pdf_upload

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/pdf-convert",
    tags=["pdf-convert"],
    responses=error_responses(400, 413, 422),
)


@router.post("/convert")
async def convert_pdf(
    pdf: Annotated[UploadFile, File(description="PDF to repackage")],
    pdf_service: PDFService = Depends(get_pdf_service),
    settings: Settings = Depends(get_settings),
) -> Response:
    """Convert a problematic PDF to a more compatible one."""
    file_bytes = await read_pdf_upload(pdf, settings.convert_max_bytes)
    logger.info("Converting PDF: %s (%d bytes)", pdf.filename, len(file_bytes))

    converted = await run_in_threadpool(pdf_service.repackage, file_bytes)
    return Response(
        content=converted,
        media_type="application/pdf",
        headers={
            "Content-Disposition": content_disposition(
                "attachment", f"converted_{pdf.filename}"
            ),
        },
    )


@router.get("/health")
async def pdf_convert_health() -> dict[str, str]:
    """Health check for the conversion service."""
    return {"status": "PDF conversion service is running"}
