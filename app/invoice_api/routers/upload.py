"""
Router for file upload and retrieval endpoints.

Handles:
- PDF upload into the blob store
- PDF content retrieval for the viewer
- Page previews for PDFs the browser viewer cannot render
"""

import logging
import re
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Response, UploadFile
from fastapi.concurrency import run_in_threadpool

from ..config import Settings, get_settings
from ..errors import PayloadTooLargeError, RequestValidationFailed
from ..models import UploadResponse, error_responses
from ..services.pdf_service import PDFService, get_pdf_service
from ..services.storage import BlobStore, get_blob_store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="",
    tags=["upload"],
    responses=error_responses(400, 404, 413, 422),
)

PDF_CONTENT_TYPE = "application/pdf"

_UNSAFE_FILENAME_CHARS = re.compile(r'[\x00-\x1f\x7f"\\]')


def content_disposition(disposition: str, filename: str) -> str:
    """
    Build a Content-Disposition header value for a client-supplied filename.

    Quotes, backslashes and control characters are dropped. Non-ASCII names
    get an ASCII ``filename`` plus an RFC 5987 ``filename*`` parameter.
    """
    cleaned = _UNSAFE_FILENAME_CHARS.sub("", filename).strip() or "document.pdf"
    ascii_name = cleaned.encode("ascii", "ignore").decode("ascii").strip() or "document.pdf"
    value = f'{disposition}; filename="{ascii_name}"'
    if ascii_name != cleaned:
        value += f"; filename*=UTF-8''{quote(cleaned)}"
    return value


async def read_pdf_upload(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read an uploaded PDF, enforcing content type and size limits.

    Raises:
        RequestValidationFailed: If the file is missing, empty or not a PDF.
        PayloadTooLargeError: If the file exceeds ``max_bytes``.
    """
    if not file.filename:
        raise RequestValidationFailed("Please select a PDF file to upload")

    if file.content_type != PDF_CONTENT_TYPE:
        raise RequestValidationFailed("Only PDF files are allowed")

    try:
        file_bytes = await file.read(max_bytes + 1)
    finally:
        await file.close()

    if not file_bytes:
        raise RequestValidationFailed("Empty file provided")
    if len(file_bytes) > max_bytes:
        raise PayloadTooLargeError(
            f"File exceeds the maximum size of {max_bytes // (1024 * 1024)}MB"
        )
    return file_bytes


@router.post("/upload", response_model=UploadResponse)
async def upload_pdf(
    pdf: Annotated[UploadFile, File(description="PDF invoice to store")],
    blobs: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings),
) -> UploadResponse:
    """
    Upload a PDF invoice.

    Returns the ID under which the file is stored; pass it to /extract.
    """
    file_bytes = await read_pdf_upload(pdf, settings.upload_max_bytes)
    logger.info("Uploading PDF: %s (%d bytes)", pdf.filename, len(file_bytes))

    file_id = await run_in_threadpool(blobs.put, file_bytes, pdf.filename, PDF_CONTENT_TYPE)
    return UploadResponse(file_id=file_id, file_name=pdf.filename)


@router.get("/files/{file_id}")
def get_file_content(
    file_id: str,
    blobs: BlobStore = Depends(get_blob_store),
) -> Response:
    """Retrieve the stored PDF content for preview."""
    stored = blobs.get_metadata(file_id)
    return Response(
        content=stored.content,
        media_type=stored.content_type,
        headers={
            "Content-Disposition": content_disposition("inline", stored.filename),
        },
    )


@router.get("/files/{file_id}/preview")
def get_file_preview(
    file_id: str,
    page: int = 1,
    blobs: BlobStore = Depends(get_blob_store),
    pdf_service: PDFService = Depends(get_pdf_service),
) -> Response:
    """Render one page of a stored PDF as a PNG image."""
    image = pdf_service.render_page(blobs.get(file_id), page=page)
    return Response(
        content=pdf_service.image_to_bytes(image, format="PNG"),
        media_type="image/png",
    )
