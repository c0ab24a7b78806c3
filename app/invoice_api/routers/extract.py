"""
Router for AI extraction.

Handles:
- Text extraction from a stored PDF and normalization into an invoice record
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ..models import ExtractRequest, ExtractResponse, error_responses
from ..services.ai import NormalizationClient, check_invoice_consistency, get_normalization_client
from ..services.pdf_service import PDFService, get_pdf_service
from ..services.storage import BlobStore, get_blob_store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="",
    tags=["extract"],
    responses=error_responses(400, 404, 422, 502, 503),
)

SAMPLE_TEXT_MESSAGE = (
    "PDF parsing failed, using sample data for testing. Please try a different PDF file."
)


@router.post("/extract", response_model=ExtractResponse)
async def extract_invoice(
    request: ExtractRequest,
    blobs: BlobStore = Depends(get_blob_store),
    pdf_service: PDFService = Depends(get_pdf_service),
    normalizer: NormalizationClient = Depends(get_normalization_client),
) -> ExtractResponse:
    """
    Extract structured invoice data from a stored PDF.

    The result is not saved; the client reviews it and creates the record
    through POST /invoices.
    """
    # Database reads and PDF parsing block; keep them off the event loop
    pdf_stream = await run_in_threadpool(blobs.get, request.file_id)
    text, used_sample = await run_in_threadpool(
        pdf_service.extract_text_or_sample, pdf_stream
    )

    extracted = await normalizer.normalize(text)
    warnings = check_invoice_consistency(extracted)

    logger.info(
        "Extracted invoice %s from file %s (%d warning(s))",
        extracted.invoice.number,
        request.file_id,
        len(warnings),
    )

    return ExtractResponse(
        vendor=extracted.vendor,
        invoice=extracted.invoice,
        warnings=warnings,
        message=SAMPLE_TEXT_MESSAGE if used_sample else None,
    )
