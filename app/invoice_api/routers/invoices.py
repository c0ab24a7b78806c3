"""
Router for invoice record management endpoints.

Handles:
- Creating reviewed invoices
- Listing and searching invoices
- Getting, updating and deleting invoices
"""

import logging
import uuid

from fastapi import APIRouter, Depends, status

from ..errors import RequestValidationFailed
from ..models import (
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceRecord,
    InvoiceUpdate,
    error_responses,
)
from ..services.storage import InvoiceStore, get_invoice_store

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/invoices",
    tags=["invoices"],
    responses=error_responses(400, 404, 409),
)


def _check_id(invoice_id: str) -> None:
    try:
        uuid.UUID(invoice_id)
    except ValueError:
        raise RequestValidationFailed("Invalid invoice ID format")


@router.post("", response_model=InvoiceRecord, status_code=status.HTTP_201_CREATED)
def create_invoice(
    request: InvoiceCreate,
    store: InvoiceStore = Depends(get_invoice_store),
) -> InvoiceRecord:
    """Save a reviewed invoice."""
    return store.insert(request)


@router.get("", response_model=InvoiceListResponse)
def list_invoices(
    q: str | None = None,
    store: InvoiceStore = Depends(get_invoice_store),
) -> InvoiceListResponse:
    """
    List invoices, newest first.

    Args:
        q: Optional search string matched against vendor name or invoice number.
    """
    invoices = store.find_all(q.strip() if q else None)
    return InvoiceListResponse(invoices=invoices, total=len(invoices))


@router.get("/{invoice_id}", response_model=InvoiceRecord)
def get_invoice(
    invoice_id: str,
    store: InvoiceStore = Depends(get_invoice_store),
) -> InvoiceRecord:
    """Get a single invoice by ID."""
    _check_id(invoice_id)
    return store.find_by_id(invoice_id)


@router.put("/{invoice_id}", response_model=InvoiceRecord)
def update_invoice(
    invoice_id: str,
    request: InvoiceUpdate,
    store: InvoiceStore = Depends(get_invoice_store),
) -> InvoiceRecord:
    """Update the vendor, invoice data or filename of an invoice."""
    _check_id(invoice_id)
    return store.update_by_id(invoice_id, request)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice(
    invoice_id: str,
    store: InvoiceStore = Depends(get_invoice_store),
):
    """Delete an invoice. The uploaded PDF is kept."""
    _check_id(invoice_id)
    store.delete_by_id(invoice_id)
