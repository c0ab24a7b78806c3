"""
Pydantic models for the invoice extraction API.

Defines the invoice data model (vendor, invoice header, line items) and the
request/response bodies of the HTTP surface. JSON keys are camelCase;
Python attributes are snake_case and either spelling is accepted on input.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import __version__


class CamelModel(BaseModel):
    """Base model serializing to camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# =============================================================================
# Invoice Data Model
# =============================================================================


class Vendor(CamelModel):
    """The party issuing the invoice."""

    name: str = Field(
        ...,
        min_length=1,
        description="Vendor company name",
        examples=["Acme Supplies Ltd"],
    )
    address: str | None = Field(default=None, description="Vendor address")
    tax_id: str | None = Field(default=None, description="Tax ID or VAT number")


class LineItem(CamelModel):
    """
    A single invoice line.

    ``total`` is expected to equal ``unit_price * quantity``; mismatches
    are reported as warnings, not rejected.
    """

    description: str = Field(..., description="Item description")
    unit_price: float = Field(..., ge=0, description="Price per unit")
    quantity: int = Field(..., gt=0, description="Number of units")
    total: float = Field(..., ge=0, description="Line total")


class InvoiceData(CamelModel):
    """Invoice header fields and line items."""

    number: str = Field(
        ...,
        min_length=1,
        description="Invoice number",
        examples=["INV-2024-001"],
    )
    date: str = Field(
        ...,
        min_length=1,
        description="Invoice date (YYYY-MM-DD)",
        examples=["2024-03-15"],
    )
    currency: str | None = Field(default=None, description="Currency code")
    subtotal: float | None = Field(default=None, description="Amount before tax")
    tax_percent: float | None = Field(default=None, ge=0, description="Tax rate in percent")
    total: float | None = Field(default=None, description="Amount due including tax")
    po_number: str | None = Field(default=None, description="Purchase order number")
    po_date: str | None = Field(default=None, description="Purchase order date")
    line_items: list[LineItem] = Field(
        default_factory=list,
        description="Ordered invoice lines",
    )


class ExtractedInvoice(CamelModel):
    """Normalized result of AI extraction: vendor plus invoice data."""

    vendor: Vendor
    invoice: InvoiceData


# =============================================================================
# Upload / Extract Models
# =============================================================================


class UploadResponse(CamelModel):
    """Response model for the upload endpoint."""

    file_id: str = Field(..., description="ID of the stored file")
    file_name: str = Field(..., description="Original filename")


class ExtractRequest(CamelModel):
    """Request model for AI extraction of a stored file."""

    file_id: str = Field(..., min_length=1, description="ID of the stored file")


class ExtractResponse(ExtractedInvoice):
    """Response model for the extract endpoint."""

    warnings: list[str] = Field(
        default_factory=list,
        description="Consistency warnings for the human reviewer",
    )
    message: str | None = Field(
        default=None,
        description="Informational message (e.g. sample text was substituted)",
    )


# =============================================================================
# Invoice Record Models
# =============================================================================


class InvoiceCreate(CamelModel):
    """Request model for creating an invoice record."""

    file_id: str = Field(..., min_length=1, description="ID of the source file")
    file_name: str = Field(..., min_length=1, description="Original filename")
    vendor: Vendor
    invoice: InvoiceData


class InvoiceUpdate(CamelModel):
    """
    Request model for updating an invoice record.

    Only the fields present in the request are replaced; nested objects are
    replaced as a whole.
    """

    file_name: str | None = Field(default=None, min_length=1)
    vendor: Vendor | None = None
    invoice: InvoiceData | None = None


class InvoiceRecord(CamelModel):
    """A stored invoice record."""

    id: str = Field(..., description="Invoice record ID (UUID)")
    file_id: str = Field(..., description="ID of the source file")
    file_name: str = Field(..., description="Original filename")
    vendor: Vendor
    invoice: InvoiceData
    created_at: str = Field(..., description="Creation timestamp (ISO format)")
    updated_at: str | None = Field(default=None, description="Last update timestamp (ISO format)")


class InvoiceListResponse(CamelModel):
    """Response model for listing invoices."""

    invoices: list[InvoiceRecord] = Field(default_factory=list)
    total: int = Field(..., ge=0, description="Number of invoices returned")


# =============================================================================
# Misc
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str = Field(default=__version__)


class ErrorResponse(BaseModel):
    """Error body returned for every handled failure."""

    detail: str
    kind: str


def error_responses(*status_codes: int) -> dict[int | str, dict[str, Any]]:
    """OpenAPI ``responses`` entries documenting the error body for each status."""
    return {code: {"model": ErrorResponse} for code in status_codes}
