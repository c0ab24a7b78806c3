"""
Services package for the invoice extraction application.

Contains:
- pdf_service: text extraction, repackaging and page previews
- storage: file blob and invoice record persistence
- ai: language-model normalization of extracted text
"""

from .pdf_service import PDFService
from .storage import BlobStore, InvoiceStore

__all__ = ["PDFService", "BlobStore", "InvoiceStore"]
