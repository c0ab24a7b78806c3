"""
Routers package for FastAPI endpoints.

Organized by domain:
- upload: PDF upload, download and page previews
- extract: AI extraction of stored PDFs
- invoices: Invoice record CRUD and search
- pdf_convert: PDF repackaging
"""

from . import extract, invoices, pdf_convert, upload

__all__ = ["extract", "invoices", "pdf_convert", "upload"]
