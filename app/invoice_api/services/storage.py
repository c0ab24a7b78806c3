"""
Storage services backed by SQLAlchemy.

- BlobStore: uploaded PDF bytes, keyed by a generated UUID
- InvoiceStore: reviewed invoice records with substring search
"""

import hashlib
import io
import logging
import uuid
from datetime import datetime
from typing import Any, BinaryIO

from fastapi import Depends
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import ConflictError, NotFoundError
from ..models import InvoiceCreate, InvoiceData, InvoiceRecord, InvoiceUpdate, Vendor
from ..models_db import Invoice, StoredFile

logger = logging.getLogger(__name__)


def _parse_uuid(value: str, what: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFoundError(f"{what} {value} not found")


def _escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class BlobStore:
    """Binary storage for uploaded PDF files."""

    def __init__(self, db: Session):
        self.db = db

    def put(
        self,
        data: bytes,
        filename: str,
        content_type: str = "application/pdf",
    ) -> str:
        """
        Store file bytes.

        Returns:
            The generated file ID.
        """
        stored = StoredFile(
            filename=filename,
            content_type=content_type,
            size_bytes=len(data),
            sha256=hashlib.sha256(data).hexdigest(),
            content=data,
        )
        self.db.add(stored)
        self.db.commit()
        self.db.refresh(stored)

        logger.info("Stored file %s (id=%s, %d bytes)", filename, stored.id, len(data))
        return str(stored.id)

    def get_metadata(self, file_id: str) -> StoredFile:
        """
        Look up a stored file.

        Raises:
            NotFoundError: If the ID is malformed or unknown.
        """
        file_uuid = _parse_uuid(file_id, "File")
        stored = self.db.query(StoredFile).filter(StoredFile.id == file_uuid).first()
        if not stored:
            raise NotFoundError(f"File {file_id} not found")
        return stored

    def get(self, file_id: str) -> BinaryIO:
        """
        Open a stored file for reading.

        Raises:
            NotFoundError: If the ID is malformed or unknown.
        """
        return io.BytesIO(self.get_metadata(file_id).content)


class InvoiceStore:
    """Persistence for reviewed invoice records."""

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def _to_record(invoice: Invoice) -> InvoiceRecord:
        return InvoiceRecord(
            id=str(invoice.id),
            file_id=invoice.file_id,
            file_name=invoice.file_name,
            vendor=Vendor.model_validate(invoice.vendor),
            invoice=InvoiceData.model_validate(invoice.invoice),
            created_at=invoice.created_at.isoformat(),
            updated_at=invoice.updated_at.isoformat() if invoice.updated_at else None,
        )

    def _get(self, invoice_id: str) -> Invoice:
        invoice_uuid = _parse_uuid(invoice_id, "Invoice")
        invoice = self.db.query(Invoice).filter(Invoice.id == invoice_uuid).first()
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def insert(self, data: InvoiceCreate) -> InvoiceRecord:
        """
        Create an invoice record.

        Raises:
            ConflictError: If a record already exists for the same file.
        """
        invoice = Invoice(
            file_id=data.file_id,
            file_name=data.file_name,
            vendor_name=data.vendor.name,
            invoice_number=data.invoice.number,
            vendor=data.vendor.model_dump(mode="json"),
            invoice=data.invoice.model_dump(mode="json"),
        )
        self.db.add(invoice)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(
                f"An invoice for file {data.file_id} already exists"
            ) from e
        self.db.refresh(invoice)

        logger.info("Created invoice %s (id=%s)", invoice.invoice_number, invoice.id)
        return self._to_record(invoice)

    def find_by_id(self, invoice_id: str) -> InvoiceRecord:
        """
        Get an invoice record by ID.

        Raises:
            NotFoundError: If the ID is malformed or unknown.
        """
        return self._to_record(self._get(invoice_id))

    def find_all(self, query: str | None = None) -> list[InvoiceRecord]:
        """
        List invoice records, newest first.

        Args:
            query: Optional case-insensitive substring matched against the
                vendor name or the invoice number.
        """
        q = self.db.query(Invoice)
        if query:
            pattern = f"%{_escape_like(query)}%"
            q = q.filter(
                or_(
                    Invoice.vendor_name.ilike(pattern, escape="\\"),
                    Invoice.invoice_number.ilike(pattern, escape="\\"),
                )
            )
        return [self._to_record(i) for i in q.order_by(Invoice.created_at.desc()).all()]

    def update_by_id(self, invoice_id: str, data: InvoiceUpdate) -> InvoiceRecord:
        """
        Replace the fields present in ``data``.

        Raises:
            NotFoundError: If the ID is malformed or unknown.
        """
        invoice = self._get(invoice_id)
        changes: dict[str, Any] = data.model_dump(exclude_unset=True, mode="json")

        if data.file_name is not None:
            invoice.file_name = data.file_name
        if data.vendor is not None:
            invoice.vendor = data.vendor.model_dump(mode="json")
            invoice.vendor_name = data.vendor.name
        if data.invoice is not None:
            invoice.invoice = data.invoice.model_dump(mode="json")
            invoice.invoice_number = data.invoice.number
        invoice.updated_at = datetime.utcnow()

        self.db.commit()
        self.db.refresh(invoice)

        logger.info("Updated invoice %s: %s", invoice_id, sorted(changes))
        return self._to_record(invoice)

    def delete_by_id(self, invoice_id: str) -> None:
        """
        Delete an invoice record. The source file is kept.

        Raises:
            NotFoundError: If the ID is malformed or unknown.
        """
        invoice = self._get(invoice_id)
        self.db.delete(invoice)
        self.db.commit()
        logger.info("Deleted invoice %s", invoice_id)


def get_blob_store(db: Session = Depends(get_db)) -> BlobStore:
    """FastAPI dependency providing a BlobStore bound to the request session."""
    return BlobStore(db)


def get_invoice_store(db: Session = Depends(get_db)) -> InvoiceStore:
    """FastAPI dependency providing an InvoiceStore bound to the request session."""
    return InvoiceStore(db)
