"""
SQLAlchemy database models for the Invoice Extraction application.

This module defines the ORM models for persisting uploaded PDF files
and reviewed invoice records.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, LargeBinary, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class StoredFile(Base):
    """
    An uploaded PDF file.

    Files are written once on upload and never modified.
    """

    __tablename__ = "stored_files"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    filename: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )
    content_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="application/pdf",
    )
    size_bytes: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )
    sha256: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="SHA-256 hash of the content",
    )
    content: Mapped[bytes] = mapped_column(
        LargeBinary,
        nullable=False,
    )
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StoredFile(id={self.id}, filename='{self.filename}', size={self.size_bytes})>"


class Invoice(Base):
    """
    A reviewed invoice record.

    ``vendor`` and ``invoice`` hold the nested JSON documents; the vendor
    name and invoice number are duplicated into their own columns so they
    can be indexed and searched.
    """

    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    file_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        comment="ID of the source file in stored_files",
    )
    file_name: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )
    vendor_name: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        index=True,
    )
    invoice_number: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    vendor: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )
    invoice: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number='{self.invoice_number}', vendor='{self.vendor_name}')>"
