"""
PDF processing service.

Uses pypdf for text extraction, page counting and repackaging, and
pdf2image (poppler) for rendering page previews.
"""

import io
import logging
from typing import BinaryIO

from fastapi import status
from PIL import Image
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from ..errors import ServiceError

logger = logging.getLogger(__name__)


SAMPLE_INVOICE_TEXT = """
INVOICE

Vendor: Sample Company Inc
Address: 123 Test Street, Test City, TC 12345
Tax ID: TEST123456789

Invoice Number: INV-2024-001
Invoice Date: 2024-03-15
Currency: USD

Description                    Qty    Unit Price    Total
Sample Service                  1      $1000.00     $1000.00

Subtotal:                                          $1000.00
Tax (10%):                                         $100.00
Total:                                             $1100.00
"""


class PDFProcessingError(ServiceError):
    """Raised when a PDF cannot be processed."""

    kind = "UnreadablePdf"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class UnreadablePdfError(PDFProcessingError):
    """Raised when a PDF cannot be parsed by any decode path."""

    kind = "UnreadablePdf"


class EmptyTextError(PDFProcessingError):
    """Raised when a PDF parses but contains no extractable text."""

    kind = "EmptyText"


def _read_bytes(file_bytes: bytes | BinaryIO) -> bytes:
    if hasattr(file_bytes, "read"):
        return file_bytes.read()
    return file_bytes


def _check_header(pdf_bytes: bytes) -> None:
    if not pdf_bytes:
        raise UnreadablePdfError("Empty PDF file provided")
    if not pdf_bytes[:4] == b"%PDF":
        raise UnreadablePdfError("Invalid PDF file: does not start with PDF header")


class PDFService:
    """
    Service for PDF processing operations.

    Text extraction tries a strict, page-bounded parse first and falls back
    to pypdf's lenient default configuration if that raises.
    """

    def __init__(
        self,
        max_pages: int = 5,
        max_chars: int = 100_000,
        sample_fallback: bool = False,
        dpi: int = 150,
    ):
        """
        Initialize the PDF service.

        Args:
            max_pages: Maximum number of pages read by the primary decode path.
            max_chars: Extracted text is truncated to this many characters.
            sample_fallback: Substitute SAMPLE_INVOICE_TEXT when extraction
                fails. Never enable in production.
            dpi: Resolution for page previews.
        """
        self.max_pages = max_pages
        self.max_chars = max_chars
        self.sample_fallback = sample_fallback
        self.dpi = dpi

    # -------------------------------------------------------------------------
    # Text extraction
    # -------------------------------------------------------------------------

    def _decode(self, pdf_bytes: bytes, strict: bool, max_pages: int | None) -> str:
        reader = PdfReader(io.BytesIO(pdf_bytes), strict=strict)
        if len(reader.pages) == 0:
            raise PdfReadError("PDF has no pages")
        pages = reader.pages if max_pages is None else reader.pages[:max_pages]
        parts = [page.extract_text() or "" for page in pages]
        return "\n".join(parts)[: self.max_chars]

    def extract_text(self, file_bytes: bytes | BinaryIO) -> str:
        """
        Extract plain text from a PDF.

        Args:
            file_bytes: PDF file as bytes or file-like object.

        Returns:
            The extracted text, at most ``max_chars`` characters long.

        Raises:
            EmptyTextError: The PDF parsed but yielded no text (e.g. scanned images).
            UnreadablePdfError: Neither decode path could parse the PDF.
        """
        pdf_bytes = _read_bytes(file_bytes)
        _check_header(pdf_bytes)

        try:
            text = self._decode(pdf_bytes, strict=True, max_pages=self.max_pages)
            logger.info("Extracted text length: %d", len(text))
        except Exception as e:
            logger.warning("Strict PDF parsing failed, trying fallback: %s", e)
            try:
                text = self._decode(pdf_bytes, strict=False, max_pages=None)
                logger.info("Fallback extraction - text length: %d", len(text))
            except Exception as fallback_error:
                logger.error("Fallback parsing also failed: %s", fallback_error)
                raise UnreadablePdfError(
                    "Unable to process this PDF file. The file may be corrupted, "
                    "password-protected, or use an unsupported format."
                ) from fallback_error

        if not text.strip():
            raise EmptyTextError(
                "Could not extract any text from the provided PDF. "
                "The PDF may be image-only or corrupted."
            )
        return text

    def extract_text_or_sample(self, file_bytes: bytes | BinaryIO) -> tuple[str, bool]:
        """
        Extract text, substituting the sample invoice if enabled and extraction fails.

        Returns:
            Tuple of (text, used_sample).
        """
        try:
            return self.extract_text(file_bytes), False
        except PDFProcessingError as e:
            if not self.sample_fallback:
                raise
            logger.warning("Text extraction failed (%s); using sample invoice text", e.kind)
            return SAMPLE_INVOICE_TEXT[: self.max_chars], True

    # -------------------------------------------------------------------------
    # Structure
    # -------------------------------------------------------------------------

    def get_page_count(self, file_bytes: bytes | BinaryIO) -> int:
        """
        Get the total number of pages in a PDF.

        Raises:
            UnreadablePdfError: If the PDF cannot be parsed.
        """
        pdf_bytes = _read_bytes(file_bytes)
        _check_header(pdf_bytes)
        try:
            return len(PdfReader(io.BytesIO(pdf_bytes)).pages)
        except Exception as e:
            logger.error("Could not get page count: %s", e)
            raise UnreadablePdfError(f"Could not get page count: {e}") from e

    def repackage(self, file_bytes: bytes | BinaryIO) -> bytes:
        """
        Copy every page of a PDF, in order, into a freshly written document.

        Used as a compatibility workaround for PDFs that browser viewers
        refuse to render. Purely structural; no content is extracted.

        Raises:
            UnreadablePdfError: If the source PDF cannot be loaded.
        """
        pdf_bytes = _read_bytes(file_bytes)
        _check_header(pdf_bytes)

        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            writer = PdfWriter()
            for index in range(len(reader.pages)):
                writer.add_page(reader.pages[index])

            buffer = io.BytesIO()
            writer.write(buffer)
        except Exception as e:
            logger.exception("PDF repackaging failed")
            raise UnreadablePdfError(f"Failed to convert PDF: {e}") from e

        logger.info("Repackaged PDF with %d page(s)", len(reader.pages))
        return buffer.getvalue()

    # -------------------------------------------------------------------------
    # Preview
    # -------------------------------------------------------------------------

    def render_page(self, file_bytes: bytes | BinaryIO, page: int = 1) -> Image.Image:
        """
        Render a single page to a PIL Image.

        Args:
            file_bytes: PDF file as bytes or file-like object.
            page: 1-indexed page number.

        Raises:
            UnreadablePdfError: If the page does not exist or rendering fails.
        """
        pdf_bytes = _read_bytes(file_bytes)
        page_count = self.get_page_count(pdf_bytes)
        if page < 1 or page > page_count:
            raise UnreadablePdfError(f"Page {page} out of range (1-{page_count})")

        try:
            # Import here to provide clear error if poppler not installed
            from pdf2image import convert_from_bytes
            from pdf2image.exceptions import PDFInfoNotInstalledError
        except ImportError as e:
            logger.error("pdf2image not installed: %s", e)
            raise UnreadablePdfError(
                "pdf2image library not installed. Run: pip install pdf2image"
            ) from e

        try:
            images = convert_from_bytes(
                pdf_bytes,
                dpi=self.dpi,
                fmt="png",
                first_page=page,
                last_page=page,
            )
        except PDFInfoNotInstalledError as e:
            logger.error("Poppler not installed: %s", e)
            raise UnreadablePdfError(
                "Poppler not installed. Install poppler-utils: "
                "brew install poppler (macOS) or apt-get install poppler-utils (Linux)"
            ) from e
        except Exception as e:
            logger.exception("Unexpected error during page rendering")
            raise UnreadablePdfError(f"Page rendering failed: {e}") from e

        if not images:
            raise UnreadablePdfError(f"Page {page} could not be rendered")
        return images[0]

    def image_to_bytes(
        self, image: Image.Image, format: str = "PNG", quality: int = 95
    ) -> bytes:
        """
        Convert a PIL Image to bytes.

        Args:
            image: PIL Image to convert.
            format: Output format (PNG, JPEG, etc.).
            quality: Quality for lossy formats (1-100).
        """
        buffer = io.BytesIO()
        save_kwargs = {"format": format}
        if format.upper() in ("JPEG", "JPG", "WEBP"):
            save_kwargs["quality"] = quality
        image.save(buffer, **save_kwargs)
        buffer.seek(0)
        return buffer.getvalue()


# Singleton instance for convenience
_pdf_service: PDFService | None = None


def get_pdf_service() -> PDFService:
    """Get or create the PDF service singleton from settings."""
    global _pdf_service
    if _pdf_service is None:
        from ..config import get_settings

        settings = get_settings()
        _pdf_service = PDFService(
            max_pages=settings.extract_max_pages,
            max_chars=settings.extract_max_chars,
            sample_fallback=settings.extract_sample_fallback,
        )
    return _pdf_service
