"""Tests for PDF service."""

import io

import pytest
from PIL import Image
from pypdf import PdfReader

from app.invoice_api.services.pdf_service import (
    SAMPLE_INVOICE_TEXT,
    EmptyTextError,
    PDFService,
    UnreadablePdfError,
)
from conftest import make_blank_pdf, make_text_pdf


class TestPDFServiceInit:
    """Tests for PDFService configuration."""

    def test_init_default_values(self):
        """Test PDFService initializes with default limits."""
        service = PDFService()
        assert service.max_pages == 5
        assert service.max_chars == 100_000
        assert service.sample_fallback is False

    def test_init_custom_values(self):
        """Test PDFService accepts custom configuration."""
        service = PDFService(max_pages=2, max_chars=500, sample_fallback=True, dpi=72)
        assert service.max_pages == 2
        assert service.max_chars == 500
        assert service.sample_fallback is True
        assert service.dpi == 72


class TestExtractText:
    """Tests for text extraction."""

    def test_extracts_invoice_fields(self, invoice_pdf_bytes: bytes):
        """Test that visible text on every page is extracted."""
        text = PDFService().extract_text(invoice_pdf_bytes)

        assert "ACME Supplies Ltd" in text
        assert "INV-2024-042" in text
        assert "Total: 165.00" in text

    def test_accepts_file_like_object(self, invoice_pdf_bytes: bytes):
        """Test that a byte stream is accepted as input."""
        text = PDFService().extract_text(io.BytesIO(invoice_pdf_bytes))
        assert "ACME Supplies Ltd" in text

    def test_truncates_to_max_chars(self, invoice_pdf_bytes: bytes):
        """Test that output never exceeds max_chars."""
        text = PDFService(max_chars=20).extract_text(invoice_pdf_bytes)
        assert 0 < len(text) <= 20

    def test_reads_at_most_max_pages(self):
        """Test that pages beyond max_pages are not read."""
        pdf = make_text_pdf([["first page"], ["second page"], ["third page"]])
        text = PDFService(max_pages=2).extract_text(pdf)

        assert "first page" in text
        assert "second page" in text
        assert "third page" not in text

    def test_blank_pdf_raises_empty_text(self, blank_pdf_bytes: bytes):
        """Test that a PDF without text raises EmptyTextError."""
        with pytest.raises(EmptyTextError) as exc_info:
            PDFService().extract_text(blank_pdf_bytes)
        assert exc_info.value.kind == "EmptyText"

    def test_empty_file_raises_unreadable(self):
        """Test that empty input raises UnreadablePdfError."""
        with pytest.raises(UnreadablePdfError) as exc_info:
            PDFService().extract_text(b"")
        assert "Empty" in str(exc_info.value)

    def test_non_pdf_raises_unreadable(self, invalid_file_bytes: bytes):
        """Test that non-PDF content raises UnreadablePdfError."""
        with pytest.raises(UnreadablePdfError) as exc_info:
            PDFService().extract_text(invalid_file_bytes)
        assert "PDF header" in str(exc_info.value)

    def test_corrupted_pdf_raises_unreadable(self):
        """Test that a PDF neither decode path can read raises UnreadablePdfError."""
        with pytest.raises(UnreadablePdfError) as exc_info:
            PDFService().extract_text(b"%PDF-1.4\n" + b"\x00garbage" * 50)
        assert exc_info.value.kind == "UnreadablePdf"

    def test_falls_back_to_lenient_parser(self, monkeypatch, invoice_pdf_bytes: bytes):
        """Test that a failing strict parse is retried with the default configuration."""
        service = PDFService()
        original_decode = service._decode
        calls = []

        def flaky_decode(pdf_bytes, strict, max_pages):
            calls.append(strict)
            if strict:
                raise ValueError("strict parse failed")
            return original_decode(pdf_bytes, strict=strict, max_pages=max_pages)

        monkeypatch.setattr(service, "_decode", flaky_decode)
        text = service.extract_text(invoice_pdf_bytes)

        assert calls == [True, False]
        assert "ACME Supplies Ltd" in text

    def test_empty_primary_result_does_not_retry(self, monkeypatch, blank_pdf_bytes: bytes):
        """Test that an empty but successful parse is not retried."""
        service = PDFService()
        original_decode = service._decode
        calls = []

        def tracking_decode(pdf_bytes, strict, max_pages):
            calls.append(strict)
            return original_decode(pdf_bytes, strict=strict, max_pages=max_pages)

        monkeypatch.setattr(service, "_decode", tracking_decode)
        with pytest.raises(EmptyTextError):
            service.extract_text(blank_pdf_bytes)
        assert calls == [True]


class TestSampleFallback:
    """Tests for the canned sample text substitution."""

    def test_disabled_by_default(self, blank_pdf_bytes: bytes):
        """Test that failures propagate when the fallback is off."""
        with pytest.raises(EmptyTextError):
            PDFService().extract_text_or_sample(blank_pdf_bytes)

    def test_substitutes_sample_for_empty_text(self, blank_pdf_bytes: bytes):
        """Test that the sample replaces empty text when enabled."""
        text, used_sample = PDFService(sample_fallback=True).extract_text_or_sample(
            blank_pdf_bytes
        )
        assert used_sample is True
        assert text == SAMPLE_INVOICE_TEXT

    def test_substitutes_sample_for_unreadable_pdf(self, invalid_file_bytes: bytes):
        """Test that the sample replaces unreadable input when enabled."""
        text, used_sample = PDFService(sample_fallback=True).extract_text_or_sample(
            invalid_file_bytes
        )
        assert used_sample is True
        assert "INV-2024-001" in text

    def test_real_text_preferred(self, invoice_pdf_bytes: bytes):
        """Test that extractable PDFs never use the sample."""
        text, used_sample = PDFService(sample_fallback=True).extract_text_or_sample(
            invoice_pdf_bytes
        )
        assert used_sample is False
        assert "ACME Supplies Ltd" in text


class TestRepackage:
    """Tests for PDF repackaging."""

    def test_preserves_page_count(self, invoice_pdf_bytes: bytes):
        """Test that the repackaged PDF has the same number of pages."""
        service = PDFService()
        converted = service.repackage(invoice_pdf_bytes)

        assert converted[:4] == b"%PDF"
        assert service.get_page_count(converted) == service.get_page_count(invoice_pdf_bytes)

    def test_preserves_page_order(self):
        """Test that pages are copied in their original order."""
        widths = [100, 200, 300, 400]
        converted = PDFService().repackage(make_blank_pdf(widths))

        reader = PdfReader(io.BytesIO(converted))
        assert [int(page.mediabox.width) for page in reader.pages] == widths

    def test_preserves_text(self, invoice_pdf_bytes: bytes):
        """Test that page content survives repackaging."""
        service = PDFService()
        text = service.extract_text(service.repackage(invoice_pdf_bytes))
        assert "INV-2024-042" in text

    def test_invalid_pdf_raises(self, invalid_file_bytes: bytes):
        """Test that non-PDF input raises UnreadablePdfError."""
        with pytest.raises(UnreadablePdfError):
            PDFService().repackage(invalid_file_bytes)


class TestPageCount:
    """Tests for page counting."""

    def test_counts_pages(self):
        assert PDFService().get_page_count(make_blank_pdf([612, 612, 612])) == 3

    def test_invalid_pdf_raises(self, invalid_file_bytes: bytes):
        with pytest.raises(UnreadablePdfError):
            PDFService().get_page_count(invalid_file_bytes)


class TestRenderPage:
    """Tests for page previews."""

    def test_page_out_of_range_raises(self, invoice_pdf_bytes: bytes):
        """Test that a page beyond the document raises UnreadablePdfError."""
        with pytest.raises(UnreadablePdfError) as exc_info:
            PDFService().render_page(invoice_pdf_bytes, page=3)
        assert "out of range" in str(exc_info.value)

    def test_page_zero_raises(self, invoice_pdf_bytes: bytes):
        with pytest.raises(UnreadablePdfError):
            PDFService().render_page(invoice_pdf_bytes, page=0)

    def test_image_to_bytes_png(self):
        """Test converting PIL Image to bytes."""
        img = Image.new("RGB", (100, 100), color="red")
        result = PDFService().image_to_bytes(img, format="PNG")

        assert isinstance(result, bytes)
        # PNG magic bytes
        assert result[:4] == b"\x89PNG"

    def test_image_to_bytes_jpeg(self):
        """Test converting PIL Image to JPEG bytes."""
        img = Image.new("RGB", (100, 100), color="blue")
        result = PDFService().image_to_bytes(img, format="JPEG", quality=85)

        # JPEG magic bytes
        assert result[:2] == b"\xff\xd8"
