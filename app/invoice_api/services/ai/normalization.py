"""
Normalization of extracted PDF text into structured invoice records.

A NormalizationClient sends the extracted text to a language model,
parses the reply and validates it against the invoice schema. The
production implementation uses OpenAI; the client is built once at
application startup and injected into request handlers.
"""

import logging
from typing import Any

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from ...config import Settings
from ...models import ExtractedInvoice
from .exceptions import AIServiceError, MalformedModelResponseError, MissingApiKeyError
from .parsing import parse_model_reply
from .validation import coerce_extracted_data

logger = logging.getLogger(__name__)

# Maximum number of characters of document text sent to the model
MAX_PROMPT_CHARS = 100_000


# =============================================================================
# Extraction Prompt
# =============================================================================

EXTRACTION_PROMPT = """You are an AI assistant that extracts structured data from invoice PDFs.
Extract the following information from the document text and return it as a JSON object:

{
  "vendor": {
    "name": "vendor company name",
    "address": "vendor address (optional)",
    "taxId": "tax ID or VAT number (optional)"
  },
  "invoice": {
    "number": "invoice number",
    "date": "invoice date (YYYY-MM-DD format)",
    "currency": "currency code (optional)",
    "subtotal": 0.00,
    "taxPercent": 0.00,
    "total": 0.00,
    "poNumber": "purchase order number (optional)",
    "poDate": "PO date (optional)",
    "lineItems": [
      {
        "description": "item description",
        "unitPrice": 0.00,
        "quantity": 1,
        "total": 0.00
      }
    ]
  }
}

## Rules:
- All numeric values must be numbers, not strings.
- Dates must be in YYYY-MM-DD format.
- Extract only information that is clearly visible in the document. DO NOT HALLUCINATE.
- Omit optional fields that are not present.

## Output:
- Return ONLY valid JSON (no prose, no markdown, no code fences).
- Do not wrap the JSON in triple backticks."""


def build_prompt(text: str) -> str:
    """Build the user message carrying the (truncated) document text."""
    excerpt = text[:MAX_PROMPT_CHARS]
    return f"PDF Content (first {len(excerpt)} chars):\n{excerpt}"


def validate_extracted(data: dict[str, Any]) -> ExtractedInvoice:
    """
    Coerce and validate parsed model output against the invoice schema.

    Raises:
        MalformedModelResponseError: If the data does not fit the schema.
    """
    coerced = coerce_extracted_data(data)
    try:
        return ExtractedInvoice.model_validate(coerced)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        logger.warning("Model response failed schema validation: %s", errors)
        raise MalformedModelResponseError(
            f"AI response does not match the invoice schema: {errors}"
        ) from e


# =============================================================================
# Clients
# =============================================================================


class NormalizationClient:
    """
    Base class for normalization clients.

    Subclasses implement ``generate``; parsing and validation of the reply
    is shared.
    """

    async def generate(self, instructions: str, content: str) -> str:
        """Send instructions plus document content to the model; return its raw reply."""
        raise NotImplementedError

    async def normalize(self, text: str) -> ExtractedInvoice:
        """
        Normalize extracted invoice text into a validated record.

        Raises:
            MalformedModelResponseError: If the reply is not a valid invoice.
            AIServiceError: If the model call fails.
        """
        reply = await self.generate(EXTRACTION_PROMPT, build_prompt(text))
        logger.info("Raw model response length: %d", len(reply or ""))
        return validate_extracted(parse_model_reply(reply))


class OpenAINormalizationClient(NormalizationClient):
    """Normalization client backed by the OpenAI chat completions API."""

    def __init__(
        self,
        api_key: str | None,
        model: str = "gpt-4.1-mini",
        client: OpenAI | None = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: OpenAI API key.
            model: Chat model to use.
            client: Pre-built OpenAI client (for tests).

        Raises:
            MissingApiKeyError: If no API key is given.
        """
        if not api_key and client is None:
            raise MissingApiKeyError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
            )
        self.model = model
        self.client = client or OpenAI(api_key=api_key)

    async def generate(self, instructions: str, content: str) -> str:
        try:
            # The SDK call blocks; run it off the event loop
            response = await run_in_threadpool(
                self.client.chat.completions.create,
                model=self.model,
                messages=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": content},
                ],
                response_format={"type": "json_object"},
                temperature=0,
            )
        except OpenAIError as e:
            logger.exception("OpenAI request failed")
            raise AIServiceError(f"AI extraction failed: {e}") from e

        return response.choices[0].message.content or ""


def build_normalization_client(settings: Settings) -> NormalizationClient | None:
    """
    Build the production normalization client from settings.

    Returns None (and logs an error) if the API key is missing; extraction
    requests then fail with MissingApiKey until configuration is fixed.
    """
    if not settings.openai_api_key:
        logger.error(
            "OPENAI_API_KEY is not set; invoice extraction is unavailable until it is configured"
        )
        return None
    logger.info("Using OpenAI model %s for normalization", settings.openai_model)
    return OpenAINormalizationClient(settings.openai_api_key, model=settings.openai_model)


def get_normalization_client(request: Request) -> NormalizationClient:
    """
    FastAPI dependency returning the client built at startup.

    Raises:
        MissingApiKeyError: If no client is configured.
    """
    client = getattr(request.app.state, "normalization_client", None)
    if client is None:
        raise MissingApiKeyError(
            "AI API key not configured. Set OPENAI_API_KEY and restart the service."
        )
    return client
