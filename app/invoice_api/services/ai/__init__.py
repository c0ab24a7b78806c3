"""
AI service package for invoice normalization.

This package provides:
- normalization: prompt, clients and reply validation
- parsing: best-effort JSON recovery from model replies
- validation: type coercion and arithmetic consistency checks
"""

from .exceptions import AIServiceError, MalformedModelResponseError, MissingApiKeyError
from .normalization import (
    EXTRACTION_PROMPT,
    NormalizationClient,
    OpenAINormalizationClient,
    build_normalization_client,
    build_prompt,
    get_normalization_client,
    validate_extracted,
)
from .parsing import parse_model_reply, strip_code_fences
from .validation import (
    check_invoice_consistency,
    coerce_extracted_data,
    evaluate_rule,
    parse_currency,
    parse_date,
)

__all__ = [
    "AIServiceError",
    "MalformedModelResponseError",
    "MissingApiKeyError",
    "EXTRACTION_PROMPT",
    "NormalizationClient",
    "OpenAINormalizationClient",
    "build_normalization_client",
    "build_prompt",
    "get_normalization_client",
    "validate_extracted",
    "parse_model_reply",
    "strip_code_fences",
    "check_invoice_consistency",
    "coerce_extracted_data",
    "evaluate_rule",
    "parse_currency",
    "parse_date",
]
