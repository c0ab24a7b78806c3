"""
Validation and data normalization utilities for extracted invoice data.

Handles:
- Type coercion of model output (currency strings, dates, quantities)
- Data cleaning (null removal from arrays)
- Math consistency checks using simpleeval
"""

import logging
import math
import re
from datetime import datetime
from typing import Any

from simpleeval import NameNotDefined, SimpleEval

from ...models import ExtractedInvoice

logger = logging.getLogger(__name__)


# Rules evaluated against invoice header values. Names missing from the
# extracted data cause the rule to be skipped.
INVOICE_RULES = [
    "subtotal == line_items_total",
    "total == subtotal * (1 + tax_percent / 100)",
]

LINE_ITEM_RULE = "total == unit_price * quantity"

_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2001, 2, 2))


def parse_currency(value: Any) -> float | None:
    """
    Parse a currency string to float using price-parser.

    Handles international formats:
    - "$1,234.56", "€1.234,56", "1000 USD", "£500.00"
    - "1.000,00 €" (European), "¥1,234" (Japanese)
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None

    value = value.strip()
    if not value:
        return None

    try:
        from price_parser import Price

        price = Price.fromstring(value)
        if price.amount_float is not None:
            return price.amount_float

        # Fallback: try parsing as plain number if price-parser fails
        cleaned = re.sub(r"[^\d.,\-]", "", value)
        if cleaned:
            if "," in cleaned and "." in cleaned:
                if cleaned.rfind(",") > cleaned.rfind("."):
                    cleaned = cleaned.replace(".", "").replace(",", ".")
                else:
                    cleaned = cleaned.replace(",", "")
            elif "," in cleaned:
                parts = cleaned.split(",")
                if len(parts) == 2 and len(parts[1]) == 2:
                    cleaned = cleaned.replace(",", ".")
                else:
                    cleaned = cleaned.replace(",", "")
            return float(cleaned)
        return None
    except (ValueError, AttributeError):
        return None


def parse_date(value: Any) -> str | None:
    """
    Parse various date formats to YYYY-MM-DD.

    Slash-separated dates are read as MM/DD/YYYY first, then DD/MM/YYYY.
    Returns None if parsing fails.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)

    value = value.strip()
    if not value:
        return None

    if re.match(r"^\d{4}-\d{2}-\d{2}$", value):
        return value

    match = re.match(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", value)
    if match:
        first, second, year = (int(g) for g in match.groups())
        for month, day in ((first, second), (second, first)):
            try:
                return datetime(year, month, day).strftime("%Y-%m-%d")
            except ValueError:
                continue
        return None

    # Try written formats. Parsing with two different defaults exposes
    # dates missing a day, month or year; those are left unparsed.
    try:
        from dateutil import parser

        first = parser.parse(value, default=_DATE_DEFAULTS[0])
        second = parser.parse(value, default=_DATE_DEFAULTS[1])
    except (ValueError, OverflowError):
        return None
    if first.date() != second.date():
        return None
    return first.strftime("%Y-%m-%d")


def _clean_null_from_arrays(
    data: dict[str, Any] | list[Any] | Any,
) -> dict[str, Any] | list[Any] | Any:
    """Recursively remove None/null items from arrays in the data structure."""
    if isinstance(data, dict):
        return {k: _clean_null_from_arrays(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_clean_null_from_arrays(item) for item in data if item is not None]
    else:
        return data


def _coerce_amounts(obj: dict[str, Any], *keys: str) -> None:
    for key in keys:
        if isinstance(obj.get(key), str):
            obj[key] = parse_currency(obj[key])


def _coerce_strings(obj: dict[str, Any], *keys: str) -> None:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            obj[key] = str(value)


def _coerce_dates(obj: dict[str, Any], *keys: str) -> None:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str) and value.strip():
            obj[key] = parse_date(value) or value


def _coerce_quantity(item: dict[str, Any]) -> None:
    value = item.get("quantity")
    if isinstance(value, str):
        value = parse_currency(value)
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if value is not None:
        item["quantity"] = value


def coerce_extracted_data(data: dict[str, Any]) -> dict[str, Any]:
    """
    Coerce common model-output quirks into the invoice schema's types.

    Amount strings become floats, numeric identifiers become strings, dates
    are normalized to YYYY-MM-DD where recognizable, and null entries are
    dropped from line items. Anything that cannot be coerced is left as is
    for schema validation to reject.
    """
    data = _clean_null_from_arrays(data)

    vendor = data.get("vendor")
    if isinstance(vendor, dict):
        _coerce_strings(vendor, "name", "taxId", "tax_id")

    invoice = data.get("invoice")
    if isinstance(invoice, dict):
        _coerce_strings(invoice, "number", "poNumber", "po_number")
        _coerce_amounts(
            invoice, "subtotal", "total", "taxPercent", "tax_percent"
        )
        _coerce_dates(invoice, "date", "poDate", "po_date")

        for key in ("lineItems", "line_items"):
            items = invoice.get(key)
            if isinstance(items, list):
                for item in items:
                    if isinstance(item, dict):
                        _coerce_amounts(item, "unitPrice", "unit_price", "total")
                        _coerce_quantity(item)

    return data


def evaluate_rule(rule: str, values: dict[str, float]) -> tuple[bool, str]:
    """
    Evaluate a validation rule using simpleeval for safe expression parsing.

    Args:
        rule: The validation rule string (e.g., "total == a + b").
        values: Dictionary of name -> numeric value.

    Returns:
        Tuple of (success, message). Success is True if the rule passes or
        cannot be evaluated because a value is missing.
    """
    left_side, right_side = (part.strip() for part in rule.split("==", 1))

    evaluator = SimpleEval()
    evaluator.names = values
    evaluator.functions = {"sum": sum, "round": round, "abs": abs}

    try:
        left_value = evaluator.eval(left_side)
        right_value = evaluator.eval(right_side)
    except NameNotDefined as e:
        return (True, f"Field not found for rule '{rule}': {e}")

    # Allow 1% tolerance for rounding errors
    tolerance = max(abs(left_value) * 0.01, abs(right_value) * 0.01, 0.02)
    if math.isclose(left_value, right_value, abs_tol=tolerance):
        return (True, f"Rule passed: {rule}")
    return (
        False,
        f"{rule} (left={left_value:.2f}, right={right_value:.2f}, "
        f"diff={abs(left_value - right_value):.2f})",
    )


def check_invoice_consistency(extracted: ExtractedInvoice) -> list[str]:
    """
    Check arithmetic relationships between invoice amounts.

    Returns:
        Human-readable warnings; empty when everything adds up.
    """
    warnings: list[str] = []
    invoice = extracted.invoice

    for index, item in enumerate(invoice.line_items, start=1):
        ok, message = evaluate_rule(
            LINE_ITEM_RULE,
            {"total": item.total, "unit_price": item.unit_price, "quantity": item.quantity},
        )
        if not ok:
            warnings.append(f"Line item {index} ('{item.description}'): {message}")

    values = {
        name: value
        for name, value in (
            ("subtotal", invoice.subtotal),
            ("total", invoice.total),
            ("tax_percent", invoice.tax_percent),
        )
        if value is not None
    }
    if invoice.line_items:
        values["line_items_total"] = sum(item.total for item in invoice.line_items)

    for rule in INVOICE_RULES:
        ok, message = evaluate_rule(rule, values)
        if not ok:
            warnings.append(f"Math validation failed: {message}")

    if warnings:
        logger.info("Consistency check produced %d warning(s)", len(warnings))
    return warnings
