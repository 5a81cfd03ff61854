"""
Structured receipt extraction from OCR text using Gemini structured output
"""

import copy
import json
import logging
from typing import Optional

from google import genai
from google.genai import types
from pydantic import ValidationError

from .models import ReceiptRecord

logger = logging.getLogger(__name__)

DEFAULT_MODEL = 'gemini-2.5-flash'

RECEIPT_SCHEMA = {
    "type": "object",
    "properties": {
        "merchant_name": {"type": ["string", "null"]},
        "address": {"type": ["string", "null"]},
        "server_name": {"type": ["string", "null"]},
        "date_time": {"type": ["string", "null"]},
        "subtotal": {"type": ["number", "null"]},
        "tax": {"type": ["number", "null"]},
        "tip": {"type": ["number", "null"]},
        "total": {"type": ["number", "null"]},
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "quantity": {"type": ["number", "null"]},
                    "unit_price": {"type": ["number", "null"]},
                    "line_total": {"type": ["number", "null"]},
                },
                "required": ["name", "quantity", "unit_price", "line_total"],
                "additionalProperties": False,
            },
        },
        "warnings": {"type": "array", "items": {"type": "string"}},
    },
    "required": [
        "merchant_name", "address", "server_name", "date_time",
        "subtotal", "tax", "tip", "total", "items", "warnings",
    ],
    "additionalProperties": False,
}

PROMPT_TEMPLATE = '''Extract receipt data from OCR text.

Only use values that appear in the text. Use null for anything missing.
Each item's line_total is the amount printed on that item's line; quantity is 1
unless a quantity is printed. Report service charges and gratuities in
warnings instead of tip. Return plain numbers without currency symbols.

OCR TEXT:
"""
{ocr_text}
"""
'''


def _gemini_schema(schema: dict) -> dict:
    """Rewrite nullable unions as Gemini's nullable flag and drop unsupported keys"""
    s = copy.deepcopy(schema)

    def _fix(node):
        if not isinstance(node, dict):
            return
        if isinstance(node.get("type"), list):
            non_null = [t for t in node["type"] if t != "null"]
            node["type"] = non_null[0] if non_null else "string"
            node["nullable"] = True
        node.pop("additionalProperties", None)
        for prop in node.get("properties", {}).values():
            _fix(prop)
        if isinstance(node.get("items"), dict):
            _fix(node["items"])

    _fix(s)
    return s


class GeminiReceiptExtractor:
    """Turns raw OCR text into a ReceiptRecord"""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL, client: Optional[genai.Client] = None):
        self.api_key = api_key
        self.model = model
        self._client = client

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def extract(self, ocr_text: str) -> ReceiptRecord:
        """
        Extract a structured record.

        Failures are reported as a blank record with a warning rather than
        raised, so the user can still fill the receipt in by hand.
        """
        if not self.api_key and self._client is None:
            logger.error("Gemini API key is not configured")
            return ReceiptRecord.blank("Missing Gemini API key")

        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=PROMPT_TEMPLATE.format(ocr_text=ocr_text),
                config=types.GenerateContentConfig(
                    temperature=0,
                    response_mime_type="application/json",
                    response_schema=_gemini_schema(RECEIPT_SCHEMA),
                ),
            )
        except Exception as e:
            logger.error(f"Gemini extraction failed: {e}")
            return ReceiptRecord.blank("Gemini request failed")

        text = getattr(response, 'text', None)
        if not text:
            logger.error("Gemini returned no text")
            return ReceiptRecord.blank("Gemini returned no output")

        try:
            payload = json.loads(text)
        except ValueError as e:
            logger.error(f"Failed to parse Gemini JSON: {e}")
            logger.debug(f"Response text: {text[:500]}...")
            return ReceiptRecord.blank("Gemini output was not valid JSON")

        try:
            record = ReceiptRecord.model_validate(payload)
        except ValidationError as e:
            logger.error(f"Gemini JSON does not fit the receipt schema: {e}")
            logger.debug(f"Response text: {text[:500]}...")
            return ReceiptRecord.blank("Gemini output did not match the receipt format")

        is_valid, errors = record.validate_totals()
        if not is_valid:
            logger.warning(f"Extracted receipt does not balance: {errors}")
        return record
