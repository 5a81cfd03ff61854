"""
Unit tests for Gemini structured extraction
Tests the API without making actual Gemini calls
"""

import json
import unittest
from decimal import Decimal
from unittest.mock import Mock

from lib.extraction.gemini import RECEIPT_SCHEMA, GeminiReceiptExtractor, _gemini_schema


class TestGeminiSchema(unittest.TestCase):
    def test_nullable_unions_are_rewritten(self):
        schema = _gemini_schema(RECEIPT_SCHEMA)
        self.assertEqual(schema["properties"]["subtotal"], {"type": "number", "nullable": True})
        self.assertNotIn("additionalProperties", schema)
        self.assertNotIn("additionalProperties", schema["properties"]["items"]["items"])
        # The source schema is left alone
        self.assertEqual(RECEIPT_SCHEMA["properties"]["subtotal"]["type"], ["number", "null"])


class TestGeminiReceiptExtractor(unittest.TestCase):
    def setUp(self):
        self.client = Mock()
        self.extractor = GeminiReceiptExtractor(api_key="key", model="gemini-test", client=self.client)

    def respond(self, text):
        self.client.models.generate_content.return_value = Mock(text=text)

    def test_extracts_record(self):
        self.respond(json.dumps({
            "merchant_name": "Noodle Bar", "address": None, "server_name": "Kim", "date_time": None,
            "subtotal": 18.5, "tax": 1.65, "tip": None, "total": 20.15,
            "items": [{"name": "Ramen", "quantity": 1, "unit_price": 18.5, "line_total": 18.5}],
            "warnings": [],
        }))

        record = self.extractor.extract("NOODLE BAR\nRAMEN 18.50")

        self.assertEqual(record.merchant_name, "Noodle Bar")
        self.assertEqual(record.items[0].line_total, Decimal("18.5"))
        self.assertIsNone(record.tip)
        kwargs = self.client.models.generate_content.call_args.kwargs
        self.assertEqual(kwargs["model"], "gemini-test")
        self.assertIn("RAMEN 18.50", kwargs["contents"])
        self.assertEqual(kwargs["config"].response_mime_type, "application/json")

    def test_missing_key(self):
        record = GeminiReceiptExtractor(api_key="").extract("text")
        self.assertEqual(record.warnings, ["Missing Gemini API key"])

    def test_request_failure(self):
        self.client.models.generate_content.side_effect = RuntimeError("quota")
        self.assertEqual(self.extractor.extract("text").warnings, ["Gemini request failed"])

    def test_empty_output(self):
        self.respond("")
        self.assertEqual(self.extractor.extract("text").warnings, ["Gemini returned no output"])

    def test_invalid_json(self):
        self.respond("{not json")
        self.assertEqual(self.extractor.extract("text").warnings, ["Gemini output was not valid JSON"])

    def test_output_outside_receipt_format(self):
        self.respond(json.dumps({"items": [{"name": "Ramen", "quantity": 0}]}))
        self.assertEqual(
            self.extractor.extract("text").warnings,
            ["Gemini output did not match the receipt format"],
        )

    def test_fractional_quantity_kept(self):
        self.respond(json.dumps({
            "merchant_name": "Fish Market", "address": None, "server_name": None, "date_time": None,
            "subtotal": 18.0, "tax": None, "tip": None, "total": 18.0,
            "items": [{"name": "Shrimp (lb)", "quantity": 1.5, "unit_price": 12.0, "line_total": 18.0}],
            "warnings": [],
        }))

        record = self.extractor.extract("SHRIMP 1.5 LB @ 12.00  18.00")

        self.assertEqual(len(record.items), 1)
        self.assertEqual(record.items[0].quantity, Decimal("1.5"))
        self.assertEqual(record.warnings, [])

    def test_schema_allows_fractional_quantity(self):
        item_schema = RECEIPT_SCHEMA["properties"]["items"]["items"]
        self.assertEqual(item_schema["properties"]["quantity"]["type"], ["number", "null"])
