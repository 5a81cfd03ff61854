"""
Canned extraction pipeline for integration testing.
Stands in for OCR.space and Gemini so no API calls (or costs) are made.
"""

from lib.extraction import ExtractionPipeline, OCRError
from lib.extraction.models import ReceiptRecord


class MockReceiptData:
    """Mock receipt data for different test scenarios"""

    @staticmethod
    def dinner_for_three():
        return {
            "merchant_name": "Test Diner",
            "date_time": "2025-06-01 20:15",
            "items": [
                {"name": "Burger", "quantity": 1, "unit_price": 12.00, "line_total": 12.00},
                {"name": "Fries", "quantity": 1, "unit_price": 5.00, "line_total": 5.00},
                {"name": "Soda", "quantity": 1, "unit_price": 3.00, "line_total": 3.00},
            ],
            "subtotal": 20.00,
            "tax": 2.00,
            "tip": 4.00,
            "total": 26.00,
            "warnings": [],
        }


class MockOCR:
    """Returns fixed text for any non-blank image; b"blank" reads as nothing"""

    def extract_text(self, image_bytes: bytes) -> str:
        if image_bytes.strip() == b"blank":
            raise OCRError("No text found on the receipt")
        return "TEST DINER\nBURGER 12.00\nFRIES 5.00\nSODA 3.00"


class MockExtractor:
    def __init__(self, data=None):
        self.data = data or MockReceiptData.dinner_for_three()

    def extract(self, ocr_text: str) -> ReceiptRecord:
        return ReceiptRecord.model_validate(self.data)


def mock_pipeline(data=None) -> ExtractionPipeline:
    return ExtractionPipeline(MockOCR(), MockExtractor(data))
