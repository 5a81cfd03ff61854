"""
Image bytes -> OCR text -> ReceiptRecord
"""

import logging
from typing import Protocol

from .models import ReceiptRecord
from .ocr_space import OCRError

logger = logging.getLogger(__name__)


class TextExtractor(Protocol):
    def extract_text(self, image_bytes: bytes) -> str:
        ...


class RecordExtractor(Protocol):
    def extract(self, ocr_text: str) -> ReceiptRecord:
        ...


class ExtractionPipeline:
    """Runs OCR and structured extraction back to back"""

    def __init__(self, ocr: TextExtractor, extractor: RecordExtractor):
        self.ocr = ocr
        self.extractor = extractor

    def run(self, image_bytes: bytes) -> ReceiptRecord:
        if not image_bytes:
            raise OCRError("Image is empty")

        text = self.ocr.extract_text(image_bytes)
        record = self.extractor.extract(text)
        logger.info(
            f"Extracted {len(record.items)} items from receipt "
            f"(merchant={record.merchant_name!r}, warnings={len(record.warnings)})"
        )
        return record
