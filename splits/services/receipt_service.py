"""
Service layer for receipt operations
"""
from typing import Dict, Optional, Union
import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction

from lib.extraction import ExtractionPipeline, GeminiReceiptExtractor, OCRSpaceClient
from lib.extraction.models import ReceiptRecord
from splits.middleware.query_monitor import log_query_performance
from splits.models import Receipt
from splits.repositories import ReceiptRepository
from splits.services.errors import PermissionDeniedError, ReceiptLockedError, ReceiptNotFoundError
from splits.services.validation_pipeline import ValidationPipeline

logger = logging.getLogger(__name__)


def build_extraction_pipeline() -> ExtractionPipeline:
    """Extraction pipeline wired to the configured OCR.space and Gemini accounts"""
    return ExtractionPipeline(
        ocr=OCRSpaceClient(
            api_key=settings.OCR_SPACE_API_KEY,
            url=settings.OCR_SPACE_URL,
            timeout=settings.OCR_TIMEOUT_SECONDS,
        ),
        extractor=GeminiReceiptExtractor(
            api_key=settings.GEMINI_API_KEY,
            model=settings.GEMINI_MODEL,
        ),
    )


class ReceiptService:
    """Handles all business logic for receipts"""

    def __init__(self, pipeline: Optional[ExtractionPipeline] = None):
        self.repository = ReceiptRepository()
        self.validator = ValidationPipeline()
        self._pipeline = pipeline

    @property
    def pipeline(self) -> ExtractionPipeline:
        if self._pipeline is None:
            self._pipeline = build_extraction_pipeline()
        return self._pipeline

    def save_receipt(self, data: Union[Dict, ReceiptRecord], owner_id: str) -> Receipt:
        """
        Validate and store a new receipt.

        Unbalanced receipts are saved anyway; the balance problems are left on
        the returned instance as ``warnings`` (not persisted).
        """
        record, warnings = self.validator.validate_receipt_data(data)
        receipt = self.repository.create(record, owner_id)
        receipt.warnings = warnings

        logger.info(f"Saved receipt {receipt.id} with {receipt.item_count} items for {owner_id}"
                    + (f" ({len(warnings)} warnings)" if warnings else ""))
        return receipt

    def update_receipt(self, receipt_id, data: Union[Dict, ReceiptRecord], owner_id: str) -> Receipt:
        """
        Replace a receipt's contents.

        Claims address items by position, so once any session points at the
        receipt it can no longer change.
        """
        record, warnings = self.validator.validate_receipt_data(data)

        with transaction.atomic():
            receipt = self.repository.get_for_update(receipt_id)
            if not receipt:
                raise ReceiptNotFoundError()
            if receipt.owner_id != owner_id:
                raise PermissionDeniedError("You don't have permission to edit this receipt.")
            if self.repository.is_referenced_by_session(receipt.id):
                raise ReceiptLockedError()

            self.repository.update(receipt, record)

        receipt.warnings = warnings
        logger.info(f"Updated receipt {receipt.id}")
        return receipt

    def get_receipt(self, receipt_id) -> Receipt:
        receipt = self.repository.get_by_id(receipt_id)
        if not receipt:
            raise ReceiptNotFoundError()
        return receipt

    def get_receipt_record(self, receipt_id) -> ReceiptRecord:
        """The receipt in the shape the settlement calculator consumes"""
        return self.get_receipt(receipt_id).to_record()

    @log_query_performance
    def extract(self, image_bytes: bytes) -> ReceiptRecord:
        """
        Run OCR and structured extraction on an uploaded image.
        Raises OCRError when no text can be read; the record is not saved.
        """
        if not image_bytes:
            raise ValidationError({'image': "Please upload a receipt image"})
        if len(image_bytes) > settings.MAX_RECEIPT_IMAGE_BYTES:
            limit_mb = settings.MAX_RECEIPT_IMAGE_BYTES // (1024 * 1024)
            raise ValidationError({'image': f"Image size must be less than {limit_mb}MB"})

        return self.pipeline.run(image_bytes)
