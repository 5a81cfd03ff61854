"""
Receipt extraction library
"""

from .models import ReceiptRecord, ReceiptLineItem
from .ocr_space import OCRSpaceClient, OCRError
from .gemini import GeminiReceiptExtractor
from .pipeline import ExtractionPipeline

__all__ = [
    'ReceiptRecord', 'ReceiptLineItem', 'OCRSpaceClient', 'OCRError',
    'GeminiReceiptExtractor', 'ExtractionPipeline',
]
