"""
OCR.space client: image bytes in, raw text out
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_URL = 'https://api.ocr.space/parse/image'


class OCRError(Exception):
    """Raised when no text could be extracted from an image"""
    pass


class OCRSpaceClient:
    """Thin wrapper around the OCR.space parse endpoint"""

    def __init__(self, api_key: str, url: str = DEFAULT_URL, timeout: int = 30,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def is_available(self) -> bool:
        return bool(self.api_key)

    def extract_text(self, image_bytes: bytes, filename: str = 'receipt.jpg') -> str:
        """
        Send the image to OCR.space and return the parsed text.

        Raises:
            OCRError: on transport failure, an API-reported error or empty output
        """
        if not self.is_available():
            raise OCRError("OCR service is not configured")

        logger.info(f"Sending {len(image_bytes)} bytes to OCR.space")
        try:
            response = self.session.post(
                self.url,
                files={'file': (filename, image_bytes, 'image/jpeg')},
                data={'apikey': self.api_key, 'isOverlayRequired': 'false'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"OCR.space request failed: {e}")
            raise OCRError("Could not reach the OCR service") from e

        if payload.get('IsErroredOnProcessing'):
            message = payload.get('ErrorMessage') or 'unknown error'
            if isinstance(message, list):
                message = '; '.join(str(m) for m in message)
            logger.error(f"OCR.space reported an error: {message}")
            raise OCRError(f"OCR failed: {message}")

        results = payload.get('ParsedResults') or []
        text = results[0].get('ParsedText', '') if results else ''
        if not text or not text.strip():
            raise OCRError("No text found on the receipt")

        logger.info(f"OCR.space returned {len(text)} characters")
        return text
