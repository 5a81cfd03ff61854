"""
Unit tests for the OCR.space client
Tests the API without making real HTTP calls
"""

import unittest
from unittest.mock import Mock

import requests

from lib.extraction.ocr_space import OCRError, OCRSpaceClient


def response_with(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestOCRSpaceClient(unittest.TestCase):
    def setUp(self):
        self.session = Mock()
        self.client = OCRSpaceClient(api_key="key", url="https://ocr.example/parse", timeout=5, session=self.session)

    def test_returns_parsed_text(self):
        self.session.post.return_value = response_with({
            "IsErroredOnProcessing": False,
            "ParsedResults": [{"ParsedText": "BURGER 12.00\nTOTAL 12.00"}],
        })

        text = self.client.extract_text(b"jpeg-bytes")

        self.assertEqual(text, "BURGER 12.00\nTOTAL 12.00")
        args, kwargs = self.session.post.call_args
        self.assertEqual(args[0], "https://ocr.example/parse")
        self.assertEqual(kwargs["data"]["apikey"], "key")
        self.assertEqual(kwargs["files"]["file"][1], b"jpeg-bytes")
        self.assertEqual(kwargs["timeout"], 5)

    def test_transport_error(self):
        self.session.post.side_effect = requests.ConnectionError("offline")
        with self.assertRaises(OCRError):
            self.client.extract_text(b"jpeg-bytes")

    def test_http_error(self):
        response = response_with({})
        response.raise_for_status.side_effect = requests.HTTPError("500")
        self.session.post.return_value = response
        with self.assertRaises(OCRError):
            self.client.extract_text(b"jpeg-bytes")

    def test_api_reported_error(self):
        self.session.post.return_value = response_with({
            "IsErroredOnProcessing": True,
            "ErrorMessage": ["File failed validation", "Unsupported type"],
        })
        with self.assertRaises(OCRError) as ctx:
            self.client.extract_text(b"jpeg-bytes")
        self.assertIn("Unsupported type", str(ctx.exception))

    def test_empty_text(self):
        self.session.post.return_value = response_with({"ParsedResults": [{"ParsedText": "  \n"}]})
        with self.assertRaises(OCRError):
            self.client.extract_text(b"jpeg-bytes")

    def test_unconfigured(self):
        client = OCRSpaceClient(api_key="", session=self.session)
        self.assertFalse(client.is_available())
        with self.assertRaises(OCRError):
            client.extract_text(b"jpeg-bytes")
        self.session.post.assert_not_called()
