"""Pytest fixtures for integration tests."""

from __future__ import annotations

from typing import Generator

import pytest

from integration_test.mock_extraction import mock_pipeline


@pytest.fixture(autouse=True)
def patch_extraction() -> Generator[None, None, None]:
    """Route the extraction endpoint through the canned pipeline."""
    from splits import views

    original = views.receipt_service._pipeline
    views.receipt_service._pipeline = mock_pipeline()
    try:
        yield
    finally:
        views.receipt_service._pipeline = original
