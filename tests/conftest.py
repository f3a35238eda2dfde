"""Shared pytest configuration and fixtures."""
from __future__ import annotations

import os

# Provide env defaults before any scan_convert module is imported
os.environ.setdefault("OCR_PROVIDER", "mock")
os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("ABBYY_APP_ID", None)
os.environ.pop("ABBYY_APP_PWD", None)

import pytest  # noqa: E402

PDF_BYTES = b"%PDF-1.4\n1 0 obj<<>>endobj\ntrailer<<>>\n%%EOF\n"


class FakeClock:
    """Monotonic clock that only advances when ``sleep`` is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pdf_bytes() -> bytes:
    return PDF_BYTES
