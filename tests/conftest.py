# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import asyncio
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest

from biomarker_ingestion.core.context import (
    BiomarkerCandidate,
    BiomarkerCategory,
    ExtractionMethod,
)
from biomarker_ingestion.llm.base import BaseLLMClient, BackendType
from biomarker_ingestion.storage.lab_store import LabStore


class FakeLLMClient(BaseLLMClient):
    """
    In-process stand-in for a model backend.

    Returns `payload` (dict -> JSON text, str as-is), raises `error`, or
    sleeps `delay` seconds first. Every prompt is recorded.
    """

    def __init__(self, payload: Any = None, error: Optional[Exception] = None, delay: float = 0.0):
        super().__init__({})
        self.payload = payload if payload is not None else {"biomarkers": []}
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []
        self.closed = False

    @property
    def backend_type(self) -> BackendType:
        return BackendType.OLLAMA

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        use_cache: bool = True,
        json_mode: bool = False,
    ) -> Dict[str, Any]:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        text = self.payload if isinstance(self.payload, str) else json.dumps(self.payload)
        return {"text": text, "model": self.model_name, "backend": "ollama", "cached": False}

    async def health_check(self) -> Dict[str, Any]:
        return {"healthy": True, "backend": "ollama", "model": self.model_name, "details": "fake"}

    async def close(self):
        self.closed = True


@pytest.fixture
def fake_llm():
    """Factory for FakeLLMClient instances."""
    return FakeLLMClient


@pytest.fixture
def lab_store(tmp_path):
    """Empty SQLite lab store in a temp directory"""
    return LabStore(tmp_path / "labs.db")


@pytest.fixture
def lipid_panel_text():
    """Lab report mixing unit-less, unit-bearing and reference-range lines"""
    return (
        "LIPID PANEL\n"
        "Collection Date: 03/15/2024\n"
        "Total Cholesterol 220 H\n"
        "HDL Cholesterol: 45 mg/dL\n"
        "Glucose: 95 mg/dL (Normal range: 70-99 mg/dL)\n"
    )


@pytest.fixture
def llm_payload():
    """Model answer adding one new biomarker and a weak duplicate"""
    return {
        "biomarkers": [
            {"name": "Ferritin", "value": 85, "unit": "ng/mL", "category": "mineral"},
            {"name": "Glucose", "value": 96, "unit": "mg/dL", "category": "metabolic", "confidence": 0.5},
        ]
    }


@pytest.fixture
def make_candidate():
    """Build a BiomarkerCandidate with sensible defaults"""
    def _make(
        name: str = "glucose",
        value: Any = 95.0,
        unit: str = "mg/dL",
        category: BiomarkerCategory = BiomarkerCategory.METABOLIC,
        method: ExtractionMethod = ExtractionMethod.REGEX,
        confidence: float = 0.9,
        test_date: Optional[datetime] = None,
        **kwargs,
    ) -> BiomarkerCandidate:
        return BiomarkerCandidate(
            name=name,
            value=value,
            unit=unit,
            category=category,
            extraction_method=method,
            confidence=confidence,
            test_date=test_date,
            **kwargs,
        )
    return _make
