# ============================================================================
# src/biomarker_ingestion/extractors/llm_extractor.py
# ============================================================================
"""
Model-Assisted Extractor

Asks the language model for biomarkers the regex pass missed. The model
is a black box behind BaseLLMClient.generate(); its output is held to a
strict contract and every item is re-validated here:

- name / value / unit / category are required
- value must be a finite number within gross bounds (0-10000)
- a missing unit falls back to the pattern library default when the
  name is a known biomarker
- categories outside the closed set become "other"

This stage is best-effort: any failure (exception, timeout, malformed
payload) yields an empty list.
"""

import asyncio
import logging
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import extraction_settings
from ..constants.biomarker_patterns import get_pattern
from ..core.context import (
    BiomarkerCandidate,
    ExtractionMethod,
    coerce_value,
    normalize_category,
    normalize_status,
    parse_test_date,
)
from ..llm.base import BaseLLMClient
from ..llm.prompts import build_extraction_prompt
from ..utils.logging import with_correlation

logger = logging.getLogger(__name__)


class LLMBiomarkerItem(BaseModel):
    """One biomarker object as returned by the model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    value: float
    unit: Optional[str] = None
    category: Optional[str] = None
    reference_range: Optional[str] = Field(default=None, alias="referenceRange")
    test_date: Optional[str] = Field(default=None, alias="testDate")
    status: Optional[str] = None
    confidence: Optional[float] = None

    @field_validator("name", mode="before")
    @classmethod
    def require_name(cls, v):
        if v is None or not str(v).strip():
            raise ValueError("name is required")
        return str(v).strip()

    @field_validator("value", mode="before")
    @classmethod
    def require_finite_value(cls, v):
        value = coerce_value(v)
        if value is None:
            raise ValueError(f"value {v!r} is not a finite number")
        return value

    @field_validator("unit", "category", "reference_range", "test_date", "status", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("confidence", mode="before")
    @classmethod
    def lenient_confidence(cls, v):
        # An unusable self-report falls back to the default rather than dropping the item
        return coerce_value(v)


class LLMExtractor:
    """
    Model-assisted biomarker extraction.

    Args:
        client: LLM backend; when None the stage is disabled and returns []
        timeout: Seconds to wait for the model before giving up
    """

    def __init__(
        self,
        client: Optional[BaseLLMClient] = None,
        timeout: Optional[float] = None,
        default_confidence: Optional[float] = None,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
    ):
        self.client = client
        self.timeout = timeout if timeout is not None else extraction_settings.LLM_EXTRACTION_TIMEOUT
        self.default_confidence = (
            default_confidence if default_confidence is not None
            else extraction_settings.LLM_DEFAULT_CONFIDENCE
        )
        self.min_value = min_value if min_value is not None else extraction_settings.LLM_MIN_VALUE
        self.max_value = max_value if max_value is not None else extraction_settings.LLM_MAX_VALUE

    async def extract(
        self,
        text: str,
        found: Iterable[BiomarkerCandidate] = (),
        correlation_id: Optional[str] = None,
    ) -> List[BiomarkerCandidate]:
        log = with_correlation(logger, correlation_id)

        if self.client is None:
            log.debug("No LLM client configured - skipping model-assisted extraction")
            return []
        if not text or not text.strip():
            return []

        prompt = build_extraction_prompt(
            text, found, max_text_length=extraction_settings.LLM_MAX_TEXT_LENGTH
        )

        try:
            response = await asyncio.wait_for(
                self.client.generate(
                    prompt,
                    max_tokens=extraction_settings.LLM_MAX_TOKENS,
                    json_mode=True,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            log.warning(f"Model-assisted extraction timed out after {self.timeout}s")
            return []
        except Exception as e:
            log.error(f"Model-assisted extraction failed: {e}")
            return []

        try:
            candidates = self._parse_response(response, log)
        except Exception as e:
            log.error(f"Could not interpret model response: {e}")
            return []

        log.info(f"Model-assisted extraction returned {len(candidates)} biomarkers")
        return candidates

    def _parse_response(self, response: Any, log) -> List[BiomarkerCandidate]:
        raw_text = response.get("text", "") if isinstance(response, dict) else ""
        payload = self.client.extract_json(raw_text)

        if not isinstance(payload, dict):
            log.warning("Model response is not a JSON object")
            return []

        items = payload.get("biomarkers")
        if not isinstance(items, list):
            log.warning("Model response has no 'biomarkers' list")
            return []

        candidates = []
        for raw in items:
            candidate = self._validate_item(raw, log)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    def _validate_item(self, raw: Any, log) -> Optional[BiomarkerCandidate]:
        if not isinstance(raw, dict):
            log.warning(f"Dropping non-object model item: {raw!r}")
            return None

        try:
            item = LLMBiomarkerItem.model_validate(raw)
        except ValidationError as e:
            first = e.errors()[0]
            log.warning(f"Dropping model item {raw.get('name')!r}: {first.get('msg')}")
            return None

        entry = get_pattern(item.name)
        name = entry.key if entry else item.name

        if not (self.min_value <= item.value <= self.max_value):
            log.warning(
                f"Dropping model item {name}: value {item.value} outside "
                f"[{self.min_value}, {self.max_value}]"
            )
            return None

        unit = item.unit
        if not unit:
            if entry is None:
                log.warning(f"Dropping model item {name}: no unit and no default known")
                return None
            unit = entry.default_unit
            log.warning(f"Model item {name} has no unit - using default {unit}")

        if not item.category:
            log.warning(f"Dropping model item {name}: category is required")
            return None

        confidence = self.default_confidence
        if item.confidence is not None:
            confidence = min(1.0, max(0.0, item.confidence))

        return BiomarkerCandidate(
            name=name,
            value=item.value,
            unit=unit,
            category=normalize_category(item.category, name),
            extraction_method=ExtractionMethod.LLM,
            confidence=confidence,
            reference_range=item.reference_range,
            test_date=parse_test_date(item.test_date, name) if item.test_date else None,
            status=normalize_status(item.status),
        )
