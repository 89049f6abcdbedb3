# ============================================================================
# src/biomarker_ingestion/core/context/candidate.py
# ============================================================================
"""
Single biomarker observation produced by an extractor
- Value, unit, category, status
- Provenance (method, confidence, source snippet)
- Normalization helpers shared by every extraction stage
"""

import logging
import math
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .enums import BiomarkerCategory, BiomarkerStatus, ExtractionMethod

logger = logging.getLogger(__name__)

VALID_CATEGORIES = frozenset(c.value for c in BiomarkerCategory)

# Single-letter and spelled-out markers seen next to results
_STATUS_ALIASES = {
    "h": BiomarkerStatus.HIGH,
    "high": BiomarkerStatus.HIGH,
    "l": BiomarkerStatus.LOW,
    "low": BiomarkerStatus.LOW,
    "n": BiomarkerStatus.NORMAL,
    "normal": BiomarkerStatus.NORMAL,
}


@dataclass
class BiomarkerCandidate:
    name: str
    value: Union[float, str]
    unit: str
    category: BiomarkerCategory = BiomarkerCategory.OTHER
    extraction_method: ExtractionMethod = ExtractionMethod.REGEX
    confidence: float = 0.0

    reference_range: Optional[str] = None
    test_date: Optional[datetime] = None
    status: Optional[BiomarkerStatus] = None

    # Provenance
    source_text: Optional[str] = None

    warnings: List[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        """Merge key: names compare case-insensitively."""
        return self.name.strip().lower()

    def is_storable(self) -> bool:
        if not self.name or not self.name.strip():
            return False
        if not isinstance(self.value, (int, float)) or not math.isfinite(self.value):
            return False
        if not isinstance(self.category, BiomarkerCategory):
            return False
        return bool(self.unit and self.unit.strip())

    def to_summary(self) -> Dict[str, Any]:
        """Light-weight form mirrored into the document metadata blob."""
        return {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "referenceRange": self.reference_range,
            "testDate": self.test_date.isoformat() if self.test_date else None,
            "category": self.category.value,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        data["extraction_method"] = self.extraction_method.value
        data["status"] = self.status.value if self.status else None
        data["test_date"] = self.test_date.isoformat() if self.test_date else None
        return data


def normalize_category(raw: Any, biomarker: str = "") -> BiomarkerCategory:
    """
    Map a raw category onto the closed set.

    Only exact values are accepted; anything else ("Lipids", None, typos)
    becomes OTHER with a warning rather than rejecting the biomarker.
    """
    if isinstance(raw, BiomarkerCategory):
        return raw
    if isinstance(raw, str) and raw in VALID_CATEGORIES:
        return BiomarkerCategory(raw)
    logger.warning(f"Unrecognized category {raw!r} for {biomarker or 'biomarker'} - using 'other'")
    return BiomarkerCategory.OTHER


def normalize_status(raw: Any) -> Optional[BiomarkerStatus]:
    """High/Low/Normal (any case, or H/L/N) -> BiomarkerStatus; otherwise undetermined."""
    if isinstance(raw, BiomarkerStatus):
        return raw
    if not isinstance(raw, str):
        return None
    return _STATUS_ALIASES.get(raw.strip().lower())


def coerce_value(raw: Any) -> Optional[float]:
    """
    Coerce a string or number to a finite float.

    Returns None for booleans, non-numeric strings, NaN and infinities.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        cleaned = raw.strip().replace(",", "")
        if not cleaned:
            return None
        try:
            value = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def parse_test_date(raw: Any, biomarker: str = "") -> datetime:
    """
    Parse an ISO date/datetime; fall back to now with a warning.

    A missing date is tolerated because the measurement is still useful
    without one.
    """
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
    logger.warning(f"Unparseable test date {raw!r} for {biomarker or 'biomarker'} - defaulting to now")
    return datetime.now()
