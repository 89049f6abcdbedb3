# ============================================================================
# src/biomarker_ingestion/extractors/reference_range.py
# ============================================================================
"""
Reference-Range Detector

Decides whether a matched number is a printed range boundary rather than
a patient result. Two rules, either one rejects:

(a) Explicit range context: the surrounding text contains a range
    indicator ("normal range", "reference:", "between", ...) AND the
    value equals an endpoint of a nearby "A-B" / "A to B" /
    "between A and B" range.

(b) Textbook cutoff: the value exactly equals a curated boundary for this
    biomarker AND the surrounding text contains at least two distinct
    generic reference words.

Context is the line holding the value, clipped to a character window on
each side. Results that happen to equal a boundary in reference context
are dropped; that false negative is accepted.
"""

import math
import re
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from ..config import extraction_settings
from ..constants.reference_boundaries import (
    REFERENCE_BOUNDARIES,
    RANGE_INDICATOR_PHRASES,
    GENERIC_REFERENCE_WORDS,
)

_NUMBER = r"(\d+(?:\.\d+)?)"

# Ordinary hyphen, en dash, em dash
_RANGE_PATTERNS = [
    re.compile(rf"{_NUMBER}\s*[-–—]\s*{_NUMBER}"),
    re.compile(rf"{_NUMBER}\s+to\s+{_NUMBER}", re.IGNORECASE),
    re.compile(rf"between\s+{_NUMBER}\s+and\s+{_NUMBER}", re.IGNORECASE),
]

_WORD = re.compile(r"[a-z]+")


class ReferenceRangeDetector:
    """
    Pluggable reference-range heuristic.

    Tables and thresholds default to the module constants and
    ExtractionSettings; pass overrides to tune without touching the
    extractor.
    """

    def __init__(
        self,
        boundaries: Optional[Dict[str, FrozenSet[float]]] = None,
        indicator_phrases: Optional[Iterable[str]] = None,
        generic_words: Optional[Iterable[str]] = None,
        window: Optional[int] = None,
        tolerance: Optional[float] = None,
        min_context_words: Optional[int] = None,
    ):
        self.boundaries = boundaries if boundaries is not None else REFERENCE_BOUNDARIES
        self.indicator_phrases = tuple(
            p.lower() for p in (indicator_phrases or RANGE_INDICATOR_PHRASES)
        )
        self.generic_words = frozenset(
            w.lower() for w in (generic_words or GENERIC_REFERENCE_WORDS)
        )
        self.window = window if window is not None else extraction_settings.REFERENCE_CONTEXT_WINDOW
        self.tolerance = (
            tolerance if tolerance is not None
            else extraction_settings.REFERENCE_BOUNDARY_TOLERANCE
        )
        self.min_context_words = (
            min_context_words if min_context_words is not None
            else extraction_settings.MIN_REFERENCE_CONTEXT_WORDS
        )

    def context(self, text: str, start: int, end: int) -> str:
        """Text around [start, end) on the same line, at most `window` chars each side."""
        line_start = text.rfind("\n", 0, start) + 1
        line_end = text.find("\n", end)
        if line_end == -1:
            line_end = len(text)
        return text[max(line_start, start - self.window):min(line_end, end + self.window)]

    def find_ranges(self, context: str) -> List[Tuple[float, float]]:
        ranges = []
        for pattern in _RANGE_PATTERNS:
            for match in pattern.finditer(context):
                try:
                    ranges.append((float(match.group(1)), float(match.group(2))))
                except ValueError:
                    continue
        return ranges

    def has_indicator(self, context: str) -> bool:
        lowered = context.lower()
        return any(phrase in lowered for phrase in self.indicator_phrases)

    def generic_word_count(self, context: str) -> int:
        return len(set(_WORD.findall(context.lower())) & self.generic_words)

    def _matches_endpoint(self, value: float, ranges: List[Tuple[float, float]]) -> bool:
        for low, high in ranges:
            for endpoint in (low, high):
                if math.isclose(value, endpoint, rel_tol=self.tolerance, abs_tol=1e-9):
                    return True
        return False

    def rejection_reason(
        self,
        key: str,
        value: float,
        text: str,
        start: int,
        end: int,
    ) -> Optional[str]:
        """
        Why `value` at text[start:end] looks like a range boundary, or None
        if it should be kept as a result.
        """
        context = self.context(text, start, end)

        if self.has_indicator(context):
            ranges = self.find_ranges(context)
            if self._matches_endpoint(value, ranges):
                return f"value {value} is an endpoint of a nearby reference range"

        if value in self.boundaries.get(key, ()):
            words = self.generic_word_count(context)
            if words >= self.min_context_words:
                return (
                    f"value {value} is a common reference boundary for {key} "
                    f"with {words} reference words nearby"
                )

        return None

    def is_reference_value(self, key: str, value: float, text: str, start: int, end: int) -> bool:
        return self.rejection_reason(key, value, text, start, end) is not None
