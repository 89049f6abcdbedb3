# ============================================================================
# src/biomarker_ingestion/extractors/pattern_extractor.py
# ============================================================================
"""
Secondary Pattern Extractor

Independent tiered pass that catches formats the primary library misses.
Each match is unit-standardized first (with a confidence penalty when the
value was converted), then validated against its entry's rules:

    valid    -> status Normal
    warning  -> status High   (value outside the expected band)
    invalid  -> dropped       (unit not allowed)

A status marker printed next to the value ("High", "(L)") always wins
over the validation-derived status. Matches are de-duplicated per name
keeping the highest confidence. Any failure in this stage yields an
empty list.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..constants.tiered_patterns import (
    CONVERSION_CONFIDENCE_FACTOR,
    TIERED_PATTERNS,
    TieredPattern,
)
from ..core.context import (
    BiomarkerCandidate,
    BiomarkerStatus,
    ExtractionMethod,
    ValidationStatus,
    normalize_status,
)
from ..utils.logging import with_correlation

logger = logging.getLogger(__name__)

VALIDATION_STATUS_MAP = {
    ValidationStatus.VALID: BiomarkerStatus.NORMAL,
    ValidationStatus.WARNING: BiomarkerStatus.HIGH,
    ValidationStatus.INVALID: BiomarkerStatus.LOW,
}


@dataclass
class PatternMatch:
    """Intermediate match before conversion into a candidate."""
    name: str
    value: float
    unit: str
    confidence: float
    source_text: str
    marker: Optional[str] = None
    validation_status: ValidationStatus = ValidationStatus.VALID
    validation_message: Optional[str] = None


def validate_match(match: PatternMatch, config: TieredPattern) -> PatternMatch:
    """
    Apply value-band and allowed-unit rules. Unit failures win over value warnings.

    The band is expressed in the entry's first allowed unit and is only
    checked when the standardized match is in that unit.
    """
    in_band_unit = not config.allowed_units or match.unit == config.allowed_units[0]
    if in_band_unit and config.min_value is not None and match.value < config.min_value:
        match.validation_status = ValidationStatus.WARNING
        match.validation_message = f"Value {match.value} is below expected minimum {config.min_value}"
    if in_band_unit and config.max_value is not None and match.value > config.max_value:
        match.validation_status = ValidationStatus.WARNING
        match.validation_message = f"Value {match.value} is above expected maximum {config.max_value}"

    if config.allowed_units and match.unit not in config.allowed_units:
        match.validation_status = ValidationStatus.INVALID
        match.validation_message = (
            f"Invalid unit {match.unit}. Allowed units: {', '.join(config.allowed_units)}"
        )
    return match


def standardize_unit(match: PatternMatch, config: TieredPattern) -> PatternMatch:
    """Map the unit to its standard spelling, converting the value where a transform exists."""
    standard = config.unit_map.get(match.unit)
    if not standard or standard == match.unit:
        return match

    transform = config.transforms.get((match.unit, standard))
    if transform is not None:
        match.value = transform(match.value)
        match.confidence *= CONVERSION_CONFIDENCE_FACTOR
    match.unit = standard
    return match


class PatternExtractor:
    """Tiered secondary extractor."""

    def __init__(self, patterns: Optional[Dict[str, TieredPattern]] = None):
        self.patterns = patterns if patterns is not None else TIERED_PATTERNS

    def extract(self, text: str, correlation_id: Optional[str] = None) -> List[BiomarkerCandidate]:
        log = with_correlation(logger, correlation_id)
        if not text or not text.strip():
            return []

        try:
            matches = self._collect(text, log)
        except Exception as e:
            log.error(f"Secondary pattern extraction failed: {e}")
            return []

        unique: Dict[str, PatternMatch] = {}
        for match in sorted(matches, key=lambda m: m.confidence, reverse=True):
            key = match.name.lower()
            existing = unique.get(key)
            if existing is None or match.confidence > existing.confidence:
                unique[key] = match

        candidates = [self._to_candidate(m) for m in unique.values()]
        log.info(
            f"Secondary pattern extraction: {len(matches)} matches, "
            f"{len(candidates)} unique biomarkers"
        )
        return candidates

    def _collect(self, text: str, log) -> List[PatternMatch]:
        matches: List[PatternMatch] = []
        for name, config in self.patterns.items():
            for found in config.pattern.finditer(text):
                try:
                    value = float(found.group(1))
                except (TypeError, ValueError):
                    log.warning(f"{name}: failed to parse value {found.group(1)!r}")
                    continue
                if not math.isfinite(value):
                    continue

                match = PatternMatch(
                    name=name,
                    value=value,
                    unit=self._canonical_unit(found.group(2), config),
                    confidence=config.confidence,
                    source_text=found.group(0).strip(),
                    marker=found.group("status"),
                )

                match = validate_match(standardize_unit(match, config), config)
                if match.validation_status == ValidationStatus.INVALID:
                    log.warning(f"{name}: invalid match dropped - {match.validation_message}")
                    continue

                matches.append(match)
        return matches

    @staticmethod
    def _canonical_unit(raw: str, config: TieredPattern) -> str:
        raw = (raw or "").strip()
        for unit in config.allowed_units:
            if unit.lower() == raw.lower():
                return unit
        return raw

    def _to_candidate(self, match: PatternMatch) -> BiomarkerCandidate:
        config = self.patterns[match.name]
        status = normalize_status(match.marker) or VALIDATION_STATUS_MAP[match.validation_status]
        return BiomarkerCandidate(
            name=match.name,
            value=match.value,
            unit=match.unit,
            category=config.category,
            extraction_method=ExtractionMethod.PATTERN,
            confidence=match.confidence,
            status=status,
            source_text=match.source_text,
            warnings=[match.validation_message] if match.validation_message else [],
        )
