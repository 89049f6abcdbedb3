# ============================================================================
# src/biomarker_ingestion/extractors/regex_extractor.py
# ============================================================================
"""
Primary Regex Extractor

Applies the pattern library to OCR-repaired text:
1. Scan every library entry for all non-overlapping matches
2. Pull value / unit / status from each match (default unit when absent)
3. Drop values that look like printed reference-range boundaries
4. Log (but keep) values outside the plausibility band

Every candidate gets extraction_method=regex and a fixed confidence.
A failure on one entry is logged and the scan moves on.
"""

import logging
import math
import re
from datetime import datetime
from typing import Dict, List, Optional

from ..config import extraction_settings
from ..constants.biomarker_patterns import BIOMARKER_LIBRARY, BiomarkerPattern
from ..core.context import BiomarkerCandidate, ExtractionMethod, normalize_status
from ..utils.logging import with_correlation
from ..validators.plausibility import PlausibilityChecker
from .reference_range import ReferenceRangeDetector
from .text_preprocessor import preprocess_lab_text

logger = logging.getLogger(__name__)

_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December|"
    "Jan|Feb|Mar|Apr|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec"
)

_DATE_PATTERN = re.compile(
    r"(?<![A-Za-z])(?:Collection\s+Date|Report\s+Date|Test\s+Date|Date)\s*:?\s*"
    r"(?:(?P<us>\d{1,2}/\d{1,2}/\d{4})"
    r"|(?P<iso>\d{4}-\d{2}-\d{2})"
    rf"|(?P<long>(?:{_MONTHS})\.?\s+\d{{1,2}},?\s+\d{{4}}))",
    re.IGNORECASE,
)

# A printed unit the entry does not accept: "30.5 pg", "250 x10^9/L"
_UNIT_TOKEN = re.compile(
    r"[ \t]*(?P<unit>[A-Za-zµμ][A-Za-z0-9µμ.^³²]*/[A-Za-z0-9µμ.^³²]+|%"
    r"|(?:pg|fL|fl|g|mg|ng|mcg|[µμu]g|m?IU|U|mEq|[mnpµμu]mol)(?![A-Za-z0-9/]))"
)

_REFERENCE_TEXT_PATTERN = re.compile(
    r"(?:Reference\s+Range|Normal\s+Range|Reference\s+Values?)\s*:\s*([^\n)]+)",
    re.IGNORECASE,
)


def detect_test_date(text: str) -> Optional[datetime]:
    """
    First labelled collection/report date in the document.

    Supports MM/DD/YYYY, YYYY-MM-DD and "Month D, YYYY". Returns None when
    no label is found or the date does not exist on the calendar.
    """
    for match in _DATE_PATTERN.finditer(text):
        try:
            if match.group("us"):
                return datetime.strptime(match.group("us"), "%m/%d/%Y")
            if match.group("iso"):
                return datetime.strptime(match.group("iso"), "%Y-%m-%d")
            return _parse_long_date(match.group("long"))
        except ValueError:
            continue
    return None


def _parse_long_date(raw: str) -> datetime:
    month, day, year = re.sub(r"[.,]", " ", raw).split()
    for fmt in ("%B %d %Y", "%b %d %Y"):
        try:
            return datetime.strptime(f"{month} {day} {year}", fmt)
        except ValueError:
            continue
    # "Sept" is not a strptime abbreviation
    return datetime.strptime(f"{month[:3]} {day} {year}", "%b %d %Y")


def reference_text_on_line(text: str, position: int) -> Optional[str]:
    """Printed "Reference Range: ..." text on the same line as position."""
    line_start = text.rfind("\n", 0, position) + 1
    line_end = text.find("\n", position)
    line = text[line_start:line_end if line_end != -1 else len(text)]
    match = _REFERENCE_TEXT_PATTERN.search(line)
    return match.group(1).strip() if match else None


class RegexExtractor:
    """
    Pattern-library extractor.

    Collaborators are injectable so the reference-range heuristic and
    plausibility bands can be tuned or replaced in isolation.
    """

    def __init__(
        self,
        library: Optional[Dict[str, BiomarkerPattern]] = None,
        detector: Optional[ReferenceRangeDetector] = None,
        plausibility: Optional[PlausibilityChecker] = None,
        confidence: Optional[float] = None,
    ):
        self.library = library if library is not None else BIOMARKER_LIBRARY
        self.detector = detector or ReferenceRangeDetector()
        self.plausibility = plausibility or PlausibilityChecker()
        self.confidence = confidence if confidence is not None else extraction_settings.REGEX_CONFIDENCE

    def extract(self, text: str, correlation_id: Optional[str] = None) -> List[BiomarkerCandidate]:
        log = with_correlation(logger, correlation_id)

        if not text or not text.strip():
            log.debug("Empty text - nothing to extract")
            return []

        prepared = preprocess_lab_text(text)
        test_date = detect_test_date(prepared)
        if test_date:
            log.debug(f"Detected document test date {test_date.date().isoformat()}")

        candidates: List[BiomarkerCandidate] = []
        rejected = 0

        for key, entry in self.library.items():
            try:
                for match in entry.pattern.finditer(prepared):
                    candidate = self._candidate_from_match(key, entry, match, prepared, test_date, log)
                    if candidate is None:
                        rejected += 1
                        continue
                    candidates.append(candidate)
            except Exception as e:
                log.warning(f"Pattern scan failed for {key}: {e}")
                continue

        log.info(
            f"Regex extraction found {len(candidates)} biomarkers "
            f"({rejected} matches rejected)"
        )
        return candidates

    def _candidate_from_match(
        self,
        key: str,
        entry: BiomarkerPattern,
        match: "re.Match[str]",
        text: str,
        test_date: Optional[datetime],
        log,
    ) -> Optional[BiomarkerCandidate]:
        raw_value = match.group("value")
        try:
            value = float(raw_value)
        except (TypeError, ValueError):
            log.warning(f"{key}: could not parse value {raw_value!r}")
            return None
        if not math.isfinite(value):
            log.warning(f"{key}: non-finite value {raw_value!r}")
            return None

        foreign_unit = self._unaccepted_unit(match, text)
        if foreign_unit:
            log.debug(f"{key}: rejected {value} - unit {foreign_unit!r} is not a {key} unit")
            return None

        reason = self.detector.rejection_reason(
            key, value, text, match.start("value"), match.end("value")
        )
        if reason:
            log.debug(f"{key}: rejected {value} - {reason}")
            return None

        unit = entry.canonical_unit(match.group("unit"))
        self.plausibility.check_and_log(key, value, unit, log=log)

        return BiomarkerCandidate(
            name=key,
            value=value,
            unit=unit,
            category=entry.category,
            extraction_method=ExtractionMethod.REGEX,
            confidence=self.confidence,
            reference_range=reference_text_on_line(text, match.start()),
            test_date=test_date,
            status=normalize_status(match.group("status")),
            source_text=match.group(0).strip(),
        )

    @staticmethod
    def _unaccepted_unit(match: "re.Match[str]", text: str) -> Optional[str]:
        """Unit-like token right after a value whose entry matched no unit or status."""
        if match.group("unit") or match.group("status"):
            return None
        found = _UNIT_TOKEN.match(text, match.end())
        return found.group("unit") if found else None
