# ============================================================================
# src/biomarker_ingestion/constants/reference_boundaries.py
# ============================================================================
"""
Reference-Range Detection Tables
- Textbook cutoffs per biomarker (values often printed as range endpoints)
- Wide plausibility bands (accept-but-log)
- Phrases and words that mark reference-range context
"""

import json
from pathlib import Path

# Load from JSON
# Path: constants/ -> biomarker_ingestion/ -> knowledge/
_knowledge_dir = Path(__file__).parent.parent / "knowledge"

try:
    with open(_knowledge_dir / "reference_boundaries.json") as f:
        _boundary_data = json.load(f)
except FileNotFoundError:
    _boundary_data = {}

try:
    with open(_knowledge_dir / "plausibility_ranges.json") as f:
        _plaus_data = json.load(f)
except FileNotFoundError:
    _plaus_data = {}

REFERENCE_BOUNDARIES = {
    key: frozenset(float(v) for v in values)
    for key, values in _boundary_data.items()
}

PLAUSIBILITY_RANGES = {
    key: (float(values[0]), float(values[1]))
    for key, values in _plaus_data.items()
}

# Explicit phrases introducing a printed range
RANGE_INDICATOR_PHRASES = (
    "normal range",
    "reference range",
    "reference interval",
    "ref range",
    "reference:",
    "normal:",
    "expected:",
    "expected range",
    "optimal range",
    "desirable",
    "between",
)

# Generic words that, two or more at once, suggest reference context
GENERIC_REFERENCE_WORDS = frozenset({
    "normal",
    "reference",
    "range",
    "expected",
    "typical",
    "standard",
    "limits",
    "baseline",
    "target",
    "optimal",
})
