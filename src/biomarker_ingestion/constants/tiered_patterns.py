# ============================================================================
# src/biomarker_ingestion/constants/tiered_patterns.py
# ============================================================================
"""
Tiered Pattern Configuration (secondary pass)

Independent of the primary pattern library. Every entry requires an
explicit unit next to the value, may be followed by a printed status
marker, and carries:
- tier + fixed confidence (high 0.95, medium 0.85, low 0.75)
- validation rules (expected value band, allowed units)
- unit standardization with optional value transforms
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from ..core.context.enums import BiomarkerCategory


class PatternTier(str, Enum):
    HIGH = "high"      # Exact label, strict unit
    MEDIUM = "medium"  # Common label variations
    LOW = "low"        # Fuzzy labels


TIER_CONFIDENCE = {
    PatternTier.HIGH: 0.95,
    PatternTier.MEDIUM: 0.85,
    PatternTier.LOW: 0.75,
}

# Converted values are slightly less trustworthy than printed ones
CONVERSION_CONFIDENCE_FACTOR = 0.95

_FILLER = r"(?:\s*(?:Result|Value|Level))?\s*[:=]?\s*"
# Printed marker after the unit; a reference phrase ("Normal range:") is not a marker
_TAIL = (
    r"(?:[ \t]*\(?[ \t]*(?P<status>High|Low|Normal|H|L|N)\b\)?"
    r"(?![ \t]*(?:range|ranges|:|limits?|reference|values?)))?"
)
# "Non-HDL Cholesterol" is a different analyte
_NOT_NON = r"(?<!Non-)(?<!Non\s)"


@dataclass
class TieredPattern:
    key: str
    pattern: "re.Pattern[str]"
    category: BiomarkerCategory
    tier: PatternTier
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    allowed_units: Tuple[str, ...] = ()
    unit_map: Dict[str, str] = field(default_factory=dict)
    transforms: Dict[Tuple[str, str], Callable[[float], float]] = field(default_factory=dict)

    @property
    def confidence(self) -> float:
        return TIER_CONFIDENCE[self.tier]


def _compile(labels: str, units: str) -> "re.Pattern[str]":
    return re.compile(
        rf"(?<![A-Za-z])(?:{labels}){_FILLER}(\d+(?:\.\d+)?)\s*({units}){_TAIL}",
        re.IGNORECASE,
    )


_MG_DL_UNITS = r"mg/dL|mmol/L|mg/100mL|g/L"

TIERED_PATTERNS: Dict[str, TieredPattern] = {p.key: p for p in [
    # High confidence: exact labels
    TieredPattern(
        key="glucose",
        pattern=_compile(r"Glucose|Blood\s+Glucose|Fasting\s+Glucose|FBG", _MG_DL_UNITS),
        category=BiomarkerCategory.METABOLIC,
        tier=PatternTier.HIGH,
        min_value=20, max_value=1000,
        allowed_units=("mg/dL", "mmol/L", "mg/100mL", "g/L"),
        unit_map={"mg/dL": "mg/dL", "mmol/L": "mg/dL", "mg/100mL": "mg/dL", "g/L": "mg/dL"},
        transforms={
            ("mmol/L", "mg/dL"): lambda v: v * 18,
            ("g/L", "mg/dL"): lambda v: v * 100,
        },
    ),
    TieredPattern(
        key="cholesterol",
        pattern=_compile(r"Total\s+Cholesterol|Cholesterol,\s*Total", r"mg/dL|mmol/L|g/L"),
        category=BiomarkerCategory.LIPID,
        tier=PatternTier.HIGH,
        min_value=50, max_value=500,
        allowed_units=("mg/dL", "mmol/L", "g/L"),
        unit_map={"mg/dL": "mg/dL", "mmol/L": "mmol/L", "g/L": "mg/dL"},
        transforms={("g/L", "mg/dL"): lambda v: v * 100},
    ),
    TieredPattern(
        key="hemoglobinA1c",
        pattern=_compile(r"Hemoglobin\s+A1c|HbA1c|A1C", r"%|mmol/mol"),
        category=BiomarkerCategory.METABOLIC,
        tier=PatternTier.HIGH,
        min_value=3, max_value=20,
        allowed_units=("%",),
    ),
    TieredPattern(
        key="tsh",
        pattern=_compile(r"TSH|Thyroid\s+Stimulating\s+Hormone", r"mIU/L|[µμu]IU/mL"),
        category=BiomarkerCategory.THYROID,
        tier=PatternTier.HIGH,
        min_value=0.01, max_value=100,
        allowed_units=("mIU/L", "µIU/mL", "μIU/mL", "uIU/mL"),
        unit_map={"µIU/mL": "mIU/L", "μIU/mL": "mIU/L", "uIU/mL": "mIU/L"},
    ),

    # Medium confidence: common variations
    TieredPattern(
        key="hdl",
        pattern=_compile(
            _NOT_NON + r"(?:HDL|HDL-C|HDL\s+Cholesterol|High-Density\s+Lipoprotein)(?:\s*(?:Cholesterol))?",
            r"mg/dL|mmol/L",
        ),
        category=BiomarkerCategory.LIPID,
        tier=PatternTier.MEDIUM,
        min_value=10, max_value=200,
        allowed_units=("mg/dL", "mmol/L"),
        unit_map={"mg/dL": "mg/dL", "mmol/L": "mmol/L", "g/L": "mg/dL"},
    ),
    TieredPattern(
        key="ldl",
        pattern=_compile(
            _NOT_NON + r"(?:LDL|LDL-C|LDL\s+Cholesterol|Low-Density\s+Lipoprotein)(?:\s*(?:Cholesterol))?",
            r"mg/dL|mmol/L",
        ),
        category=BiomarkerCategory.LIPID,
        tier=PatternTier.MEDIUM,
        min_value=10, max_value=400,
        allowed_units=("mg/dL", "mmol/L"),
    ),
    TieredPattern(
        key="triglycerides",
        pattern=_compile(r"Triglycerides|TG", r"mg/dL|mmol/L"),
        category=BiomarkerCategory.LIPID,
        tier=PatternTier.MEDIUM,
        min_value=20, max_value=2000,
        allowed_units=("mg/dL", "mmol/L"),
    ),
    TieredPattern(
        key="creatinine",
        pattern=_compile(r"Creatinine|Serum\s+Creatinine", r"mg/dL|[µμu]mol/L"),
        category=BiomarkerCategory.KIDNEY,
        tier=PatternTier.MEDIUM,
        min_value=0.2, max_value=15,
        allowed_units=("mg/dL",),
    ),

    # Low confidence: fuzzy labels
    TieredPattern(
        key="vitaminD",
        pattern=_compile(
            r"Vitamin\s*D|25-?OH\s*Vitamin\s*D|25-?Hydroxyvitamin\s*D|25\(OH\)D",
            r"ng/mL|nmol/L",
        ),
        category=BiomarkerCategory.VITAMIN,
        tier=PatternTier.LOW,
        min_value=5, max_value=200,
        allowed_units=("ng/mL", "nmol/L"),
    ),
    TieredPattern(
        key="vitaminB12",
        pattern=_compile(r"Vitamin\s*B-?12|B12|Cobalamin", r"pg/mL|pmol/L"),
        category=BiomarkerCategory.VITAMIN,
        tier=PatternTier.LOW,
        min_value=100, max_value=2000,
        allowed_units=("pg/mL", "pmol/L"),
    ),
    TieredPattern(
        key="ferritin",
        pattern=_compile(r"Ferritin", r"ng/mL|[µμu]g/L"),
        category=BiomarkerCategory.MINERAL,
        tier=PatternTier.LOW,
        min_value=5, max_value=1000,
        allowed_units=("ng/mL", "µg/L", "μg/L", "ug/L"),
    ),
]}
