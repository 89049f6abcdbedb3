# ============================================================================
# src/biomarker_ingestion/constants/biomarker_patterns.py
# ============================================================================
"""
Biomarker Pattern Library

One entry per biomarker: label aliases, accepted units (first = default),
and medical category. Each entry compiles to a matcher with three named
groups:

    value   numeric result (required)
    unit    explicit unit (optional)
    status  inline marker High/Low/Normal/H/L/N (optional)

Matchers tolerate OCR artifacts (no space between value and unit/status,
missing colon, "Result"/"Value"/"Level" filler, a trailing qualifier such as
"Glucose Fasting" or "Vitamin D, 25-Hydroxy") and alternate unit systems.
Adding a biomarker means adding one entry to BIOMARKER_LIBRARY.
"""

import re
from dataclasses import dataclass
from functools import cached_property
from typing import Dict, List, Optional, Tuple

from ..core.context.enums import BiomarkerCategory

# Label separator: optional qualifier word ("Fasting", "Calc"), optional short parenthetical
# ("(SGOT)"), optional filler word, optional ':' or '='
_QUALIFIER = (
    r"(?:,?[ \t]*(?:Fasting|Random|Calc(?:ulated)?|Direct|Serum|Plasma|25-?Hydroxy|25-?OH)"
    r"(?![A-Za-z]))?"
)
_SEPARATOR = _QUALIFIER + r"(?:\s*\([^)\n]{1,20}\))?(?:\s*(?:Result|Value|Level))?\s*[:=]?\s*"
_VALUE = r"(?P<value>\d+(?:\.\d+)?)"
# Status marker must not be the start of a reference phrase ("Normal range:", "Normal: <200")
_STATUS = (
    r"(?:[ \t]*\(?[ \t]*(?P<status>High|Low|Normal|H|L|N)\b\)?"
    r"(?![ \t]*(?:range|ranges|:|limits?|reference|values?)))?"
)
# "Non-HDL Cholesterol" is a different analyte
_NOT_NON = r"(?<!Non-)(?<!Non\s)"


@dataclass(frozen=True)
class BiomarkerPattern:
    """Detector for one biomarker."""
    key: str
    labels: Tuple[str, ...]
    units: Tuple[str, ...]
    category: BiomarkerCategory
    display_name: str = ""

    @property
    def default_unit(self) -> str:
        return self.units[0]

    @cached_property
    def pattern(self) -> "re.Pattern[str]":
        labels = "|".join(self.labels)
        units = "|".join(
            re.escape(u) for u in sorted(self.units, key=len, reverse=True)
        )
        return re.compile(
            rf"(?<![A-Za-z])(?:{labels})(?![A-Za-z]){_SEPARATOR}{_VALUE}"
            rf"(?:[ \t]*(?P<unit>{units}))?{_STATUS}",
            re.IGNORECASE,
        )

    def canonical_unit(self, raw: Optional[str]) -> str:
        """Return the library spelling of a matched unit, or the default."""
        if not raw:
            return self.default_unit
        lowered = raw.strip().lower()
        for unit in self.units:
            if unit.lower() == lowered:
                return unit
        return raw.strip()


def _entry(key, labels, units, category, display_name=""):
    return BiomarkerPattern(
        key=key,
        labels=tuple(labels),
        units=tuple(units),
        category=category,
        display_name=display_name or key,
    )


# Micro sign (U+00B5), Greek mu (U+03BC) and ASCII 'u' all appear in OCR output
def _micro(unit: str) -> List[str]:
    return [unit, unit.replace("µ", "μ"), unit.replace("µ", "u")]


BIOMARKER_LIBRARY: Dict[str, BiomarkerPattern] = {p.key: p for p in [
    # Lipid panel
    _entry(
        "cholesterol",
        [r"Total\s+Cholesterol", r"Cholesterol,\s*Total",
         r"(?<!HDL\s)(?<!LDL\s)(?<!HDL-)(?<!LDL-)Cholesterol"],
        ["mg/dL", "mmol/L"], BiomarkerCategory.LIPID, "Total Cholesterol",
    ),
    _entry(
        "hdl",
        [_NOT_NON + r"HDL\s+Cholesterol", _NOT_NON + r"HDL-C",
         r"High-Density\s+Lipoprotein", _NOT_NON + r"(?<!V)HDL"],
        ["mg/dL", "mmol/L"], BiomarkerCategory.LIPID, "HDL Cholesterol",
    ),
    _entry(
        "ldl",
        [_NOT_NON + r"LDL\s+Cholesterol", _NOT_NON + r"LDL-C",
         r"Low-Density\s+Lipoprotein", _NOT_NON + r"(?<!V)LDL"],
        ["mg/dL", "mmol/L"], BiomarkerCategory.LIPID, "LDL Cholesterol",
    ),
    _entry(
        "triglycerides",
        [r"Triglycerides", r"TG"],
        ["mg/dL", "mmol/L"], BiomarkerCategory.LIPID, "Triglycerides",
    ),
    _entry(
        "vldl",
        [r"VLDL\s+Cholesterol", r"VLDL-C", r"Very\s+Low-Density\s+Lipoprotein", r"VLDL"],
        ["mg/dL", "mmol/L"], BiomarkerCategory.LIPID, "VLDL Cholesterol",
    ),

    # Metabolic panel
    _entry(
        "glucose",
        [r"Fasting\s+Glucose", r"Blood\s+Glucose", r"Glucose", r"FBG"],
        ["mg/dL", "mmol/L"], BiomarkerCategory.METABOLIC, "Glucose",
    ),
    _entry(
        "hemoglobinA1c",
        [r"Hemoglobin\s+A1c", r"HbA1c", r"A1C"],
        ["%", "mmol/mol"], BiomarkerCategory.METABOLIC, "Hemoglobin A1c",
    ),
    _entry(
        "insulin",
        [r"Fasting\s+Insulin", r"Insulin"],
        _micro("µIU/mL") + ["mIU/L", "pmol/L"], BiomarkerCategory.METABOLIC, "Insulin",
    ),

    # Thyroid panel
    _entry(
        "tsh",
        [r"Thyroid\s+Stimulating\s+Hormone", r"TSH"],
        ["mIU/L"] + _micro("µIU/mL"), BiomarkerCategory.THYROID, "TSH",
    ),
    _entry(
        "t4",
        [r"Free\s+T4", r"Thyroxine", r"FT4", r"T4"],
        ["ng/dL", "pmol/L"], BiomarkerCategory.THYROID, "Free T4",
    ),
    _entry(
        "t3",
        [r"Free\s+T3", r"Triiodothyronine", r"FT3", r"T3"],
        ["pg/mL", "pmol/L"], BiomarkerCategory.THYROID, "Free T3",
    ),

    # Vitamins
    _entry(
        "vitaminD",
        [r"25-?OH\s+Vitamin\s+D", r"25-?Hydroxy\s*vitamin\s+D", r"25\(OH\)D", r"Vitamin\s+D"],
        ["ng/mL", "nmol/L"], BiomarkerCategory.VITAMIN, "Vitamin D",
    ),
    _entry(
        "vitaminB12",
        [r"Vitamin\s+B12", r"Cobalamin", r"B12"],
        ["pg/mL", "pmol/L"], BiomarkerCategory.VITAMIN, "Vitamin B12",
    ),
    _entry(
        "folate",
        [r"Folic\s+Acid", r"Vitamin\s+B9", r"Folate"],
        ["ng/mL", "nmol/L"], BiomarkerCategory.VITAMIN, "Folate",
    ),

    # Minerals
    _entry(
        "ferritin",
        [r"Ferritin"],
        ["ng/mL"] + _micro("µg/L"), BiomarkerCategory.MINERAL, "Ferritin",
    ),
    _entry(
        "iron",
        [r"Serum\s+Iron", r"Iron"],
        _micro("µg/dL") + _micro("µmol/L"), BiomarkerCategory.MINERAL, "Iron",
    ),
    _entry(
        "magnesium",
        [r"Magnesium", r"(?-i:Mg)"],
        ["mg/dL", "mmol/L"], BiomarkerCategory.MINERAL, "Magnesium",
    ),

    # Blood count
    _entry(
        "hemoglobin",
        [r"(?<!Corpuscular\s)Hemoglobin", r"Hgb", r"Hb"],
        ["g/dL", "g/L"], BiomarkerCategory.BLOOD, "Hemoglobin",
    ),
    _entry(
        "hematocrit",
        [r"Hematocrit", r"Hct"],
        ["%"], BiomarkerCategory.BLOOD, "Hematocrit",
    ),
    _entry(
        "platelets",
        [r"Platelet\s+Count", r"Platelets?", r"PLT"],
        _micro("K/µL") + _micro("10³/µL") + ["x10E3/uL", "10^3/uL"],
        BiomarkerCategory.BLOOD, "Platelets",
    ),

    # Liver function
    _entry(
        "alt",
        [r"Alanine\s+(?:Transaminase|Aminotransferase)", r"SGPT", r"ALT"],
        ["U/L", "IU/L"], BiomarkerCategory.LIVER, "ALT",
    ),
    _entry(
        "ast",
        [r"Aspartate\s+(?:Transaminase|Aminotransferase)", r"SGOT", r"AST"],
        ["U/L", "IU/L"], BiomarkerCategory.LIVER, "AST",
    ),
    _entry(
        "alkalinePhosphatase",
        [r"Alkaline\s+Phosphatase", r"ALP"],
        ["U/L", "IU/L"], BiomarkerCategory.LIVER, "Alkaline Phosphatase",
    ),

    # Kidney function
    _entry(
        "creatinine",
        [r"Creatinine", r"(?-i:Cr)"],
        ["mg/dL"] + _micro("µmol/L"), BiomarkerCategory.KIDNEY, "Creatinine",
    ),
    _entry(
        "bun",
        [r"Blood\s+Urea\s+Nitrogen", r"Urea\s+Nitrogen", r"BUN", r"Urea"],
        ["mg/dL", "mmol/L"], BiomarkerCategory.KIDNEY, "BUN",
    ),
    _entry(
        "egfr",
        [r"Estimated\s+GFR", r"Glomerular\s+Filtration\s+Rate", r"eGFR"],
        ["mL/min/1.73m²", "mL/min/1.73m2", "mL/min/1.73 m2"], BiomarkerCategory.KIDNEY, "eGFR",
    ),

    # Hormones
    _entry(
        "cortisol",
        [r"Cortisol"],
        _micro("µg/dL") + ["nmol/L"], BiomarkerCategory.HORMONE, "Cortisol",
    ),
    _entry(
        "testosterone",
        [r"Total\s+Testosterone", r"Testosterone"],
        ["ng/dL", "nmol/L"], BiomarkerCategory.HORMONE, "Testosterone",
    ),
    _entry(
        "estradiol",
        [r"Estradiol", r"E2"],
        ["pg/mL", "pmol/L"], BiomarkerCategory.HORMONE, "Estradiol",
    ),
]}


def get_pattern(name: str) -> Optional[BiomarkerPattern]:
    """Look up a library entry by key, case-insensitively."""
    if not name:
        return None
    entry = BIOMARKER_LIBRARY.get(name)
    if entry is not None:
        return entry
    lowered = name.strip().lower()
    for key, pattern in BIOMARKER_LIBRARY.items():
        if key.lower() == lowered or pattern.display_name.lower() == lowered:
            return pattern
    return None


def get_default_unit(name: str) -> Optional[str]:
    """Default unit for a biomarker name, or None when it is not in the library."""
    entry = get_pattern(name)
    return entry.default_unit if entry else None
