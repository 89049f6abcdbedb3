# ============================================================================
# src/biomarker_ingestion/extractors/text_preprocessor.py
# ============================================================================
"""
OCR repair applied before pattern matching.

Handles:
- "5.65.7"        -> "5.6 5.7"    (two decimals that ran together)
- "220High"       -> "220 High"   (status word glued to a number)
- "95mg/dL"       -> "95 mg/dL"   (unit glued to a number)
- "Glucose:\\n95"  -> "Glucose: 95" (label and value split across lines)
- "HDL\\tChol"     -> "HDL Chol"    (tab and space runs collapse to one space)
"""

import re

# Two one-decimal numbers with no gap: "12.3100.5" -> "12.3 100.5"
_RUN_TOGETHER_DECIMALS = re.compile(r"(?<![\d.])(\d{1,4}\.\d)(\d{1,4}\.\d{1,2})(?![\d.])")

_STATUS_WORDS = re.compile(r"(\d)(High|Low|Normal|HIGH|LOW|NORMAL|H|L|N)(?![A-Za-z])")

_UNIT_WORDS = re.compile(
    r"(\d)(mg/dL|mg/L|g/dL|g/L|mmol/L|mmol/mol|[µμu]mol/L|ng/mL|ng/dL|pg/mL|pmol/L|nmol/L|"
    r"[µμu]g/dL|[µμu]g/L|[µμu]IU/mL|mIU/L|IU/L|U/L|mEq/L|%)",
    re.IGNORECASE,
)

_HORIZONTAL_WHITESPACE = re.compile(r"[ \t]+")

_LABEL_NEWLINE_VALUE = re.compile(r"([A-Za-z][A-Za-z0-9 ()\-]*:)[ \t]*\n[ \t]*(\d)")
_VALUE_NEWLINE_UNIT = re.compile(
    r"(\d)[ \t]*\n[ \t]*(mg/dL|mmol/L|g/dL|g/L|ng/mL|pg/mL|[µμu]g/L|IU/L|U/L|mEq/L|%)",
    re.IGNORECASE,
)


def preprocess_lab_text(text: str) -> str:
    """Repair common OCR fragmentation without changing line structure otherwise."""
    if not text:
        return ""

    text = _HORIZONTAL_WHITESPACE.sub(" ", text.replace("\r\n", "\n"))
    text = _LABEL_NEWLINE_VALUE.sub(r"\1 \2", text)
    text = _VALUE_NEWLINE_UNIT.sub(r"\1 \2", text)
    text = _RUN_TOGETHER_DECIMALS.sub(r"\1 \2", text)
    text = _STATUS_WORDS.sub(r"\1 \2", text)
    text = _UNIT_WORDS.sub(r"\1 \2", text)
    return text
