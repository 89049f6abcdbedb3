# ============================================================================
# src/biomarker_ingestion/llm/prompts.py
# ============================================================================
"""
Prompt Templates for model-assisted biomarker extraction.

The prompt is seeded with what the regex pass already found so the model
concentrates on categories that are still missing.
"""

from typing import Iterable, List

from ..core.context import BiomarkerCandidate, BiomarkerCategory


BIOMARKER_EXTRACTION_PROMPT = """You are a JSON-only extractor for medical laboratory reports.

Already extracted (do NOT return these again):
{found_list}

Categories already covered: {found_categories}
Focus on categories NOT yet covered: {missing_categories}

Return a single JSON object of this exact shape:
{{
  "biomarkers": [
    {{
      "name": "string (required)",
      "value": number (required),
      "unit": "string (required)",
      "category": "one of: {category_values} (required)",
      "referenceRange": "string (optional, as printed)",
      "testDate": "ISO 8601 date (optional)",
      "status": "High | Low | Normal (optional)",
      "confidence": number between 0 and 1 (optional)
    }}
  ]
}}

Rules:
- Extract ONLY actual patient results. NEVER return a reference-range
  boundary (for example 70 or 99 from "Normal range: 70-99") as a value.
- value must be a number, not a string.
- unit is mandatory. If no unit is printed, use the clinically standard
  unit for that analyte.
- If nothing new is found return {{"biomarkers": []}}.
- Output JSON only, no commentary.

LAB REPORT TEXT:
{text}
"""


def _format_found(candidates: List[BiomarkerCandidate]) -> str:
    if not candidates:
        return "- (none)"
    return "\n".join(f"- {c.name}: {c.value} {c.unit}" for c in candidates)


def build_extraction_prompt(
    text: str,
    found: Iterable[BiomarkerCandidate] = (),
    max_text_length: int = 12000,
) -> str:
    """
    Format the extraction prompt.

    Args:
        text: Document text (truncated to max_text_length)
        found: Candidates from earlier passes, listed so they are skipped
        max_text_length: Character cap on the embedded document text
    """
    found = list(found)
    covered = sorted({c.category.value for c in found})
    missing = [c.value for c in BiomarkerCategory if c.value not in covered]

    if len(text) > max_text_length:
        text = text[:max_text_length]

    return BIOMARKER_EXTRACTION_PROMPT.format(
        found_list=_format_found(found),
        found_categories=", ".join(covered) or "(none)",
        missing_categories=", ".join(missing) or "(none)",
        category_values=", ".join(c.value for c in BiomarkerCategory),
        text=text,
    )
