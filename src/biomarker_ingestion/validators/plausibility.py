# ============================================================================
# src/biomarker_ingestion/validators/plausibility.py
# ============================================================================
"""
Plausibility Checks

Wide "physically possible" bands per biomarker. Values outside a band are
logged but still accepted: a wildly abnormal number may be the true
result, and only the reference-range heuristic rejects values.

Example:
- Glucose 95 mg/dL   -> plausible
- Glucose 9999 mg/dL -> logged, kept
"""

from typing import Dict, Optional, Tuple
import logging

from ..constants.reference_boundaries import PLAUSIBILITY_RANGES


logger = logging.getLogger(__name__)


class PlausibilityChecker:
    """
    Check extracted values against plausibility bands.

    Bands are not unit-aware; a mmol/L glucose will fall under the
    mg/dL band and be logged.
    """

    def __init__(self, ranges: Optional[Dict[str, Tuple[float, float]]] = None):
        self.ranges = ranges if ranges is not None else PLAUSIBILITY_RANGES

    def check(self, key: str, value: float, unit: str = "") -> Tuple[bool, Optional[str]]:
        """
        Returns:
            (is_plausible, reason_if_not)
        """
        # Unknown biomarkers are assumed plausible
        if key not in self.ranges:
            return True, None

        min_val, max_val = self.ranges[key]
        shown = f"{value} {unit}" if unit else f"{value}"

        if value < min_val:
            return False, f"Value {shown} below plausible minimum {min_val}"

        if value > max_val:
            return False, f"Value {shown} above plausible maximum {max_val}"

        return True, None

    def check_and_log(self, key: str, value: float, unit: str = "", log=None) -> bool:
        """Run check(); log a warning when implausible. Never rejects."""
        is_plausible, reason = self.check(key, value, unit)
        if not is_plausible:
            (log or logger).warning(f"{key}: {reason} - accepting anyway")
        return is_plausible

    def get_range(self, key: str) -> Optional[Tuple[float, float]]:
        return self.ranges.get(key)


# ============================================================================
# CONVENIENCE FUNCTIONS
# ============================================================================

def check_plausibility(key: str, value: float, unit: str = "") -> bool:
    """
    Quick plausibility check.

    Returns:
        True if plausible, False otherwise
    """
    is_plausible, _ = PlausibilityChecker().check(key, value, unit)
    return is_plausible
