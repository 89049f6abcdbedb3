# ============================================================================
# FILE: tests/unit/test_plausibility.py
# ============================================================================
"""
Unit tests for plausibility checker
"""

import logging

from biomarker_ingestion.validators.plausibility import (
    PlausibilityChecker,
    check_plausibility,
)


def test_plausibility_checker_init():
    """Test plausibility checker initialization"""
    checker = PlausibilityChecker()
    assert checker.ranges is not None
    assert "glucose" in checker.ranges


def test_check_valid_glucose():
    """Test valid glucose value"""
    checker = PlausibilityChecker()
    is_plausible, reason = checker.check("glucose", 95.0, "mg/dL")

    assert is_plausible is True
    assert reason is None


def test_check_implausible_high_glucose():
    """Test implausibly high glucose (decimal error)"""
    checker = PlausibilityChecker()
    is_plausible, reason = checker.check("glucose", 9500.0, "mg/dL")

    assert is_plausible is False
    assert "above plausible maximum" in reason


def test_check_implausible_low_hemoglobin():
    """Test implausibly low hemoglobin"""
    checker = PlausibilityChecker()
    is_plausible, reason = checker.check("hemoglobin", 1.0, "g/dL")

    assert is_plausible is False
    assert "below plausible minimum" in reason


def test_check_unknown_test():
    """Test unknown test (should pass)"""
    checker = PlausibilityChecker()
    is_plausible, reason = checker.check("unknown_test", 999.9, "units")

    assert is_plausible is True
    assert reason is None


def test_check_and_log_never_rejects(caplog):
    """Implausible values are logged, not rejected"""
    checker = PlausibilityChecker()
    with caplog.at_level(logging.WARNING):
        assert checker.check_and_log("tsh", 500.0, "mIU/L") is False
    assert "accepting anyway" in caplog.text


def test_custom_ranges():
    checker = PlausibilityChecker(ranges={"glucose": (50.0, 60.0)})
    assert checker.get_range("glucose") == (50.0, 60.0)
    assert checker.check("glucose", 95.0)[0] is False


def test_convenience_function():
    """Test check_plausibility convenience function"""
    assert check_plausibility("glucose", 95.0, "mg/dL") is True
    assert check_plausibility("glucose", 9500.0, "mg/dL") is False
