"""
Tests for the equation-by-equation pentagon and hexagon reports.
"""
import logging

import pytest

from topostim.anyons import FIBONACCI, ISING, PSI, SIGMA, TAU, VACUUM, su2_level
from topostim.testing import (
    STATUS_FAIL,
    STATUS_OK,
    format_consistency_summary,
    verify_all_hexagons,
    verify_all_pentagons,
    verify_consistency,
    verify_hexagon_for_particles,
    verify_pentagon_for_particles,
)
from topostim.utils.errors import ValidationError


class TestPentagonReports:
    """Individual pentagon instances."""

    def test_four_sigmas(self):
        results = verify_pentagon_for_particles(SIGMA, SIGMA, SIGMA, SIGMA, VACUUM, ISING)
        assert len(results) == 4
        assert all(r.passed for r in results)
        assert all(r.equation == "pentagon" for r in results)

    def test_no_instances_for_forbidden_total(self):
        assert verify_pentagon_for_particles(SIGMA, SIGMA, SIGMA, SIGMA, SIGMA, ISING) == []

    def test_all_fibonacci(self):
        results = verify_all_pentagons(FIBONACCI)
        assert results
        assert max(r.deviation for r in results) < 1e-9

    def test_foreign_label(self):
        with pytest.raises(ValidationError):
            verify_pentagon_for_particles(TAU, TAU, TAU, TAU, VACUUM, ISING)


class TestHexagonReports:
    """Individual hexagon instances."""

    def test_sigma_hexagon(self):
        results = verify_hexagon_for_particles(SIGMA, SIGMA, SIGMA, SIGMA, ISING)
        assert results
        assert all(r.passed for r in results)

    def test_psi_instance(self):
        results = verify_hexagon_for_particles(PSI, PSI, PSI, PSI, ISING)
        assert len(results) == 1
        assert results[0].passed

    def test_no_instances_for_forbidden_total(self):
        assert verify_hexagon_for_particles(SIGMA, SIGMA, SIGMA, VACUUM, ISING) == []

    def test_all_su2_level_three(self):
        assert all(r.passed for r in verify_all_hexagons(su2_level(3)))


class TestSummary:
    """Roll-up and formatting."""

    @pytest.mark.parametrize("anyon_type", [ISING, FIBONACCI])
    def test_theories_consistent(self, anyon_type):
        summary = verify_consistency(anyon_type)
        assert summary.all_satisfied
        assert summary.failures == []
        assert summary.max_deviation < 1e-9
        text = format_consistency_summary(summary)
        assert f"{STATUS_OK} Pentagon" in text
        assert "Overall: PASS" in text

    def test_failures_reported(self, caplog):
        with caplog.at_level(logging.WARNING):
            summary = verify_consistency(FIBONACCI, tol=-1.0)
        assert not summary.all_satisfied
        assert "violates" in caplog.text
        text = format_consistency_summary(summary, max_failures=2)
        assert f"{STATUS_FAIL} Hexagon" in text
        assert "Overall: FAIL" in text
        assert f"... and {len(summary.failures) - 2} more" in text
