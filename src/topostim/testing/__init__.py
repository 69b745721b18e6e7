# src/topostim/testing/__init__.py
"""
topostim testing utilities.

Usage
-----
>>> from topostim.testing import verify_consistency, format_consistency_summary

Available Functions
-------------------
- verify_pentagon_for_particles / verify_all_pentagons: F-symbol consistency
- verify_hexagon_for_particles / verify_all_hexagons: R/F compatibility
- verify_consistency: both, rolled into a ConsistencySummary
- format_consistency_summary: text report

Status Indicators
-----------------
- STATUS_OK (✓): every equation satisfied
- STATUS_FAIL (✗): at least one equation violated
"""

from .consistency import (
    STATUS_OK,
    STATUS_FAIL,
    ConsistencyCheckResult,
    ConsistencySummary,
    verify_pentagon_for_particles,
    verify_all_pentagons,
    verify_hexagon_for_particles,
    verify_all_hexagons,
    verify_consistency,
    format_consistency_summary,
)

__all__ = [
    'STATUS_OK',
    'STATUS_FAIL',
    'ConsistencyCheckResult',
    'ConsistencySummary',
    'verify_pentagon_for_particles',
    'verify_all_pentagons',
    'verify_hexagon_for_particles',
    'verify_all_hexagons',
    'verify_consistency',
    'format_consistency_summary',
]
