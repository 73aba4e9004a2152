"""Engine configuration.

Priority:
1. Explicit overrides passed to load_pricing_settings()
2. ESTATEDESK_* environment variables
3. Defaults below

Scan limits can be lowered but never raised above the hard caps.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any

# Hard caps on a single availability scan.
SCAN_MAX_CANDIDATES_LIMIT = 100
SCAN_MAX_RESULTS_LIMIT = 20
SCAN_WINDOW_MONTHS_LIMIT = 12


@dataclass(frozen=True)
class PricingSettings:
    """Settings for availability scans.

    Attributes:
        scan_max_candidates: Check-in dates evaluated per scan (<= 100).
        scan_max_results: Number of cheapest periods returned (<= 20).
        scan_window_months: Search window length when no month is given.
        scan_workers: 1 prices candidates sequentially, more uses a thread pool.
    """

    scan_max_candidates: int = SCAN_MAX_CANDIDATES_LIMIT
    scan_max_results: int = SCAN_MAX_RESULTS_LIMIT
    scan_window_months: int = 3
    scan_workers: int = 1

    def candidate_cap(self) -> int:
        return min(self.scan_max_candidates, SCAN_MAX_CANDIDATES_LIMIT)

    def result_cap(self) -> int:
        return min(self.scan_max_results, SCAN_MAX_RESULTS_LIMIT)


_ENV_INT_FIELDS = {
    "scan_max_candidates": "ESTATEDESK_SCAN_MAX_CANDIDATES",
    "scan_max_results": "ESTATEDESK_SCAN_MAX_RESULTS",
    "scan_window_months": "ESTATEDESK_SCAN_WINDOW_MONTHS",
    "scan_workers": "ESTATEDESK_SCAN_WORKERS",
}

_UPPER_BOUNDS = {
    "scan_max_candidates": SCAN_MAX_CANDIDATES_LIMIT,
    "scan_max_results": SCAN_MAX_RESULTS_LIMIT,
    "scan_window_months": SCAN_WINDOW_MONTHS_LIMIT,
}


def _positive_int(env_name: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{env_name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ValueError(f"{env_name} must be >= 1, got {value}")
    return value


def load_pricing_settings(**overrides: Any) -> PricingSettings:
    """Build settings from the environment, then apply explicit overrides.

    Values above a hard cap are clamped to the cap.

    Raises:
        ValueError: An environment value is not a positive integer.
    """
    values: dict[str, Any] = {}

    for field_name, env_name in _ENV_INT_FIELDS.items():
        raw = os.environ.get(env_name)
        if raw:
            values[field_name] = _positive_int(env_name, raw)

    values.update(overrides)
    for field_name, upper in _UPPER_BOUNDS.items():
        if field_name in values:
            values[field_name] = min(values[field_name], upper)
    return replace(PricingSettings(), **values)
