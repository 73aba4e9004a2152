"""Shared pytest fixtures for EstateDesk tests."""
import sys
sys.dont_write_bytecode = True

import pytest  # noqa: E402

from helpers import FakePricingReader  # noqa: E402


@pytest.fixture
def reader():
    """Reader for property 1 with no rates configured."""
    return FakePricingReader()


@pytest.fixture(autouse=True)
def _clean_pricing_env(monkeypatch):
    """Keep ESTATEDESK_* variables from the host out of the tests."""
    for name in (
        "ESTATEDESK_SCAN_MAX_CANDIDATES",
        "ESTATEDESK_SCAN_MAX_RESULTS",
        "ESTATEDESK_SCAN_WINDOW_MONTHS",
        "ESTATEDESK_SCAN_WORKERS",
    ):
        monkeypatch.delenv(name, raising=False)
