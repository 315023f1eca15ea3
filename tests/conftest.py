"""
🧪 Pytest Configuration for the tableone test suite

Registers the unit/integration markers and provides the shared datasets
used by both layers.
"""

import os
import sys

import numpy as np
import pandas as pd
import pytest

# Make the root-level modules (config, logger) and the tableone package importable
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config import CONFIG  # noqa: E402


# ============================================================================
# 📦 Shared Fixtures
# ============================================================================

@pytest.fixture
def example_df():
    """Small dataset with a missing stratum, a missing value and three status levels."""
    return pd.DataFrame({
        "grp": ["A", "A", "B", None, "A"],
        "age": [30.0, 40.0, 50.0, 60.0, np.nan],
        "sex": ["f", "m", "f", "m", "f"],
        "status": [0, 1, 1, 2, 0],
    })


@pytest.fixture
def clinical_df():
    """Realistic two-arm dataset for end-to-end checks."""
    rng = np.random.default_rng(101)
    n = 200
    df = pd.DataFrame({
        "age": rng.normal(60, 10, n).round(1),
        "bili": rng.lognormal(0, 0.8, n).round(2),
        "sex": rng.choice(["f", "m"], n),
        "stage": rng.choice([1, 2, 3, 4], n),
        "trt": rng.choice(["placebo", "drug"], n),
    })
    df.loc[rng.choice(n, 12, replace=False), "bili"] = np.nan
    df.loc[rng.choice(n, 5, replace=False), "trt"] = None
    return df


@pytest.fixture
def restore_config():
    """Snapshot CONFIG['tableone'] and restore it after the test."""
    saved = CONFIG.get_section("tableone")
    yield CONFIG
    for key, value in saved.items():
        CONFIG.update(f"tableone.{key}", value)


# ============================================================================
# 🏷️ Markers and Session Hooks
# ============================================================================

def pytest_configure(config):
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


def pytest_sessionstart(session):
    print("\n" + "=" * 70)
    print("📊 Starting Test Session")
    print("=" * 70)


def pytest_sessionfinish(session, exitstatus):
    print("\n" + "=" * 70)
    print("✅ Test Session Complete")
    print("=" * 70)
