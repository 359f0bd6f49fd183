"""Pytest configuration and shared fixtures."""
from __future__ import annotations

import os

import pytest
from dotenv import load_dotenv

load_dotenv()


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "postgres: mark test as requiring a live PostgreSQL server")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--postgres",
        action="store_true",
        default=False,
        help="Run tests against the PostgreSQL server in TEST_DATABASE_URL",
    )


def pytest_collection_modifyitems(config, items):
    """Skip postgres tests unless --postgres is given and TEST_DATABASE_URL is set."""
    if config.getoption("--postgres") and os.getenv("TEST_DATABASE_URL"):
        return

    skip_pg = pytest.mark.skip(reason="Need --postgres option and TEST_DATABASE_URL to run")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)
