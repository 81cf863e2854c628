"""
Pytest configuration and fixtures.

This file ensures proper path setup for imports and provides key
bundles shared across the test session (key generation is slow).
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from hescore.bfv.keys import generate_key_bundle  # noqa: E402


@pytest.fixture(scope="session")
def key_dir(tmp_path_factory):
    """Key directory holding a bundle for the active profile (N=8192)."""
    directory = tmp_path_factory.mktemp("keys-8192")
    generate_key_bundle(directory, 8192)
    return directory


@pytest.fixture(scope="session")
def small_key_dir(tmp_path_factory):
    """Key directory holding a bundle for a non-active profile (N=4096)."""
    directory = tmp_path_factory.mktemp("keys-4096")
    generate_key_bundle(directory, 4096)
    return directory


@pytest.fixture(scope="session")
def secret_key_bytes(key_dir):
    """Raw contents of the active bundle's secret key file."""
    return (key_dir / "secret_key.k").read_bytes()
