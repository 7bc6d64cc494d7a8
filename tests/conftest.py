"""
Shared pytest fixtures.

The repository root is put on sys.path so `costapp` imports resolve without
an install, wherever pytest is invoked from. No Streamlit runtime is needed:
the services only take a dataset (and, for storage, a sqlite connection).
"""

import os
import sys

import pytest

_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _ROOT not in sys.path:
    sys.path.insert(0, _ROOT)


@pytest.fixture
def sample():
    """Fresh copy of the built-in demo dataset (one fully costed tote bag)."""
    from costapp.services.demo_data import sample_dataset
    return sample_dataset()


@pytest.fixture
def empty():
    from costapp.services.demo_data import empty_dataset
    return empty_dataset()


@pytest.fixture
def conn():
    """In-memory sqlite connection with the snapshot schema."""
    from costapp.db import _connect, ensure_schema
    c = _connect(":memory:")
    ensure_schema(c)
    yield c
    c.close()
