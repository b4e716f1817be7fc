"""
Shared fixtures: every test runs with the consistency checks switched on.
"""

import pytest

from cohomology_config import assertion_scope


@pytest.fixture(autouse=True)
def checked():
    with assertion_scope(1) as cfg:
        yield cfg


@pytest.fixture
def strict():
    """Level 2 also re-checks cocycle identities on every tail conversion."""
    with assertion_scope(2) as cfg:
        yield cfg
