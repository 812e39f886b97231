"""
Pytest fixtures for drift-check core tests.
"""

import pytest

from tests.core.fakes import FakeCommitted, FakeGenerator, make_schema


@pytest.fixture
def schemas():
    return [make_schema("user"), make_schema("account"), make_schema("order")]


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def committed(schemas):
    return FakeCommitted(s.name for s in schemas)
