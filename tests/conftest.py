from __future__ import annotations

import pytest

from _resources import FakeBackend


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
