from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.support.records import T0, make_clock

if TYPE_CHECKING:
    from contextops.domain.model import Clock


@pytest.fixture
def clock() -> Clock:
    """Frozen clock at ``T0`` so merge/join timestamps are deterministic."""

    return make_clock(T0)
