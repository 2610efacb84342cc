from __future__ import annotations

import pytest

from invoker.utils.backoff import backoff_delay


def test_backoff_doubles_per_attempt():
    assert [backoff_delay(index, 1.0) for index in range(4)] == [1.0, 2.0, 4.0, 8.0]


def test_backoff_first_attempt_uses_base_delay():
    assert backoff_delay(0, 1.5) == pytest.approx(1.5)
    assert backoff_delay(2, 0.1) == pytest.approx(0.4)
