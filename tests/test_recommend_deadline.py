from __future__ import annotations

import pytest

from recommend.deadline import Deadline, DeadlineExceeded, timeout_for


def test_timeout_for_without_deadline_uses_default() -> None:
    assert timeout_for(None, 12) == 12.0


def test_unbounded_deadline_uses_default_until_cancelled() -> None:
    deadline = Deadline()
    assert deadline.remaining() is None
    assert not deadline.expired()
    assert deadline.timeout(25) == 25.0
    deadline.cancel()
    assert deadline.cancelled
    assert deadline.expired()
    with pytest.raises(DeadlineExceeded):
        deadline.timeout(25)


def test_budget_caps_provider_timeout() -> None:
    deadline = Deadline.after(3)
    assert 0 < timeout_for(deadline, 25) <= 3
    assert timeout_for(deadline, 1) == 1.0


def test_spent_budget_fails_immediately() -> None:
    deadline = Deadline.after(0)
    assert deadline.expired()
    assert deadline.remaining() == 0.0
    with pytest.raises(DeadlineExceeded):
        timeout_for(deadline, 12)
