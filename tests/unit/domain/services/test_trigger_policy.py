from __future__ import annotations

import pytest

from predictcore.domain.entities.evaluation import Verdict
from predictcore.domain.services.trigger_policy import OptimizationTriggerPolicy


def test_fail_triggers_immediately() -> None:
    policy = OptimizationTriggerPolicy(degraded_cycles_before_trigger=3)

    assert policy.observe(Verdict.FAIL) is True


def test_degraded_triggers_after_consecutive_cycles() -> None:
    policy = OptimizationTriggerPolicy(degraded_cycles_before_trigger=3)

    assert policy.observe(Verdict.DEGRADED) is False
    assert policy.observe(Verdict.DEGRADED) is False
    assert policy.degraded_streak == 2
    assert policy.observe(Verdict.DEGRADED) is True
    assert policy.degraded_streak == 0


def test_pass_resets_the_streak() -> None:
    policy = OptimizationTriggerPolicy(degraded_cycles_before_trigger=2)

    policy.observe(Verdict.DEGRADED)
    assert policy.observe(Verdict.PASS) is False
    assert policy.observe(Verdict.DEGRADED) is False


def test_reset_clears_the_streak() -> None:
    policy = OptimizationTriggerPolicy(degraded_cycles_before_trigger=2)
    policy.observe(Verdict.DEGRADED)

    policy.reset()

    assert policy.degraded_streak == 0
    assert policy.observe(Verdict.DEGRADED) is False


def test_invalid_cycle_count_is_rejected() -> None:
    with pytest.raises(ValueError):
        OptimizationTriggerPolicy(degraded_cycles_before_trigger=0)
