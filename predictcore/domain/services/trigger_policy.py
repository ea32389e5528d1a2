"""Domain service deciding when evaluation verdicts warrant re-optimization."""

from predictcore.domain.entities.evaluation import Verdict


class OptimizationTriggerPolicy:
    """
    Gate optimization on evaluation verdicts.

    A FAIL verdict triggers immediately. DEGRADED verdicts only trigger after
    ``degraded_cycles_before_trigger`` consecutive occurrences; a PASS resets
    the streak.
    """

    def __init__(self, degraded_cycles_before_trigger: int = 3):
        if degraded_cycles_before_trigger < 1:
            raise ValueError("degraded_cycles_before_trigger must be at least 1.")
        self.degraded_cycles_before_trigger = degraded_cycles_before_trigger
        self._degraded_streak = 0

    @property
    def degraded_streak(self) -> int:
        return self._degraded_streak

    def observe(self, verdict: Verdict) -> bool:
        """Record a verdict and return whether optimization should run."""
        if verdict is Verdict.FAIL:
            self._degraded_streak = 0
            return True
        if verdict is Verdict.DEGRADED:
            self._degraded_streak += 1
            if self._degraded_streak >= self.degraded_cycles_before_trigger:
                self._degraded_streak = 0
                return True
            return False
        self._degraded_streak = 0
        return False

    def reset(self) -> None:
        self._degraded_streak = 0
