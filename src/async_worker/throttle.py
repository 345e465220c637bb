"""
Throttle Advisor.

Turns host activity into a per-tick budget. Backgrounded hosts fire the
fallback timer far less often, so the budget grows to keep the aggregate
progress rate comparable. Nobody is watching a backgrounded host, so
longer batches there cost nothing visible.
"""

import logging

from .config import WorkerConfig


logger = logging.getLogger(__name__)


class ThrottleAdvisor:
    """Computes `jobs_per_tick * throttle_factor` from a live config."""

    def __init__(self, config: WorkerConfig):
        self.config = config

    def factor(self, host_active: bool) -> float:
        """1 in the foreground, the inactive multiplier in the background."""
        if host_active or not self.config.work_on_inactive:
            return 1.0
        return self.config.inactive_multiplier

    def budget(self, host_active: bool) -> float:
        """Maximum cumulative job weight for the next tick."""
        budget = self.config.jobs_per_tick * self.factor(host_active)
        logger.debug(f"Tick budget {budget} (host_active={host_active})")
        return budget
