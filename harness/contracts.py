# ============================================================================
# HARNESS CONTRACTS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Run configuration
# PURPOSE: Resolved configuration for one load run
# CREATED: 18 OCT 2026
# ============================================================================
"""
Harness Contracts

HarnessConfig is the resolved configuration of one run: defaults, then
environment variables, then CLI flags. It is immutable once the pool starts.
"""

import os
from dataclasses import dataclass
from typing import List

from core.config import get_defaults


@dataclass
class HarnessConfig:
    """Configuration for a load run."""

    # Job
    job_file: str = "sleeper.nomad.hcl"
    job_id: str = "sleeper"
    task_name: str = "sleeper"
    param_key: str = "dur"

    # Pool shape
    workers: int = 50
    iterations: int = 10
    max_sleep: int = 3

    # Polling
    poll_interval_seconds: float = 3.0

    # Outcome channel bound
    channel_capacity: int = 100

    # Global time budget, 0 = none
    timeout_seconds: float = 0.0

    # Structural-error snapshots
    diagnostics_dir: str = "."

    # Exit 2 when the run had errors
    strict: bool = False

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        """Create config from environment variables."""
        defaults = get_defaults()
        return cls(
            job_file=defaults.harness.job_file,
            job_id=defaults.harness.job_id,
            task_name=defaults.harness.task_name,
            param_key=defaults.harness.param_key,
            workers=defaults.harness.workers,
            iterations=defaults.harness.iterations,
            max_sleep=defaults.harness.max_sleep,
            poll_interval_seconds=defaults.poll.interval_seconds,
            channel_capacity=defaults.harness.channel_capacity,
            timeout_seconds=defaults.harness.timeout_seconds,
            diagnostics_dir=defaults.harness.diagnostics_dir,
            strict=os.getenv("HARNESS_STRICT", "").lower() == "true",
        )

    def validate(self) -> List[str]:
        """Return a list of problems; empty when the config is usable."""
        problems = []
        if self.workers < 1:
            problems.append(f"workers must be >= 1 (got {self.workers})")
        if self.iterations < 1:
            problems.append(f"iterations must be >= 1 (got {self.iterations})")
        if self.poll_interval_seconds <= 0:
            problems.append(
                f"poll interval must be > 0 (got {self.poll_interval_seconds})"
            )
        if self.channel_capacity < 1:
            problems.append(f"channel capacity must be >= 1 (got {self.channel_capacity})")
        if self.timeout_seconds < 0:
            problems.append(f"timeout must be >= 0 (got {self.timeout_seconds})")
        if not self.task_name:
            problems.append("task name is required")
        if not self.param_key:
            problems.append("param key is required")
        return problems


__all__ = ["HarnessConfig"]
