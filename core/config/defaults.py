# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for the pool, polling, and the Nomad client
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for a load run against a parameterized
"sleeper" job. These can be overridden via environment variables or CLI
flags.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
from dataclasses import dataclass
from typing import Optional


def _env_int(name: str, default: int) -> int:
    """Integer env var; ValueError names the variable when malformed."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer (got {raw!r})") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {raw!r})") from None


@dataclass(frozen=True)
class HarnessDefaults:
    """
    Defaults for the worker pool and the dispatched job.
    """
    job_file: str = "sleeper.nomad.hcl"
    job_id: str = "sleeper"
    task_name: str = "sleeper"
    param_key: str = "dur"

    # Pool shape
    workers: int = 50
    iterations: int = 10
    max_sleep: int = 3

    # Outstanding outcomes before workers block on send
    channel_capacity: int = 100

    # Global time budget (seconds), 0 = none
    timeout_seconds: float = 0.0

    diagnostics_dir: str = "."

    @classmethod
    def from_env(cls) -> "HarnessDefaults":
        """Create from environment variables."""
        return cls(
            job_file=os.getenv("HARNESS_JOB_FILE", "sleeper.nomad.hcl"),
            job_id=os.getenv("HARNESS_JOB_ID", "sleeper"),
            task_name=os.getenv("HARNESS_TASK_NAME", "sleeper"),
            param_key=os.getenv("HARNESS_PARAM_KEY", "dur"),
            workers=_env_int("HARNESS_WORKERS", 50),
            iterations=_env_int("HARNESS_ITERATIONS", 10),
            max_sleep=_env_int("HARNESS_MAX_SLEEP", 3),
            channel_capacity=_env_int("HARNESS_CHANNEL_CAPACITY", 100),
            timeout_seconds=_env_float("HARNESS_TIMEOUT", 0.0),
            diagnostics_dir=os.getenv("HARNESS_DIAGNOSTICS_DIR", "."),
        )


@dataclass(frozen=True)
class PollDefaults:
    """
    Defaults for the instance poll loop.
    """
    interval_seconds: float = 3.0

    @classmethod
    def from_env(cls) -> "PollDefaults":
        """Create from environment variables."""
        return cls(
            interval_seconds=_env_float("HARNESS_POLL_INTERVAL", 3.0),
        )


@dataclass(frozen=True)
class NomadDefaults:
    """
    Defaults for the Nomad HTTP API client.

    Reads the same variables as the nomad CLI.
    """
    address: str = "http://127.0.0.1:4646"
    token: Optional[str] = None
    namespace: Optional[str] = None
    region: Optional[str] = None
    request_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> "NomadDefaults":
        """Create from environment variables."""
        return cls(
            address=os.getenv("NOMAD_ADDR", "http://127.0.0.1:4646"),
            token=os.getenv("NOMAD_TOKEN") or None,
            namespace=os.getenv("NOMAD_NAMESPACE") or None,
            region=os.getenv("NOMAD_REGION") or None,
            request_timeout_seconds=_env_float("NOMAD_HTTP_TIMEOUT", 30.0),
        )


@dataclass(frozen=True)
class Defaults:
    """Container for all default configurations."""
    harness: HarnessDefaults
    poll: PollDefaults
    nomad: NomadDefaults

    @classmethod
    def from_env(cls) -> "Defaults":
        """Load all defaults from environment."""
        return cls(
            harness=HarnessDefaults.from_env(),
            poll=PollDefaults.from_env(),
            nomad=NomadDefaults.from_env(),
        )


# Global defaults instance (lazy loaded)
_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


__all__ = [
    "HarnessDefaults",
    "PollDefaults",
    "NomadDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
