# ============================================================================
# SCHEDULER MODULE
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Boundary - Scheduler client exports
# PURPOSE: Facade over the batch scheduler API
# CREATED: 18 OCT 2026
# ============================================================================
"""
Scheduler Module

    SchedulerClient: abstract facade the harness core depends on
    NomadClient: httpx implementation against the Nomad HTTP API
"""

from scheduler.base import SchedulerAPIError, SchedulerClient
from scheduler.nomad import NomadClient

__all__ = [
    "SchedulerAPIError",
    "SchedulerClient",
    "NomadClient",
]
