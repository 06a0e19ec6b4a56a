# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration and defaults for the load harness.
"""

from core.config.defaults import (
    HarnessDefaults,
    PollDefaults,
    NomadDefaults,
    Defaults,
    get_defaults,
    reset_defaults,
)

__all__ = [
    "HarnessDefaults",
    "PollDefaults",
    "NomadDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
