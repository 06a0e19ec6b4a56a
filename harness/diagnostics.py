# ============================================================================
# DIAGNOSTIC SNAPSHOTS
# ============================================================================
# EPOCH: 1 - DISPATCH LOAD HARNESS
# STATUS: Support - Post-mortem capture
# PURPOSE: Dump allocations when the named task is missing from an instance
# CREATED: 18 OCT 2026
# ============================================================================
"""
Diagnostic Snapshots

When the poller hits a StructuralError it hands the instance's allocations
to a diagnostic callback. DiagnosticWriter writes them as indented JSON to
<allocation-id>.alloc.json. The write runs off the event loop and is best
effort: failures are logged, never raised into the outcome path.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Union

from core.models import Allocation, DispatchHandle

logger = logging.getLogger(__name__)


class DiagnosticWriter:
    """Writes allocation snapshots to a directory."""

    def __init__(self, directory: Union[str, Path] = "."):
        self.directory = Path(directory)

    def path_for(self, allocation_id: str) -> Path:
        return self.directory / f"{allocation_id}.alloc.json"

    def __call__(
        self,
        handle: DispatchHandle,
        allocations: List[Allocation],
    ) -> Optional[Path]:
        """
        Write a snapshot named after the first allocation.

        Returns:
            Path written, or None when there was nothing to write
        """
        if not allocations:
            return None

        path = self.path_for(allocations[0].id)
        self.directory.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as out:
            json.dump([alloc.snapshot() for alloc in allocations], out, indent=2, default=str)
            out.write("\n")

        logger.info(f"Wrote allocation snapshot for {handle} to {path}")
        return path


__all__ = ["DiagnosticWriter"]
