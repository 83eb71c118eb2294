"""analytics – aggregate charging demand tracking."""

from .demand import DemandRecord, DemandTracker

__all__ = ["DemandRecord", "DemandTracker"]
