"""Pipeline package: scheduler, pacing queues, broadcaster, supervisor."""

from threatwire.pipeline.scheduler import AsyncioScheduler, Scheduler, VirtualScheduler

__all__ = ["AsyncioScheduler", "Scheduler", "VirtualScheduler"]
