"""quake-watch: poll the USGS earthquake feed and push threshold alerts."""

from quake_watch.notifier import ThresholdNotifier
from quake_watch.permissions import PermissionGate
from quake_watch.scheduler import PollScheduler, PollState, SchedulerStatus

__version__ = "0.1.0"

__all__ = [
    "ThresholdNotifier",
    "PermissionGate",
    "PollScheduler",
    "PollState",
    "SchedulerStatus",
]
