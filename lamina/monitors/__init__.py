from .api import MonitorApiClient
from .models import (
    MonitorParams,
    MonitorParamsDict,
    MonitorSyncFailure,
    MonitorSyncReport,
    QueriedMonitor,
    SyncAction,
)
from .stack import get_cloudformation_stack_id
from .sync import get_existing_monitors, plan_monitor_sync, sync_monitors

__all__ = [
    "MonitorApiClient",
    "MonitorParams",
    "MonitorParamsDict",
    "MonitorSyncFailure",
    "MonitorSyncReport",
    "QueriedMonitor",
    "SyncAction",
    "get_cloudformation_stack_id",
    "get_existing_monitors",
    "plan_monitor_sync",
    "sync_monitors",
]
