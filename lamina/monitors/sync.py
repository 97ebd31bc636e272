import logging
from collections.abc import Sequence

from lamina.exceptions import InvalidAuthenticationError, MonitorApiError
from lamina.monitors.api import MonitorApiClient
from lamina.monitors.models import (
    STACK_ID_TAG,
    MonitorParams,
    MonitorSyncFailure,
    MonitorSyncReport,
    QueriedMonitor,
    SyncAction,
    make_tag,
)

logger = logging.getLogger(__name__)


def get_existing_monitors(client: MonitorApiClient, stack_id: str) -> dict[str, QueriedMonitor]:
    """Return monitors owned by the stack, keyed by their serverless monitor id.

    Monitors tagged with the stack id but without a serverless monitor id tag were not
    created by us and are ignored.
    """
    existing = {}
    for monitor in client.search_monitors(make_tag(STACK_ID_TAG, stack_id)):
        serverless_monitor_id = monitor.serverless_monitor_id
        if serverless_monitor_id is None:
            logger.debug("Ignoring monitor %s without a serverless monitor id", monitor.id)
            continue
        if serverless_monitor_id in existing:
            logger.warning(
                "Monitors %s and %s share serverless monitor id '%s'; only %s is managed",
                existing[serverless_monitor_id].id,
                monitor.id,
                serverless_monitor_id,
                existing[serverless_monitor_id].id,
            )
            continue
        existing[serverless_monitor_id] = monitor
    return existing


def plan_monitor_sync(
    monitors: Sequence[MonitorParams], existing: dict[str, QueriedMonitor], stack_id: str
) -> list[tuple[SyncAction, str]]:
    """Decide what to do with every desired and every existing monitor.

    Desired monitors come first in declaration order, followed by deletions of
    existing monitors that are no longer declared.
    """
    plan = []
    for params in monitors:
        current = existing.get(params.serverless_monitor_id)
        if current is None:
            plan.append((SyncAction.CREATE, params.serverless_monitor_id))
        elif current.matches(params, stack_id):
            plan.append((SyncAction.NONE, params.serverless_monitor_id))
        else:
            plan.append((SyncAction.UPDATE, params.serverless_monitor_id))

    desired_ids = {params.serverless_monitor_id for params in monitors}
    plan.extend(
        (SyncAction.DELETE, serverless_monitor_id)
        for serverless_monitor_id in existing
        if serverless_monitor_id not in desired_ids
    )
    return plan


def check_unique_monitor_ids(monitors: Sequence[MonitorParams]) -> None:
    seen = set()
    for params in monitors:
        if params.serverless_monitor_id in seen:
            raise ValueError(
                f"Duplicate monitor id '{params.serverless_monitor_id}'. "
                "Monitor ids must be unique within a service."
            )
        seen.add(params.serverless_monitor_id)


def sync_monitors(
    client: MonitorApiClient, monitors: Sequence[MonitorParams], stack_id: str
) -> MonitorSyncReport:
    """Create, update and delete remote monitors so they match `monitors`.

    A failing call is recorded in the report and the remaining monitors are still
    processed. Authentication failures and a failing search are raised, since nothing
    can be reconciled after them.

    Without a stack id there is no way to tell which remote monitors belong to this
    deployment: every monitor is created and nothing is deleted.
    """
    check_unique_monitor_ids(monitors)

    if stack_id:
        existing = get_existing_monitors(client, stack_id)
    else:
        logger.warning(
            "Stack id is unknown; creating monitors without checking for existing ones"
        )
        existing = {}

    by_id = {params.serverless_monitor_id: params for params in monitors}
    report = MonitorSyncReport()
    # Search results lack message and options, so compare against the full monitors
    for serverless_monitor_id in by_id:
        if serverless_monitor_id not in existing:
            continue
        try:
            existing[serverless_monitor_id] = client.get_monitor(
                existing[serverless_monitor_id].id
            )
        except InvalidAuthenticationError:
            raise
        except MonitorApiError as e:
            # Left as a search result, it no longer matches and gets a plain update
            logger.warning("Using search result for monitor '%s': %s", serverless_monitor_id, e)

    for action, serverless_monitor_id in plan_monitor_sync(monitors, existing, stack_id):
        try:
            if action is SyncAction.CREATE:
                monitor_id = client.create_monitor(by_id[serverless_monitor_id], stack_id)
                logger.info("Created monitor '%s' (%s)", serverless_monitor_id, monitor_id)
            elif action is SyncAction.UPDATE:
                monitor_id = existing[serverless_monitor_id].id
                client.update_monitor(monitor_id, by_id[serverless_monitor_id], stack_id)
                logger.info("Updated monitor '%s' (%s)", serverless_monitor_id, monitor_id)
            elif action is SyncAction.DELETE:
                monitor_id = existing[serverless_monitor_id].id
                client.delete_monitor(monitor_id)
                logger.info("Deleted monitor '%s' (%s)", serverless_monitor_id, monitor_id)
            else:
                logger.debug("Monitor '%s' is up to date", serverless_monitor_id)
        except InvalidAuthenticationError:
            raise
        except MonitorApiError as e:
            logger.warning(
                "Failed to %s monitor '%s': %s", action.value, serverless_monitor_id, e
            )
            report.failures.append(MonitorSyncFailure(serverless_monitor_id, action, e))
        else:
            report.record(action, serverless_monitor_id)
    return report
