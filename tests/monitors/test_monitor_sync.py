import logging
from unittest.mock import MagicMock

import pytest

from lamina.exceptions import InvalidAuthenticationError, MonitorApiError
from lamina.monitors import (
    MonitorApiClient,
    MonitorParams,
    QueriedMonitor,
    SyncAction,
    get_existing_monitors,
    plan_monitor_sync,
    sync_monitors,
)

STACK_ID = "arn:aws:cloudformation:us-east-1:123456789012:stack/orders-dev/abc"

M1 = MonitorParams(serverless_monitor_id="m1", name="M1", query="q1")
M2 = MonitorParams(serverless_monitor_id="m2", name="M2", query="q2")
M3 = MonitorParams(serverless_monitor_id="m3", name="M3", query="q3")


def _remote(monitor_id, params, **overrides):
    values = {
        "id": monitor_id,
        "name": params.name,
        "query": params.query,
        "tags": params.tags_for_stack(STACK_ID),
        "type": params.type,
        "message": params.message,
        "options": dict(params.options),
    }
    values.update(overrides)
    return QueriedMonitor(**values)


@pytest.fixture
def client():
    client = MagicMock(spec=MonitorApiClient)
    client.search_monitors.return_value = []
    client.create_monitor.return_value = 999

    def _get_monitor(monitor_id):
        return next(m for m in client.search_monitors.return_value if m.id == monitor_id)

    client.get_monitor.side_effect = _get_monitor
    return client


def test_get_existing_monitors_keys_by_serverless_monitor_id(client):
    client.search_monitors.return_value = [
        _remote(1, M1),
        QueriedMonitor(
            id=2, name="manual", query="q", tags=[f"aws_cloudformation_stack-id:{STACK_ID}"]
        ),
    ]

    existing = get_existing_monitors(client, STACK_ID)

    assert existing == {"m1": _remote(1, M1)}
    client.search_monitors.assert_called_once_with(f"aws_cloudformation_stack-id:{STACK_ID}")


def test_sync_creates_missing_keeps_unchanged_and_deletes_orphans(client):
    client.search_monitors.return_value = [_remote(1, M1), _remote(3, M3)]

    report = sync_monitors(client, [M1, M2], STACK_ID)

    assert report.unchanged == ["m1"]
    assert report.created == ["m2"]
    assert report.deleted == ["m3"]
    assert report.updated == []
    assert report.ok
    client.create_monitor.assert_called_once_with(M2, STACK_ID)
    client.delete_monitor.assert_called_once_with(3)
    client.update_monitor.assert_not_called()


def test_sync_updates_changed_monitor_in_place(client):
    client.search_monitors.return_value = [_remote(1, M1, query="old query")]

    report = sync_monitors(client, [M1], STACK_ID)

    assert report.updated == ["m1"]
    client.update_monitor.assert_called_once_with(1, M1, STACK_ID)
    client.create_monitor.assert_not_called()


def test_sync_continues_after_a_failing_monitor(client):
    client.create_monitor.side_effect = [MonitorApiError("Can't create monitor 'm1'.", 500), 7]

    report = sync_monitors(client, [M1, M2], STACK_ID)

    assert report.created == ["m2"]
    assert not report.ok
    [failure] = report.failures
    assert failure.serverless_monitor_id == "m1"
    assert failure.action is SyncAction.CREATE
    assert failure.error.status_code == 500  # noqa: PLR2004


def test_sync_records_failed_delete(client):
    client.search_monitors.return_value = [_remote(3, M3)]
    client.delete_monitor.side_effect = MonitorApiError("Can't delete monitor 3.", 404)

    report = sync_monitors(client, [], STACK_ID)

    assert report.deleted == []
    assert [f.action for f in report.failures] == [SyncAction.DELETE]


def test_sync_raises_on_authentication_failure(client):
    client.create_monitor.side_effect = InvalidAuthenticationError("Forbidden", 403)

    with pytest.raises(InvalidAuthenticationError):
        sync_monitors(client, [M1, M2], STACK_ID)

    assert client.create_monitor.call_count == 1


def test_sync_raises_when_search_fails(client):
    client.search_monitors.side_effect = MonitorApiError("Can't fetch monitors.", 500)

    with pytest.raises(MonitorApiError, match="Can't fetch monitors"):
        sync_monitors(client, [M1], STACK_ID)

    client.create_monitor.assert_not_called()


def test_sync_without_stack_id_only_creates(client):
    report = sync_monitors(client, [M1, M2], "")

    assert report.created == ["m1", "m2"]
    client.search_monitors.assert_not_called()
    client.delete_monitor.assert_not_called()


def test_sync_rejects_duplicate_monitor_ids(client):
    with pytest.raises(ValueError, match="Duplicate monitor id 'm1'"):
        sync_monitors(client, [M1, M1], STACK_ID)

    client.search_monitors.assert_not_called()


def test_plan_monitor_sync_orders_desired_before_deletions():
    existing = {"m3": _remote(3, M3), "m1": _remote(1, M1, name="old")}

    plan = plan_monitor_sync([M1, M2], existing, STACK_ID)

    assert plan == [
        (SyncAction.UPDATE, "m1"),
        (SyncAction.CREATE, "m2"),
        (SyncAction.DELETE, "m3"),
    ]


@pytest.mark.parametrize(
    "changes",
    [
        {"message": "Errors are up @pagerduty"},
        {"options": {"thresholds": {"critical": 5}}},
        {"type": "query alert"},
    ],
)
def test_sync_updates_monitor_when_only_message_options_or_type_differ(client, changes):
    desired = MonitorParams(serverless_monitor_id="m1", name="M1", query="q1", **changes)
    client.search_monitors.return_value = [
        QueriedMonitor(id=1, name="M1", query="q1", tags=desired.tags_for_stack(STACK_ID))
    ]
    client.get_monitor.side_effect = None
    client.get_monitor.return_value = _remote(1, M1)

    report = sync_monitors(client, [desired], STACK_ID)

    assert report.updated == ["m1"]
    client.get_monitor.assert_called_once_with(1)
    client.update_monitor.assert_called_once_with(1, desired, STACK_ID)


def test_sync_ignores_option_defaults_filled_in_remotely(client):
    desired = MonitorParams(
        serverless_monitor_id="m1", name="M1", query="q1", options={"notify_no_data": True}
    )
    client.search_monitors.return_value = [
        _remote(1, desired, options={"notify_no_data": True, "renotify_interval": 0})
    ]

    report = sync_monitors(client, [desired], STACK_ID)

    assert report.unchanged == ["m1"]
    client.update_monitor.assert_not_called()


def test_sync_updates_when_full_monitor_cannot_be_fetched(client):
    client.search_monitors.return_value = [
        QueriedMonitor(id=1, name="M1", query="q1", tags=M1.tags_for_stack(STACK_ID))
    ]
    client.get_monitor.side_effect = MonitorApiError("Can't fetch monitor 1.", 500)

    report = sync_monitors(client, [M1], STACK_ID)

    assert report.updated == ["m1"]
    client.update_monitor.assert_called_once_with(1, M1, STACK_ID)


def test_sync_continues_after_malformed_create_response(mock_session, make_response):
    mock_session.request.side_effect = [
        make_response(json_body={}),
        make_response(json_body={"id": 7}),
    ]
    client = MonitorApiClient("api-key", "app-key", session=mock_session)

    report = sync_monitors(client, [M1, M2], "")

    assert report.created == ["m2"]
    [failure] = report.failures
    assert failure.serverless_monitor_id == "m1"
    assert failure.action is SyncAction.CREATE
    assert failure.error.status_code == 200  # noqa: PLR2004


def test_get_existing_monitors_keeps_first_of_duplicate_ids(client, caplog):
    client.search_monitors.return_value = [_remote(1, M1), _remote(2, M1)]

    with caplog.at_level(logging.WARNING):
        existing = get_existing_monitors(client, STACK_ID)

    assert existing == {"m1": _remote(1, M1)}
    assert "Monitors 1 and 2 share serverless monitor id 'm1'" in caplog.text
