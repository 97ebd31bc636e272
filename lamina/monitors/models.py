from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final, TypedDict, final

SERVERLESS_MONITOR_ID_TAG: Final[str] = "serverless_monitor_id"
STACK_ID_TAG: Final[str] = "aws_cloudformation_stack-id"
DEFAULT_MONITOR_TYPE: Final[str] = "metric alert"


def make_tag(key: str, value: str) -> str:
    return f"{key}:{value}"


def tag_value(tags: list[str], key: str) -> str | None:
    """Return the value of the first "key:value" tag, or None if the key is missing."""
    prefix = f"{key}:"
    for tag in tags:
        if tag.startswith(prefix):
            return tag[tag.index(":") + 1 :]
    return None


class MonitorParamsDict(TypedDict, total=False):
    serverless_monitor_id: str
    name: str
    query: str
    type: str
    message: str
    tags: list[str]
    options: dict[str, Any]


@dataclass(frozen=True, kw_only=True)
class MonitorParams:
    """A monitor as declared in the service configuration."""

    serverless_monitor_id: str
    name: str
    query: str
    type: str = DEFAULT_MONITOR_TYPE
    message: str = ""
    tags: list[str] = field(default_factory=list)
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for attr in ("serverless_monitor_id", "name", "query"):
            value = getattr(self, attr)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"Monitor '{attr}' must be a non-empty string")
        if ":" in self.serverless_monitor_id:
            raise ValueError(
                f"Monitor id '{self.serverless_monitor_id}' must not contain ':'"
            )
        if not isinstance(self.tags, list) or not all(isinstance(t, str) for t in self.tags):
            raise TypeError("Monitor 'tags' must be a list of strings")

    @classmethod
    def from_config(cls, value: "MonitorParams | MonitorParamsDict") -> "MonitorParams":
        if isinstance(value, MonitorParams):
            return value
        if isinstance(value, dict):
            return cls(**value)
        raise TypeError(
            f"Invalid monitor type: expected MonitorParams or dict, got {type(value).__name__}"
        )

    def tags_for_stack(self, stack_id: str) -> list[str]:
        """User tags plus the ownership tags used to find this monitor again."""
        owned = {SERVERLESS_MONITOR_ID_TAG, STACK_ID_TAG}
        tags = [t for t in self.tags if t.split(":", 1)[0] not in owned]
        tags.append(make_tag(SERVERLESS_MONITOR_ID_TAG, self.serverless_monitor_id))
        if stack_id:
            tags.append(make_tag(STACK_ID_TAG, stack_id))
        return tags

    def to_request_body(self, stack_id: str) -> dict[str, Any]:
        body: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "query": self.query,
            "message": self.message,
            "tags": self.tags_for_stack(stack_id),
        }
        if self.options:
            body["options"] = self.options
        return body


@final
@dataclass(frozen=True)
class QueriedMonitor:
    """A monitor as returned by the monitor API.

    Search results carry no `message` or `options`; those stay None until the monitor
    is fetched by id, and a monitor with unknown fields never matches.
    """

    id: int
    name: str
    query: str
    tags: list[str] = field(default_factory=list)
    type: str | None = None
    message: str | None = None
    options: dict[str, Any] | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "QueriedMonitor":
        return cls(
            id=int(data["id"]),
            name=data.get("name", ""),
            query=data.get("query", ""),
            tags=list(data.get("tags") or []),
            type=data.get("type"),
            message=data.get("message"),
            options=data.get("options"),
        )

    @property
    def serverless_monitor_id(self) -> str | None:
        return tag_value(self.tags, SERVERLESS_MONITOR_ID_TAG)

    def matches(self, params: MonitorParams, stack_id: str) -> bool:
        if self.type is None or self.message is None or self.options is None:
            return False
        # The API fills in defaults for options that were never set
        options_match = all(
            self.options.get(key) == value for key, value in params.options.items()
        )
        return (
            self.name == params.name
            and self.query == params.query
            and self.type == params.type
            and self.message == params.message
            and options_match
            and sorted(self.tags) == sorted(params.tags_for_stack(stack_id))
        )


class SyncAction(Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    NONE = "none"


@final
@dataclass(frozen=True)
class MonitorSyncFailure:
    serverless_monitor_id: str
    action: SyncAction
    error: Exception


@dataclass
class MonitorSyncReport:
    """Outcome of one sync run, keyed by serverless monitor id."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failures: list[MonitorSyncFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def record(self, action: SyncAction, serverless_monitor_id: str) -> None:
        bucket = {
            SyncAction.CREATE: self.created,
            SyncAction.UPDATE: self.updated,
            SyncAction.DELETE: self.deleted,
            SyncAction.NONE: self.unchanged,
        }[action]
        bucket.append(serverless_monitor_id)
