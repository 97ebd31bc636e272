import os
from dataclasses import dataclass, field
from typing import Any, Final, TypedDict

from lamina.monitors.api import DEFAULT_SITE
from lamina.monitors.models import MonitorParams, MonitorParamsDict
from lamina.monitors.sync import check_unique_monitor_ids

CONFIG_SECTION: Final[str] = "lamina"
API_KEY_ENV_VAR: Final[str] = "DATADOG_API_KEY"
APP_KEY_ENV_VAR: Final[str] = "DATADOG_APP_KEY"


class LaminaConfigDict(TypedDict, total=False):
    add_layers: bool
    add_extension: bool
    exclude: list[str]
    layers_file: str | None
    govcloud_layers_file: str | None
    site: str
    api_key: str | None
    app_key: str | None
    monitors: list[MonitorParams | MonitorParamsDict]
    aws_profile: str | None


@dataclass(frozen=True, kw_only=True)
class LaminaConfig:
    """Settings read from the `custom.lamina` section of the service.

    Args:
        add_layers: Attach the runtime library layer to supported functions.
        add_extension: Attach the extension layer to supported functions.
        exclude: Names of functions that must be left untouched.
        layers_file: Path to the layer catalog JSON.
        govcloud_layers_file: Path to the catalog used for us-gov-* regions.
        site: Monitor API site, e.g. "datadoghq.com".
        api_key: Monitor API key. Falls back to DATADOG_API_KEY.
        app_key: Monitor application key. Falls back to DATADOG_APP_KEY.
        monitors: Monitors to keep in sync with the deployed stack.
        aws_profile: AWS profile used to look up the stack id.
    """

    add_layers: bool = True
    add_extension: bool = False
    exclude: list[str] = field(default_factory=list)
    layers_file: str | None = None
    govcloud_layers_file: str | None = None
    site: str = DEFAULT_SITE
    api_key: str | None = None
    app_key: str | None = None
    monitors: list[MonitorParams | MonitorParamsDict] = field(default_factory=list)
    aws_profile: str | None = None

    def __post_init__(self) -> None:
        for flag in ("add_layers", "add_extension"):
            if not isinstance(getattr(self, flag), bool):
                raise TypeError(f"'{flag}' must be a boolean")

        if not isinstance(self.exclude, list) or not all(
            isinstance(name, str) for name in self.exclude
        ):
            raise TypeError("'exclude' must be a list of function names")

        if not isinstance(self.site, str) or not self.site.strip():
            raise ValueError("'site' must be a non-empty string")

        if not isinstance(self.monitors, list):
            raise TypeError(f"'monitors' must be a list, got {type(self.monitors).__name__}")
        # Normalize dicts so callers always see MonitorParams
        object.__setattr__(
            self, "monitors", [MonitorParams.from_config(monitor) for monitor in self.monitors]
        )
        check_unique_monitor_ids(self.monitors)

    @classmethod
    def from_custom(cls, custom: dict[str, Any]) -> "LaminaConfig":
        section = custom.get(CONFIG_SECTION) or {}
        if not isinstance(section, dict):
            raise TypeError(
                f"Invalid config type: expected a mapping under 'custom.{CONFIG_SECTION}', "
                f"got {type(section).__name__}"
            )
        return cls(**section)

    @property
    def monitors_enabled(self) -> bool:
        return bool(self.monitors)

    @property
    def resolved_api_key(self) -> str | None:
        return self.api_key or os.environ.get(API_KEY_ENV_VAR)

    @property
    def resolved_app_key(self) -> str | None:
        return self.app_key or os.environ.get(APP_KEY_ENV_VAR)

    def monitor_credentials(self) -> tuple[str, str]:
        api_key, app_key = self.resolved_api_key, self.resolved_app_key
        if not api_key or not app_key:
            raise ValueError(
                f"Monitors are configured but no API key and application key were found. "
                f"Set 'api_key'/'app_key' or the {API_KEY_ENV_VAR}/{APP_KEY_ENV_VAR} "
                f"environment variables."
            )
        return api_key, app_key
