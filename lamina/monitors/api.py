import logging
from collections.abc import Callable
from typing import Any, Final, Self

import requests

from lamina.exceptions import InvalidAuthenticationError, MonitorApiError
from lamina.monitors.models import MonitorParams, QueriedMonitor

logger = logging.getLogger(__name__)

DEFAULT_SITE: Final[str] = "datadoghq.com"
DEFAULT_TIMEOUT: Final[int] = 30
SEARCH_PAGE_SIZE: Final[int] = 100
_AUTH_FAILURE_STATUSES: Final[frozenset[int]] = frozenset({401, 403})


class MonitorApiClient:
    """Thin client for the monitor HTTP API.

    The API key and application key are sent as-is in the DD-API-KEY and
    DD-APPLICATION-KEY headers. Non-2xx responses raise `MonitorApiError`
    (`InvalidAuthenticationError` for 401/403), and transport failures such as timeouts
    raise `MonitorApiError` without a status code.

    Args:
        api_key: API key.
        app_key: Application key.
        site: API site, e.g. "datadoghq.com" or "datadoghq.eu".
        timeout: Per-request timeout in seconds.
        session: Optional preconfigured `requests.Session`.
    """

    def __init__(
        self,
        api_key: str,
        app_key: str,
        site: str = DEFAULT_SITE,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.site = site
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "DD-API-KEY": api_key,
                "DD-APPLICATION-KEY": app_key,
                "Content-Type": "application/json",
            }
        )

    @property
    def base_url(self) -> str:
        return f"https://api.{self.site}/api/v1"

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def _request(
        self, method: str, path: str, failure: str, **kwargs: Any
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            raise MonitorApiError(f"{failure} Message: {e}") from e

        if response.status_code in _AUTH_FAILURE_STATUSES:
            raise InvalidAuthenticationError(
                f"{failure} Message: {response.reason}", response.status_code
            )
        if not response.ok:
            raise MonitorApiError(f"{failure} Message: {response.reason}", response.status_code)
        return response

    def _parse[T](
        self, response: requests.Response, failure: str, read: Callable[[Any], T]
    ) -> T:
        try:
            return read(response.json())
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise MonitorApiError(
                f"{failure} Unexpected response body: {e!r}", response.status_code
            ) from e

    def validate_keys(self) -> None:
        """Raise `InvalidAuthenticationError` unless the API key is accepted."""
        failure = "Can't validate API key."
        response = self._request("GET", "/validate", failure)
        if not self._parse(response, failure, lambda body: body.get("valid", False)):
            raise InvalidAuthenticationError("API key is not valid.", response.status_code)

    def get_monitor(self, monitor_id: int) -> QueriedMonitor:
        failure = f"Can't fetch monitor {monitor_id}."
        response = self._request("GET", f"/monitor/{monitor_id}", failure)
        return self._parse(response, failure, QueriedMonitor.from_api)

    def create_monitor(self, params: MonitorParams, stack_id: str) -> int:
        failure = f"Can't create monitor '{params.serverless_monitor_id}'."
        response = self._request(
            "POST", "/monitor", failure, json=params.to_request_body(stack_id)
        )
        return self._parse(response, failure, lambda body: int(body["id"]))

    def update_monitor(self, monitor_id: int, params: MonitorParams, stack_id: str) -> None:
        self._request(
            "PUT",
            f"/monitor/{monitor_id}",
            f"Can't update monitor '{params.serverless_monitor_id}' ({monitor_id}).",
            json=params.to_request_body(stack_id),
        )

    def delete_monitor(self, monitor_id: int) -> None:
        self._request("DELETE", f"/monitor/{monitor_id}", f"Can't delete monitor {monitor_id}.")

    def search_monitors(self, query_tag: str) -> list[QueriedMonitor]:
        """Return every monitor carrying the given "key:value" tag, across all result pages."""
        failure = "Can't fetch monitors."
        monitors: list[QueriedMonitor] = []
        page = 0
        while True:
            response = self._request(
                "GET",
                "/monitor/search",
                failure,
                params={
                    "query": f'tag:"{query_tag}"',
                    "page": page,
                    "per_page": SEARCH_PAGE_SIZE,
                },
            )
            found, page_count = self._parse(response, failure, _read_search_page)
            monitors.extend(found)

            page += 1
            if page >= page_count:
                break
        logger.debug("Found %d monitors tagged %s", len(monitors), query_tag)
        return monitors


def _read_search_page(body: dict[str, Any]) -> tuple[list[QueriedMonitor], int]:
    monitors = [QueriedMonitor.from_api(m) for m in body.get("monitors", [])]
    return monitors, int(body.get("metadata", {}).get("page_count", 1))
