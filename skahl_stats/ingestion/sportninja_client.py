"""SportNinja HTTP client for schedules, games, game details and rosters."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import requests

logger = logging.getLogger(__name__)
DEFAULT_TIMEOUT_SECONDS = 20
DEFAULT_RETRIES = 3
DEFAULT_BACKOFF_SECONDS = 0.5
MAX_BODY_SNIPPET = 300


class ApiError(RuntimeError):
    def __init__(self, status: int | None, body: str = "", url: str | None = None) -> None:
        self.status = status
        self.body = body[:MAX_BODY_SNIPPET]
        self.url = url
        super().__init__(f"SportNinja API error status={status} url={url} body={self.body}")


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    total_pages: int = 1


def unwrap_items(payload: Any) -> list[Any]:
    """Pull the item list out of whichever envelope the endpoint used."""

    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        nested = data.get("data")
        if isinstance(nested, list):
            return nested
        players = data.get("players")
        if isinstance(players, list):
            return players
    return []


def read_total_pages(payload: Any) -> int:
    if not isinstance(payload, dict):
        return 1
    meta = payload.get("meta")
    pagination = meta.get("pagination") if isinstance(meta, dict) else None
    if not isinstance(pagination, dict):
        return 1
    try:
        return max(1, int(pagination.get("total_pages") or 1))
    except (TypeError, ValueError):
        return 1


class SportNinjaClient:
    def __init__(
        self,
        token: str,
        base_url: str,
        site_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            }
        )
        if site_url:
            self.session.headers.update(
                {
                    "Origin": site_url.rstrip("/"),
                    "Referer": site_url.rstrip("/") + "/",
                }
            )

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        response = None
        last_exception: requests.RequestException | None = None
        for attempt in range(DEFAULT_RETRIES):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
                break
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_exception = exc
                logger.warning(
                    "SportNinja request failed url=%s attempt=%s/%s error=%s",
                    url,
                    attempt + 1,
                    DEFAULT_RETRIES,
                    exc,
                )
                if attempt < DEFAULT_RETRIES - 1:
                    time.sleep(DEFAULT_BACKOFF_SECONDS * (2**attempt))
            except requests.RequestException as exc:
                raise ApiError(None, str(exc), url) from exc

        if response is None:
            raise ApiError(None, str(last_exception), url) from last_exception

        if not 200 <= response.status_code < 300:
            logger.error(
                "SportNinja non-2xx status=%s url=%s body=%s",
                response.status_code,
                url,
                response.text[:MAX_BODY_SNIPPET],
            )
            raise ApiError(response.status_code, response.text, url)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(response.status_code, response.text, url) from exc

    def fetch_page(self, path: str, page: int) -> Page:
        payload = self._get(path, params={"page": page})
        return Page(items=unwrap_items(payload), total_pages=read_total_pages(payload))

    def fetch_all(self, path: str) -> list[Any]:
        items: list[Any] = []
        current_page = 1
        total_pages = 1
        while current_page <= total_pages:
            page = self.fetch_page(path, current_page)
            items.extend(page.items)
            total_pages = page.total_pages
            logger.debug(
                "Fetched page %s/%s path=%s items=%s",
                current_page,
                total_pages,
                path,
                len(page.items),
            )
            current_page += 1
        return items

    def fetch_schedules(self, org_id: str) -> list[Any]:
        return self.fetch_all(f"/organizations/{org_id}/schedules")

    def fetch_schedule_games(self, schedule_id: str) -> list[Any]:
        return self.fetch_all(f"/schedules/{schedule_id}/games")

    def fetch_game_detail(self, game_id: str) -> dict[str, Any] | None:
        payload = self._get(f"/games/{game_id}")
        if isinstance(payload, dict):
            data = payload.get("data")
            if isinstance(data, dict) and data:
                return data
        return None

    def fetch_team_rosters(self, team_id: str) -> list[Any]:
        return self.fetch_all(f"/teams/{team_id}/rosters")

    def fetch_roster_players(self, team_id: str, roster_id: str) -> list[Any]:
        return self.fetch_all(f"/teams/{team_id}/rosters/{roster_id}/players")
