"""TickTick API adapter - HTTP provider for task lists."""

import logging
import time
import webbrowser
from datetime import datetime, timedelta, timezone

import requests

from nextup.config import Config, Tokens, load_config
from nextup.core.items import Item, Source, SourceKind
from nextup.core.window import Window, WindowKind
from nextup.errors import FetchFailure, PersistFailure, ProviderUnavailable

logger = logging.getLogger(__name__)

API_BASE = "https://api.ticktick.com/open/v1"
OAUTH_AUTHORIZE_URL = "https://ticktick.com/oauth/authorize"
OAUTH_TOKEN_URL = "https://ticktick.com/oauth/token"
REDIRECT_URI = "http://localhost:8080/callback"

STATUS_OPEN = 0
STATUS_COMPLETED = 2

COMPLETED_LOOKBACK_DAYS = 30


class AuthenticationError(ProviderUnavailable):
    """Raised when authentication fails."""

    pass


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse TickTick's "2025-01-15T14:00:00.000+0000" timestamps."""
    if not value:
        return None
    for fmt in ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    logger.debug(f"Unparseable TickTick timestamp: {value}")
    return None


def format_timestamp(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.000+0000")


def item_from_api(data: dict, source_title: str = "") -> Item:
    """Create an Item from a TickTick task payload."""
    completed = data.get("status", STATUS_OPEN) == STATUS_COMPLETED
    completed_at = parse_timestamp(data.get("completedTime")) if completed else None
    if completed and completed_at is None:
        # Keep the flag and timestamp in lock-step even when the API omits one
        completed_at = datetime.now(timezone.utc)
    return Item(
        id=data["id"],
        title=data.get("title", ""),
        source_id=data.get("projectId", ""),
        kind=SourceKind.TASK,
        due_at=parse_timestamp(data.get("dueDate")),
        is_completed=completed,
        completed_at=completed_at,
        has_recurrence=bool(data.get("repeatFlag")),
        priority=data.get("priority", 0) or 0,
        notes=data.get("content") or None,
        source_title=source_title,
    )


class TickTickAdapter:
    """
    TickTick API adapter.

    Implements the ItemProvider protocol for task sources (TickTick projects).
    Handles authentication, token refresh, and API calls. No business logic -
    just I/O.
    """

    def __init__(self, config: Config | None = None, tokens: Tokens | None = None):
        self.config = config or load_config()
        self.tokens = tokens or Tokens.load()
        self._session = requests.Session()

    def _ensure_valid_token(self) -> None:
        """Refresh token if expired or expiring soon."""
        if not self.tokens.access_token:
            raise AuthenticationError("No access token. Run 'nextup auth' first.")

        # Refresh if expiring within 5 minutes
        if self.tokens.expires_at and time.time() >= self.tokens.expires_at - 300:
            self._refresh_token()

    def _refresh_token(self) -> None:
        """Refresh the access token."""
        if not self.tokens.refresh_token:
            raise AuthenticationError("No refresh token. Run 'nextup auth' first.")

        resp = self._session.post(
            OAUTH_TOKEN_URL,
            data={
                "client_id": self.config.ticktick_client_id,
                "client_secret": self.config.ticktick_client_secret,
                "refresh_token": self.tokens.refresh_token,
                "grant_type": "refresh_token",
            },
        )

        if resp.status_code != 200:
            raise AuthenticationError(f"Token refresh failed: {resp.text}")

        data = resp.json()
        self.tokens.access_token = data["access_token"]
        if "refresh_token" in data:
            self.tokens.refresh_token = data["refresh_token"]
        self.tokens.expires_at = int(time.time()) + data.get("expires_in", 3600)
        self.tokens.save()

    def _api_request(self, method: str, endpoint: str, payload: dict | None = None) -> dict | list:
        """Make authenticated API request."""
        self._ensure_valid_token()
        resp = self._session.request(
            method,
            f"{API_BASE}{endpoint}",
            headers={"Authorization": f"Bearer {self.tokens.access_token}"},
            json=payload,
        )
        if resp.status_code in (401, 403):
            raise AuthenticationError(f"TickTick rejected the access token ({resp.status_code})")
        resp.raise_for_status()
        return resp.json() if resp.content else {}

    def list_sources(self, kind: SourceKind) -> list[Source]:
        """List TickTick projects as task sources."""
        if kind != SourceKind.TASK:
            return []
        try:
            projects = self._api_request("GET", "/project")
        except requests.RequestException as e:
            raise ProviderUnavailable(f"TickTick unreachable: {e}") from e

        return [
            Source(id=p["id"], title=p.get("name", ""), color=p.get("color") or "", kind=SourceKind.TASK)
            for p in projects
            if not p.get("closed")
        ]

    def query(self, source: Source, window: Window) -> list[Item]:
        """
        Fetch one project's tasks; the caller narrows them to the window.

        Project data only holds undone tasks, so completed-only windows read
        the completed-tasks endpoint for the last COMPLETED_LOOKBACK_DAYS.
        """
        try:
            if window.kind == WindowKind.COMPLETED_ONLY:
                end = datetime.now(timezone.utc)
                tasks = self._api_request(
                    "POST",
                    "/task/completed",
                    {
                        "projectIds": [source.id],
                        "startDate": format_timestamp(end - timedelta(days=COMPLETED_LOOKBACK_DAYS)),
                        "endDate": format_timestamp(end),
                    },
                )
                tasks = [{"status": STATUS_COMPLETED, **t} for t in tasks or []]
            else:
                tasks = self._api_request("GET", f"/project/{source.id}/data").get("tasks", [])
        except requests.RequestException as e:
            raise FetchFailure(f"Failed to fetch {source.title}: {e}") from e

        items = []
        for task_data in tasks:
            try:
                items.append(item_from_api(task_data, source.title))
            except KeyError as e:
                logger.debug(f"Skipping malformed task: {e}")
        return items

    def save(self, item: Item) -> None:
        """Persist an item's completion state."""
        try:
            if item.is_completed:
                self._api_request("POST", f"/project/{item.source_id}/task/{item.id}/complete")
            else:
                self._api_request(
                    "POST",
                    f"/task/{item.id}",
                    {"id": item.id, "projectId": item.source_id, "status": STATUS_OPEN},
                )
        except (requests.RequestException, ProviderUnavailable) as e:
            raise PersistFailure(f"Failed to save '{item.title}': {e}", item) from e

    def create(
        self,
        source_id: str,
        title: str,
        due_at: datetime | None = None,
        notes: str | None = None,
    ) -> Item:
        payload = {"title": title, "projectId": source_id}
        if due_at is not None:
            payload["dueDate"] = format_timestamp(due_at)
        if notes:
            payload["content"] = notes
        try:
            data = self._api_request("POST", "/task", payload)
        except (requests.RequestException, ProviderUnavailable) as e:
            raise PersistFailure(f"Failed to create '{title}': {e}") from e
        return item_from_api(data)


def authorize(config: Config | None = None) -> Tokens:
    """Run OAuth authorization flow."""
    config = config or load_config()

    if not config.ticktick_client_id or not config.ticktick_client_secret:
        raise AuthenticationError(
            "Missing TickTick credentials. Add them to config/nextup.conf"
        )

    auth_url = (
        f"{OAUTH_AUTHORIZE_URL}"
        f"?client_id={config.ticktick_client_id}"
        f"&scope=tasks:read%20tasks:write"
        f"&redirect_uri={REDIRECT_URI}"
        f"&response_type=code"
    )

    print("Opening browser for TickTick authorization...")
    webbrowser.open(auth_url)

    print("\nAfter authorizing, you'll be redirected to a page that won't load.")
    print("Copy the 'code' parameter from the URL.\n")

    code = input("Paste the code here: ").strip()
    if not code:
        raise AuthenticationError("No code provided")

    print("Exchanging code for tokens...")
    resp = requests.post(
        OAUTH_TOKEN_URL,
        data={
            "client_id": config.ticktick_client_id,
            "client_secret": config.ticktick_client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": REDIRECT_URI,
        },
    )

    if resp.status_code != 200:
        raise AuthenticationError(f"Token exchange failed: {resp.text}")

    data = resp.json()
    tokens = Tokens(
        access_token=data["access_token"],
        refresh_token=data.get("refresh_token", ""),
        expires_at=int(time.time()) + data.get("expires_in", 3600),
    )
    tokens.save()

    print("Authentication successful!")
    return tokens
