"""Upstream draw feed client."""

from typing import Any, Optional

import httpx
import structlog

from cli.retry import http_retry
from errors import FetchError

from .store import OutcomeRecord

logger = structlog.get_logger()

DEFAULT_URL = "https://draw.ar-lottery01.com/WinGo/WinGo_1M/GetHistoryIssuePage.json"

_ID_KEYS = ("issueNumber", "issueId", "issue_id")
_VALUE_KEYS = ("winNumber", "number", "winningValue", "value")


def _extract_items(payload: Any) -> list:
    """Pull the item list out of the upstream envelope ({"data": {"list": [...]}})."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data", payload)
        if isinstance(data, dict) and isinstance(data.get("list"), list):
            return data["list"]
        if isinstance(data, list):
            return data
    raise FetchError("unexpected draw payload shape")


def _first(item: dict, keys: tuple) -> Any:
    for key in keys:
        if item.get(key) not in (None, ""):
            return item[key]
    return None


def parse_item(item: Any) -> Optional[OutcomeRecord]:
    """Normalize one upstream item; None if it is unusable."""
    if not isinstance(item, dict):
        return None
    issue_id = _first(item, _ID_KEYS)
    raw_value = _first(item, _VALUE_KEYS)
    if issue_id is None or raw_value is None:
        return None
    try:
        value = int(str(raw_value).strip())
        return OutcomeRecord(issue_id=str(issue_id).strip(), value=value)
    except ValueError:
        return None


def parse_draws(payload: Any) -> list[OutcomeRecord]:
    """Parse a payload into records, dropping malformed and in-batch duplicate items."""
    records = []
    seen: set[str] = set()
    dropped = 0
    for item in _extract_items(payload):
        record = parse_item(item)
        if record is None:
            dropped += 1
            continue
        if record.issue_id in seen:
            continue
        seen.add(record.issue_id)
        records.append(record)
    if dropped:
        logger.warning("draw_items_dropped", count=dropped)
    return records


class DrawSource:
    """Pulls the recent-draws JSON list from the upstream feed."""

    def __init__(
        self,
        url: str = DEFAULT_URL,
        timeout: float = 15.0,
        headers: Optional[dict] = None,
        client: Optional[httpx.Client] = None,
        max_attempts: int = 3,
        min_wait: float = 1.0,
        max_wait: float = 5.0,
    ):
        self.url = url
        self.client = client or httpx.Client(
            timeout=timeout,
            headers=headers or {"User-Agent": "drawcast/1.0"},
        )
        self._get_json = http_retry(
            max_attempts=max_attempts, min_wait=min_wait, max_wait=max_wait
        )(self._request)

    def _request(self) -> Any:
        response = self.client.get(self.url)
        response.raise_for_status()
        return response.json()

    def fetch(self) -> list[OutcomeRecord]:
        """Fetch and parse the latest batch. Raises FetchError on any failure."""
        try:
            payload = self._get_json()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"HTTP {e.response.status_code} from draw source") from e
        except httpx.RequestError as e:
            raise FetchError(f"request to draw source failed: {e}") from e
        except ValueError as e:
            raise FetchError(f"invalid JSON from draw source: {e}") from e
        records = parse_draws(payload)
        logger.info("draws_fetched", count=len(records))
        return records

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
