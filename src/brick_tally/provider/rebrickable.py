"""Rebrickable API client, the parts catalog behind new sessions.

Fetches a set's metadata and its full (paginated) part inventory and
returns them as a :class:`Manifest`.  Entries are passed through
unmerged; duplicate (part, color, spare) triples are merged when the
ledger is built.
"""

import logging
from typing import Optional

import httpx

from brick_tally.config import Config
from brick_tally.database.models import Manifest, SetMeta
from brick_tally.errors import NotFound, ProviderError

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000


def normalize_set_num(set_num: str) -> str:
    """Append the default ``-1`` variant suffix when none is given."""
    set_num = set_num.strip()
    return set_num if "-" in set_num else f"{set_num}-1"


def _entry_from_result(item: dict) -> dict:
    part = item.get("part") or {}
    color = item.get("color") or {}
    category = part.get("part_cat_id")
    return {
        "part_num": part.get("part_num"),
        "part_name": part.get("name"),
        "part_img_url": part.get("part_img_url"),
        "color_id": color.get("id"),
        "color_name": color.get("name"),
        "color_rgb": color.get("rgb"),
        "element_id": item.get("element_id"),
        "category": str(category) if category is not None else None,
        "qty_needed": item.get("quantity"),
        "is_spare": bool(item.get("is_spare", False)),
    }


class RebrickableClient:
    """Client for the Rebrickable API v3 (``httpx``-based)."""

    def __init__(self, api_key: Optional[str] = None,
                 base_url: Optional[str] = None,
                 timeout: Optional[float] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.api_key = Config.REBRICKABLE_API_KEY if api_key is None else api_key
        self.base_url = (base_url or Config.REBRICKABLE_BASE_URL).rstrip("/")
        self.timeout = timeout or Config.REBRICKABLE_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.Client:
        if not self.api_key:
            raise ProviderError("REBRICKABLE_API_KEY not configured")
        return httpx.Client(
            base_url=self.base_url,
            headers={"Authorization": f"key {self.api_key}",
                     "Accept": "application/json"},
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )

    def _get_json(self, client: httpx.Client, url: str,
                  params: Optional[dict] = None, what: str = "") -> dict:
        try:
            response = client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Rebrickable request failed for {what or url}: {e}")
            raise ProviderError(f"Network error fetching {what or url}: {e}") from e
        if response.status_code == 404:
            raise NotFound(f"{what or url} not found")
        if response.is_error:
            logger.error(
                f"Rebrickable returned {response.status_code} for {what or url}"
            )
            raise ProviderError(f"Rebrickable API error: {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"Malformed response for {what or url}") from e

    def fetch(self, set_num: str) -> Manifest:
        """Return set metadata and every inventory entry for a set."""
        set_num = normalize_set_num(set_num)
        if set_num == "-1":
            raise ProviderError("Missing set number")

        with self._client() as client:
            set_data = self._get_json(
                client, f"/lego/sets/{set_num}/", what=f"Set {set_num}"
            )
            entries = []
            url: Optional[str] = f"/lego/sets/{set_num}/parts/"
            params: Optional[dict] = {"page_size": PAGE_SIZE}
            while url:
                page = self._get_json(
                    client, url, params=params, what=f"Parts of set {set_num}"
                )
                entries.extend(
                    _entry_from_result(item) for item in page.get("results", [])
                )
                # ``next`` is an absolute URL carrying its own query string
                url = page.get("next")
                params = None

        logger.info(f"Fetched {len(entries)} inventory entries for {set_num}")
        return Manifest(
            set_meta=SetMeta(
                set_num=set_data.get("set_num", set_num),
                name=set_data.get("name", set_num),
                set_img_url=set_data.get("set_img_url"),
            ),
            entries=entries,
        )

    def fetch_part_categories(self) -> dict[str, str]:
        """Return {category id: name} for every Rebrickable part category."""
        categories = {}
        with self._client() as client:
            url: Optional[str] = "/lego/part_categories/"
            params: Optional[dict] = {"page_size": PAGE_SIZE}
            while url:
                page = self._get_json(
                    client, url, params=params, what="Part categories"
                )
                for item in page.get("results", []):
                    categories[str(item["id"])] = item["name"]
                url = page.get("next")
                params = None
        return categories
