"""Tests for the Rebrickable client, using httpx.MockTransport."""

import httpx
import pytest

from brick_tally.errors import NotFound, ProviderError
from brick_tally.provider.rebrickable import (
    RebrickableClient,
    normalize_set_num,
)

BASE = "https://rebrickable.test/api/v3"

SET_JSON = {
    "set_num": "42100-1",
    "name": "Liebherr R 9800",
    "set_img_url": "https://cdn.test/42100-1.jpg",
}


def _result(part_num, color_id, qty, is_spare=False, cat=11):
    return {
        "part": {
            "part_num": part_num,
            "name": f"Part {part_num}",
            "part_cat_id": cat,
            "part_img_url": f"https://cdn.test/{part_num}.png",
        },
        "color": {"id": color_id, "name": f"Color {color_id}", "rgb": "05131D"},
        "element_id": "300121",
        "quantity": qty,
        "is_spare": is_spare,
    }


def _client(handler, api_key="secret"):
    return RebrickableClient(
        api_key=api_key, base_url=BASE, timeout=5,
        transport=httpx.MockTransport(handler),
    )


class TestNormalizeSetNum:
    def test_adds_default_variant(self):
        assert normalize_set_num("42100") == "42100-1"

    def test_keeps_variant(self):
        assert normalize_set_num("42100-2") == "42100-2"

    def test_strips_whitespace(self):
        assert normalize_set_num("  6020 ") == "6020-1"


class TestFetch:
    def test_fetches_set_and_all_pages(self):
        requests = []

        def handler(request):
            requests.append(request)
            path = request.url.path
            if path.endswith("/lego/sets/42100-1/"):
                return httpx.Response(200, json=SET_JSON)
            if path.endswith("/lego/sets/42100-1/parts/"):
                if request.url.params.get("page") == "2":
                    return httpx.Response(200, json={
                        "next": None,
                        "results": [_result("3001", 4, 2, is_spare=True)],
                    })
                return httpx.Response(200, json={
                    "next": f"{BASE}/lego/sets/42100-1/parts/?page=2",
                    "results": [_result("3001", 4, 3), _result("3001", 4, 5)],
                })
            return httpx.Response(404)

        manifest = _client(handler).fetch("42100")
        assert manifest.set_meta.set_num == "42100-1"
        assert manifest.set_meta.name == "Liebherr R 9800"
        assert manifest.set_meta.set_img_url == "https://cdn.test/42100-1.jpg"
        # Entries are not merged here
        assert [e["qty_needed"] for e in manifest.entries] == [3, 5, 2]
        assert manifest.entries[2]["is_spare"] is True
        assert all(
            r.headers["Authorization"] == "key secret" for r in requests
        )
        assert len(requests) == 3

    def test_entry_shape(self):
        def handler(request):
            if request.url.path.endswith("/parts/"):
                return httpx.Response(200, json={
                    "next": None, "results": [_result("3020", 15, 6, cat=14)],
                })
            return httpx.Response(200, json=SET_JSON)

        entry = _client(handler).fetch("42100-1").entries[0]
        assert entry == {
            "part_num": "3020",
            "part_name": "Part 3020",
            "part_img_url": "https://cdn.test/3020.png",
            "color_id": 15,
            "color_name": "Color 15",
            "color_rgb": "05131D",
            "element_id": "300121",
            "category": "14",
            "qty_needed": 6,
            "is_spare": False,
        }

    def test_unknown_set(self):
        client = _client(lambda request: httpx.Response(404, json={}))
        with pytest.raises(NotFound):
            client.fetch("99999")

    def test_server_error(self):
        client = _client(lambda request: httpx.Response(500))
        with pytest.raises(ProviderError) as exc:
            client.fetch("42100")
        assert not isinstance(exc.value, NotFound)

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(ProviderError):
            _client(handler).fetch("42100")

    def test_malformed_json(self):
        client = _client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(ProviderError):
            client.fetch("42100")

    def test_missing_api_key(self):
        client = _client(lambda request: httpx.Response(200, json=SET_JSON),
                         api_key="")
        with pytest.raises(ProviderError, match="REBRICKABLE_API_KEY"):
            client.fetch("42100")

    def test_blank_set_number(self):
        client = _client(lambda request: httpx.Response(200, json=SET_JSON))
        with pytest.raises(ProviderError):
            client.fetch("   ")


class TestFetchPartCategories:
    def test_collects_all_pages(self):
        def handler(request):
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json={
                    "next": None, "results": [{"id": 14, "name": "Plates"}],
                })
            return httpx.Response(200, json={
                "next": f"{BASE}/lego/part_categories/?page=2",
                "results": [{"id": 11, "name": "Bricks"}],
            })

        assert _client(handler).fetch_part_categories() == {
            "11": "Bricks", "14": "Plates",
        }

    def test_error(self):
        client = _client(lambda request: httpx.Response(503))
        with pytest.raises(ProviderError):
            client.fetch_part_categories()
