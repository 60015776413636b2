"""
Tests for the UI's API client and client-side cache, with HTTP mocked out.
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.ui.client import APIError, MatrixCache, TrackerClient, get_api_base_url


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


MATRIX = {
    "controls": [
        {"id": 2, "name": "Encryption", "sort_order": 1},
        {"id": 1, "name": "Access", "sort_order": 0},
    ],
    "environments": [
        {
            "id": 7,
            "name": "Portal",
            "tags": [],
            "controlStatuses": {
                "1": {"status": "green", "notes": "done"},
                "2": {"status": "red", "notes": "Not implemented"},
            },
        }
    ],
}
SUB_CONTROLS = [
    {"id": 5, "control_id": 1, "name": "MFA"},
    {"id": 6, "control_id": 2, "name": "KMS"},
]


@pytest.fixture
def cache():
    client = TrackerClient("http://api.test")
    cache = MatrixCache(client)
    with patch.object(client, "get_matrix", return_value=MATRIX), \
            patch.object(client, "list_sub_controls", return_value=SUB_CONTROLS):
        cache.refresh()
    return cache


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("", "http://localhost:8000"),
        ("http://api:8000/", "http://api:8000"),
        ("https://tracker.example.com", "https://tracker.example.com"),
        ("tracker.example.com", "https://tracker.example.com"),
    ],
)
def test_get_api_base_url(monkeypatch, raw, expected):
    monkeypatch.setenv("API_BASE_URL", raw)
    assert get_api_base_url() == expected


def test_request_builds_api_url():
    client = TrackerClient("http://api.test/")

    with patch("app.ui.client.requests.request", return_value=_response(200, [])) as mock_request:
        assert client.list_items() == []

    method, url = mock_request.call_args[0]
    assert method == "GET"
    assert url == "http://api.test/api/items"


def test_error_response_raises_api_error():
    client = TrackerClient("http://api.test")
    body = {"detail": "Cannot set control to green", "error": "PreconditionFailed", "trace_id": "t"}

    with patch("app.ui.client.requests.request", return_value=_response(409, body)):
        with pytest.raises(APIError) as exc_info:
            client.update_control_status(1, 2, "green")

    assert exc_info.value.status_code == 409
    assert exc_info.value.error_type == "PreconditionFailed"
    assert "green" in exc_info.value.message


def test_validation_error_list_is_flattened():
    client = TrackerClient("http://api.test")
    body = {"detail": [{"msg": "Input should be 'red', 'yellow' or 'green'"}]}

    with patch("app.ui.client.requests.request", return_value=_response(422, body)):
        with pytest.raises(APIError) as exc_info:
            client.update_sub_control_status(1, 2, "blue")

    assert "Input should be" in exc_info.value.message


def test_connection_error_raises_api_error():
    client = TrackerClient("http://api.test")

    with patch(
        "app.ui.client.requests.request",
        side_effect=requests.exceptions.ConnectionError("refused"),
    ):
        with pytest.raises(APIError) as exc_info:
            client.get_matrix()

    assert exc_info.value.status_code is None


def test_cache_refresh(cache):
    assert [c["id"] for c in cache.ordered_controls()] == [1, 2]
    assert cache.cell(7, 1) == {"status": "green", "notes": "done"}
    assert "controlStatuses" not in cache.items[7]
    assert [s["id"] for s in cache.sub_controls_for(1)] == [5]


def test_cache_updates_from_downgrade_response(cache):
    result = {
        "success": True,
        "parent_downgraded": True,
        "parent_status": "yellow",
        "parent_notes": "done (Downgraded due to sub-control status)",
    }
    with patch.object(cache.client, "update_sub_control_status", return_value=result):
        cache.set_sub_control_status(7, 5, "red")

    assert cache.cell(7, 1)["status"] == "yellow"


def test_cache_unchanged_when_mutation_fails(cache):
    with patch.object(cache.client, "update_control_status", side_effect=APIError("nope", 409)):
        with pytest.raises(APIError):
            cache.set_control_status(7, 2, "green")

    assert cache.cell(7, 2)["status"] == "red"


def test_cache_delete_control_drops_dependents(cache):
    with patch.object(cache.client, "delete_control", return_value={"success": True}):
        cache.delete_control(1)

    assert 1 not in cache.controls
    assert cache.sub_controls_for(1) == []
    assert cache.cell(7, 1) is None


def test_cache_update_item_reads_back_server_copy(cache):
    server_copy = {"id": 7, "name": "Portal v2", "tags": ["pci"]}
    with patch.object(cache.client, "update_item", return_value={"success": True}), \
            patch.object(cache.client, "get_item", return_value=server_copy):
        cache.update_item(7, {"name": "Portal v2"})

    assert cache.items[7] == server_copy


def test_cache_reorder_replaces_controls(cache):
    reordered = [
        {"id": 2, "name": "Encryption", "sort_order": 0},
        {"id": 1, "name": "Access", "sort_order": 1},
    ]
    with patch.object(cache.client, "reorder_controls", return_value=reordered):
        cache.reorder_controls([2, 1])

    assert [c["id"] for c in cache.ordered_controls()] == [2, 1]


def test_cache_new_item_gets_default_cells(cache):
    with patch.object(cache.client, "create_item", return_value={"id": 8, "name": "HR", "tags": []}):
        cache.create_item({"name": "HR"})

    assert cache.cell(8, 1) == {"status": "red", "notes": "Not implemented"}
    assert cache.cell(8, 2) == {"status": "red", "notes": "Not implemented"}


def test_cache_new_control_gets_default_cells(cache):
    control = {"id": 3, "name": "Logging", "sort_order": 2}
    with patch.object(cache.client, "create_control", return_value=control):
        cache.create_control({"name": "Logging"})

    assert cache.cell(7, 3) == {"status": "red", "notes": "Not implemented"}
    assert cache.cell(7, 1) == {"status": "green", "notes": "done"}


def test_cache_status_without_notes_shows_not_implemented(cache):
    with patch.object(cache.client, "update_control_status", return_value={"success": True}):
        cache.set_control_status(7, 1, "yellow", "")

    assert cache.cell(7, 1) == {"status": "yellow", "notes": "Not implemented"}
