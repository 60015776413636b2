"""
Tests for item (environment) endpoints.
"""
from fastapi import status

from app.models import ControlImplementation, SubControlImplementation


def test_create_item_defaults(client):
    response = client.post("/api/items", json={"name": "  Payment System  "})

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["name"] == "Payment System"
    assert data["criticality"] == "medium"
    assert data["tags"] == []
    assert data["created_at"]
    assert data["updated_at"]


def test_create_item_normalizes_tags(client):
    response = client.post(
        "/api/items",
        json={"name": "Employee DB", "tags": [" pii ", "internal", "", "pii"], "criticality": "high"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["tags"] == ["pii", "internal"]
    assert data["criticality"] == "high"


def test_create_item_requires_name(client):
    response = client.post("/api/items", json={"description": "no name"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    response = client.post("/api/items", json={"name": "   "})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_create_item_rejects_bad_criticality(client):
    response = client.post("/api/items", json={"name": "X", "criticality": "extreme"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_list_and_get_items(client, make_item):
    first = make_item("First")
    second = make_item("Second")

    response = client.get("/api/items")
    assert response.status_code == status.HTTP_200_OK
    assert [i["id"] for i in response.json()] == [first["id"], second["id"]]

    response = client.get(f"/api/items/{second['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["name"] == "Second"


def test_get_missing_item_returns_404(client):
    response = client.get("/api/items/9999")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    data = response.json()
    assert data["error"] == "NotFound"
    assert "9999" in data["detail"]
    assert data["trace_id"]


def test_update_item_partial(client, make_item):
    item = make_item("Portal", owner="Engineering", tags=["public"])

    response = client.put(f"/api/items/{item['id']}", json={"owner": "Platform Team"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}

    updated = client.get(f"/api/items/{item['id']}").json()
    assert updated["owner"] == "Platform Team"
    assert updated["name"] == "Portal"
    assert updated["tags"] == ["public"]
    assert updated["updated_at"] >= item["updated_at"]


def test_update_item_null_name_rejected(client, make_item):
    item = make_item("Portal")

    response = client.put(f"/api/items/{item['id']}", json={"name": None})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert client.get(f"/api/items/{item['id']}").json()["name"] == "Portal"


def test_update_item_blank_name_rejected(client, make_item):
    item = make_item("Portal")

    response = client.put(f"/api/items/{item['id']}", json={"name": "   "})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert client.get(f"/api/items/{item['id']}").json()["name"] == "Portal"


def test_update_item_name_is_stripped(client, make_item):
    item = make_item("Portal")

    response = client.put(f"/api/items/{item['id']}", json={"name": "  Portal v2 "})

    assert response.status_code == status.HTTP_200_OK
    assert client.get(f"/api/items/{item['id']}").json()["name"] == "Portal v2"


def test_update_missing_item_returns_404(client):
    response = client.put("/api/items/9999", json={"owner": "x"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_item_cascades_implementations(client, db_session, make_item, make_control, make_sub_control):
    item = make_item("Portal")
    other = make_item("Other")
    control = make_control("Access Control")
    sub = make_sub_control(control["id"])

    for target in (item, other):
        client.put(
            f"/api/sub-control-implementations/{target['id']}/{sub['id']}",
            json={"status": "green"},
        )
        client.put(
            f"/api/implementations/{target['id']}/{control['id']}",
            json={"status": "green", "notes": "done"},
        )

    response = client.delete(f"/api/items/{item['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}

    assert client.get(f"/api/items/{item['id']}").status_code == status.HTTP_404_NOT_FOUND
    assert db_session.query(ControlImplementation).filter_by(item_id=item["id"]).count() == 0
    assert db_session.query(SubControlImplementation).filter_by(item_id=item["id"]).count() == 0
    # Other environments keep their rows
    assert db_session.query(ControlImplementation).filter_by(item_id=other["id"]).count() == 1
    assert db_session.query(SubControlImplementation).filter_by(item_id=other["id"]).count() == 1


def test_delete_missing_item_returns_404(client):
    response = client.delete("/api/items/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
