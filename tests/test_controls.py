"""
Tests for security control endpoints, including ordering and cascades.
"""
from fastapi import status

from app.models import ControlImplementation, SubControl, SubControlImplementation


def test_create_control_appends_to_ordering(client, make_control):
    first = make_control("Access Control")
    second = make_control("Data Encryption")

    assert first["sort_order"] == 0
    assert second["sort_order"] == 1


def test_create_control_requires_name(client):
    response = client.post("/api/controls", json={"description": "nameless"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_list_controls_ordered_by_sort_order(client, make_control):
    a = make_control("A")
    b = make_control("B")
    c = make_control("C")

    client.put(f"/api/controls/{a['id']}", json={"sort_order": 5})

    response = client.get("/api/controls")
    assert response.status_code == status.HTTP_200_OK
    assert [x["id"] for x in response.json()] == [b["id"], c["id"], a["id"]]


def test_get_control_and_404(client, make_control):
    control = make_control("Audit Logging", "System and user activity logging")

    response = client.get(f"/api/controls/{control['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["description"] == "System and user activity logging"

    response = client.get("/api/controls/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "NotFound"


def test_update_control(client, make_control):
    control = make_control("Backups")

    response = client.put(
        f"/api/controls/{control['id']}",
        json={"name": "Backup and Recovery", "description": "Data backup"},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}

    updated = client.get(f"/api/controls/{control['id']}").json()
    assert updated["name"] == "Backup and Recovery"
    assert updated["description"] == "Data backup"


def test_update_control_rejects_negative_sort_order(client, make_control):
    control = make_control("Backups")

    response = client.put(f"/api/controls/{control['id']}", json={"sort_order": -1})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_reorder_controls(client, make_control):
    ids = [make_control(name)["id"] for name in ("One", "Two", "Three")]
    new_order = [ids[2], ids[0], ids[1]]

    response = client.put("/api/controls/reorder", json={"ordered_ids": new_order})
    assert response.status_code == status.HTTP_200_OK
    assert [c["id"] for c in response.json()] == new_order

    listed = client.get("/api/controls").json()
    assert [c["id"] for c in listed] == new_order
    assert [c["sort_order"] for c in listed] == [0, 1, 2]


def test_reorder_controls_missing_id_rejected(client, make_control):
    ids = [make_control(name)["id"] for name in ("One", "Two", "Three")]

    response = client.put("/api/controls/reorder", json={"ordered_ids": ids[:2]})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    listed = client.get("/api/controls").json()
    assert [c["id"] for c in listed] == ids


def test_reorder_controls_duplicate_id_rejected(client, make_control):
    ids = [make_control(name)["id"] for name in ("One", "Two")]

    response = client.put("/api/controls/reorder", json={"ordered_ids": [ids[0], ids[0], ids[1]]})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_reorder_controls_unknown_id_returns_404(client, make_control):
    ids = [make_control(name)["id"] for name in ("One", "Two")]

    response = client.put("/api/controls/reorder", json={"ordered_ids": ids + [9999]})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_control_cascades(client, db_session, make_item, make_control, make_sub_control):
    item = make_item("Portal")
    control = make_control("Access Control")
    keep = make_control("Data Encryption")
    sub = make_sub_control(control["id"])
    kept_sub = make_sub_control(keep["id"], "Key Management")

    client.put(f"/api/sub-control-implementations/{item['id']}/{sub['id']}", json={"status": "green"})
    client.put(f"/api/sub-control-implementations/{item['id']}/{kept_sub['id']}", json={"status": "yellow"})
    client.put(f"/api/implementations/{item['id']}/{control['id']}", json={"status": "green"})
    client.put(f"/api/implementations/{item['id']}/{keep['id']}", json={"status": "yellow"})

    response = client.delete(f"/api/controls/{control['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}

    assert db_session.query(SubControl).filter_by(control_id=control["id"]).count() == 0
    assert db_session.query(ControlImplementation).filter_by(control_id=control["id"]).count() == 0
    assert db_session.query(SubControlImplementation).filter_by(sub_control_id=sub["id"]).count() == 0
    assert db_session.query(SubControlImplementation).filter_by(sub_control_id=kept_sub["id"]).count() == 1

    matrix = client.get("/api/matrix").json()
    assert [c["id"] for c in matrix["controls"]] == [keep["id"]]
    assert str(control["id"]) not in matrix["environments"][0]["controlStatuses"]


def test_delete_missing_control_returns_404(client):
    response = client.delete("/api/controls/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
