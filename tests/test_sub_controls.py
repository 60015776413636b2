"""
Tests for sub-control endpoints.
"""
from fastapi import status

from app.models import SubControlImplementation


def test_create_sub_control(client, make_control):
    control = make_control("Access Control")

    response = client.post(
        "/api/sub-controls",
        json={"control_id": control["id"], "name": "MFA", "description": "Require MFA"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["control_id"] == control["id"]
    assert data["name"] == "MFA"


def test_create_sub_control_unknown_control_returns_404(client):
    response = client.post("/api/sub-controls", json={"control_id": 9999, "name": "MFA"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "NotFound"


def test_create_sub_control_requires_control_id(client):
    response = client.post("/api/sub-controls", json={"name": "MFA"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_list_sub_controls_by_control(client, make_control, make_sub_control):
    access = make_control("Access Control")
    crypto = make_control("Data Encryption")
    mfa = make_sub_control(access["id"], "MFA")
    rbac = make_sub_control(access["id"], "RBAC")
    kms = make_sub_control(crypto["id"], "Key Management")

    all_subs = client.get("/api/sub-controls").json()
    assert {s["id"] for s in all_subs} == {mfa["id"], rbac["id"], kms["id"]}

    response = client.get(f"/api/sub-controls/control/{access['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert [s["id"] for s in response.json()] == [mfa["id"], rbac["id"]]


def test_list_sub_controls_unknown_control_returns_404(client):
    response = client.get("/api/sub-controls/control/9999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_get_update_sub_control(client, make_control, make_sub_control):
    control = make_control("Access Control")
    sub = make_sub_control(control["id"], "MFA")

    response = client.put(f"/api/sub-controls/{sub['id']}", json={"name": "Multi-Factor Authentication"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True}

    fetched = client.get(f"/api/sub-controls/{sub['id']}").json()
    assert fetched["name"] == "Multi-Factor Authentication"
    assert fetched["control_id"] == control["id"]


def test_update_missing_sub_control_returns_404(client):
    response = client.put("/api/sub-controls/9999", json={"name": "x"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_sub_control_cascades_implementations(client, db_session, make_item, make_control, make_sub_control):
    item = make_item("Portal")
    control = make_control("Access Control")
    sub = make_sub_control(control["id"])
    client.put(f"/api/sub-control-implementations/{item['id']}/{sub['id']}", json={"status": "yellow"})

    response = client.delete(f"/api/sub-controls/{sub['id']}")

    assert response.status_code == status.HTTP_200_OK
    assert client.get(f"/api/sub-controls/{sub['id']}").status_code == status.HTTP_404_NOT_FOUND
    assert db_session.query(SubControlImplementation).filter_by(sub_control_id=sub["id"]).count() == 0
