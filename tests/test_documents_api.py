"""API tests for document endpoints."""

from __future__ import annotations

import pytest


@pytest.fixture()
def ops(make_section, make_document):
    section = make_section("Ops")
    a = make_document("A", section_id=section["id"])
    b = make_document("B", section_id=section["id"])
    c = make_document("C", section_id=section["id"])
    return {"section": section, "a": a, "b": b, "c": c}


def test_create_document_appends_to_siblings(ops):
    assert [ops[key]["order"] for key in ("a", "b", "c")] == [1, 2, 3]
    assert ops["a"]["section_id"] == ops["section"]["id"]
    assert ops["a"]["parent_id"] is None


def test_create_document_in_missing_section_returns_404(client):
    response = client.post("/api/documents", json={"title": "Lost", "section_id": 77})

    assert response.status_code == 404


def test_get_document(client, ops):
    response = client.get(f"/api/documents/{ops['b']['id']}")

    assert response.status_code == 200
    assert response.json()["title"] == "B"


def test_patch_content_only(client, ops):
    response = client.patch(
        f"/api/documents/{ops['b']['id']}", json={"content": "Updated body"}
    )

    assert response.status_code == 200
    body = response.json()
    assert (body["content"], body["order"], body["parent_id"]) == ("Updated body", 2, None)


def test_patch_parent_reparents(client, ops):
    response = client.patch(
        f"/api/documents/{ops['c']['id']}", json={"parent_id": ops["a"]["id"]}
    )

    assert response.status_code == 200
    assert (response.json()["parent_id"], response.json()["order"]) == (ops["a"]["id"], 1)


def test_reparent_to_other_section_parent_returns_400(client, ops, make_section, make_document):
    other = make_section("Dev")
    foreign = make_document("Foreign", section_id=other["id"])

    response = client.post(
        f"/api/documents/{ops['a']['id']}/reparent", json={"parent_id": foreign["id"]}
    )

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_parent"
    assert client.get(f"/api/documents/{ops['a']['id']}").json()["parent_id"] is None


def test_reparent_into_own_subtree_returns_400(client, ops, make_document):
    child = make_document("A1", section_id=ops["section"]["id"], parent_id=ops["a"]["id"])

    response = client.post(
        f"/api/documents/{ops['a']['id']}/reparent", json={"parent_id": child["id"]}
    )

    assert response.status_code == 400


def test_move_document_returns_renumbered_siblings(client, ops):
    response = client.post(
        f"/api/documents/{ops['c']['id']}/move", json={"direction": "up"}
    )

    assert response.status_code == 200
    assert [(d["title"], d["order"]) for d in response.json()] == [
        ("A", 1),
        ("C", 2),
        ("B", 3),
    ]


def test_delete_document_cascades(client, ops, make_document):
    child = make_document("A1", section_id=ops["section"]["id"], parent_id=ops["a"]["id"])

    response = client.delete(f"/api/documents/{ops['a']['id']}")

    assert response.status_code == 200
    assert response.json() == {"deleted_ids": [ops["a"]["id"], child["id"]]}
    assert client.get(f"/api/documents/{child['id']}").status_code == 404
    remaining = client.get(f"/api/sections/{ops['section']['id']}/documents").json()
    assert [(d["title"], d["order"]) for d in remaining] == [("B", 1), ("C", 2)]


def test_breadcrumb(client, ops, make_document):
    child = make_document("A1", section_id=ops["section"]["id"], parent_id=ops["a"]["id"])

    response = client.get(f"/api/documents/{child['id']}/breadcrumb")

    assert response.status_code == 200
    assert response.json() == [
        {"id": ops["section"]["id"], "title": "Ops", "kind": "section"},
        {"id": ops["a"]["id"], "title": "A", "kind": "document"},
        {"id": child["id"], "title": "A1", "kind": "document"},
    ]


def test_search(client, ops, make_document):
    make_document("Pager duty", section_id=ops["section"]["id"], content="Escalation")

    response = client.get("/api/documents/search", params={"q": "ESCAL"})

    assert response.status_code == 200
    assert [d["title"] for d in response.json()] == ["Pager duty"]
    assert client.get("/api/documents/search").json() == []


def test_patch_section_to_null_is_rejected(client, ops):
    response = client.patch(f"/api/documents/{ops['a']['id']}", json={"section_id": None})

    assert response.status_code == 400
    assert response.json()["code"] == "invalid_parent"
    assert client.get("/api/orphans").json() == []


@pytest.mark.parametrize("title", ["", "   "])
def test_blank_document_title_is_rejected(client, ops, title):
    created = client.post(
        "/api/documents", json={"title": title, "section_id": ops["section"]["id"]}
    )
    patched = client.patch(f"/api/documents/{ops['a']['id']}", json={"title": title})

    assert created.status_code == 422
    assert patched.status_code == 422
    assert client.get(f"/api/documents/{ops['a']['id']}").json()["title"] == "A"


def test_document_title_is_trimmed(client, ops):
    response = client.post(
        "/api/documents", json={"title": "  Padded  ", "section_id": ops["section"]["id"]}
    )

    assert response.status_code == 201
    assert response.json()["title"] == "Padded"
