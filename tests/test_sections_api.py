"""API tests for section endpoints."""

from __future__ import annotations


def test_create_and_list_sections(client, make_section):
    make_section("Ops", "Runbooks")
    make_section("Dev")

    response = client.get("/api/sections")

    assert response.status_code == 200
    payload = response.json()
    assert [(s["title"], s["order"]) for s in payload] == [("Ops", 1), ("Dev", 2)]
    assert payload[0]["description"] == "Runbooks"


def test_blank_title_is_rejected(client):
    response = client.post("/api/sections", json={"title": ""})

    assert response.status_code == 422


def test_update_section(client, make_section):
    section = make_section("Ops")

    response = client.patch(f"/api/sections/{section['id']}", json={"title": " Operations "})

    assert response.status_code == 200
    assert response.json()["title"] == "Operations"
    assert response.json()["order"] == 1


def test_missing_section_returns_404(client):
    response = client.get("/api/sections/404")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


def test_move_section(client, make_section):
    make_section("One")
    make_section("Two")
    three = make_section("Three")

    response = client.post(f"/api/sections/{three['id']}/move", json={"direction": "up"})

    assert response.status_code == 200
    assert [(s["title"], s["order"]) for s in response.json()] == [
        ("One", 1),
        ("Three", 2),
        ("Two", 3),
    ]


def test_move_with_unknown_direction_is_rejected(client, make_section):
    section = make_section("One")

    response = client.post(f"/api/sections/{section['id']}/move", json={"direction": "left"})

    assert response.status_code == 422


def test_delete_section_relocates_documents(client, make_section, make_document):
    keep = make_section("Keep")
    doomed = make_section("Doomed")
    make_document("X", section_id=keep["id"])
    moved = make_document("A", section_id=doomed["id"])

    response = client.delete(f"/api/sections/{doomed['id']}")

    assert response.status_code == 200
    assert response.json() == {
        "section_id": doomed["id"],
        "destination_section_id": keep["id"],
        "relocated_document_ids": [moved["id"]],
        "created_fallback": False,
    }
    documents = client.get(f"/api/sections/{keep['id']}/documents").json()
    assert [(d["title"], d["order"]) for d in documents] == [("X", 1), ("A", 2)]


def test_deleting_last_section_creates_fallback(client, make_section, make_document):
    only = make_section("Only")
    make_document("A", section_id=only["id"])

    payload = client.delete(f"/api/sections/{only['id']}").json()

    assert payload["created_fallback"] is True
    sections = client.get("/api/sections").json()
    assert [(s["title"], s["order"]) for s in sections] == [("Uncategorized", 999)]
    assert client.get("/api/orphans").json() == []


def test_section_documents_are_flat_and_outline_is_nested(client, make_section, make_document):
    section = make_section("Ops")
    root = make_document("Root", section_id=section["id"])
    make_document("Child", section_id=section["id"], parent_id=root["id"])
    make_document("Second root", section_id=section["id"])

    documents = client.get(f"/api/sections/{section['id']}/documents").json()
    outline = client.get(f"/api/sections/{section['id']}/outline").json()

    assert [(d["title"], d["parent_id"]) for d in documents] == [
        ("Root", None),
        ("Second root", None),
        ("Child", root["id"]),
    ]
    assert [node["title"] for node in outline] == ["Root", "Second root"]
    assert outline[0]["children"][0]["title"] == "Child"
    assert outline[0]["children"][0]["children"] == []


def test_whitespace_title_is_rejected(client, make_section):
    section = make_section("Ops")

    created = client.post("/api/sections", json={"title": "   "})
    patched = client.patch(f"/api/sections/{section['id']}", json={"title": "   "})

    assert created.status_code == 422
    assert patched.status_code == 422
    assert [s["title"] for s in client.get("/api/sections").json()] == ["Ops"]


def test_new_section_after_fallback_restores_contiguous_order(client, make_section, make_document):
    only = make_section("Only")
    make_document("A", section_id=only["id"])
    client.delete(f"/api/sections/{only['id']}")

    created = make_section("Next")

    assert created["order"] == 2
    sections = client.get("/api/sections").json()
    assert [(s["title"], s["order"]) for s in sections] == [("Uncategorized", 1), ("Next", 2)]
