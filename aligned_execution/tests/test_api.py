"""
API endpoint tests for all routes.
Uses in-memory SQLite + dependency-overridden FastAPI test client.
"""
from datetime import date, timedelta

from aligned_execution.main import app
from aligned_execution.services.events import BoardEvents

TEST_ACTOR = "Dana Planner"  # matches the X-Actor header sent by the client fixture


def _base(seed_data):
    return f"/api/projects/{seed_data['project'].id}"


async def _create_deliverable(client, seed_data, **fields):
    body = {"title": "Eligibility interface", "stream_id": seed_data["build"].id}
    body.update(fields)
    r = await client.post(f"{_base(seed_data)}/deliverables/", json=body)
    assert r.status_code == 200, r.text
    return r.json()


# ===================== HEALTH / ROOT =====================


async def test_root(client):
    r = await client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "running"


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


# ===================== PROJECTS =====================


async def test_list_projects(client, seed_data):
    r = await client.get("/api/projects/")
    assert r.status_code == 200
    projects = r.json()
    assert len(projects) == 1
    assert projects[0]["name"] == "Medicaid Modernization"
    assert projects[0]["stream_count"] == 2


async def test_create_project_with_starter_content(client):
    r = await client.post("/api/projects/", json={"name": "  New Program ", "with_starter_content": True})
    assert r.status_code == 200
    project = r.json()
    assert project["name"] == "New Program"
    assert project["stream_count"] == 1
    assert project["deliverable_count"] == 1

    r = await client.get(f"/api/projects/{project['id']}/deliverables/")
    card = r.json()[0]
    assert card["title"] == "RTG System Quick Start Guide"
    assert card["status"] == "ready"
    assert len(card["checklist"]) == 8
    assert card["comments"][0]["author"] == "RTG Guide"


async def test_create_project_empty_name(client):
    r = await client.post("/api/projects/", json={"name": "   "})
    assert r.status_code == 400


async def test_update_project_milestones(client, seed_data):
    r = await client.put(_base(seed_data), json={"go_live_date": "2025-10-01"})
    assert r.status_code == 200
    assert r.json()["go_live_date"] == "2025-10-01"
    assert r.json()["kickoff_date"] == "2025-01-06"


async def test_get_project_not_found(client):
    r = await client.get("/api/projects/9999")
    assert r.status_code == 404


async def test_nested_routes_require_existing_project(client):
    r = await client.get("/api/projects/9999/streams/")
    assert r.status_code == 404
    assert r.json()["detail"] == "Project not found"


async def test_delete_project_removes_everything(client, seed_data):
    await _create_deliverable(client, seed_data)
    r = await client.delete(_base(seed_data))
    assert r.status_code == 200

    r = await client.get("/api/projects/")
    assert r.json() == []
    r = await client.get(f"{_base(seed_data)}/deliverables/")
    assert r.status_code == 404


# ===================== STREAMS =====================


async def test_list_streams_in_board_order(client, seed_data):
    r = await client.get(f"{_base(seed_data)}/streams/")
    assert r.status_code == 200
    assert [s["name"] for s in r.json()] == ["Build", "Testing"]


async def test_create_stream_picks_palette_color(client, seed_data):
    r = await client.post(f"{_base(seed_data)}/streams/", json={"name": "Security"})
    assert r.status_code == 200
    stream = r.json()
    assert stream["color"] == "#EF4444"
    assert stream["position"] == 2
    assert stream["status"] == "active"
    assert stream["version"] == 1


async def test_create_stream_validation(client, seed_data):
    r = await client.post(f"{_base(seed_data)}/streams/", json={"name": "X", "color": "red"})
    assert r.status_code == 400
    r = await client.post(f"{_base(seed_data)}/streams/", json={"name": "  "})
    assert r.status_code == 400


async def test_stream_colors(client, seed_data):
    r = await client.get(f"{_base(seed_data)}/streams/colors")
    assert r.status_code == 200
    assert len(r.json()) == 10


async def test_update_stream_with_version(client, seed_data):
    url = f"{_base(seed_data)}/streams/{seed_data['build'].id}"
    r = await client.put(url, json={"name": "Build & Config", "color": "#10b981", "version": 1})
    assert r.status_code == 200
    assert r.json()["name"] == "Build & Config"
    assert r.json()["color"] == "#10B981"
    assert r.json()["version"] == 2

    r = await client.put(url, json={"name": "Stale edit", "version": 1})
    assert r.status_code == 409


async def test_reorder_streams(client, seed_data):
    build, test = seed_data["build"].id, seed_data["test"].id
    r = await client.post(f"{_base(seed_data)}/streams/reorder", json={"stream_ids": [test, build]})
    assert r.status_code == 200
    assert [s["id"] for s in r.json()] == [test, build]

    r = await client.post(f"{_base(seed_data)}/streams/reorder", json={"stream_ids": [12345]})
    assert r.status_code == 400


async def test_archive_requires_complete_deliverables(client, seed_data):
    base = _base(seed_data)
    stream_id = seed_data["build"].id
    card = await _create_deliverable(client, seed_data, target_date="2025-01-01")

    r = await client.post(f"{base}/streams/{stream_id}/archive")
    assert r.status_code == 409

    await client.post(f"{base}/deliverables/{card['id']}/complete")
    r = await client.post(f"{base}/streams/{stream_id}/archive")
    assert r.status_code == 200
    stream = r.json()
    assert stream["status"] == "archived"
    assert stream["archived_by"] == TEST_ACTOR
    assert stream["archive_metrics"]["total_deliverables"] == 1
    assert stream["archive_metrics"]["completed_deliverables"] == 1

    r = await client.get(f"{base}/streams/")
    assert [s["name"] for s in r.json()] == ["Testing"]
    r = await client.get(f"{base}/streams/", params={"include_archived": True})
    assert len(r.json()) == 2

    r = await client.post(f"{base}/streams/{stream_id}/unarchive")
    assert r.status_code == 200
    assert r.json()["status"] == "active"
    assert r.json()["archive_metrics"] is None


async def test_delete_stream_cascades(client, seed_data):
    base = _base(seed_data)
    doomed = await _create_deliverable(client, seed_data, title="Doomed")
    survivor = await _create_deliverable(
        client, seed_data, title="Survivor", stream_id=seed_data["test"].id, dependencies=[doomed["id"]]
    )

    r = await client.delete(f"{base}/streams/{seed_data['build'].id}")
    assert r.status_code == 200

    r = await client.get(f"{base}/deliverables/")
    cards = r.json()
    assert [c["title"] for c in cards] == ["Survivor"]
    assert cards[0]["dependencies"] == []
    assert cards[0]["id"] == survivor["id"]


# ===================== DELIVERABLES =====================


async def test_create_deliverable_captures_baseline(client, seed_data):
    card = await _create_deliverable(client, seed_data, target_date="2025-06-01", owner_name="Sam")
    assert card["status"] == "planning"
    assert card["original_date"] == "2025-06-01"
    assert card["target_date"] == "2025-06-01"
    assert card["planning_accuracy_score"] == 100
    assert card["recommit_count"] == 0
    assert card["position"] == 0
    assert card["version"] == 1


async def test_create_deliverable_positions_append(client, seed_data):
    await _create_deliverable(client, seed_data)
    second = await _create_deliverable(client, seed_data, title="Second")
    assert second["position"] == 1


async def test_create_deliverable_validation(client, seed_data):
    base = _base(seed_data)
    r = await client.post(f"{base}/deliverables/", json={"title": " "})
    assert r.status_code == 400
    r = await client.post(f"{base}/deliverables/", json={"title": "X", "stream_id": 9999})
    assert r.status_code == 400
    r = await client.post(f"{base}/deliverables/", json={"title": "X", "status": "shipped"})
    assert r.status_code == 422
    r = await client.post(f"{base}/deliverables/", json={"title": "X", "dependencies": [9999]})
    assert r.status_code == 400


async def test_get_deliverable_not_found(client, seed_data):
    r = await client.get(f"{_base(seed_data)}/deliverables/9999")
    assert r.status_code == 404


async def test_first_target_date_via_update(client, seed_data):
    card = await _create_deliverable(client, seed_data)
    assert card["planning_accuracy_score"] is None

    r = await client.put(f"{_base(seed_data)}/deliverables/{card['id']}", json={"target_date": "2025-07-01"})
    assert r.status_code == 200
    assert r.json()["original_date"] == "2025-07-01"
    assert r.json()["recommit_count"] == 0
    assert r.json()["planning_accuracy_score"] == 100


async def test_changing_committed_date_via_update_is_rejected(client, seed_data):
    card = await _create_deliverable(client, seed_data, target_date="2025-06-01")
    r = await client.put(f"{_base(seed_data)}/deliverables/{card['id']}", json={"target_date": "2025-07-01"})
    assert r.status_code == 409
    assert "recommit" in r.json()["detail"]


async def test_cleared_date_must_be_recommitted(client, seed_data):
    base = _base(seed_data)
    card = await _create_deliverable(client, seed_data, target_date="2025-01-01")
    r = await client.post(
        f"{base}/deliverables/{card['id']}/recommit",
        json={"new_date": None, "reason": "On Hold"},
    )
    assert r.status_code == 200
    assert r.json()["target_date"] is None

    r = await client.put(f"{base}/deliverables/{card['id']}", json={"target_date": "2025-09-01"})
    assert r.status_code == 409

    r = await client.get(f"{base}/deliverables/{card['id']}")
    assert r.json()["target_date"] is None
    assert r.json()["recommit_count"] == 1
    assert len(r.json()["date_history"]) == 1


async def test_recommit_records_history(client, seed_data):
    base = _base(seed_data)
    card = await _create_deliverable(client, seed_data, target_date="2025-01-01")

    r = await client.post(
        f"{base}/deliverables/{card['id']}/recommit",
        json={"new_date": "2025-02-01", "reason": "Scope Change", "explanation": "New forms added"},
    )
    assert r.status_code == 200
    r = await client.post(
        f"{base}/deliverables/{card['id']}/recommit",
        json={"new_date": "2025-03-01", "reason": "Vendor Delay"},
    )
    card = r.json()

    assert card["recommit_count"] == 2
    assert card["recommit_reasons"] == ["Scope Change", "Vendor Delay"]
    assert card["original_date"] == "2025-01-01"
    assert card["target_date"] == "2025-03-01"
    assert card["planning_accuracy_score"] == 80
    assert card["health"] == "late"
    assert len(card["date_history"]) == 2
    assert card["date_history"][0]["changed_by"] == TEST_ACTOR

    r = await client.get(f"{base}/deliverables/{card['id']}/history")
    history = r.json()
    assert history["recommit_count"] == 2
    assert [c["new_date"] for c in history["changes"]] == ["2025-02-01", "2025-03-01"]
    assert history["changes"][0]["old_date"] == "2025-01-01"
    assert history["changes"][0]["explanation"] == "New forms added"


async def test_recommit_requires_reason(client, seed_data):
    card = await _create_deliverable(client, seed_data, target_date="2025-01-01")
    r = await client.post(
        f"{_base(seed_data)}/deliverables/{card['id']}/recommit",
        json={"new_date": "2025-02-01", "reason": "   "},
    )
    assert r.status_code == 400

    r = await client.get(f"{_base(seed_data)}/deliverables/{card['id']}")
    assert r.json()["recommit_count"] == 0


async def test_recommit_without_actor_header_uses_default(anon_client, seed_data):
    card = await _create_deliverable(anon_client, seed_data, target_date="2025-01-01")
    r = await anon_client.post(
        f"{_base(seed_data)}/deliverables/{card['id']}/recommit",
        json={"new_date": "2025-02-01", "reason": "Resource Constraint"},
    )
    assert r.json()["date_history"][0]["changed_by"] == "System"


async def test_recommit_with_stale_version(client, seed_data):
    card = await _create_deliverable(client, seed_data, target_date="2025-01-01")
    url = f"{_base(seed_data)}/deliverables/{card['id']}"
    r = await client.put(url, json={"title": "Renamed", "version": card["version"]})
    assert r.status_code == 200

    r = await client.post(f"{url}/recommit", json={"new_date": "2025-02-01", "reason": "x", "version": card["version"]})
    assert r.status_code == 409


async def test_complete_deliverable(client, seed_data):
    future = (date.today() + timedelta(days=30)).isoformat()
    card = await _create_deliverable(client, seed_data, target_date=future)

    r = await client.post(f"{_base(seed_data)}/deliverables/{card['id']}/complete")
    assert r.status_code == 200
    done = r.json()
    assert done["status"] == "complete"
    assert done["completed_at"] is not None
    assert done["health"] == "complete"
    assert done["planning_accuracy_score"] == 100

    r = await client.post(f"{_base(seed_data)}/deliverables/{card['id']}/complete")
    assert r.json()["completed_at"] == done["completed_at"]


async def test_status_update_to_complete_sets_completed_at(client, seed_data):
    card = await _create_deliverable(client, seed_data)
    r = await client.put(f"{_base(seed_data)}/deliverables/{card['id']}", json={"status": "complete"})
    assert r.status_code == 200
    assert r.json()["completed_at"] is not None

    r = await client.put(f"{_base(seed_data)}/deliverables/{card['id']}", json={"status": "blocked"})
    assert r.json()["status"] == "blocked"
    assert r.json()["completed_at"] is not None


async def test_deliverable_metrics(client, seed_data):
    card = await _create_deliverable(client, seed_data, target_date="2025-06-01")
    r = await client.get(
        f"{_base(seed_data)}/deliverables/{card['id']}/metrics", params={"as_of": "2025-06-04"}
    )
    assert r.status_code == 200
    m = r.json()
    assert m["slip_days"] == 3
    assert m["is_overdue"] is True
    assert m["health"] == "late"
    assert m["program_accuracy"] == 70
    assert m["planning_accuracy_score"] == 100


async def test_dependencies_and_cycles(client, seed_data):
    base = _base(seed_data)
    a = await _create_deliverable(client, seed_data, title="A")
    b = await _create_deliverable(client, seed_data, title="B", dependencies=[a["id"], a["id"]])
    assert b["dependencies"] == [a["id"]]
    assert b["unmet_dependencies"] == [a["id"]]

    r = await client.put(f"{base}/deliverables/{a['id']}", json={"dependencies": [b["id"]]})
    assert r.status_code == 400
    assert "cycle" in r.json()["detail"]

    r = await client.put(f"{base}/deliverables/{a['id']}", json={"dependencies": [a["id"]]})
    assert r.status_code == 400

    await client.post(f"{base}/deliverables/{a['id']}/complete")
    r = await client.get(f"{base}/deliverables/{b['id']}")
    assert r.json()["unmet_dependencies"] == []

    r = await client.delete(f"{base}/deliverables/{a['id']}")
    assert r.status_code == 200
    r = await client.get(f"{base}/deliverables/{b['id']}")
    assert r.json()["dependencies"] == []


async def test_move_deliverable(client, seed_data):
    base = _base(seed_data)
    first = await _create_deliverable(client, seed_data, title="First")
    second = await _create_deliverable(client, seed_data, title="Second")

    r = await client.post(f"{base}/deliverables/{first['id']}/move", json={"stream_id": seed_data["test"].id})
    assert r.status_code == 200
    assert r.json()["stream_id"] == seed_data["test"].id
    assert r.json()["position"] == 0

    r = await client.get(f"{base}/deliverables/{second['id']}")
    assert r.json()["position"] == 0

    r = await client.post(f"{base}/deliverables/{first['id']}/move", json={"stream_id": 9999})
    assert r.status_code == 400


async def test_list_deliverables_filters(client, seed_data):
    base = _base(seed_data)
    await _create_deliverable(client, seed_data, title="In build")
    await _create_deliverable(client, seed_data, title="In test", stream_id=seed_data["test"].id, status="review")

    r = await client.get(f"{base}/deliverables/", params={"stream_id": seed_data["test"].id})
    assert [c["title"] for c in r.json()] == ["In test"]
    r = await client.get(f"{base}/deliverables/", params={"status": "planning"})
    assert [c["title"] for c in r.json()] == ["In build"]


async def test_assign_team_member(client, seed_data):
    base = _base(seed_data)
    card = await _create_deliverable(client, seed_data, assigned_member_id=seed_data["member"].id)
    assert card["assigned_member_id"] == seed_data["member"].id

    r = await client.put(f"{base}/deliverables/{card['id']}", json={"assigned_member_id": 9999})
    assert r.status_code == 400


async def test_update_clears_optional_fields(client, seed_data):
    base = _base(seed_data)
    card = await _create_deliverable(
        client, seed_data,
        description="Batch feed", owner_name="Sam Owner", assigned_member_id=seed_data["member"].id,
    )

    r = await client.put(
        f"{base}/deliverables/{card['id']}",
        json={"description": None, "owner_name": None, "assigned_member_id": None, "title": None},
    )
    assert r.status_code == 200
    updated = r.json()
    assert updated["description"] is None
    assert updated["owner_name"] is None
    assert updated["assigned_member_id"] is None
    assert updated["title"] == "Eligibility interface"


async def test_board_events_published(client, seed_data):
    received = []
    events: BoardEvents = app.state.events
    unsubscribe = events.subscribe(received.append)
    try:
        card = await _create_deliverable(client, seed_data, target_date="2025-01-01")
        await client.post(
            f"{_base(seed_data)}/deliverables/{card['id']}/recommit",
            json={"new_date": "2025-02-01", "reason": "Vendor Delay"},
        )
    finally:
        unsubscribe()

    assert [e.name for e in received] == ["deliverable.created", "deliverable.recommitted"]
    recommit = received[1]
    assert recommit.actor == TEST_ACTOR
    assert recommit.project_id == seed_data["project"].id
    assert recommit.payload["old_date"] == "2025-01-01"
    assert recommit.payload["reason"] == "Vendor Delay"


async def test_create_events_carry_names(client, seed_data):
    received = []
    events: BoardEvents = app.state.events
    unsubscribe = events.subscribe(received.append)
    try:
        r = await client.post(f"{_base(seed_data)}/streams/", json={"name": "Security"})
        assert r.status_code == 200
        r = await client.post("/api/projects/", json={"name": "Second Program"})
        assert r.status_code == 200
    finally:
        unsubscribe()

    assert [e.name for e in received] == ["stream.created", "project.created"]
    assert received[0].payload["stream_name"] == "Security"
    assert received[1].payload["project_name"] == "Second Program"
    assert received[1].actor == TEST_ACTOR


# ===================== CHECKLIST / COMMENTS =====================


async def test_checklist_flow(client, seed_data):
    card = await _create_deliverable(client, seed_data)
    url = f"{_base(seed_data)}/deliverables/{card['id']}"

    r = await client.post(f"{url}/checklist", json={"text": "Draft requirements"})
    assert r.status_code == 200
    first = r.json()
    assert first["done"] is False
    assert first["position"] == 0

    r = await client.post(f"{url}/checklist/bulk", json={"text": "- Review\n2. Sign off\n\n"})
    assert r.status_code == 200
    assert [c["text"] for c in r.json()] == ["Review", "Sign off"]
    assert [c["position"] for c in r.json()] == [1, 2]

    r = await client.post(f"{url}/checklist/{first['id']}/toggle")
    assert r.json()["done"] is True
    assert r.json()["done_at"] is not None
    r = await client.post(f"{url}/checklist/{first['id']}/toggle")
    assert r.json()["done"] is False
    assert r.json()["done_at"] is None

    r = await client.put(f"{url}/checklist/{first['id']}", json={"text": "Draft final requirements"})
    assert r.json()["text"] == "Draft final requirements"

    r = await client.delete(f"{url}/checklist/{first['id']}")
    assert r.status_code == 200
    r = await client.get(f"{url}/checklist")
    assert len(r.json()) == 2

    r = await client.post(f"{url}/checklist/bulk", json={"text": "\n - \n"})
    assert r.status_code == 400
    r = await client.delete(f"{url}/checklist/9999")
    assert r.status_code == 404


async def test_comments_flow(client, seed_data):
    card = await _create_deliverable(client, seed_data)
    url = f"{_base(seed_data)}/deliverables/{card['id']}"

    r = await client.post(f"{url}/comments", json={"text": "Vendor confirmed"})
    assert r.status_code == 200
    comment = r.json()
    assert comment["author"] == TEST_ACTOR
    assert comment["updated_at"] is None

    r = await client.put(f"{url}/comments/{comment['id']}", json={"text": "Vendor confirmed in writing"})
    assert r.json()["text"] == "Vendor confirmed in writing"
    assert r.json()["updated_at"] is not None

    r = await client.delete(f"{url}/comments/{comment['id']}")
    assert r.status_code == 200
    r = await client.get(f"{url}/comments")
    assert r.json() == []


# ===================== TRACKS =====================


async def test_tracks_flow(client, seed_data):
    base = _base(seed_data)
    card = await _create_deliverable(client, seed_data)

    r = await client.post(f"{base}/tracks/", json={"title": "Vendor build", "deliverable_id": card["id"], "target_date": "2025-05-01"})
    assert r.status_code == 200
    track = r.json()
    assert track["vendor"] == "Unassigned"
    assert track["is_outside_track"] is False

    r = await client.post(f"{base}/tracks/{track['id']}/recommit", json={"new_date": "2025-06-01"})
    assert r.status_code == 200
    assert r.json()["recommit_count"] == 1
    assert r.json()["recommit_history"][0]["old_date"] == "2025-05-01"
    assert r.json()["target_date"] == "2025-06-01"

    r = await client.post(f"{base}/tracks/{track['id']}/complete")
    assert r.json()["health"] == "complete"
    assert r.json()["completed_at"] is not None

    r = await client.post(f"{base}/tracks/", json={"title": "Outside work", "vendor": "Acme"})
    assert r.json()["is_outside_track"] is True

    r = await client.get(f"{base}/tracks/", params={"deliverable_id": card["id"]})
    assert len(r.json()) == 1

    r = await client.post(f"{base}/tracks/", json={"title": "Bad", "deliverable_id": 9999})
    assert r.status_code == 400


async def test_deleting_deliverable_removes_its_tracks(client, seed_data):
    base = _base(seed_data)
    card = await _create_deliverable(client, seed_data)
    await client.post(f"{base}/tracks/", json={"title": "Vendor build", "deliverable_id": card["id"]})

    await client.delete(f"{base}/deliverables/{card['id']}")
    r = await client.get(f"{base}/tracks/")
    assert r.json() == []


# ===================== WHITEBOARD =====================


async def test_promote_notes(client, seed_data):
    base = _base(seed_data)
    r = await client.post(
        f"{base}/whiteboard/",
        json={"title": "Provider portal", "stream_id": seed_data["test"].id, "tags": ["idea", " idea ", "portal"]},
    )
    assert r.status_code == 200
    note = r.json()
    assert note["tags"] == ["idea", "portal"]

    r = await client.post(f"{base}/whiteboard/promote", json={"note_ids": [note["id"]]})
    assert r.status_code == 200
    result = r.json()
    assert result["skipped"] == []
    card = result["promoted"][0]
    assert card["title"] == "Provider portal"
    assert card["status"] == "planning"
    assert card["stream_id"] == seed_data["test"].id
    assert card["promoted_from_note_id"] == note["id"]

    r = await client.post(f"{base}/whiteboard/promote", json={"note_ids": [note["id"]]})
    assert r.json() == {"promoted": [], "skipped": [note["id"]]}

    r = await client.get(f"{base}/whiteboard/", params={"include_promoted": False})
    assert r.json() == []

    await client.delete(f"{base}/deliverables/{card['id']}")
    r = await client.get(f"{base}/whiteboard/")
    assert r.json()[0]["promoted_to_deliverable_id"] is None


async def test_promote_unknown_note(client, seed_data):
    r = await client.post(f"{_base(seed_data)}/whiteboard/promote", json={"note_ids": [9999]})
    assert r.status_code == 404


# ===================== TEAM =====================


async def test_team_crud(client, seed_data):
    base = _base(seed_data)
    r = await client.post(f"{base}/team/", json={"name": "Alex Lead", "role": "Lead"})
    assert r.status_code == 200
    member = r.json()
    assert member["active"] is True

    r = await client.put(f"{base}/team/{member['id']}", json={"active": False})
    assert r.json()["active"] is False

    r = await client.get(f"{base}/team/", params={"active_only": True})
    assert [m["name"] for m in r.json()] == ["Sam Owner"]

    r = await client.delete(f"{base}/team/{member['id']}")
    assert r.status_code == 200
    r = await client.delete(f"{base}/team/{member['id']}")
    assert r.status_code == 404


# ===================== DASHBOARD =====================


async def test_dashboard_summary(client, seed_data):
    base = _base(seed_data)
    await _create_deliverable(client, seed_data, title="On track", target_date="2025-07-01")
    late = await _create_deliverable(client, seed_data, title="Late", target_date="2025-06-01")
    done = await _create_deliverable(client, seed_data, title="Done", stream_id=seed_data["test"].id)
    await client.post(f"{base}/deliverables/{done['id']}/complete")
    await client.post(
        f"{base}/deliverables/{late['id']}/recommit",
        json={"new_date": "2025-06-20", "reason": "Vendor Delay"},
    )

    r = await client.get(f"{base}/dashboard/summary", params={"as_of": "2025-06-11"})
    assert r.status_code == 200
    summary = r.json()
    assert summary["project_name"] == "Medicaid Modernization"
    assert summary["active_streams"] == 2
    assert summary["deliverable_count"] == 3
    assert summary["health"] == {"complete": 1, "on_track": 1, "late": 1}
    assert summary["program_completion_pct"] == 33
    assert summary["total_recommits"] == 1
    assert summary["total_slip_days"] == 10
    reasons = {entry["reason"]: entry for entry in summary["recommit_reasons"]}
    assert reasons["Vendor Delay"] == {"reason": "Vendor Delay", "count": 1, "pct": 100}
    assert reasons["Scope Change"]["count"] == 0
    assert [s["name"] for s in summary["streams"]] == ["Build", "Testing"]


async def test_dashboard_schedule(client, seed_data):
    base = _base(seed_data)
    await _create_deliverable(client, seed_data, target_date="2025-03-01")
    await _create_deliverable(client, seed_data, target_date="2025-05-15")

    r = await client.get(f"{base}/dashboard/schedule")
    assert r.status_code == 200
    schedule = r.json()
    assert schedule["periods"][0]["label"] == "Dec 24"
    assert schedule["periods"][-1]["label"] == "Nov 25"
    build = schedule["streams"][0]
    assert (build["start"], build["end"]) == ("2025-03-01", "2025-05-15")
    assert schedule["streams"][1]["start"] is None

    r = await client.get(f"{base}/dashboard/schedule", params={"scale": "quarterly"})
    assert r.json()["periods"][0]["label"] == "Q4 24"

    r = await client.get(f"{base}/dashboard/schedule", params={"scale": "weekly"})
    assert r.status_code == 400


async def test_dashboard_report(client, seed_data):
    await _create_deliverable(client, seed_data, target_date="2025-07-01")
    r = await client.get(f"{_base(seed_data)}/dashboard/report", params={"as_of": "2025-06-01"})
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/plain")
    assert r.text.startswith("RTG Executive Summary - Medicaid Modernization")
    assert "• Build: 1 deliverables" in r.text
    assert "• No recommits recorded yet" in r.text
