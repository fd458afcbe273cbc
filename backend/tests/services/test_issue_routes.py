"""Issue, Sequence & Element Routes — HTTP behaviour end to end on SQLite.

Tests cover:
    - POST /issues numbers the issue; GET returns it
    - POST /issues/{id}/number is idempotent
    - DELETE compacts remaining numbers and reports the result
    - Display endpoint assigns lazily and matches the stored number
    - Error envelopes for unknown ids and invalid bodies
    - Element settings round-trip, default width, preview without writes
"""

import logging
from uuid import uuid4

from certnum.core.errors import StorageTimeoutError
from certnum.services.issue_service import IssueService


async def _issue(client, user="u1"):
    res = await client.post(
        "/api/v1/issues", json={"user_id": user, "template_id": "tpl-1"},
    )
    assert res.status_code == 201
    return res.json()


async def test_health_endpoints(client):
    assert (await client.get("/api/v1/health/")).status_code == 200
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_create_issue_returns_number(client):
    body = await _issue(client)
    assert body["certificate_number"] == 1
    assert len(body["code"]) == 10

    res = await client.get(f"/api/v1/issues/{body['id']}")
    assert res.json()["certificate_number"] == 1


async def test_create_issue_rejects_blank_user(client):
    res = await client.post(
        "/api/v1/issues", json={"user_id": "   ", "template_id": "tpl"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_assign_number_is_idempotent(client):
    body = await _issue(client)
    first = await client.post(f"/api/v1/issues/{body['id']}/number")
    second = await client.post(f"/api/v1/issues/{body['id']}/number")
    assert first.json()["certificate_number"] == 1
    assert second.json()["certificate_number"] == 1


async def test_delete_compacts_remaining_numbers(client):
    a, b, c = [await _issue(client, f"u{i}") for i in range(3)]

    res = await client.delete(f"/api/v1/issues/{b['id']}")

    assert res.status_code == 200
    assert res.json() == {"total": 2, "renumbered": 1}
    assert (await client.get(f"/api/v1/issues/{a['id']}")).json()["certificate_number"] == 1
    assert (await client.get(f"/api/v1/issues/{c['id']}")).json()["certificate_number"] == 2
    status = (await client.get("/api/v1/sequence")).json()
    assert status["count"] == 2
    assert status["contiguous"] is True


async def test_delete_unknown_issue_returns_404_envelope(client):
    missing = uuid4()
    res = await client.delete(f"/api/v1/issues/{missing}")
    assert res.status_code == 404
    error = res.json()["error"]
    assert error["code"] == "RECORD_NOT_FOUND"
    assert error["context"]["issue_id"] == str(missing)


async def test_display_assigns_lazily(client, manager, services):
    for i in range(3):
        await _issue(client, f"early-{i}")
    lazy = IssueService(manager, services.allocator, assign_on_issue=False)
    record = await lazy.issue("late", "tpl")

    res = await client.get(f"/api/v1/issues/{record.id}/display")

    assert res.status_code == 200
    body = res.json()
    assert body["mode"] == "show_allocated_number"
    assert body["value"] == "4"
    stored = (await client.get(f"/api/v1/issues/{record.id}")).json()["certificate_number"]
    assert stored == 4


async def test_compact_endpoint_on_contiguous_sequence_is_noop(client):
    await _issue(client, "u1")
    await _issue(client, "u2")
    res = await client.post("/api/v1/sequence/compact")
    assert res.json() == {"total": 2, "renumbered": 0}


async def test_element_settings_round_trip_and_default_width(client):
    res = await client.post(
        "/api/v1/elements", json={"template_id": "tpl-1", "display": 1},
    )
    assert res.status_code == 201
    element = res.json()
    assert element["display"] == 1
    assert element["width"] == 35

    res = await client.put(
        f"/api/v1/elements/{element['id']}/display", json={"display": None},
    )
    assert res.json()["display"] is None

    fetched = (await client.get(f"/api/v1/elements/{element['id']}")).json()
    assert fetched["display"] is None
    assert fetched["name"] == "Certificate number"


async def test_unknown_element_returns_404(client):
    res = await client.get(f"/api/v1/elements/{uuid4()}")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RECORD_NOT_FOUND"


async def test_element_rejects_unknown_display_mode(client):
    res = await client.post(
        "/api/v1/elements", json={"template_id": "tpl-1", "display": 9},
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_display_through_code_element_passes_code(client):
    issue = await _issue(client)
    element = (await client.post(
        "/api/v1/elements", json={"template_id": "tpl-1", "display": None},
    )).json()

    res = await client.get(
        f"/api/v1/issues/{issue['id']}/display",
        params={"element_id": element["id"]},
    )

    assert res.json() == {"issue_id": issue["id"], "value": issue["code"], "mode": "code"}


async def test_element_preview_does_not_assign(client):
    await _issue(client, "u1")
    element = (await client.post(
        "/api/v1/elements", json={"template_id": "tpl-1", "display": 1},
    )).json()

    first = await client.get(f"/api/v1/elements/{element['id']}/preview")
    second = await client.get(f"/api/v1/elements/{element['id']}/preview")

    expected = {"value": "2", "html": '<span class="certificate-number">2</span>'}
    assert first.json() == expected
    assert second.json() == expected


async def test_element_rejects_boolean_display_mode(client):
    res = await client.post(
        "/api/v1/elements", json={"template_id": "tpl-1", "display": True},
    )
    assert res.status_code == 400


async def test_storage_timeout_is_503_and_not_logged_critical(
    client, services, monkeypatch, caplog,
):
    async def timed_out():
        raise StorageTimeoutError("lock", 5)

    monkeypatch.setattr(services.allocator, "verify", timed_out)
    with caplog.at_level(logging.INFO):
        res = await client.get("/api/v1/sequence")

    assert res.status_code == 503
    assert res.json()["error"]["code"] == "STORAGE_TIMEOUT"
    assert not [r for r in caplog.records if r.levelno >= logging.CRITICAL]
