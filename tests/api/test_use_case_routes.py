"""Use-case routes: end-to-end through HTTP, the Dispatcher, and SQLite.

Tests cover:
    - POST /commands/CreateUser → 200 {data, correlationId, deliveryFailures}, event delivered
    - Validation failure → 400 envelope, no event
    - Unknown request type → 404 envelope
    - Command sent to /queries (or the reverse) → 400 envelope
    - Duplicate email → 409 envelope
    - Malformed body → 400 with field errors
    - Unhandled exception → 500 generic envelope, correlation header kept
    - Subscriber failure → 200 with deliveryFailures and an outbox row
"""

from unittest.mock import AsyncMock, MagicMock

from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from usecase_core.main import app
from usecase_core.models.event_delivery_failure import EventDeliveryFailure

HEADER = "X-Correlation-ID"


async def _create(client, name="Ada", email="ada@example.com", **headers):
    return await client.post(
        "/api/v1/commands/CreateUser",
        json={"payload": {"name": name, "email": email}},
        headers=headers,
    )


async def test_create_user(client, delivered):
    response = await _create(client, **{HEADER: "req-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["correlationId"] == "req-1"
    assert body["deliveryFailures"] == 0
    assert body["data"]["name"] == "Ada"
    assert body["data"]["version"] == 1
    assert [e.event_type for e in delivered] == ["UserCreated"]
    assert delivered[0].payload["user_id"] == body["data"]["id"]


async def test_validation_failure_envelope(client, delivered):
    response = await _create(client, name="", **{HEADER: "req-2"})

    assert response.status_code == 400
    assert response.json() == {
        "code": 400, "message": "name required", "correlationId": "req-2",
    }
    assert delivered == []


async def test_unknown_request_type(client):
    response = await client.post("/api/v1/commands/DeleteEverything", json={})
    assert response.status_code == 404
    body = response.json()
    assert body["code"] == 404
    assert "DeleteEverything" in body["message"]


async def test_query_route_refuses_a_command(client, delivered):
    response = await client.post(
        "/api/v1/queries/CreateUser",
        json={"payload": {"name": "Ada", "email": "ada@example.com"}},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "'CreateUser' is a command, not a query"
    assert delivered == []

    listed = await client.post("/api/v1/queries/ListUsers", json={})
    assert listed.json()["data"]["users"] == []


async def test_command_route_refuses_a_query(client):
    response = await client.post("/api/v1/commands/ListUsers", json={})
    assert response.status_code == 400
    assert response.json()["details"] == {
        "request_type": "ListUsers", "expected_kind": "query",
    }


async def test_duplicate_email_conflict(client, delivered):
    await _create(client)
    response = await _create(client, name="Other")
    assert response.status_code == 409
    assert response.json()["details"] == {"email": "ada@example.com"}
    assert len(delivered) == 1


async def test_rename_then_query(client, delivered):
    created = (await _create(client)).json()["data"]

    renamed = await client.post(
        "/api/v1/commands/RenameUser",
        json={"payload": {"user_id": created["id"], "name": "Grace", "expected_version": 1}},
    )
    assert renamed.status_code == 200
    assert renamed.json()["data"]["version"] == 2

    fetched = await client.post(
        "/api/v1/queries/GetUser", json={"payload": {"user_id": created["id"]}},
    )
    assert fetched.json()["data"]["name"] == "Grace"

    listed = await client.post("/api/v1/queries/ListUsers", json={})
    assert [u["name"] for u in listed.json()["data"]["users"]] == ["Grace"]
    assert [e.event_type for e in delivered] == ["UserCreated", "UserRenamed"]


async def test_stale_version_conflict(client):
    created = (await _create(client)).json()["data"]
    response = await client.post(
        "/api/v1/commands/RenameUser",
        json={"payload": {"user_id": created["id"], "name": "Grace", "expected_version": 5}},
    )
    assert response.status_code == 409


async def test_missing_user_not_found(client):
    response = await client.post(
        "/api/v1/queries/GetUser",
        json={"payload": {"user_id": "6f1c1b6e-7b55-4a39-9b8e-3c1a3c0f6f11"}},
    )
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "User"


async def test_malformed_body(client):
    response = await client.post(
        "/api/v1/commands/CreateUser", json={"payload": "not an object"},
        headers={HEADER: "req-3"},
    )
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Invalid request data"
    assert body["correlationId"] == "req-3"
    assert body["details"]["errors"][0]["field"] == "body.payload"


async def test_subscriber_failure_is_reported_and_recorded(
    client, event_bus, test_session_factory,
):
    def broken(event):
        raise RuntimeError("mailer down")

    event_bus.subscribe("UserCreated", broken)

    response = await _create(client)

    assert response.status_code == 200
    assert response.json()["deliveryFailures"] == 1
    async with test_session_factory() as session:
        rows = (await session.execute(select(EventDeliveryFailure))).scalars().all()
    assert [r.error for r in rows] == ["RuntimeError: mailer down"]


async def test_unhandled_exception_is_generic_500(client):
    dispatcher = MagicMock()
    dispatcher.dispatch = AsyncMock(side_effect=RuntimeError("secret internals"))
    app.state.dispatcher = dispatcher

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as c:
        response = await c.post(
            "/api/v1/commands/CreateUser", json={}, headers={HEADER: "req-500"},
        )

    assert response.status_code == 500
    assert response.headers[HEADER] == "req-500"
    body = response.json()
    assert body["code"] == 500
    assert body["correlationId"] == "req-500"
    assert body["message"] == "An unexpected error occurred"
    assert "secret" not in response.text
