"""
Tests for the chat HTTP endpoints.
"""
import barista_bot.config as config_mod
from barista_bot.routes import limiter


def start_session(client) -> str:
    resp = client.post("/chat/start")
    assert resp.status_code == 200
    return resp.json()["session_id"]


def send(client, session_id, message, **extra):
    return client.post("/chat/message", json={"session_id": session_id, "message": message, **extra})


def test_chat_start_returns_session_and_greeting(client):
    resp = client.post("/chat/start")
    assert resp.status_code == 200
    data = resp.json()
    assert data["session_id"]
    assert data["step"] == "awaiting_ready"
    assert "¿Estás listo para ordenar?" in data["message"]
    assert "¡" in data["speech"]


def test_request_id_in_response_header(client):
    """A generated X-Request-ID is returned on every response."""
    resp = client.post("/chat/start")
    request_id = resp.headers["X-Request-ID"]
    assert len(request_id) == 36
    assert request_id.count("-") == 4


def test_request_id_can_be_provided_by_client(client):
    resp = client.post("/chat/start", headers={"X-Request-ID": "voice-gw-123"})
    assert resp.headers["X-Request-ID"] == "voice-gw-123"


def test_api_v1_endpoints_work(client):
    resp = client.post("/api/v1/chat/start")
    assert resp.status_code == 200
    session_id = resp.json()["session_id"]

    resp = client.post("/api/v1/chat/message", json={"session_id": session_id, "message": "sí"})
    assert resp.status_code == 200
    assert resp.json()["step"] == "branch"


def test_health_endpoint_not_versioned(client):
    start_session(client)
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["sessions"]["size"] == 1


def test_chat_message_advances_step(client):
    session_id = start_session(client)
    send(client, session_id, "sí")
    resp = send(client, session_id, "en la de condesa")

    assert resp.status_code == 200
    data = resp.json()
    assert data["step"] == "beverage"
    assert data["turn"] == 2
    assert data["order_state"]["branch"] == "Starbucks Condesa"
    assert data["suggestions"] == ["Caffè Latte", "Cappuccino", "Americano"]
    assert not data["order_complete"]


def test_full_order_over_http(client):
    session_id = start_session(client)
    for message in [
        "sí",
        "Reforma",
        "un americano grande",
        "no, gracias",
        "así está bien",
        "sí",
        "con starbucks card",
    ]:
        resp = send(client, session_id, message)
        assert resp.status_code == 200, message

    data = resp.json()
    assert data["step"] == "done"
    assert data["order_complete"]
    assert data["order_data"]["total"] == 55.0
    assert data["order_data"]["loyalty_points"] == 5
    assert data["order_data"]["order_number"] == "SBX191234"
    assert "$" not in data["speech"]

    history = client.get(f"/chat/{session_id}/history")
    assert history.status_code == 200
    orders = history.json()["orders"]
    assert len(orders) == 1
    assert orders[0]["order_number"] == "SBX191234"
    assert orders[0]["line_items"] == [
        {"kind": "beverage", "name": "Americano", "price": 55.0, "size": "Grande"},
    ]


def test_running_price_in_response(client):
    session_id = start_session(client)
    for message in ["sí", "Reforma", "un americano venti"]:
        resp = send(client, session_id, message)
    price = resp.json()["price"]
    assert price["total"] == 60.0
    assert price["line_items"][0]["size"] == "Venti"


def test_retry_with_turn_is_served_from_cache(client):
    session_id = start_session(client)
    first = send(client, session_id, "sí", turn=1).json()
    retry = send(client, session_id, "sí", turn=1).json()
    assert not first["cached"]
    assert retry["cached"]
    assert retry["turn"] == first["turn"] == 1


def test_unknown_session_returns_404(client):
    resp = send(client, "does-not-exist", "hola")
    assert resp.status_code == 404


def test_unknown_session_history_returns_404(client):
    resp = client.get("/chat/does-not-exist/history")
    assert resp.status_code == 404


def test_message_too_long_returns_422(client):
    session_id = start_session(client)
    resp = send(client, session_id, "a" * (config_mod.MAX_MESSAGE_LENGTH + 1))
    assert resp.status_code == 422


def test_empty_message_returns_422(client):
    session_id = start_session(client)
    resp = send(client, session_id, "")
    assert resp.status_code == 422


def test_rate_limit_returns_429_when_exceeded(client, monkeypatch):
    monkeypatch.setattr(config_mod, "RATE_LIMIT_CHAT", "2 per minute")
    limiter.enabled = True
    limiter.reset()

    try:
        assert client.post("/chat/start").status_code == 200
        assert client.post("/chat/start").status_code == 200
        assert client.post("/chat/start").status_code == 429
    finally:
        limiter.enabled = False
        limiter.reset()
