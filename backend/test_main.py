"""HTTP and WebSocket surface tests."""

import json

import pytest
from fastapi.testclient import TestClient

import main


@pytest.fixture
def client():
    with TestClient(main.app) as c:
        yield c


@pytest.fixture
def broken_client(monkeypatch, tmp_path):
    monkeypatch.setattr(main, "DATASET_SOURCE", str(tmp_path / "missing.json"))
    with TestClient(main.app) as c:
        yield c


def _receive_until(ws, predicate, limit: int = 200) -> dict:
    for _ in range(limit):
        message = ws.receive_json()
        if predicate(message):
            return message
    raise AssertionError("expected message never arrived")


# -----------------------------------------------------------------------------
# HTTP
# -----------------------------------------------------------------------------


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_graph_defaults(client) -> None:
    body = client.get("/graph", params={"hour": 12}).json()
    assert body["hour"] == 12
    assert len(body["entities"]) == 12
    assert body["kpis"]["total_entities"] == 12
    ids = {e["id"] for e in body["entities"]}
    for c in body["connections"]:
        assert c["source"] in ids and c["target"] in ids


def test_graph_rejects_hour_outside_window(client) -> None:
    assert client.get("/graph", params={"hour": 48}).status_code == 422


def test_graph_query_accepts_pv_alias(client) -> None:
    response = client.post("/graph", json={"hour": 0, "filters": {"categories": ["pv"]}})
    assert response.status_code == 200
    body = response.json()
    assert {e["category"] for e in body["entities"]} == {"solar"}
    assert body["connections"] == []
    # KPIs stay community-wide
    assert body["kpis"]["total_entities"] == 12


def test_graph_query_filtered_kpis(client) -> None:
    body = client.post("/graph", json={"filters": {"categories": ["battery"]}, "kpi_scope": "filtered"}).json()
    assert body["kpis"]["total_entities"] == 1


def test_graph_query_rejects_unknown_category(client) -> None:
    assert client.post("/graph", json={"filters": {"categories": ["windmill"]}}).status_code == 422


def test_kpis_and_flow_summary(client) -> None:
    kpis = client.get("/kpis").json()
    assert sum(kpis["counts"].values()) == kpis["total_entities"] == 12
    assert "Chalmersfastigheter" in kpis["owners"]

    summary = client.get("/flows/summary", params={"hour": 12}).json()
    assert {row["category"] for row in summary} == {"building", "solar", "grid", "battery", "charge_point"}


def test_entity_panel_and_history(client) -> None:
    body = client.get("/entities/SB1").json()
    assert body["entity"]["category"] == "building"
    assert body["panel"]["attributes"][-1] == {"label": "ID", "value": "SB1"}

    history = client.get("/entities/SB1/history").json()
    assert len(history["incoming"]) == 48
    assert len(history["outgoing"]) == 48

    assert client.get("/entities/nope").status_code == 404
    assert client.get("/entities/nope/history").status_code == 404


def test_load_failure_is_persistent_503(broken_client) -> None:
    assert broken_client.get("/health").json()["status"] == "error"
    for path in ("/graph", "/kpis", "/flows/summary", "/entities/SB1"):
        assert broken_client.get(path).status_code == 503


def test_undecodable_dataset_is_a_load_failure(monkeypatch, tmp_path) -> None:
    path = tmp_path / "community.json"
    path.write_bytes(b"\xff")
    monkeypatch.setattr(main, "DATASET_SOURCE", str(path))
    with TestClient(main.app) as c:
        assert c.get("/health").json()["status"] == "error"
        assert c.get("/graph").status_code == 503


# -----------------------------------------------------------------------------
# WebSocket
# -----------------------------------------------------------------------------


def test_ws_streams_frames(client) -> None:
    with client.websocket_connect("/ws") as ws:
        frame = ws.receive_json()
        assert len(frame["entities"]) == 12
        assert frame["hour"] == 0
        assert frame["tooltip"]["visible"] is False

        ws.send_json({"type": "hour", "hour": 12})
        frame = _receive_until(ws, lambda m: m.get("hour") == 12)
        assert frame["rebuilt"] is False


def test_ws_filters_message(client) -> None:
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_json({"type": "filters", "filters": {"categories": ["building", "grid"]}})
        frame = _receive_until(ws, lambda m: len(m.get("entities", [])) == 6)
        assert {e["category"] for e in frame["entities"]} == {"building", "grid"}


def test_ws_invalid_messages(client) -> None:
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("not json")
        assert _receive_until(ws, lambda m: "status" in m) == {"status": "invalid"}
        ws.send_text(json.dumps({"type": "hour", "hour": 99}))
        assert _receive_until(ws, lambda m: "status" in m) == {"status": "invalid"}


def test_ws_reports_load_failure(broken_client) -> None:
    with broken_client.websocket_connect("/ws") as ws:
        message = ws.receive_json()
        assert message["status"] == "error"
