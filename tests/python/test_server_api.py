from fastapi.testclient import TestClient

from shoal.app.server import app, controller


def test_status_reports_population_and_viewport():
    client = TestClient(app)

    response = client.get("/api/status")

    assert response.status_code == 200
    payload = response.json()
    assert payload["population"] == len(controller.school.fish)
    assert set(payload["viewport"]) == {"width", "height"}
    assert "metrics" in payload


def test_viewport_endpoint_resizes_school():
    client = TestClient(app)

    response = client.post("/api/viewport", json={"width": 400, "height": 300})

    assert response.status_code == 200
    payload = response.json()
    assert payload["population"] == controller.school.target_population(400.0, 300.0)
    assert controller.school.height == 300.0


def test_viewport_endpoint_rejects_bad_payload():
    client = TestClient(app)

    assert client.post("/api/viewport", json={"width": 400}).status_code == 400
    assert client.post("/api/viewport", json={"width": 0, "height": 10}).status_code == 400


def test_speed_multiplier_is_clamped():
    client = TestClient(app)

    response = client.post("/api/control/speed", json={"multiplier": 50})

    assert response.json() == {"multiplier": 5.0}
    controller.speed_multiplier = 1.0


def test_websocket_client_is_released_after_malformed_pointer():
    client = TestClient(app)
    before = len(controller.clients)

    with client.websocket_connect("/ws") as websocket:
        websocket.send_text('{"type": "pointer", "x": [1], "y": 3}')
        websocket.send_text('{"type": "pointer", "x": "left", "y": 3}')

    assert len(controller.clients) == before
    assert controller.pointer is None
