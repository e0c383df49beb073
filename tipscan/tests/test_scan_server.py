"""Tests for the scanning API server."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tipscan.receipt.amount_parser import ScannerConfig
from tipscan.runtime.scan_server import SessionRegistry, create_app, normalize_multipart_body


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app(ScannerConfig()))


def test_health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_parse_returns_value_and_type(client: TestClient) -> None:
    response = client.post("/parse", json={"text": "Sub Total: $45.67"})

    assert response.status_code == 200
    assert response.json() == {"status": "success", "value": 45.67, "type": "subtotal"}


def test_parse_without_amount_is_unprocessable(client: TestClient) -> None:
    response = client.post("/parse", json={"text": "Thank you for dining"})

    assert response.status_code == 422
    assert response.json()["status"] == "error"


@pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"text": 42}'])
def test_parse_rejects_bad_body(client: TestClient, body: bytes) -> None:
    response = client.post("/parse", content=body, headers={"content-type": "application/json"})

    assert response.status_code == 400


def test_scan_without_file_is_rejected(client: TestClient) -> None:
    response = client.post("/scan", data={"note": "no image"})

    assert response.status_code == 400
    assert response.json()["message"] == "No file found in request"


def test_session_flow(client: TestClient) -> None:
    created = client.post("/sessions", json={})
    assert created.status_code == 201
    session_id = created.json()["session_id"]

    frame = {"lines": ["SUBTOTAL $90.00", "Tax $11.70", "TOTAL $101.70"]}
    first = client.post(f"/sessions/{session_id}/frames", json=frame).json()
    assert first["state"] == "consensus_found"
    assert first["changed"] is True
    assert first["amounts"] == {"subtotal": 90.0, "total": 101.7, "gratuity": None}

    second = client.post(f"/sessions/{session_id}/frames", json=frame).json()
    assert second["changed"] is False

    dismissed = client.delete(f"/sessions/{session_id}")
    assert dismissed.status_code == 200
    assert dismissed.json()["state"] == "dismissed"
    assert dismissed.json()["amounts"]["total"] == pytest.approx(101.70)

    assert client.delete(f"/sessions/{session_id}").status_code == 404


def test_session_frame_with_observations(client: TestClient) -> None:
    session_id = client.post("/sessions", json={"origin": "top"}).json()["session_id"]
    frame = {
        "observations": [
            {"text": "TOTAL", "bounding_box": {"x": 0.1, "y": 0.80, "width": 0.2, "height": 0.02}},
            {"text": "$101.70", "bounding_box": {"x": 0.7, "y": 0.801, "width": 0.2, "height": 0.02}},
        ]
    }

    body = client.post(f"/sessions/{session_id}/frames", json=frame).json()

    assert body["amounts"]["total"] == 101.7


def test_empty_frame_clears_readings(client: TestClient) -> None:
    session_id = client.post("/sessions", json={}).json()["session_id"]
    client.post(f"/sessions/{session_id}/frames", json={"lines": ["TOTAL $50.00"]})

    body = client.post(f"/sessions/{session_id}/frames", json={"lines": []}).json()

    assert body == {
        "state": "scanning",
        "changed": False,
        "amounts": {"subtotal": None, "total": None, "gratuity": None},
    }


def test_session_errors(client: TestClient) -> None:
    assert client.post("/sessions", json={"origin": "sideways"}).status_code == 400
    assert client.post("/sessions/missing/frames", json={"lines": []}).status_code == 404

    session_id = client.post("/sessions", json={}).json()["session_id"]
    response = client.post(
        f"/sessions/{session_id}/frames", content=b"oops", headers={"content-type": "application/json"}
    )
    assert response.status_code == 400


def test_normalize_multipart_body_converts_bare_newlines() -> None:
    body = (
        b"--XYZ\n"
        b'Content-Disposition: form-data; name="file"; filename="r.jpg"\n'
        b"Content-Type: image/jpeg\n\n"
        b"DATA\r\n"
        b"--XYZ--\r\n"
    )

    fixed = normalize_multipart_body(body, "XYZ")

    assert fixed == (
        b"--XYZ\r\n"
        b'Content-Disposition: form-data; name="file"; filename="r.jpg"\r\n'
        b"Content-Type: image/jpeg\r\n\r\n"
        b"DATA\r\n"
        b"--XYZ--\r\n"
    )


def test_normalize_multipart_body_leaves_crlf_body_unchanged() -> None:
    body = b'--XYZ\r\nContent-Disposition: form-data; name="a"\r\n\r\nvalue\r\n--XYZ--\r\n'

    assert normalize_multipart_body(body, "XYZ") == body


class _FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_idle_sessions_are_evicted() -> None:
    clock = _FakeClock()
    registry = SessionRegistry(max_idle_seconds=60.0, clock=clock)
    client = TestClient(create_app(ScannerConfig(), sessions=registry))

    abandoned = client.post("/sessions", json={}).json()["session_id"]
    active = client.post("/sessions", json={}).json()["session_id"]
    clock.now += 45.0
    assert client.post(f"/sessions/{active}/frames", json={"lines": ["TOTAL $50.00"]}).status_code == 200
    clock.now += 30.0

    assert client.post(f"/sessions/{abandoned}/frames", json={"lines": ["TOTAL $50.00"]}).status_code == 404
    assert client.post(f"/sessions/{active}/frames", json={"lines": ["TOTAL $50.00"]}).status_code == 200
    assert len(registry) == 1


def test_session_limit_evicts_least_recently_used() -> None:
    clock = _FakeClock()
    registry = SessionRegistry(max_sessions=2, clock=clock)

    first = registry.create(ScannerConfig())
    clock.now += 1.0
    second = registry.create(ScannerConfig())
    clock.now += 1.0
    assert registry.get(first) is not None
    clock.now += 1.0
    third = registry.create(ScannerConfig())

    assert len(registry) == 2
    assert registry.get(second) is None
    assert registry.get(first) is not None
    assert registry.get(third) is not None
