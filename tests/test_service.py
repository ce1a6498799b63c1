from __future__ import annotations

from fastapi.testclient import TestClient

from ppgscan.service import make_app


def _payload(samples) -> dict:
    return {"samples": [[s.timestamp_ms, s.luminance] for s in samples]}


def test_analyze_endpoint_accepts_clean_signal(make_ppg_samples) -> None:
    client = TestClient(make_app())
    r = client.post("/analyze", json=_payload(make_ppg_samples()))
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert 69.0 <= body["bpm"] <= 75.0
    assert body["bpm_text"] == "%.1f" % body["bpm"]


def test_analyze_endpoint_low_samples() -> None:
    client = TestClient(make_app())
    r = client.post("/analyze", json={"samples": [[i * 33, 100.0] for i in range(9)]})
    body = r.json()
    assert body["status"] == "error"
    assert body["code"] == "LOW_SAMPLES"
    assert body["bpm"] is None


def test_scan_flow_over_http(make_ppg_samples) -> None:
    client = TestClient(make_app())
    assert client.post("/scan/samples", json={"samples": [[0, 1.0]]}).status_code == 409

    r = client.post("/scan/start", json={"duration_sec": 60})
    assert r.json()["status"] == "started"
    assert client.post("/scan/start", json={"duration_sec": 60}).status_code == 409

    samples = make_ppg_samples()
    for i in range(0, len(samples), 100):
        r = client.post("/scan/samples", json=_payload(samples[i : i + 100]))
        assert r.status_code == 200

    r = client.post("/scan/stop")
    body = r.json()
    assert body["status"] == "ok"
    assert 69.0 <= body["bpm"] <= 75.0

    ev = client.get("/scan/events").json()
    assert ev["running"] is False
    kinds = [e["kind"] for e in ev["events"]]
    assert kinds[0] == "started" and kinds[-1] == "result"


def test_stop_without_scan_is_conflict() -> None:
    client = TestClient(make_app())
    assert client.post("/scan/stop").status_code == 409
