"""FastAPI service exposing finger PPG scans for a Web UI.

The browser (or any client) owns the camera and posts luminance samples;
the service runs the same session and analysis used by the desktop app.

Two paths:
- ``POST /analyze``: one-shot analysis of a complete sample list.
- ``/scan/*``: a timed window fed incrementally, with events pulled from
  ``GET /scan/events`` or pushed over ``/ws``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .buffer import Sample
from .pipeline import AnalysisConfig, ScanOutcome, evaluate_samples
from .session import ScanSession

logger = logging.getLogger(__name__)


class SamplesModel(BaseModel):
    # [[timestamp_ms, luminance], ...]
    samples: list[tuple[int, float]] = Field(default_factory=list)


class StartModel(BaseModel):
    duration_sec: int = Field(30, ge=1, le=300)


def _outcome_payload(outcome: ScanOutcome) -> dict:
    res = outcome.result
    payload = {
        "status": "ok" if outcome.accepted else "error",
        "bpm": float(res.bpm) if res is not None else None,
        "quality": float(res.quality) if res is not None else None,
    }
    if outcome.accepted:
        payload["bpm_text"] = outcome.bpm_text()
    else:
        payload["code"] = outcome.error
    return payload


def make_app(config: Optional[AnalysisConfig] = None) -> FastAPI:
    app = FastAPI(title="PPG Scan Service", version="0.1.0")
    cfg = config or AnalysisConfig()
    session = ScanSession(source=None, config=cfg)

    @app.get("/health")
    async def health() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.post("/analyze")
    async def post_analyze(payload: SamplesModel) -> dict:
        snap = [Sample(int(t), float(v)) for t, v in payload.samples]
        outcome = evaluate_samples(snap, cfg)
        return _outcome_payload(outcome)

    @app.post("/scan/start")
    async def post_start(payload: StartModel) -> dict:
        try:
            ok = session.start(payload.duration_sec)
        except RuntimeError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {"status": "started" if ok else "error", "duration_sec": payload.duration_sec}

    @app.post("/scan/samples")
    async def post_samples(payload: SamplesModel) -> dict:
        if not session.running:
            raise HTTPException(status_code=409, detail="No scan running")
        for t, v in payload.samples:
            session.add_sample(int(t), float(v))
        return {"status": "ok", "count": len(payload.samples)}

    @app.post("/scan/stop")
    async def post_stop() -> dict:
        outcome = session.request_stop()
        if outcome is None:
            raise HTTPException(status_code=409, detail="No scan has run")
        return _outcome_payload(outcome)

    @app.get("/scan/events")
    async def get_events() -> dict:
        return {
            "running": session.running,
            "events": [{"kind": e.kind, "value": e.value} for e in session.events],
        }

    @app.websocket("/ws")
    async def ws_events(ws: WebSocket) -> None:  # pragma: no cover - integration
        await ws.accept()
        sent = 0
        try:
            while True:
                events = session.events
                if len(events) < sent:
                    # A new window reset the event list
                    sent = 0
                for e in events[sent:]:
                    await ws.send_text(json.dumps({"kind": e.kind, "value": e.value}))
                sent = len(events)
                await asyncio.sleep(0.2)
        except WebSocketDisconnect:
            logger.info("WebSocket client disconnected")
        except Exception:
            logger.exception("WebSocket push failed")

    return app


app = make_app()


def main() -> None:  # pragma: no cover - manual run helper
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    uvicorn.run(app, host="127.0.0.1", port=8000)


if __name__ == "__main__":  # pragma: no cover
    main()
