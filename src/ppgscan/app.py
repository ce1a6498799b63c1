"""DearPyGUI entry point: finger-on-camera pulse scan.

Run with: `python run_app.py`
"""

from __future__ import annotations

import threading
from typing import Optional


def main() -> None:
    """Launch a scan window with Start/Stop, progress and BPM readout."""
    # Import locally to avoid hard dependency at import time
    from pathlib import Path

    import dearpygui.dearpygui as dpg

    # Initialize logging and fault handler
    logs_dir = Path("logs")
    try:
        logs_dir.mkdir(exist_ok=True)
    except OSError:
        pass
    import faulthandler
    import logging

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        handlers=[
            logging.FileHandler(logs_dir / "app.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    fh = (logs_dir / "faulthandler.log").open("w")
    faulthandler.enable(fh)

    from .capture import CameraLuminanceSource, CaptureConfig
    from .session import ScanEvent, ScanSession

    duration_sec = 30

    # Shared UI state (session threads produce, UI consumes)
    ui_lock = threading.Lock()
    status = "Ready"
    progress = 0
    bpm_label = "BPM: --"
    scanning = False
    alert: Optional[str] = None

    def on_event(ev: ScanEvent) -> None:
        nonlocal status, progress, bpm_label, scanning, alert
        with ui_lock:
            if ev.kind == "started":
                status = "Scanning - keep finger still and fully cover camera"
                scanning = True
                bpm_label = "BPM: --"
            elif ev.kind == "progress":
                progress = int(ev.value)
                status = f"Scanning {ev.value}%"
            elif ev.kind == "result":
                bpm_label = f"BPM: {ev.value}"
                status = "Done"
                progress = 100
                scanning = False
            elif ev.kind == "error":
                status = f"Error: {ev.value}"
                scanning = False
                alert = (
                    f"{ev.value}. Try again: stay still, fully cover the camera "
                    "with your fingertip, moderate pressure."
                )

    session: Optional[ScanSession] = None

    def on_start() -> None:
        nonlocal session, status, progress, scanning, alert
        with ui_lock:
            if scanning:
                return
            # Busy from the click on; cleared by the result or error event
            scanning = True
            status = "Preparing camera..."
            progress = 0
            alert = None
        source = CameraLuminanceSource(CaptureConfig())
        session = ScanSession(source=source, listener=on_event)
        source.on_error = session.fail
        # Device open can block; keep it off the UI thread
        threading.Thread(target=session.start, args=(duration_sec,), daemon=True).start()

    def on_stop() -> None:
        if session is not None and session.running:
            threading.Thread(target=session.request_stop, daemon=True).start()

    dpg.create_context()
    dpg.create_viewport(title="PPG Pulse (Camera)", width=520, height=380)

    primary_tag = "primary_window"
    with dpg.window(tag=primary_tag, label="PPG Pulse (Camera)", width=500, height=360):
        dpg.add_text(
            "Place the pad of your finger firmly and fully over the camera. Keep still.",
            wrap=460,
        )
        dpg.add_spacer(height=6)
        status_text = dpg.add_text("Status: Ready")
        progress_bar = dpg.add_progress_bar(default_value=0.0, width=460, overlay="0%")
        dpg.add_spacer(height=6)
        bpm_text = dpg.add_text("BPM: --")
        dpg.add_spacer(height=10)
        with dpg.group(horizontal=True):
            start_btn = dpg.add_button(label=f"Start ({duration_sec}s)", callback=lambda: on_start())
            stop_btn = dpg.add_button(label="Stop", callback=lambda: on_stop(), enabled=False)
        alert_text = dpg.add_text("", color=(220, 80, 80), wrap=460)
        dpg.add_spacer(height=10)
        dpg.add_text("Not medical. For demonstration only.", color=(140, 140, 140))

    dpg.setup_dearpygui()
    dpg.show_viewport()
    dpg.set_primary_window(primary_tag, True)

    def ui_update_callback() -> None:
        with ui_lock:
            st, pct, bl, sc, al = status, progress, bpm_label, scanning, alert
        dpg.set_value(status_text, f"Status: {st}")
        dpg.set_value(progress_bar, pct / 100.0)
        dpg.configure_item(progress_bar, overlay=f"{pct}%")
        dpg.set_value(bpm_text, bl)
        dpg.set_value(alert_text, al or "")
        dpg.configure_item(start_btn, enabled=not sc)
        dpg.configure_item(stop_btn, enabled=sc)

    # Schedule periodic UI updates (~10 Hz) using frame callbacks
    def schedule_ui_updates(interval_frames: int = 6) -> None:
        def _tick() -> None:
            ui_update_callback()
            dpg.set_frame_callback(dpg.get_frame_count() + interval_frames, _tick)

        dpg.set_frame_callback(dpg.get_frame_count() + interval_frames, _tick)

    schedule_ui_updates()

    dpg.start_dearpygui()
    if session is not None and session.running:
        session.request_stop()
    dpg.destroy_context()
