"""JSONL event sink and per-run Plotly report generator."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

import pandas as pd
import plotly.express as px

from marketsim.domain.events import TradeEvent


class EventSink(Protocol):
    """Destination for structured simulation events."""

    def emit(self, event: TradeEvent) -> None:
        """Record one event."""


class NullEventSink:
    """Event sink that drops everything."""

    def emit(self, event: TradeEvent) -> None:
        _ = event


class JsonlEventSink:
    """Append-only JSONL writer."""

    def __init__(self, path: str) -> None:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        self.path = output_path

    def emit(self, event: TradeEvent) -> None:
        record = event.to_record()
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, sort_keys=True))
            handle.write("\n")


def load_events(path: str | Path) -> list[dict[str, Any]]:
    """Load JSONL records from disk."""
    records: list[dict[str, Any]] = []
    input_path = Path(path)
    if not input_path.exists():
        return records
    with input_path.open("r", encoding="utf-8") as handle:
        for line in handle:
            text = line.strip()
            if not text:
                continue
            records.append(json.loads(text))
    return records


def events_to_frames(events: list[dict[str, Any]]) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Split events into a tick price frame and a fill frame."""
    ticks: list[dict[str, Any]] = []
    fills: list[dict[str, Any]] = []
    for event in events:
        payload = event.get("payload", {})
        event_type = event.get("event_type")
        if event_type == "tick":
            ticks.append(
                {
                    "timestamp": payload.get("timestamp"),
                    "symbol": payload.get("symbol", ""),
                    "price": payload.get("price"),
                }
            )
        elif event_type == "fill":
            fills.append(
                {
                    "timestamp": event.get("ts"),
                    "symbol": payload.get("symbol", ""),
                    "side": payload.get("side", ""),
                    "qty": payload.get("qty", 0),
                    "price": payload.get("price"),
                }
            )
    tick_frame = pd.DataFrame(ticks, columns=["timestamp", "symbol", "price"])
    fill_frame = pd.DataFrame(fills, columns=["timestamp", "symbol", "side", "qty", "price"])
    for frame in (tick_frame, fill_frame):
        frame["timestamp"] = pd.to_datetime(frame["timestamp"], utc=True, errors="coerce")
        frame["price"] = pd.to_numeric(frame["price"], errors="coerce")
    return tick_frame, fill_frame


def generate_plotly_report(events_jsonl_path: str, output_html_path: str) -> None:
    """Render price lines per symbol with fill markers."""
    events = load_events(events_jsonl_path)
    output = Path(output_html_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    ticks, fills = events_to_frames(events)
    if ticks.empty:
        empty_df = pd.DataFrame({"event_type": ["none"], "count": [0]})
        figure = px.bar(empty_df, x="event_type", y="count", title="Run Event Summary")
        figure.write_html(str(output), include_plotlyjs="cdn")
        return

    prices = px.line(
        ticks.sort_values("timestamp"),
        x="timestamp",
        y="price",
        color="symbol",
        title="Simulated Prices",
    )
    html_parts = [
        "<html><head><meta charset='utf-8'><title>marketsim run report</title></head><body>",
        prices.to_html(full_html=False, include_plotlyjs="cdn"),
    ]
    if not fills.empty:
        trades = px.scatter(
            fills,
            x="timestamp",
            y="price",
            color="side",
            symbol="symbol",
            title="Fills",
            hover_data=["qty"],
        )
        html_parts.append(trades.to_html(full_html=False, include_plotlyjs=False))
    html_parts.append("</body></html>")
    output.write_text("".join(html_parts), encoding="utf-8")
