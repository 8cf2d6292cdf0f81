"""
Structured telemetry for flow compilation.
"""

from __future__ import annotations

import json
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class TelemetryEvent(BaseModel):
    trace_id: str
    event: str
    timestamp: str
    data: Dict[str, Any] = Field(default_factory=dict)


class TelemetryCollector:
    """
    Thread-safe event sink keyed by trace id.

    When `root_dir` is given each trace is also appended to
    <root_dir>/<trace_id>.jsonl.
    """

    def __init__(self, root_dir: Optional[str] = None) -> None:
        self.root_dir = Path(root_dir) if root_dir else None
        if self.root_dir is not None:
            self.root_dir.mkdir(parents=True, exist_ok=True)
        self._events: Dict[str, List[TelemetryEvent]] = {}
        self._lock = threading.Lock()

    def start_trace(self, label: str, **data: Any) -> str:
        trace_id = f"{label}-{uuid.uuid4()}"
        with self._lock:
            self._events.setdefault(trace_id, [])
        self.log(trace_id, "compile_started", **data)
        return trace_id

    def log(self, trace_id: str, event: str, **data: Any) -> TelemetryEvent:
        timestamp = datetime.now(timezone.utc).isoformat()
        payload = TelemetryEvent(
            trace_id=trace_id, event=event, timestamp=timestamp, data=data
        )
        with self._lock:
            self._events.setdefault(trace_id, []).append(payload)
            if self.root_dir is not None:
                self._append_to_disk(payload)
        return payload

    def events(self, trace_id: str) -> List[TelemetryEvent]:
        with self._lock:
            return list(self._events.get(trace_id, []))

    def summarize(self, trace_id: str) -> Dict[str, Any]:
        events = self.events(trace_id)
        return {
            "trace_id": trace_id,
            "event_count": len(events),
            "events": [item.model_dump() for item in events],
        }

    def _append_to_disk(self, event: TelemetryEvent) -> None:
        path = self.root_dir / f"{event.trace_id}.jsonl"
        with path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(event.model_dump(), sort_keys=True, default=str) + "\n")
