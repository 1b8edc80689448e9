from __future__ import annotations

import json
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List

from .config import MAX_PING_LOG, MAX_SESSION_EVENTS


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SessionEvent:
    ts: str
    kind: str
    data: Dict[str, Any]


class SessionLogger:
    """Bounded, in-memory record of what happened during an editing session.

    Events are structured (kind plus keyword data) so tests can assert on them.
    Once `max_events` is reached the oldest are dropped and counted.
    """

    def __init__(self, max_events: int = MAX_SESSION_EVENTS):
        self.max_events = max_events
        self._events: Deque[SessionEvent] = deque(maxlen=max_events)
        self.dropped = 0

    @property
    def events(self) -> List[SessionEvent]:
        return list(self._events)

    def add(self, kind: str, /, **data: Any) -> SessionEvent:
        if len(self._events) == self._events.maxlen:
            self.dropped += 1
        ev = SessionEvent(ts=_now(), kind=kind, data=data)
        self._events.append(ev)
        return ev

    def of_kind(self, kind: str) -> List[SessionEvent]:
        return [e for e in self._events if e.kind == kind]

    def clear(self) -> None:
        self._events.clear()
        self.dropped = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": "netsim-session-log/v1",
            "eventCount": len(self._events),
            "dropped": self.dropped,
            "events": [asdict(e) for e in self._events],
        }

    def save_json(self, path: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)


@dataclass
class PingLogEntry:
    time: str
    source: str
    target: str
    status: str  # Success|Fail
    msg: str


class PingLog:
    """Connectivity history shown to the user, newest first."""

    def __init__(self, max_entries: int = MAX_PING_LOG):
        self.max_entries = max_entries
        self.entries: List[PingLogEntry] = []

    def record(self, source: str, target: str, success: bool, msg: str) -> PingLogEntry:
        entry = PingLogEntry(
            time=_now(),
            source=source,
            target=target,
            status="Success" if success else "Fail",
            msg="OK" if success else msg,
        )
        self.entries.insert(0, entry)
        del self.entries[self.max_entries :]
        return entry

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)
