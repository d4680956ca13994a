# src/eraledger/runtime/events.py
from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, List

Json = Dict[str, Any]


@dataclass(frozen=True, slots=True)
class RewardClaimed:
    account: str
    amount: int

    def to_json(self) -> Json:
        return {"event": "RewardClaimed", "account": self.account, "amount": str(self.amount)}


EventSink = Callable[[RewardClaimed], None]


class RecentEvents:
    """Bounded in-memory tail of emitted events, newest last."""

    def __init__(self, *, max_events: int = 1000) -> None:
        self._lock = threading.Lock()
        self._events: Deque[RewardClaimed] = deque(maxlen=max(1, int(max_events)))

    def __call__(self, ev: RewardClaimed) -> None:
        with self._lock:
            self._events.append(ev)

    def tail(self, limit: int = 50) -> List[RewardClaimed]:
        n = max(0, int(limit))
        with self._lock:
            items = list(self._events)
        return items[-n:] if n else []
