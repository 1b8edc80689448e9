"""Link negotiation: a new cable stays "down" for a settle delay, then comes up.

Timers go through a scheduler with the Tk `after` / `after_cancel` shape, so a
Tk root can drive them in the GUI while tests use TickScheduler.
"""

from __future__ import annotations

from typing import Callable, Dict, FrozenSet, Hashable, List, Optional, Protocol, Tuple

from .config import SETTLE_DELAY_MS
from .topology import Link, LinkEnd, LinkState, Topology


LinkListener = Callable[[int, str, LinkState], None]


class Scheduler(Protocol):
    def after(self, ms: int, func: Callable[[], None]) -> Hashable: ...

    def after_cancel(self, handle: Hashable) -> None: ...


class TickScheduler:
    """Deterministic scheduler. Time only moves when advance() is called."""

    def __init__(self):
        self.now_ms = 0
        self._seq = 0
        self._pending: Dict[str, Tuple[int, int, Callable[[], None]]] = {}

    def after(self, ms: int, func: Callable[[], None]) -> str:
        self._seq += 1
        handle = f"after#{self._seq}"
        self._pending[handle] = (self.now_ms + max(0, int(ms)), self._seq, func)
        return handle

    def after_cancel(self, handle: Hashable) -> None:
        self._pending.pop(handle, None)

    def advance(self, ms: int) -> int:
        """Move the clock forward and fire whatever came due. Returns the number fired."""
        target = self.now_ms + max(0, int(ms))
        fired = 0
        while True:
            due = [(t, seq, h) for h, (t, seq, _f) in self._pending.items() if t <= target]
            if not due:
                break
            t, _seq, handle = min(due)
            _t, _s, func = self._pending.pop(handle)
            self.now_ms = t
            func()
            fired += 1
        self.now_ms = target
        return fired

    def pending(self) -> int:
        return len(self._pending)


def _link_key(link: Link) -> FrozenSet[LinkEnd]:
    return frozenset((link.a, link.b))


class LinkNegotiator:
    def __init__(self, topology: Topology, scheduler: Optional[Scheduler] = None, settle_delay_ms: int = SETTLE_DELAY_MS):
        self.topology = topology
        self.scheduler = scheduler if scheduler is not None else TickScheduler()
        self.settle_delay_ms = settle_delay_ms
        self._timers: Dict[FrozenSet[LinkEnd], Hashable] = {}
        self._listeners: List[LinkListener] = []

    def subscribe(self, listener: LinkListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, link: Link) -> None:
        """(Re)start negotiation: both ends down now, up after the settle delay."""
        self.cancel(link)
        for end in (link.a, link.b):
            self._set_state(end, LinkState.DOWN)
        key = _link_key(link)
        self._timers[key] = self.scheduler.after(self.settle_delay_ms, lambda: self._settle(link))

    def cancel(self, link: Link) -> bool:
        handle = self._timers.pop(_link_key(link), None)
        if handle is None:
            return False
        self.scheduler.after_cancel(handle)
        return True

    def cancel_all(self) -> None:
        for handle in self._timers.values():
            self.scheduler.after_cancel(handle)
        self._timers.clear()

    def is_negotiating(self, link: Link) -> bool:
        return _link_key(link) in self._timers

    def pending_count(self) -> int:
        return len(self._timers)

    def _settle(self, link: Link) -> None:
        self._timers.pop(_link_key(link), None)
        # Only the exact same pairing comes up; a stale timer is a no-op.
        if not self._still_paired(link):
            return
        for end in (link.a, link.b):
            self._set_state(end, LinkState.UP)

    def _still_paired(self, link: Link) -> bool:
        a = self.topology.get(link.a.device_id)
        b = self.topology.get(link.b.device_id)
        if a is None or b is None:
            return False
        ia = a.get_interface(link.a.interface)
        ib = b.get_interface(link.b.interface)
        return ia is not None and ib is not None and ia.peer == link.b and ib.peer == link.a

    def _set_state(self, end: LinkEnd, state: LinkState) -> None:
        dev = self.topology.get(end.device_id)
        itf = dev.get_interface(end.interface) if dev else None
        if itf is None:
            return
        itf.link_state = state
        for listener in list(self._listeners):
            listener(end.device_id, end.interface, state)
